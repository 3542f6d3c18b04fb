"""Observability — logging setup and the build event sink."""
