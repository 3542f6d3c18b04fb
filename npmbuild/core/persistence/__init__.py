"""Persistence — the on-disk layer store."""
