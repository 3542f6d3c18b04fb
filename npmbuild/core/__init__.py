"""Core — domain models, services, persistence and use cases."""
