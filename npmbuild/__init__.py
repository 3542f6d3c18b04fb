"""npmbuild — npm dependency installation and caching for container builds."""

__version__ = "0.1.0"
