"""
Error taxonomy — every failure the build component raises on purpose.

Filesystem problems are not wrapped: ``OSError`` (and its subclasses
such as ``PermissionError``) propagate unchanged so the message the
operating system produced reaches the build log verbatim.
"""

from __future__ import annotations


class NpmBuildError(Exception):
    """Base class for all npmbuild errors."""


class ConfigError(NpmBuildError):
    """Raised when npmbuild.yml is unreadable or invalid."""


class ManifestError(NpmBuildError):
    """Raised when package.json exists but cannot be parsed."""


class DetectionFailed(NpmBuildError):
    """The application does not match this build component.

    This is an expected outcome, not a crash: the surrounding
    pipeline simply moves on to the next candidate.
    """


class FingerprintError(NpmBuildError):
    """Raised when a file needed for fingerprinting cannot be read."""


class LayerError(NpmBuildError):
    """Raised when persisted layer metadata is corrupt."""


class ExecutionError(NpmBuildError):
    """An npm invocation exited non-zero (or could not be started)."""

    def __init__(self, command: str, message: str, return_code: int | None = None):
        self.command = command
        self.return_code = return_code
        super().__init__(f"{command} failed: {message}")
