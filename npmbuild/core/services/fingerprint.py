"""
Fingerprinting — content hashes that gate reinstallation.

A fingerprint is the lowercase hex SHA-256 of file contents.  The lock
file fingerprint is the empty string when there is no lock file, so
"no lock file before" and "no lock file now" compare equal.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from npmbuild.core.errors import FingerprintError

LOCK_FILE = "package-lock.json"

_CHUNK = 65536


def sum_files(*paths: Path) -> str:
    """Hash the contents of ``paths`` in order into one digest.

    Raises:
        OSError: If any file cannot be opened or read.
    """
    digest = hashlib.sha256()
    for path in paths:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK), b""):
                digest.update(chunk)
    return digest.hexdigest()


def file_fingerprint(path: Path) -> str:
    """Fingerprint one file, wrapping read failures in FingerprintError."""
    try:
        return sum_files(path)
    except OSError as e:
        raise FingerprintError(f"failed to fingerprint {path}: {e}") from e


def lockfile_fingerprint(working_dir: Path) -> str:
    """Fingerprint ``package-lock.json``, or ``""`` when it does not exist."""
    lock = working_dir / LOCK_FILE
    try:
        return sum_files(lock)
    except FileNotFoundError:
        return ""
    except OSError as e:
        raise FingerprintError(f"failed to fingerprint {lock}: {e}") from e
