"""
package.json reader — the node engine version requirement.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from npmbuild.core.errors import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"


def parse_version(path: Path) -> str:
    """Return ``engines.node`` from a package.json, or ``""`` if undeclared.

    Raises:
        FileNotFoundError: If the manifest does not exist.
        ManifestError: If it exists but cannot be read or is not a valid
            package.json.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"unable to read {path.name}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(f"unable to parse {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"unable to parse {path.name}: expected a JSON object")

    engines = data.get("engines") or {}
    if not isinstance(engines, dict):
        raise ManifestError(f"unable to parse {path.name}: 'engines' must be an object")

    version = engines.get("node", "")
    if not isinstance(version, str):
        raise ManifestError(f"unable to parse {path.name}: 'engines.node' must be a string")

    logger.debug("package.json requests node %r", version)
    return version
