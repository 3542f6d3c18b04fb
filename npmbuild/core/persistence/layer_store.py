"""
Layer store — layer directories, their metadata and launch processes.

Layout under the layers root::

    <root>/<name>/                 layer content
    <root>/<name>/env/             shared environment modifications
    <root>/<name>/env.build/       build-time only
    <root>/<name>/env.launch/      launch-time only
    <root>/<name>.json             flags + metadata (persisted across builds)
    <root>/launch.json             declared processes

Metadata writes are atomic (write to temp file, then rename) to prevent
corruption if the process crashes mid-write.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from npmbuild.core.errors import LayerError
from npmbuild.core.models.build import BuildResult
from npmbuild.core.models.layer import Environment, Layer

logger = logging.getLogger(__name__)

LAUNCH_FILE = "launch.json"

_ENV_DIRS = {
    "shared_env": "env",
    "build_env": "env.build",
    "launch_env": "env.launch",
}


class Layers:
    """Access to the layers root of one build."""

    def __init__(self, root: Path):
        self.root = root

    def metadata_path(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def get(
        self,
        name: str,
        *,
        build: bool = False,
        launch: bool = False,
        cache: bool = False,
    ) -> Layer:
        """Return the named layer, creating its directory if needed.

        Metadata from the previous build is loaded from ``<name>.json``.

        Raises:
            LayerError: If the stored metadata is not valid JSON.
        """
        path = self.root / name
        path.mkdir(parents=True, exist_ok=True)

        return Layer(
            name=name,
            path=path,
            build=build,
            launch=launch,
            cache=cache,
            metadata=self.read_metadata(name),
        )

    def forget(self, name: str) -> None:
        """Remove the stored metadata of ``name``, if any."""
        self.metadata_path(name).unlink(missing_ok=True)
        logger.debug("Forgot metadata for layer %s", name)

    def read_metadata(self, name: str) -> dict[str, Any]:
        """Stored metadata of ``name``, or ``{}`` if nothing was stored."""
        path = self.metadata_path(name)
        if not path.is_file():
            return {}

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise LayerError(f"Corrupt layer metadata {path}: {e}") from e
        except OSError as e:
            raise LayerError(f"Cannot read layer metadata {path}: {e}") from e

        if not isinstance(data, dict):
            raise LayerError(f"Corrupt layer metadata {path}: expected an object")

        metadata = data.get("metadata", {})
        logger.debug("Loaded metadata for layer %s: %s", name, metadata)
        return metadata if isinstance(metadata, dict) else {}


def write_layers(result: BuildResult, root: Path) -> None:
    """Persist ``result`` under ``root``.

    Layers in the result get their metadata and env files written.
    Any other ``<name>.json`` under ``root`` is removed together with
    its directory: a layer left out of the result is not kept.
    """
    root.mkdir(parents=True, exist_ok=True)
    kept = set(result.layer_names)

    for layer in result.layers:
        _write_env(layer)
        _write_json(
            root / f"{layer.name}.json",
            {
                "name": layer.name,
                "build": layer.build,
                "launch": layer.launch,
                "cache": layer.cache,
                "metadata": layer.metadata,
            },
        )

    for stale in root.glob("*.json"):
        name = stale.stem
        if stale.name == LAUNCH_FILE or name in kept:
            continue
        stale.unlink()
        layer_dir = root / name
        if layer_dir.is_dir():
            shutil.rmtree(layer_dir)
        logger.info("Dropped layer %s", name)

    for layer_dir in root.iterdir():
        if layer_dir.is_dir() and layer_dir.name not in kept and next(layer_dir.iterdir(), None) is None:
            layer_dir.rmdir()

    _write_json(
        root / LAUNCH_FILE,
        {"processes": [p.model_dump(mode="json") for p in result.processes]},
    )


def _write_env(layer: Layer) -> None:
    for attr, dirname in _ENV_DIRS.items():
        env: Environment = getattr(layer, attr)
        if not env.entries:
            continue
        env_dir = layer.path / dirname
        env_dir.mkdir(parents=True, exist_ok=True)
        for filename, value in env.entries.items():
            (env_dir / filename).write_text(value, encoding="utf-8")


def _write_json(path: Path, data: dict[str, Any]) -> None:
    """Atomic JSON write: temp file in the same directory, then rename."""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".layer_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.replace(path)
        logger.debug("Wrote %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
