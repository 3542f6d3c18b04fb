"""
Layer models — persisted build output and its environment.

A layer is a directory that survives between builds, plus a small
metadata mapping and a set of environment modifications that the
platform applies when the application is built or launched.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class Environment(BaseModel):
    """Environment modifications, keyed by their on-disk file name.

    ``PATH.prepend`` / ``PATH.delim`` / ``NPM_CONFIG_LOGLEVEL.override``
    and so on: the key is the file written under ``env*/`` and the
    value is its content.
    """

    entries: dict[str, str] = Field(default_factory=dict)

    def override(self, name: str, value: str) -> None:
        self.entries[f"{name}.override"] = value

    def prepend(self, name: str, value: str, delim: str = "") -> None:
        self.entries[f"{name}.prepend"] = value
        if delim:
            self.entries[f"{name}.delim"] = delim

    def clear(self) -> None:
        self.entries.clear()


class Layer(BaseModel):
    """A named, persisted layer directory."""

    name: str
    path: Path

    build: bool = False
    launch: bool = False
    cache: bool = False

    metadata: dict[str, Any] = Field(default_factory=dict)

    shared_env: Environment = Field(default_factory=Environment)
    build_env: Environment = Field(default_factory=Environment)
    launch_env: Environment = Field(default_factory=Environment)

    def reset(self) -> None:
        """Empty the layer directory and forget metadata and environment."""
        if self.path.is_symlink():
            self.path.unlink()
        elif self.path.exists():
            shutil.rmtree(self.path)
        self.path.mkdir(parents=True)

        self.metadata = {}
        self.shared_env.clear()
        self.build_env.clear()
        self.launch_env.clear()

    def is_empty(self) -> bool:
        """True if the layer directory is missing or has no entries."""
        if not self.path.is_dir():
            return True
        return next(self.path.iterdir(), None) is None
