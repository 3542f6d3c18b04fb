"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from npmbuild.adapters.mock import MockNpmAdapter
from npmbuild.core.observability.events import BuildLogger


@pytest.fixture
def working_dir(tmp_path: Path) -> Path:
    """An application directory with a package.json."""
    path = tmp_path / "app"
    path.mkdir()
    (path / "package.json").write_text('{"name": "some-app", "version": "1.0.0"}')
    return path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def layers_root(tmp_path: Path) -> Path:
    path = tmp_path / "layers"
    path.mkdir()
    return path


@pytest.fixture
def build_logger() -> BuildLogger:
    return BuildLogger()


@pytest.fixture
def npm() -> MockNpmAdapter:
    return MockNpmAdapter()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces the root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
