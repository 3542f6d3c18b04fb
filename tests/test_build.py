"""
Tests for the build use case — the resolve → decide → execute/reuse flow.
"""

import hashlib
import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

from npmbuild.adapters.base import ExecutionContext
from npmbuild.adapters.mock import MockNpmAdapter
from npmbuild.core.errors import ExecutionError
from npmbuild.core.models.config import BuildConfig
from npmbuild.core.observability.events import BuildLogger
from npmbuild.core.persistence.layer_store import Layers, write_layers
from npmbuild.core.services.resolver import BuildProcessResolver
from npmbuild.core.services.strategies import StrategyExecutor
from npmbuild.core.use_cases.build import (
    LAYER_NAME_CACHE,
    LAYER_NAME_NODE_MODULES,
    BuildContext,
    build_application,
    run_build,
)

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


def _sha(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()


def _install_leftpad(ctx: ExecutionContext) -> None:
    pkg = Path(ctx.working_dir) / "node_modules" / "leftpad"
    pkg.mkdir(parents=True, exist_ok=True)
    (pkg / "index.js").write_text("module.exports = 1")


def _fill_cache(ctx: ExecutionContext) -> None:
    cache = Path(ctx.action.args[ctx.action.args.index("--cache") + 1])
    cache.mkdir(parents=True, exist_ok=True)
    (cache / "_cacache").mkdir(exist_ok=True)


class Harness:
    """One build's collaborators, re-usable across consecutive builds."""

    def __init__(self, working_dir: Path, layers_root: Path):
        self.working_dir = working_dir
        self.layers_root = layers_root
        self.npm = MockNpmAdapter()
        self.log = BuildLogger()

    def build(self, config: BuildConfig | None = None):
        context = BuildContext(working_dir=self.working_dir, layers=Layers(self.layers_root))
        result = run_build(
            context,
            resolver=BuildProcessResolver(self.log),
            executor=StrategyExecutor(self.npm, self.log),
            build_logger=self.log,
            config=config,
            clock=lambda: NOW,
        )
        write_layers(result, self.layers_root)
        return result


@pytest.fixture
def harness(working_dir: Path, layers_root: Path) -> Harness:
    return Harness(working_dir, layers_root)


# ── Scenarios ────────────────────────────────────────────────────────


class TestScenarios:
    def test_a_empty_app_installs_and_drops_empty_cache(self, harness: Harness):
        result = harness.build()

        assert [c[0] for c in harness.npm.calls] == ["install"]
        assert result.layer_names == [LAYER_NAME_NODE_MODULES]
        assert not (harness.layers_root / f"{LAYER_NAME_CACHE}.json").exists()
        assert result.layers[0].metadata == {"built_at": NOW.isoformat(), "cache_sha": ""}

    def test_b_lock_file_without_metadata_runs_ci(self, harness: Harness):
        (harness.working_dir / "package-lock.json").write_text("X")

        result = harness.build()

        assert [c[0] for c in harness.npm.calls] == ["ci"]
        assert result.layers[0].metadata["cache_sha"] == _sha("X")
        assert "Selected NPM build process: 'npm ci'" in harness.log.text

    def test_c_matching_fingerprint_reuses_layer(self, harness: Harness):
        (harness.working_dir / "package-lock.json").write_text("X")
        harness.npm.set_side_effect("ci", _install_leftpad)
        harness.build()

        # next build starts from a fresh checkout of the same source
        (harness.working_dir / "node_modules").unlink()
        (harness.working_dir / "node_modules").mkdir()
        harness.npm.reset()

        result = harness.build()

        assert harness.npm.call_count == 0
        link = harness.working_dir / "node_modules"
        assert link.is_symlink()
        layer_modules = harness.layers_root / LAYER_NAME_NODE_MODULES / "node_modules"
        assert link.resolve() == layer_modules.resolve()
        assert (link / "leftpad" / "index.js").is_file()
        assert result.layers[0].metadata["cache_sha"] == _sha("X")
        assert "Reusing cached layer" in harness.log.text

    def test_changed_lock_file_forces_rerun(self, harness: Harness):
        lock = harness.working_dir / "package-lock.json"
        lock.write_text("X")
        harness.build()
        harness.npm.reset()

        lock.write_text("Y")
        result = harness.build()

        assert [c[0] for c in harness.npm.calls] == ["ci"]
        assert result.layers[0].metadata["cache_sha"] == _sha("Y")

    def test_d_node_modules_without_lock_rebuilds_every_time(self, harness: Harness):
        (harness.working_dir / "node_modules").mkdir()
        harness.build()
        harness.build()
        assert [c[0] for c in harness.npm.calls] == ["rebuild", "rebuild"]

    def test_install_reruns_even_with_metadata(self, harness: Harness):
        (harness.layers_root / f"{LAYER_NAME_NODE_MODULES}.json").write_text(
            '{"metadata": {"built_at": "then", "cache_sha": ""}}'
        )
        harness.build()
        assert [c[0] for c in harness.npm.calls] == ["install"]

    def test_e_in_tree_cache_is_relocated_and_kept(self, harness: Harness):
        (harness.working_dir / "package-lock.json").write_text("X")
        (harness.working_dir / "npm-cache").mkdir()
        (harness.working_dir / "npm-cache" / "some-cache-file").write_text("some-content")

        result = harness.build()

        cache_layer = harness.layers_root / LAYER_NAME_CACHE
        assert (cache_layer / "npm-cache" / "some-cache-file").read_text() == "some-content"
        assert result.layer_names == [LAYER_NAME_NODE_MODULES, LAYER_NAME_CACHE]
        assert (harness.layers_root / f"{LAYER_NAME_CACHE}.json").is_file()
        assert [c[0] for c in harness.npm.calls] == ["ci"]

    def test_cache_filled_by_npm_is_kept(self, harness: Harness):
        harness.npm.set_side_effect("install", _fill_cache)
        result = harness.build()
        assert LAYER_NAME_CACHE in result.layer_names


# ── Execute path details ─────────────────────────────────────────────


class TestExecutePath:
    def test_launch_environment(self, harness: Harness):
        result = harness.build()
        layer = result.layers[0]
        bin_path = str(harness.layers_root / LAYER_NAME_NODE_MODULES / "node_modules" / ".bin")

        assert layer.launch_env.entries == {
            "NPM_CONFIG_LOGLEVEL.override": "error",
            "NPM_CONFIG_PRODUCTION.override": "true",
            "PATH.prepend": bin_path,
            "PATH.delim": os.pathsep,
        }
        assert layer.build_env.entries == {}
        assert layer.shared_env.entries == {}

        env_dir = harness.layers_root / LAYER_NAME_NODE_MODULES / "env.launch"
        assert (env_dir / "PATH.prepend").read_text() == bin_path
        assert not (harness.layers_root / LAYER_NAME_NODE_MODULES / "env").exists()

    def test_layer_flags(self, harness: Harness):
        result = harness.build()
        layer = result.layers[0]
        assert layer.launch is True
        assert layer.cache is False

    def test_web_process(self, harness: Harness):
        result = harness.build()
        assert [(p.type, p.command) for p in result.processes] == [("web", "npm start")]

    def test_custom_config(self, harness: Harness):
        config = BuildConfig(start_command="node server.js", launch_env={"NODE_ENV": "production"})
        result = harness.build(config)
        assert result.processes[0].command == "node server.js"
        assert result.layers[0].launch_env.entries["NODE_ENV.override"] == "production"
        assert "NPM_CONFIG_LOGLEVEL.override" not in result.layers[0].launch_env.entries

    def test_layer_is_reset_before_running(self, harness: Harness):
        stale = harness.layers_root / LAYER_NAME_NODE_MODULES / "stale-file"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        harness.build()
        assert not stale.exists()

    def test_installed_modules_land_in_layer(self, harness: Harness):
        harness.npm.set_side_effect("install", _install_leftpad)
        harness.build()
        layer_modules = harness.layers_root / LAYER_NAME_NODE_MODULES / "node_modules"
        assert (layer_modules / "leftpad" / "index.js").is_file()
        assert (harness.working_dir / "node_modules").is_symlink()

    def test_rebuild_reuses_linked_node_modules(self, harness: Harness):
        harness.npm.set_side_effect("install", _install_leftpad)
        harness.build()
        # no lock file written by the mock: next build sees linked node_modules
        harness.npm.reset()
        harness.build()
        assert [c[0] for c in harness.npm.calls] == ["rebuild"]
        layer_modules = harness.layers_root / LAYER_NAME_NODE_MODULES / "node_modules"
        assert (layer_modules / "leftpad" / "index.js").is_file()

    def test_tool_failure_aborts_without_metadata(self, harness: Harness):
        harness.npm.set_failure("install")
        with pytest.raises(ExecutionError):
            harness.build()
        assert not (harness.layers_root / f"{LAYER_NAME_NODE_MODULES}.json").exists()

    def test_failed_rerun_does_not_leave_reusable_metadata(self, harness: Harness):
        lock = harness.working_dir / "package-lock.json"
        lock.write_text("X")
        harness.npm.set_side_effect("ci", _install_leftpad)
        harness.build()

        lock.write_text("Y")
        harness.npm.set_failure("ci")
        with pytest.raises(ExecutionError):
            harness.build()
        assert not (harness.layers_root / f"{LAYER_NAME_NODE_MODULES}.json").exists()

        lock.write_text("X")
        harness.npm.reset()
        harness.npm.set_side_effect("ci", _install_leftpad)
        harness.build()

        assert [c[0] for c in harness.npm.calls] == ["ci"]
        link = harness.working_dir / "node_modules"
        assert (link / "leftpad" / "index.js").is_file()

    def test_logs_title_and_phases(self, harness: Harness):
        harness.build()
        assert harness.log.messages("title")[0].startswith("npmbuild ")
        processes = harness.log.messages("process")
        assert "Resolving installation process" in processes
        assert "Executing build process" in processes
        assert "Configuring environment" in processes


class TestBuildApplication:
    def test_wires_defaults_and_writes_layers(self, working_dir: Path, layers_root: Path):
        npm = MockNpmAdapter()
        lines: list[str] = []

        result = build_application(working_dir, layers_root, npm=npm, echo=lines.append)

        assert npm.calls[0][0] == "install"
        assert result.layer_names == [LAYER_NAME_NODE_MODULES]
        assert (layers_root / f"{LAYER_NAME_NODE_MODULES}.json").is_file()
        assert (layers_root / "launch.json").is_file()
        assert any("Selected NPM build process" in line for line in lines)
