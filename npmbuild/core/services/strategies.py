"""
Build strategies — the three ways npm can populate node_modules.

The set is closed, so a strategy is an enum member rather than an
object hierarchy.  ``StrategyExecutor`` owns the collaborators (npm
adapter, event sink, install flags) and dispatches ``should_run`` and
``run`` on the member through lookup tables.

    Strategy.INSTALL  npm install   no lock file, no node_modules
    Strategy.REBUILD  npm rebuild   no lock file, node_modules vendored
    Strategy.CI       npm ci        lock file present

Only CI can skip: it is the only strategy with a lock file whose
fingerprint says whether the previous install is still valid.
Rebuild gates its follow-up install on the *manifest* fingerprint,
not the lock file.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from npmbuild.adapters.base import Adapter, ExecutionContext
from npmbuild.core.errors import ExecutionError
from npmbuild.core.models.action import Action
from npmbuild.core.observability.events import BuildLogger
from npmbuild.core.services.cache_relocation import NPM_CACHE_DIR
from npmbuild.core.services.fingerprint import file_fingerprint, lockfile_fingerprint
from npmbuild.core.services.manifest import MANIFEST_FILE

logger = logging.getLogger(__name__)

NODE_MODULES_DIR = "node_modules"

METADATA_BUILT_AT = "built_at"
METADATA_CACHE_SHA = "cache_sha"


class Strategy(str, Enum):
    """Installation strategy, named after its npm subcommand."""

    INSTALL = "install"
    REBUILD = "rebuild"
    CI = "ci"

    @property
    def command(self) -> str:
        return f"npm {self.value}"


class StrategyExecutor:
    """Decides whether a strategy must run, and runs it."""

    def __init__(
        self,
        npm: Adapter,
        build_logger: BuildLogger,
        install_flags: list[str] | None = None,
        fingerprint: Callable[[Path], str] = file_fingerprint,
    ):
        self._npm = npm
        self._log = build_logger
        self._install_flags = list(install_flags) if install_flags is not None else ["--unsafe-perm"]
        self._fingerprint = fingerprint

        self._should_run: dict[Strategy, Callable[[Path, dict[str, Any]], tuple[bool, str]]] = {
            Strategy.INSTALL: self._always_run,
            Strategy.REBUILD: self._always_run,
            Strategy.CI: self._ci_should_run,
        }
        self._runners: dict[Strategy, Callable[[Path, Path], None]] = {
            Strategy.INSTALL: self._run_install,
            Strategy.REBUILD: self._run_rebuild,
            Strategy.CI: self._run_ci,
        }

    # ── Rerun decision ──────────────────────────────────────────

    def should_run(
        self,
        strategy: Strategy,
        working_dir: Path,
        metadata: dict[str, Any] | None,
    ) -> tuple[bool, str]:
        """Return ``(run_needed, fingerprint)`` for ``strategy``.

        Raises:
            FingerprintError: If the lock file cannot be read (CI only).
        """
        return self._should_run[strategy](working_dir, metadata or {})

    @staticmethod
    def _always_run(working_dir: Path, metadata: dict[str, Any]) -> tuple[bool, str]:
        return True, ""

    @staticmethod
    def _ci_should_run(working_dir: Path, metadata: dict[str, Any]) -> tuple[bool, str]:
        sha = lockfile_fingerprint(working_dir)
        if metadata and metadata.get(METADATA_CACHE_SHA) == sha:
            return False, sha
        return True, sha

    # ── Execution ───────────────────────────────────────────────

    def run(self, strategy: Strategy, modules_dir: Path, cache_dir: Path, working_dir: Path) -> None:
        """Run ``strategy`` and collect node_modules into ``modules_dir``.

        Raises:
            ExecutionError: If npm exits non-zero.
            FingerprintError: If package.json cannot be read (rebuild).
            OSError: On filesystem failures.
        """
        _drop_dangling_link(working_dir / NODE_MODULES_DIR)
        self._runners[strategy](cache_dir, working_dir)
        collect_node_modules(working_dir, modules_dir)

    def _run_install(self, cache_dir: Path, working_dir: Path) -> None:
        args = ["install", *self._install_flags, "--cache", str(cache_dir / NPM_CACHE_DIR)]
        self._npm_call("install", args, working_dir)

    def _run_ci(self, cache_dir: Path, working_dir: Path) -> None:
        args = ["ci", *self._install_flags, "--cache", str(cache_dir / NPM_CACHE_DIR)]
        self._npm_call("ci", args, working_dir)

    def _run_rebuild(self, cache_dir: Path, working_dir: Path) -> None:
        manifest = working_dir / MANIFEST_FILE
        before = self._fingerprint(manifest)

        self._npm_call("rebuild", ["rebuild", "--cache", str(cache_dir / NPM_CACHE_DIR)], working_dir)

        after = self._fingerprint(manifest)
        if before != after:
            self._log.subprocess("package.json changed during rebuild, running 'npm install'")
            self._run_install(cache_dir, working_dir)

    def _npm_call(self, action_id: str, args: list[str], working_dir: Path) -> None:
        action = Action(id=action_id, adapter=self._npm.name, args=args)
        context = ExecutionContext(action=action, working_dir=str(working_dir))

        if not self._npm.is_available():
            raise ExecutionError(action.command_line, f"{self._npm.name} executable not found")

        valid, message = self._npm.validate(context)
        if not valid:
            raise ExecutionError(action.command_line, message)

        self._log.subprocess("Running '%s'", action.command_line)
        start = time.monotonic()
        receipt = self._npm.execute(context)
        if receipt.failed:
            for line in receipt.output.splitlines():
                self._log.detail("%s", line)
            raise ExecutionError(action.command_line, receipt.error or "unknown error", receipt.return_code)

        self._log.action("Completed in %dms", int((time.monotonic() - start) * 1000))


def collect_node_modules(working_dir: Path, modules_dir: Path) -> Path:
    """Move ``<working_dir>/node_modules`` into the modules layer and link it back.

    npm always works in the application directory; the layer is where
    the result has to live to be persisted and put on PATH.  If npm
    produced no node_modules an empty one is created in the layer.

    Returns:
        The layer-side node_modules path.
    """
    source = working_dir / NODE_MODULES_DIR
    target = modules_dir / NODE_MODULES_DIR
    modules_dir.mkdir(parents=True, exist_ok=True)

    if source.is_symlink() and source.resolve() == target.resolve():
        target.mkdir(exist_ok=True)
        return target

    _remove(target)

    if source.is_symlink():
        resolved = source.resolve()
        source.unlink()
        if resolved.is_dir():
            shutil.copytree(resolved, target, symlinks=True)
        else:
            target.mkdir()
    elif source.is_dir():
        _move(source, target)
    else:
        target.mkdir()

    os.symlink(target, source)
    return target


def link_node_modules(working_dir: Path, modules_dir: Path) -> None:
    """Replace ``<working_dir>/node_modules`` with a link into the modules layer."""
    link = working_dir / NODE_MODULES_DIR
    _remove(link)
    os.symlink(modules_dir / NODE_MODULES_DIR, link)


def reclaim_node_modules(working_dir: Path, modules_dir: Path) -> bool:
    """Turn a link into the modules layer back into a real directory.

    Called before the layer is reset, so a strategy that works on an
    existing node_modules (rebuild) still finds it.

    Returns:
        True if a linked node_modules was moved back into the working dir.
    """
    link = working_dir / NODE_MODULES_DIR
    target = modules_dir / NODE_MODULES_DIR
    if not link.is_symlink():
        return False
    if not target.is_dir() or link.resolve() != target.resolve():
        return False
    link.unlink()
    _move(target, link)
    return True


def _remove(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


def _move(src: Path, dst: Path) -> None:
    try:
        os.replace(src, dst)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        shutil.move(src, dst)


def _drop_dangling_link(path: Path) -> None:
    if path.is_symlink() and not path.exists():
        path.unlink()
