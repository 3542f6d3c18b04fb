"""
Build process resolution — pick the npm strategy for a working directory.

Resolution is three explicit steps:

    observe()          stat the three signals, nothing else
    relocate cache     move an in-tree npm-cache into the cache layer
    select_strategy()  pure priority decision on the observation

``BuildProcessResolver.resolve`` runs them in that order.  Relocation
always happens before any strategy executes, whichever one is picked.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from npmbuild.core.observability.events import BuildLogger, format_map
from npmbuild.core.services.cache_relocation import NPM_CACHE_DIR, relocate_npm_cache
from npmbuild.core.services.fingerprint import LOCK_FILE
from npmbuild.core.services.strategies import NODE_MODULES_DIR, Strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkingDirState:
    """What resolution saw in the working directory."""

    lock_file: bool = False
    node_modules: bool = False
    npm_cache: bool = False

    def to_dict(self) -> dict[str, str]:
        def found(flag: bool) -> str:
            return "Found" if flag else "Not found"

        return {
            LOCK_FILE: found(self.lock_file),
            NODE_MODULES_DIR: found(self.node_modules),
            NPM_CACHE_DIR: found(self.npm_cache),
        }


def path_exists(path: Path) -> bool:
    """Like ``Path.exists`` but only "does not exist" counts as absent.

    Permission and other stat errors propagate instead of being read
    as a missing file.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def observe(working_dir: Path) -> WorkingDirState:
    """Stat the lock file, node_modules and npm-cache in ``working_dir``.

    Raises:
        OSError: If any of them cannot be stat'ed (e.g. PermissionError).
    """
    return WorkingDirState(
        lock_file=path_exists(working_dir / LOCK_FILE),
        node_modules=path_exists(working_dir / NODE_MODULES_DIR),
        npm_cache=path_exists(working_dir / NPM_CACHE_DIR),
    )


def select_strategy(state: WorkingDirState) -> Strategy:
    """Lock file wins, then an existing node_modules, else a fresh install."""
    if state.lock_file:
        return Strategy.CI
    if state.node_modules:
        return Strategy.REBUILD
    return Strategy.INSTALL


class BuildProcessResolver:
    """Observes the working directory, relocates the npm cache, picks a strategy."""

    def __init__(self, build_logger: BuildLogger):
        self._log = build_logger

    def resolve(self, working_dir: Path, cache_dir: Path) -> Strategy:
        """Resolve the strategy for ``working_dir``.

        Raises:
            OSError: On any stat, listing or move failure. No strategy
                is returned in that case.
        """
        state = observe(working_dir)

        self._log.subprocess("Process inputs:")
        for line in format_map(state.to_dict()):
            self._log.action("%s", line)
        self._log.break_()

        if state.npm_cache:
            moved = relocate_npm_cache(working_dir, cache_dir)
            logger.debug("Relocated %d npm cache entries", moved)

        strategy = select_strategy(state)
        self._log.subprocess("Selected NPM build process: '%s'", strategy.command)
        self._log.break_()
        return strategy
