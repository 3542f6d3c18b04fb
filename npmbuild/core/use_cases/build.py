"""
Build use case — resolve, decide, install or reuse, report.

Flow:
    resolve strategy → decide rerun → execute → record metadata
                                    ↘ skip    → link previous node_modules

Both paths end with the modules layer in the result; the cache layer
is only kept when npm actually left something in it.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

from npmbuild import __version__
from npmbuild.adapters.base import Adapter
from npmbuild.adapters.languages.node import NpmAdapter
from npmbuild.core.models.build import BuildPlan, BuildResult, Process
from npmbuild.core.models.config import BuildConfig
from npmbuild.core.observability.events import BuildLogger, format_map
from npmbuild.core.persistence.layer_store import Layers, write_layers
from npmbuild.core.services.resolver import BuildProcessResolver
from npmbuild.core.services.strategies import (
    METADATA_BUILT_AT,
    METADATA_CACHE_SHA,
    NODE_MODULES_DIR,
    StrategyExecutor,
    link_node_modules,
    reclaim_node_modules,
)

logger = logging.getLogger(__name__)

LAYER_NAME_NODE_MODULES = "modules"
LAYER_NAME_CACHE = "npm-cache"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class BuildContext:
    """Inputs of one build invocation."""

    working_dir: Path
    layers: Layers
    plan: BuildPlan | None = None
    name: str = "npmbuild"
    version: str = __version__


def run_build(
    context: BuildContext,
    *,
    resolver: BuildProcessResolver,
    executor: StrategyExecutor,
    build_logger: BuildLogger,
    config: BuildConfig | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> BuildResult:
    """Run one build against ``context``.

    Fail-fast: the first error aborts the build and propagates.
    """
    config = config or BuildConfig()
    log = build_logger
    working_dir = context.working_dir

    log.title("%s %s", context.name, context.version)

    modules_layer = context.layers.get(LAYER_NAME_NODE_MODULES, launch=True)
    cache_layer = context.layers.get(LAYER_NAME_CACHE, cache=True)

    log.process("Resolving installation process")
    strategy = resolver.resolve(working_dir, cache_layer.path)

    run, sha = executor.should_run(strategy, working_dir, modules_layer.metadata)

    if run:
        log.process("Executing build process")
        start = time.monotonic()

        reclaim_node_modules(working_dir, modules_layer.path)
        # no stored metadata while the layer is being rebuilt
        context.layers.forget(LAYER_NAME_NODE_MODULES)
        modules_layer.reset()

        executor.run(strategy, modules_layer.path, cache_layer.path, working_dir)

        log.action("Completed in %dms", int((time.monotonic() - start) * 1000))
        log.break_()

        modules_layer.metadata = {
            METADATA_BUILT_AT: clock().isoformat(),
            METADATA_CACHE_SHA: sha,
        }

        for name, value in config.launch_env.items():
            modules_layer.launch_env.override(name, value)

        bin_path = str(modules_layer.path / NODE_MODULES_DIR / ".bin")
        modules_layer.launch_env.prepend("PATH", bin_path, os.pathsep)

        log.process("Configuring environment")
        shown = dict(config.launch_env)
        shown["PATH"] = f"{bin_path}{os.pathsep}$PATH"
        for line in format_map(shown):
            log.subprocess("%s", line)
        log.break_()
    else:
        log.process("Reusing cached layer %s", modules_layer.path)
        link_node_modules(working_dir, modules_layer.path)
        log.break_()

    layers = [modules_layer]
    if not cache_layer.is_empty():
        layers.append(cache_layer)
    else:
        logger.debug("Cache layer %s is empty, not persisting it", cache_layer.path)

    return BuildResult(
        plan=context.plan,
        layers=layers,
        processes=[Process(type="web", command=config.start_command)],
    )


def build_application(
    working_dir: Path,
    layers_root: Path,
    *,
    config: BuildConfig | None = None,
    npm: Adapter | None = None,
    echo: Callable[[str], None] | None = None,
) -> BuildResult:
    """Wire the default collaborators, build, and persist the layers."""
    config = config or BuildConfig()
    build_logger = BuildLogger(echo=echo)
    npm = npm or NpmAdapter(config.npm_command)

    context = BuildContext(working_dir=working_dir, layers=Layers(layers_root))
    result = run_build(
        context,
        resolver=BuildProcessResolver(build_logger),
        executor=StrategyExecutor(npm, build_logger, install_flags=config.install_flags),
        build_logger=build_logger,
        config=config,
    )
    write_layers(result, layers_root)
    return result
