"""
Detection use case — does this application need npm dependencies?

An application matches when it has a package.json.  The plan provides
node_modules and requires node_modules plus a node runtime at build and
launch time, pinned to ``engines.node`` when the manifest declares one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from npmbuild.core.errors import DetectionFailed
from npmbuild.core.models.build import (
    BuildPlan,
    BuildPlanMetadata,
    BuildPlanProvision,
    BuildPlanRequirement,
)
from npmbuild.core.services.manifest import MANIFEST_FILE, parse_version

logger = logging.getLogger(__name__)

PLAN_DEPENDENCY_NODE_MODULES = "node_modules"
PLAN_DEPENDENCY_NODE = "node"


def detect(
    working_dir: Path,
    version_parser: Callable[[Path], str] = parse_version,
) -> BuildPlan:
    """Build the detection plan for ``working_dir``.

    Raises:
        DetectionFailed: If there is no package.json.
        ManifestError: If package.json cannot be parsed (message kept as is).
    """
    manifest = working_dir / MANIFEST_FILE

    try:
        version = version_parser(manifest)
    except FileNotFoundError as e:
        raise DetectionFailed(f"no {MANIFEST_FILE} found in {working_dir}") from e

    node = BuildPlanRequirement(
        name=PLAN_DEPENDENCY_NODE,
        metadata=BuildPlanMetadata(build=True, launch=True),
    )
    if version:
        node.version = version
        node.metadata = BuildPlanMetadata(version_source=MANIFEST_FILE, build=True, launch=True)

    logger.info("Detected %s in %s (node %s)", MANIFEST_FILE, working_dir, version or "any")

    return BuildPlan(
        provides=[BuildPlanProvision(name=PLAN_DEPENDENCY_NODE_MODULES)],
        requires=[
            BuildPlanRequirement(name=PLAN_DEPENDENCY_NODE_MODULES),
            node,
        ],
    )
