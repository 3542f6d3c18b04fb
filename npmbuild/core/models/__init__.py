"""
Domain models — Pydantic types for the npm build.

    from npmbuild.core.models import Action, Receipt, Layer, BuildResult
"""

from npmbuild.core.models.action import Action, Receipt
from npmbuild.core.models.build import (
    BuildPlan,
    BuildPlanMetadata,
    BuildPlanProvision,
    BuildPlanRequirement,
    BuildResult,
    Process,
)
from npmbuild.core.models.config import BuildConfig
from npmbuild.core.models.layer import Environment, Layer

__all__ = [
    # action.py
    "Action",
    # build.py
    "BuildConfig",
    "BuildPlan",
    "BuildPlanMetadata",
    "BuildPlanProvision",
    "BuildPlanRequirement",
    "BuildResult",
    # layer.py
    "Environment",
    "Layer",
    "Process",
    "Receipt",
]
