"""
Build contract models — what detection and build hand back to the platform.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from npmbuild.core.models.layer import Layer


class BuildPlanMetadata(BaseModel):
    """Requirement metadata for the node runtime."""

    model_config = ConfigDict(populate_by_name=True)

    version_source: str | None = Field(default=None, alias="version-source")
    build: bool = False
    launch: bool = False


class BuildPlanProvision(BaseModel):
    name: str


class BuildPlanRequirement(BaseModel):
    name: str
    version: str | None = None
    metadata: BuildPlanMetadata | None = None


class BuildPlan(BaseModel):
    """Provides/requires pairs returned by detection."""

    provides: list[BuildPlanProvision] = Field(default_factory=list)
    requires: list[BuildPlanRequirement] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Process(BaseModel):
    """A process the application image can launch."""

    type: str
    command: str


class BuildResult(BaseModel):
    """Layers to persist plus the declared launch processes."""

    plan: BuildPlan | None = None
    layers: list[Layer] = Field(default_factory=list)
    processes: list[Process] = Field(default_factory=list)

    @property
    def layer_names(self) -> list[str]:
        return [layer.name for layer in self.layers]

    def to_dict(self) -> dict:
        return {
            "layers": [
                {
                    "name": layer.name,
                    "path": str(layer.path),
                    "metadata": layer.metadata,
                }
                for layer in self.layers
            ],
            "processes": [p.model_dump(mode="json") for p in self.processes],
        }
