"""
Adapter base — how build strategies reach the package manager.

StrategyExecutor never spawns processes itself; it builds an Action,
wraps it in an ExecutionContext and hands it to an Adapter.  Tests
swap in MockNpmAdapter at that seam.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from npmbuild.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An action plus where, and with what extra environment, to run it."""

    action: Action
    working_dir: str = "."
    env: dict[str, str] = Field(default_factory=dict)


class Adapter(ABC):
    """A package-manager front end.

    ``execute`` reports failures on the Receipt and does not raise.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Executable-independent identifier, e.g. ``npm``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the tool can be found. Cheap, never raises."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """``(True, "")`` if ``context`` can run, else ``(False, reason)``."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run ``context.action`` to completion and describe the outcome."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
