"""
Mock adapter — recording test double for the npm adapter.

Records every execution context it receives.  Per action ID it can be
told to fail or to run a side effect (for example, create a
node_modules directory the way npm would) before returning success.
"""

from __future__ import annotations

from typing import Callable

from npmbuild.adapters.base import Adapter, ExecutionContext
from npmbuild.core.models.action import Receipt


class MockNpmAdapter(Adapter):
    """Stand-in for NpmAdapter that never spawns a process."""

    def __init__(self, available: bool = True, default_output: str = "[mock] executed"):
        self._available = available
        self._default_output = default_output
        self._failures: dict[str, Receipt] = {}
        self._side_effects: dict[str, Callable[[ExecutionContext], None]] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return "npm"

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def calls(self) -> list[list[str]]:
        """Argument lists of every call, in order."""
        return [ctx.action.args for ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_failure(
        self,
        action_id: str,
        error: str = "exit status 1",
        return_code: int = 1,
        output: str = "",
    ) -> None:
        """Configure a specific action to fail, printing ``output`` first."""
        self._failures[action_id] = Receipt.failure(
            adapter=self.name,
            action_id=action_id,
            error=error,
            return_code=return_code,
            output=output,
        )

    def set_side_effect(self, action_id: str, effect: Callable[[ExecutionContext], None]) -> None:
        """Run ``effect(context)`` whenever ``action_id`` executes."""
        self._side_effects[action_id] = effect

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        action_id = context.action.id
        if action_id in self._side_effects:
            self._side_effects[action_id](context)

        if action_id in self._failures:
            return self._failures[action_id]

        return Receipt.success(
            adapter=self.name,
            action_id=action_id,
            output=self._default_output,
            return_code=0,
        )

    def reset(self) -> None:
        """Clear call log, failures and side effects."""
        self._call_log.clear()
        self._failures.clear()
        self._side_effects.clear()
