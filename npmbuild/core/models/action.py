"""
Action and Receipt — one npm invocation and its outcome.

Adapters take an Action and hand back a Receipt; a non-zero exit is
data on the receipt, not an exception.  StrategyExecutor is the one
place that turns a failed receipt into an ExecutionError.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """An npm invocation: ``adapter`` followed by ``args``."""

    id: str                         # install / ci / rebuild
    adapter: str = "npm"
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def command_line(self) -> str:
        return " ".join([self.adapter, *self.args])


class Receipt(BaseModel):
    """What happened when an Action ran."""

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"

    command: str = ""
    return_code: int | None = None
    duration_ms: int = 0

    output: str = ""                # tail of combined stdout/stderr
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
