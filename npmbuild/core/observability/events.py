"""
BuildLogger — the explicit event sink handed to every build component.

Components never print.  They emit structured events (title, process,
subprocess, action, detail, break) into the sink they were given.  The
sink keeps the events for inspection, forwards each one to ``logging``
and, when the caller supplies an ``echo`` callable, renders it as an
indented build-log line.

Indentation follows the usual buildpack log shape::

    Node Engine Buildpack 1.0.0           <- title
      Resolving installation process      <- process
        Process inputs:                   <- subprocess
          package-lock.json -> "Found"    <- action
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger("npmbuild.build")

_INDENT = {
    "title": 0,
    "process": 2,
    "subprocess": 4,
    "action": 6,
    "detail": 8,
    "break": 0,
}


@dataclass
class BuildEvent:
    """One emitted log event."""

    kind: str
    message: str

    @property
    def line(self) -> str:
        return " " * _INDENT.get(self.kind, 0) + self.message


@dataclass
class BuildLogger:
    """Recording, forwarding event sink."""

    echo: Callable[[str], None] | None = None
    events: list[BuildEvent] = field(default_factory=list)

    def title(self, fmt: str, *args: object) -> None:
        self._emit("title", fmt, args)

    def process(self, fmt: str, *args: object) -> None:
        self._emit("process", fmt, args)

    def subprocess(self, fmt: str, *args: object) -> None:
        self._emit("subprocess", fmt, args)

    def action(self, fmt: str, *args: object) -> None:
        self._emit("action", fmt, args)

    def detail(self, fmt: str, *args: object) -> None:
        self._emit("detail", fmt, args)

    def break_(self) -> None:
        self._emit("break", "", ())

    @property
    def text(self) -> str:
        """The full rendered build log."""
        return "\n".join(event.line for event in self.events)

    def messages(self, kind: str | None = None) -> list[str]:
        """Messages of every event, optionally filtered by kind."""
        return [e.message for e in self.events if kind is None or e.kind == kind]

    def _emit(self, kind: str, fmt: str, args: tuple[object, ...]) -> None:
        message = fmt % args if args else fmt
        event = BuildEvent(kind=kind, message=message)
        self.events.append(event)
        if message:
            logger.info("%s", message)
        if self.echo is not None:
            self.echo(event.line)


def format_map(values: dict[str, str]) -> list[str]:
    """Render a mapping as aligned ``key -> "value"`` lines, sorted by key."""
    if not values:
        return []
    width = max(len(k) for k in values)
    return [f'{key:<{width}} -> "{values[key]}"' for key in sorted(values)]
