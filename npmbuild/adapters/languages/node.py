"""
npm adapter — runs the npm executable for the build strategies.

Output is streamed line by line to the log as the tool produces it,
so a failing install has already shown its output by the time the
failure surfaces.  No timeout is applied: a hung npm hangs the build.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from npmbuild.adapters.base import Adapter, ExecutionContext
from npmbuild.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Keep the tail of the output on the receipt, the log has the rest
_OUTPUT_TAIL = 4000


class NpmAdapter(Adapter):
    """npm package manager adapter.

    Action args are passed straight through: ``Action(id="ci",
    args=["ci", "--cache", "/layers/npm-cache"])`` runs
    ``npm ci --cache /layers/npm-cache`` in the context's working dir.
    """

    def __init__(self, command: str = "npm"):
        self._command = command

    @property
    def name(self) -> str:
        return "npm"

    def is_available(self) -> bool:
        return shutil.which(self._command) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.action.args:
            return False, "Missing npm arguments"
        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        cmd = [self._command, *context.action.args]
        command_line = " ".join(cmd)

        env = os.environ.copy()
        env.update(context.action.env)
        env.update(context.env)

        logger.debug("Executing: %s (cwd=%s)", command_line, context.working_dir)
        start = time.monotonic()
        lines: list[str] = []

        try:
            with subprocess.Popen(
                cmd,
                cwd=context.working_dir,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            ) as proc:
                assert proc.stdout is not None
                for raw in proc.stdout:
                    line = raw.rstrip("\n")
                    lines.append(line)
                    logger.info("%s", line)
                return_code = proc.wait()
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot run {self._command}: {e}",
                command=command_line,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = "\n".join(lines)[-_OUTPUT_TAIL:]

        if return_code == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=output,
                duration_ms=elapsed_ms,
                return_code=0,
                command=command_line,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=f"exit status {return_code}",
            output=output,
            duration_ms=elapsed_ms,
            return_code=return_code,
            command=command_line,
        )
