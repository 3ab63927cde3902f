"""
Go toolchain adapter — runs ``go build`` for one target.

The child inherits our stdout/stderr so compiler output streams live;
only the exit status is captured. No timeout: a build takes as long
as it takes.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from gobuilder.adapters.base import Adapter, ExecutionContext
from gobuilder.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GoBuildAdapter(Adapter):
    """Spawn the Go compiler with a composed argv and environment.

    Action params:
        program (str): Compiler executable (default: "go").
        args (list[str]): Arguments after the program name.
        env (dict[str, str]): Complete child environment.
        cwd (str): Working directory (default: project root).
    """

    @property
    def name(self) -> str:
        return "go"

    def is_available(self, program: str | None = None) -> bool:
        return shutil.which(program or "go") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.params.get("args"):
            return False, "Missing required param: 'args'"
        if not isinstance(context.params.get("env", {}), dict):
            return False, "Param 'env' must be a mapping"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.params
        program = params.get("program", "go")
        argv = [program, *params["args"]]
        env = params.get("env") or None

        logger.debug("Executing: %s (cwd=%s)", " ".join(argv), context.working_dir)
        start = time.monotonic()

        try:
            result = subprocess.run(argv, cwd=context.working_dir, env=env, check=False)
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot start {program}: {e}",
                metadata={"argv": argv},
            )

        return Receipt.from_exit(
            self.name,
            context.action.id,
            program,
            result.returncode,
            duration_ms=int((time.monotonic() - start) * 1000),
            metadata={"argv": argv, "output_path": params.get("output_path", "")},
        )
