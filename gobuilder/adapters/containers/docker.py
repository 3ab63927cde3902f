"""
Container adapter — run the whole build inside a disposable container.

Uses the runtime CLI (docker or podman), never an engine API. The
project directory is bind-mounted at the container workdir so
artifacts land on the host with no copy-back step.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence

from gobuilder.adapters.base import Adapter, ExecutionContext
from gobuilder.core.models.action import Receipt
from gobuilder.core.models.config import ContainerSpec

logger = logging.getLogger(__name__)


def container_run_args(
    spec: ContainerSpec,
    env: Mapping[str, str],
    host_dir: str,
    commands: Sequence[str],
) -> list[str]:
    """Arguments for ``<runtime> run`` (without the runtime itself).

    Environment variables are forwarded as discrete ``-e KEY=VALUE``
    pairs in key order; the commands run via ``<shell> -c`` joined
    with ``&&`` so the first failure stops the chain.
    """
    args = ["run", "--rm", "-w", spec.workdir, "-v", f"{host_dir}:{spec.workdir}"]
    for key in sorted(env):
        args += ["-e", f"{key}={env[key]}"]
    args += [spec.image, spec.shell, "-c", " && ".join(commands)]
    return args


class DockerAdapter(Adapter):
    """Run a prepared ``run`` invocation through the container runtime.

    Action params:
        runtime (str): Runtime CLI (default: "docker").
        args (list[str]): Arguments after the runtime name.
    """

    @property
    def name(self) -> str:
        return "docker"

    def is_available(self, program: str | None = None) -> bool:
        if program:
            return shutil.which(program) is not None
        return shutil.which("docker") is not None or shutil.which("podman") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        args = context.params.get("args")
        if not args:
            return False, "Missing required param: 'args'"
        if args[0] != "run":
            return False, f"Unsupported container operation '{args[0]}'. Valid: run"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        runtime = context.params.get("runtime", "docker")
        argv = [runtime, *context.params["args"]]

        logger.debug("Executing: %s", " ".join(argv))
        start = time.monotonic()

        try:
            result = subprocess.run(argv, cwd=context.working_dir, check=False)
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot start {runtime}: {e}",
            )

        return Receipt.from_exit(
            self.name,
            context.action.id,
            f"{runtime} run",
            result.returncode,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
