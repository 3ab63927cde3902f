"""
Static-link verifier — classify a built artifact with ``file(1)``.

The adapter only reports what it saw; the executor decides that a
dynamic result is a policy violation.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from enum import StrEnum

from gobuilder.adapters.base import Adapter, ExecutionContext
from gobuilder.core.models.action import Receipt

logger = logging.getLogger(__name__)

_DYNAMIC_MARKERS = ("dynamically linked", "interpreter ")
_STATIC_MARKERS = ("statically linked", "static-pie linked")


class Linkage(StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    UNKNOWN = "unknown"     # not ELF, e.g. PE or Mach-O


def classify_linkage(description: str) -> Linkage:
    """Classify one line of ``file`` output."""
    text = description.lower()
    if any(marker in text for marker in _DYNAMIC_MARKERS):
        return Linkage.DYNAMIC
    if any(marker in text for marker in _STATIC_MARKERS):
        return Linkage.STATIC
    return Linkage.UNKNOWN


class StaticLinkAdapter(Adapter):
    """Run the inspection tool on an artifact.

    Action params:
        path (str): Artifact to inspect.
        tool (str): Inspection executable (default: "file").
    """

    @property
    def name(self) -> str:
        return "static-link"

    def is_available(self, program: str | None = None) -> bool:
        return shutil.which(program or "file") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        path = context.params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"
        if not context.resolve(path).is_file():
            return False, f"Artifact not found: {path}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        path = context.params["path"]
        tool = context.params.get("tool", "file")

        try:
            result = subprocess.run(
                [tool, "--brief", path],
                cwd=context.working_dir,
                capture_output=True,
                text=True,
                timeout=60,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot inspect {path}: {e}",
            )

        if result.returncode != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=result.stderr.strip() or f"{tool} exited with code {result.returncode}",
                return_code=result.returncode,
            )

        description = result.stdout.strip()
        linkage = classify_linkage(description)
        logger.debug("%s: %s (%s)", path, linkage, description)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=description,
            return_code=0,
            metadata={"path": path, "linkage": linkage.value},
        )
