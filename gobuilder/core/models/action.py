"""
Action and Receipt — what the executor asks for, what it gets back.

Each external step of a build (compile one target, run the container,
inspect an artifact) is described by an Action and answered by a
Receipt. Adapters report failures in the Receipt instead of raising;
deciding which failures abort the build is the executor's job.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """One external process to run."""

    id: str                         # "build:linux/amd64", "container:...", "static-link:..."
    adapter: str                    # registry name: "go", "docker", "static-link"
    params: dict[str, Any] = Field(default_factory=dict)
    for_target: str | None = None   # "os/arch"; None for the container run


class Receipt(BaseModel):
    """How an Action went."""

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"
    started_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    duration_ms: int = 0
    output: str = ""
    error: str | None = None
    return_code: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

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

    @classmethod
    def from_exit(
        cls,
        adapter: str,
        action_id: str,
        program: str,
        return_code: int,
        **kwargs: Any,
    ) -> Receipt:
        """Receipt for a child that ran to completion: ok only on status 0."""
        if return_code == 0:
            return cls.success(adapter, action_id, return_code=0, **kwargs)
        return cls.failure(
            adapter,
            action_id,
            f"{program} exited with code {return_code}",
            return_code=return_code,
            **kwargs,
        )
