"""
Adapter protocol — the only seam through which go-builder touches
external tools (``go``, ``docker``/``podman``, ``file``).

An adapter receives an ExecutionContext, runs one process and returns
a Receipt. Spawn errors and non-zero exits come back as failed
receipts; raising is left to the executor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from gobuilder.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An action plus the directory it runs against."""

    action: Action
    project_root: str = "."

    @property
    def params(self) -> dict[str, Any]:
        return self.action.params

    @property
    def working_dir(self) -> str:
        """``cwd`` param if given, else the project root."""
        return self.params.get("cwd") or self.project_root

    def resolve(self, path: str) -> Path:
        """``path`` as the child process would see it."""
        candidate = Path(path)
        return candidate if candidate.is_absolute() else Path(self.working_dir) / candidate


class Adapter(ABC):
    """Base class for tool adapters; register instances in an AdapterRegistry."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, matched against ``Action.adapter``."""

    @abstractmethod
    def is_available(self, program: str | None = None) -> bool:
        """Whether the tool (``program`` when the config names one) can be found.

        Must be cheap.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check params before anything is spawned; ``(ok, reason)``."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
