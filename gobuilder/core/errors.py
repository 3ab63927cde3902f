"""
Error taxonomy — every fatal condition the builder can surface.

Core code raises these; adapters never do (they return failed receipts,
which the executor converts). The CLI maps each class to an exit code
so callers can tell "did not build" from "built but violates policy".
"""

from __future__ import annotations


class GoBuilderError(Exception):
    """Base class for all go-builder failures."""

    exit_code: int = 1


class ConfigError(GoBuilderError):
    """Raised when the configuration document is missing or invalid."""

    exit_code = 2


class PreconditionError(GoBuilderError):
    """Raised when the workspace is in a state we refuse to touch."""

    exit_code = 3


class ExecutionError(GoBuilderError):
    """Raised when the compiler or container runtime fails."""

    exit_code = 1


class StaticLinkError(GoBuilderError):
    """Raised when a built artifact is dynamically linked."""

    exit_code = 4

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        self.detail = detail
        message = f"{path} is dynamically linked"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
