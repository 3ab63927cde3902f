"""
Dry-run rendering — what would run, with which environment.

Output per target:

    # Dry-run: linux/amd64
    CGO_ENABLED=0 \\
    GOARCH=amd64 \\
    GOFLAGS='-mod=vendor -v' \\
    go build -trimpath -o builds/linux/amd64/app ./cmd/app

The env section depends on the mode: every variable (``all``), only
those go-builder added or changed (``diff``), or nothing (``none``).
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from enum import StrEnum

from gobuilder.core.engine.environment import diff_env, sorted_env


class EnvMode(StrEnum):
    """Which environment variables a dry-run prints."""

    DIFF = "diff"
    ALL = "all"
    NONE = "none"


def env_section(
    mode: EnvMode,
    base: Mapping[str, str],
    composed: Mapping[str, str],
) -> dict[str, str]:
    """Variables to show for ``mode``, sorted by key."""
    if mode is EnvMode.NONE:
        return {}
    if mode is EnvMode.ALL:
        return sorted_env(composed)
    return diff_env(base, composed)


def render_env_lines(env: Mapping[str, str]) -> list[str]:
    """``KEY=value \\`` continuation lines, ready to prefix a command.

    Values are quoted with ``shlex.quote``, like the command line itself.
    """
    return [f"{key}={shlex.quote(value)} \\" for key, value in env.items()]


def render_dry_run(
    title: str,
    command: str,
    mode: EnvMode,
    base: Mapping[str, str],
    composed: Mapping[str, str],
) -> str:
    lines = [f"# Dry-run: {title}"]
    lines += render_env_lines(env_section(mode, base, composed))
    lines.append(command)
    return "\n".join(lines)
