"""
Command composition — declarative build settings to a ``go build`` argv.

Flag order is fixed so the executed command and the dry-run text are
byte-identical for identical input:

    build -v -tags -trimpath -gcflags -asmflags -mod -race -ldflags -o <source>
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping, Sequence

from gobuilder.core.models.config import BuildSettings

GO_BINARY = "go"


def compose_ldflags(ldflags: Sequence[str], variables: Mapping[str, str]) -> str:
    """Literal link flags, then one ``-X 'name=value'`` per variable (sorted by name)."""
    parts = [flag for flag in ldflags if flag]
    parts.extend(f"-X '{name}={variables[name]}'" for name in sorted(variables))
    return " ".join(parts)


def compose_build_args(settings: BuildSettings, source: str, output: str) -> list[str]:
    """Arguments for ``go`` (without the program name itself)."""
    args = ["build"]

    if settings.verbose:
        args.append("-v")
    if settings.tags:
        args += ["-tags", ",".join(settings.tags)]
    if settings.trimpath:
        args.append("-trimpath")
    if settings.gcflags:
        args += ["-gcflags", settings.gcflags]
    if settings.asmflags:
        args += ["-asmflags", settings.asmflags]
    if settings.mod:
        args += ["-mod", settings.mod]
    if settings.race:
        args.append("-race")

    ldflags = compose_ldflags(settings.ldflags, settings.vars)
    if ldflags:
        args += ["-ldflags", ldflags]
    if output:
        args += ["-o", output]

    args.append(source)
    return args


def render_command(program: str, args: Sequence[str]) -> str:
    """Shell-quoted command line, safe to paste back into a terminal."""
    return shlex.join([program, *args])
