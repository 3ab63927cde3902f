"""
Placeholder expansion — ``${NAME}`` and ``${NAME:-default}``.

Resolution rules:
    - NAME set to a non-empty value  →  that value
    - otherwise, ``:-default`` given →  default, taken literally
    - otherwise                      →  empty string

Anything that does not parse as a reference (unterminated ``${``, a
name that is not an identifier) stays in the text unchanged, and does
not swallow a well-formed reference that follows it. The scan
is a single left-to-right pass, so substituted text is never
re-expanded.

The environment is always passed in explicitly; nothing here reads
``os.environ``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from gobuilder.core.models.config import (
    DEFAULT_BUILD_DIR,
    BuildConfig,
    BuildSettings,
    ContainerSpec,
    Target,
)

_REFERENCE = re.compile(r"\$\{([^{}]*)\}")
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


def expand(text: str, env: Mapping[str, str]) -> str:
    """Expand every placeholder in ``text`` against ``env``."""
    if "${" not in text:
        return text

    def _replace(match: re.Match[str]) -> str:
        body = match.group(1)
        name, sep, default = body.partition(":-")
        if not _NAME.match(name):
            return match.group(0)
        value = env.get(name, "")
        if value:
            return value
        return default if sep else ""

    return _REFERENCE.sub(_replace, text)


def _expand_map(values: Mapping[str, str], env: Mapping[str, str]) -> dict[str, str]:
    return {expand(k, env): expand(v, env) for k, v in values.items()}


def _expand_list(values: list[str], env: Mapping[str, str]) -> list[str]:
    return [expand(v, env) for v in values]


def _expand_settings(build: BuildSettings, env: Mapping[str, str]) -> BuildSettings:
    tags = [t for t in _expand_list(build.tags, env) if t]
    return build.model_copy(
        update={
            "tags": list(dict.fromkeys(tags)),
            "ldflags": _expand_list(build.ldflags, env),
            "vars": _expand_map(build.vars, env),
            "gcflags": expand(build.gcflags, env),
            "asmflags": expand(build.asmflags, env),
            "mod": expand(build.mod, env),
        }
    )


def _expand_target(target: Target, env: Mapping[str, str]) -> Target:
    return target.model_copy(
        update={
            "os": expand(target.os, env),
            "arch": expand(target.arch, env),
            "output": expand(target.output, env),
            "env": _expand_map(target.env, env),
        }
    )


def _expand_container(spec: ContainerSpec, env: Mapping[str, str]) -> ContainerSpec:
    return spec.model_copy(
        update={
            "image": expand(spec.image, env),
            "workdir": expand(spec.workdir, env),
            "shell": expand(spec.shell, env),
            "setup": _expand_list(spec.setup, env),
            "env": _expand_map(spec.env, env),
        }
    )


def expand_config(config: BuildConfig, env: Mapping[str, str]) -> BuildConfig:
    """Return a copy of ``config`` with every string field expanded.

    Call this once per invocation, before composing environments or
    deriving output paths.
    """
    return config.model_copy(
        update={
            "build_dir": expand(config.build_dir, env) or DEFAULT_BUILD_DIR,
            "source": expand(config.source, env),
            "output": expand(config.output, env),
            "env": _expand_map(config.env, env),
            "build": _expand_settings(config.build, env),
            "targets": [_expand_target(t, env) for t in config.targets],
            "docker": _expand_container(config.docker, env) if config.docker else None,
        }
    )
