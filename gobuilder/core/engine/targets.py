"""
Target resolution — from declared matrix entries to concrete builds.

For every target this decides:
    - where the artifact goes (explicit ``output`` or
      ``<build_dir>/<os>/<arch>/<name>``, ``.exe`` added once on windows)
    - the composed environment, with GOOS/GOARCH set last
    - whether the artifact must be checked for static linking

A config without ``targets:`` builds once for the host. That case is a
distinct selection kind rather than an empty list, so callers (and
tests) can tell "nothing declared" apart from "declared nothing
buildable".
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from gobuilder.core.engine.environment import compose_env
from gobuilder.core.errors import ConfigError
from gobuilder.core.models.config import BuildConfig, Target

logger = logging.getLogger(__name__)

EXE_SUFFIX = ".exe"
SUFFIX_PLATFORMS = frozenset({"windows"})

# ── Host platform ───────────────────────────────────────────────

_OS_MAP: dict[str, str] = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
    "msys": "windows",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "netbsd": "netbsd",
    "dragonfly": "dragonfly",
    "sunos": "solaris",
    "aix": "aix",
}

_ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
    "riscv64": "riscv64",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "mips64": "mips64",
    "loongarch64": "loong64",
}


@dataclass(frozen=True)
class HostPlatform:
    """The (GOOS, GOARCH) pair of the machine we run on."""

    os: str
    arch: str

    @classmethod
    def detect(cls, env: Mapping[str, str] | None = None) -> HostPlatform:
        """Detect the host, letting GOOS/GOARCH in ``env`` take precedence.

        ``go build`` honours those variables, so the implicit target's
        output path must follow them too.
        """
        env = env or {}
        plat = sys.platform
        goos = next((v for k, v in _OS_MAP.items() if plat.startswith(k)), plat)
        machine = platform.machine().lower()
        goarch = _ARCH_MAP.get(machine, machine or "amd64")
        return cls(os=env.get("GOOS") or goos, arch=env.get("GOARCH") or goarch)


# ── Selection ───────────────────────────────────────────────────


@dataclass(frozen=True)
class TargetSelection:
    """Either the declared targets or the single implicit host target."""

    kind: Literal["explicit", "host"]
    targets: tuple[Target, ...]

    @property
    def implicit(self) -> bool:
        return self.kind == "host"


def select_targets(config: BuildConfig, host: HostPlatform) -> TargetSelection:
    """Pick what to build: the matrix, or the host when none is declared."""
    if config.targets:
        return TargetSelection(kind="explicit", targets=tuple(config.targets))
    return TargetSelection(kind="host", targets=(Target(os=host.os, arch=host.arch),))


# ── Resolution ──────────────────────────────────────────────────


@dataclass
class ResolvedTarget:
    """Everything needed to build one target."""

    os: str
    arch: str
    output: str
    env: dict[str, str] = field(default_factory=dict)
    verify_static: bool = False
    implicit: bool = False

    @property
    def platform(self) -> str:
        return f"{self.os}/{self.arch}"

    def to_dict(self) -> dict:
        return {
            "os": self.os,
            "arch": self.arch,
            "output": self.output,
            "verify_static": self.verify_static,
            "implicit": self.implicit,
        }


def output_path(config: BuildConfig, target: Target) -> str:
    """Artifact path for one target."""
    if target.output:
        return target.output
    path = os.path.join(config.build_dir, target.os, target.arch, config.output_name)
    if target.os in SUFFIX_PLATFORMS and not path.endswith(EXE_SUFFIX):
        path += EXE_SUFFIX
    return path


def resolve_target(
    config: BuildConfig,
    target: Target,
    base_env: Mapping[str, str],
    implicit: bool = False,
) -> ResolvedTarget:
    """Resolve a single target against the config and base environment."""
    env = compose_env(base_env, config.env, None, target.env)
    if not implicit:
        env["GOOS"] = target.os
        env["GOARCH"] = target.arch

    return ResolvedTarget(
        os=target.os,
        arch=target.arch,
        output=output_path(config, target),
        env=env,
        verify_static=target.verify_static.resolve(config.build.verify_static),
        implicit=implicit,
    )


def resolve_targets(
    config: BuildConfig,
    base_env: Mapping[str, str],
    host: HostPlatform | None = None,
) -> list[ResolvedTarget]:
    """Resolve every target, in declaration order.

    Raises:
        ConfigError: If a target has no os/arch or two targets share
            an output path.
    """
    selection = select_targets(config, host or HostPlatform.detect(base_env))

    resolved: list[ResolvedTarget] = []
    seen: dict[str, str] = {}
    for index, target in enumerate(selection.targets):
        if not target.os or not target.arch:
            raise ConfigError(f"targets[{index}]: both 'os' and 'arch' are required")

        item = resolve_target(config, target, base_env, implicit=selection.implicit)
        key = os.path.normpath(item.output)
        if key in seen:
            raise ConfigError(
                f"Targets {seen[key]} and {item.platform} both write to {item.output}"
            )
        seen[key] = item.platform
        resolved.append(item)

    logger.debug(
        "Resolved %d %s target(s)", len(resolved), "host" if selection.implicit else "declared"
    )
    return resolved
