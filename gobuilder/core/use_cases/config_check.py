"""
Config check use case — validate .gobuilder.yml and report issues.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from gobuilder.adapters.registry import AdapterRegistry, default_registry
from gobuilder.core.config.loader import find_config_file, load_config
from gobuilder.core.engine.environment import EnvSnapshot
from gobuilder.core.engine.placeholders import expand_config
from gobuilder.core.engine.targets import HostPlatform, ResolvedTarget, resolve_targets
from gobuilder.core.errors import ConfigError
from gobuilder.core.models.config import BuildConfig

_KNOWN_OS = frozenset({
    "aix", "android", "darwin", "dragonfly", "freebsd", "illumos", "ios", "js",
    "linux", "netbsd", "openbsd", "plan9", "solaris", "wasip1", "windows",
})
_KNOWN_ARCH = frozenset({
    "386", "amd64", "arm", "arm64", "loong64", "mips", "mipsle", "mips64",
    "mips64le", "ppc64", "ppc64le", "riscv64", "s390x", "wasm",
})
_MOD_MODES = frozenset({"mod", "vendor", "readonly"})
_TOOL_NAMES = {"go": "go", "docker": "docker", "static-link": "file"}
_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: BuildConfig | None = None
    config_path: Path | None = None
    targets: list[ResolvedTarget] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "targets": [t.to_dict() for t in self.targets],
            "container": self.config.docker.image if self.config and self.config.docker else None,
        }


def _unset_placeholders(config: BuildConfig, env: Mapping[str, str]) -> list[str]:
    """``${NAME}`` references with no default whose variable is unset or empty."""
    raw = config.model_dump_json()
    names = {m.group(1) for m in _REFERENCE.finditer(raw)}
    return sorted(n for n in names if not env.get(n))


def _required_tools(config: BuildConfig, targets: list[ResolvedTarget]) -> list[str]:
    if config.docker is not None:
        return ["docker"]
    tools = ["go"]
    if any(t.verify_static for t in targets):
        tools.append("static-link")
    return tools


def check_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    host: HostPlatform | None = None,
    registry: AdapterRegistry | None = None,
) -> ConfigCheckResult:
    """Validate the build configuration and report issues.

    Args:
        config_path: Optional explicit path to the config.
        environ: Environment to expand against (default: ``os.environ``).
        host: Host platform override for the implicit target.
        registry: Adapters whose tools must be installed (default: the real ones).

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()
    env = EnvSnapshot(environ) if environ is not None else EnvSnapshot.capture()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.errors.append("No .gobuilder.yml found.")
        return result
    result.config_path = config_path

    try:
        raw_config = load_config(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    for name in _unset_placeholders(raw_config, env):
        result.warnings.append(f"${{{name}}} is not set and has no default; it expands to ''")

    config = expand_config(raw_config, env)
    result.config = config

    try:
        result.targets = resolve_targets(config, env, host)
    except ConfigError as e:
        result.errors.append(str(e))

    # Semantic checks
    if not config.targets:
        result.warnings.append("No targets declared: building for the host platform only.")

    for target in config.targets:
        if target.os and target.os not in _KNOWN_OS:
            result.warnings.append(f"Unknown GOOS '{target.os}' in target {target.platform}")
        if target.arch and target.arch not in _KNOWN_ARCH:
            result.warnings.append(f"Unknown GOARCH '{target.arch}' in target {target.platform}")

    if config.build.mod and config.build.mod not in _MOD_MODES:
        result.warnings.append(
            f"build.mod '{config.build.mod}' is not one of: {', '.join(sorted(_MOD_MODES))}"
        )

    if config.build.race and any(t.env.get("CGO_ENABLED") == "0" for t in result.targets):
        result.warnings.append("build.race requires cgo, but CGO_ENABLED=0 for some targets.")

    if config.build.debug:
        result.warnings.append("build.debug is true: every run is a dry-run.")

    programs = {"docker": config.docker.runtime} if config.docker else {}
    registry = registry or default_registry()
    for tool in registry.missing_tools(_required_tools(config, result.targets), programs):
        result.warnings.append(f"{programs.get(tool) or _TOOL_NAMES[tool]} not found on PATH")

    result.valid = len(result.errors) == 0
    return result
