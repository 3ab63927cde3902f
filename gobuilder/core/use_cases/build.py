"""
Build use case — the full vertical slice of one invocation.

    snapshot env → load config → expand placeholders (once)
    → resolve targets (validates before any side effect)
    → prepare build dir (once) → execute

Errors never escape: they are recorded on the BuildResult with the
exit code the CLI should use.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from gobuilder.adapters.registry import AdapterRegistry, default_registry
from gobuilder.core.config.loader import find_config_file, load_config, project_root
from gobuilder.core.engine.dry_run import EnvMode
from gobuilder.core.engine.environment import EnvSnapshot
from gobuilder.core.engine.executor import (
    BuildListener,
    BuildOptions,
    ExecutionMode,
    ExecutionReport,
    execute_build,
    should_delegate,
)
from gobuilder.core.engine.placeholders import expand_config
from gobuilder.core.engine.targets import HostPlatform, ResolvedTarget, resolve_targets
from gobuilder.core.errors import ConfigError, GoBuilderError
from gobuilder.core.models.config import BuildConfig
from gobuilder.core.services.build_dir import ensure_build_dir

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of one go-builder invocation."""

    config: BuildConfig | None = None
    config_path: Path | None = None
    targets: list[ResolvedTarget] = field(default_factory=list)
    report: ExecutionReport | None = None
    dry_run: bool = False
    error: str | None = None
    exit_code: int = 0

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            result["exit_code"] = self.exit_code
            return result

        result["config_path"] = str(self.config_path) if self.config_path else None
        result["dry_run"] = self.dry_run
        result["targets"] = [t.to_dict() for t in self.targets]
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def load_expanded(
    config_path: Path | None,
    env: Mapping[str, str],
) -> tuple[Path, BuildConfig]:
    """Locate, load and expand the config. Raises ConfigError."""
    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        raise ConfigError("No .gobuilder.yml found. Run 'go-builder init' or pass --config.")
    return config_path, expand_config(load_config(config_path), env)


def _config_ref(config_path: Path, root: Path) -> str:
    """Config path as seen from the project root (and thus the container)."""
    resolved = config_path.resolve()
    if resolved.is_relative_to(root):
        return resolved.relative_to(root).as_posix()
    return config_path.name


def run_build(
    config_path: Path | None = None,
    dry_run: bool = False,
    env_mode: EnvMode = EnvMode.DIFF,
    mode: ExecutionMode = ExecutionMode.ORCHESTRATOR,
    registry: AdapterRegistry | None = None,
    environ: Mapping[str, str] | None = None,
    host: HostPlatform | None = None,
    listener: BuildListener | None = None,
) -> BuildResult:
    """Build every target (or delegate the matrix to a container).

    Args:
        config_path: Explicit path to the config. If None, searches upward.
        dry_run: Print instead of executing (``build.debug`` also forces it).
        env_mode: Which env vars a dry-run prints.
        mode: ORCHESTRATOR may delegate; EXECUTOR always builds here.
        registry: Adapter registry (default: the real tools).
        environ: Process environment (default: captured from ``os.environ``).
        host: Host platform override for the implicit target.
        listener: Progress hooks.

    Returns:
        BuildResult; ``error``/``exit_code`` set on failure.
    """
    result = BuildResult()
    snapshot = EnvSnapshot(environ) if environ is not None else EnvSnapshot.capture()

    try:
        config_path, config = load_expanded(config_path, snapshot)
        result.config_path = config_path
        result.config = config
        root = project_root(config_path)

        result.dry_run = dry_run or config.dry_run_forced
        if config.dry_run_forced and not dry_run:
            logger.info("build.debug is set: running as --dry-run")

        delegating = should_delegate(config, mode)
        if not delegating:
            result.targets = resolve_targets(config, snapshot, host)

        ensure_build_dir(config.build_dir, root, create=not result.dry_run)

        options = BuildOptions(
            dry_run=result.dry_run,
            env_mode=env_mode,
            mode=mode,
            config_path=_config_ref(config_path, root),
        )
        result.report = execute_build(
            config=config,
            targets=result.targets,
            base_env=snapshot,
            registry=registry or default_registry(),
            project_root=str(root),
            options=options,
            listener=listener,
        )

    except GoBuilderError as e:
        logger.debug("Build aborted: %s", e)
        result.error = str(e)
        result.exit_code = e.exit_code

    return result
