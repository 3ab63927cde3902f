"""
Engine executor — decide, per invocation, what actually runs.

State machine:

    Init → ContainerDecision ─┬─ Delegate                       → Done
                              └─ PerTargetLoop
                                   (Compose → DryRunOrExecute → [VerifyStatic])* → Done

ContainerDecision is driven by an explicit ExecutionMode: the host
orchestrator delegates when a ``docker:`` section exists; the
in-container executor (``--no-container``) never does. Delegation and
the per-target loop are mutually exclusive.

Every failed receipt is fatal. There is no retry and no partial
continuation: the first failure raises and the remaining targets are
not attempted.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from gobuilder.adapters.containers.docker import container_run_args
from gobuilder.adapters.inspect.static_link import Linkage
from gobuilder.adapters.registry import AdapterRegistry
from gobuilder.core.config.loader import CONFIG_FILE
from gobuilder.core.engine.command import GO_BINARY, compose_build_args, render_command
from gobuilder.core.engine.dry_run import EnvMode, render_dry_run
from gobuilder.core.engine.environment import compose_env
from gobuilder.core.engine.targets import ResolvedTarget
from gobuilder.core.errors import ExecutionError, StaticLinkError
from gobuilder.core.models.action import Action, Receipt
from gobuilder.core.models.config import BuildConfig, ContainerSpec

logger = logging.getLogger(__name__)


class ExecutionMode(StrEnum):
    """Which side of the container boundary this process is on."""

    ORCHESTRATOR = "orchestrator"   # host: may delegate to a container
    EXECUTOR = "executor"           # build here, never delegate


@dataclass
class BuildOptions:
    """Per-invocation switches (from the CLI)."""

    dry_run: bool = False
    env_mode: EnvMode = EnvMode.DIFF
    mode: ExecutionMode = ExecutionMode.ORCHESTRATOR
    config_path: str = CONFIG_FILE  # as seen from the project root


@dataclass
class BuildStep:
    """One external invocation, fully composed."""

    kind: Literal["target", "container"]
    title: str
    program: str
    args: list[str]
    env: dict[str, str] = field(default_factory=dict)
    target: ResolvedTarget | None = None

    @property
    def command(self) -> str:
        return render_command(self.program, self.args)

    def render_dry_run(self, mode: EnvMode, base_env: Mapping[str, str]) -> str:
        if self.kind == "container":
            # env travels as -e flags inside the command itself
            return render_dry_run(self.title, self.command, EnvMode.NONE, {}, {})
        return render_dry_run(self.title, self.command, mode, base_env, self.env)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "title": self.title,
            "command": self.command,
            "target": self.target.to_dict() if self.target else None,
        }


@dataclass
class ExecutionReport:
    """What happened during one invocation."""

    delegated: bool = False
    dry_run: bool = False
    steps: list[BuildStep] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.steps)

    @property
    def built(self) -> int:
        return sum(1 for r in self.receipts if r.ok and r.adapter != "static-link")

    def to_dict(self) -> dict:
        return {
            "delegated": self.delegated,
            "dry_run": self.dry_run,
            "steps": [s.to_dict() for s in self.steps],
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


class BuildListener:
    """Progress hooks; the CLI overrides these to print."""

    def dry_run(self, step: BuildStep, text: str) -> None:
        pass

    def step_started(self, step: BuildStep) -> None:
        pass

    def step_finished(self, step: BuildStep, receipt: Receipt) -> None:
        pass


# ── Planning ────────────────────────────────────────────────────


def should_delegate(config: BuildConfig, mode: ExecutionMode) -> bool:
    """ContainerDecision."""
    return config.docker is not None and mode is ExecutionMode.ORCHESTRATOR


def delegated_command(spec: ContainerSpec, config_path: str) -> str:
    """The go-builder invocation that runs inside the container."""
    return shlex.join([*shlex.split(spec.builder), "--config", config_path, "build", "--no-container"])


def plan_container_step(
    config: BuildConfig,
    project_dir: str,
    options: BuildOptions,
) -> BuildStep:
    """Compose the single ``<runtime> run`` that replaces the per-target loop."""
    spec = config.docker
    assert spec is not None
    env = compose_env(None, config.env, spec.env)
    commands = [*spec.setup, delegated_command(spec, options.config_path)]
    return BuildStep(
        kind="container",
        title=f"container {spec.image}",
        program=spec.runtime,
        args=container_run_args(spec, env, project_dir, commands),
        env=env,
    )


def plan_target_step(config: BuildConfig, target: ResolvedTarget) -> BuildStep:
    """Compose the ``go build`` for one resolved target."""
    return BuildStep(
        kind="target",
        title=target.platform,
        program=GO_BINARY,
        args=compose_build_args(config.build, config.source, target.output),
        env=target.env,
        target=target,
    )


# ── Execution ───────────────────────────────────────────────────


def _dispatch(
    step: BuildStep,
    registry: AdapterRegistry,
    project_root: str,
) -> Receipt:
    if step.kind == "container":
        action = Action(
            id=f"container:{step.title}",
            adapter="docker",
            params={"runtime": step.program, "args": step.args},
        )
    else:
        assert step.target is not None
        action = Action(
            id=f"build:{step.title}",
            adapter="go",
            for_target=step.title,
            params={
                "program": step.program,
                "args": step.args,
                "env": step.env,
                "output_path": step.target.output,
            },
        )
    return registry.execute_action(action, project_root=project_root)


def verify_static(
    target: ResolvedTarget,
    registry: AdapterRegistry,
    project_root: str,
) -> Receipt:
    """VerifyStatic: fail the invocation if ``target.output`` is dynamic."""
    receipt = registry.execute_action(
        Action(
            id=f"static-link:{target.platform}",
            adapter="static-link",
            for_target=target.platform,
            params={"path": target.output},
        ),
        project_root=project_root,
    )
    if receipt.failed:
        raise ExecutionError(f"Static-link check for {target.platform} failed: {receipt.error}")

    linkage = receipt.metadata.get("linkage", Linkage.UNKNOWN)
    if linkage == Linkage.DYNAMIC:
        raise StaticLinkError(target.output, receipt.output)
    if linkage == Linkage.UNKNOWN:
        logger.warning("Cannot tell how %s is linked: %s", target.output, receipt.output)
    else:
        logger.info("%s is statically linked", target.output)
    return receipt


def execute_build(
    config: BuildConfig,
    targets: Sequence[ResolvedTarget],
    base_env: Mapping[str, str],
    registry: AdapterRegistry,
    project_root: str,
    options: BuildOptions | None = None,
    listener: BuildListener | None = None,
) -> ExecutionReport:
    """Run the state machine for one invocation.

    Args:
        config: Expanded configuration.
        targets: Resolved targets, in declaration order.
        base_env: The startup environment snapshot (for dry-run diffs).
        registry: Adapter registry for dispatch.
        project_root: Directory the children run in (and that gets mounted).
        options: Dry-run, env display mode, execution mode.
        listener: Progress hooks.

    Returns:
        ExecutionReport with every composed step and receipt.

    Raises:
        ExecutionError: A compiler or container process failed.
        StaticLinkError: A built artifact is dynamically linked.
    """
    options = options or BuildOptions()
    listener = listener or BuildListener()
    report = ExecutionReport(dry_run=options.dry_run)

    if should_delegate(config, options.mode):
        report.delegated = True
        step = plan_container_step(config, project_root, options)
        report.steps.append(step)
        listener.step_started(step)
        if options.dry_run:
            listener.dry_run(step, step.render_dry_run(options.env_mode, base_env))
            return report

        receipt = _dispatch(step, registry, project_root)
        report.receipts.append(receipt)
        if receipt.failed:
            raise ExecutionError(f"Container build failed: {receipt.error}")
        listener.step_finished(step, receipt)
        return report

    for target in targets:
        step = plan_target_step(config, target)
        report.steps.append(step)
        listener.step_started(step)
        if options.dry_run:
            listener.dry_run(step, step.render_dry_run(options.env_mode, base_env))
            continue

        receipt = _dispatch(step, registry, project_root)
        report.receipts.append(receipt)
        if receipt.failed:
            raise ExecutionError(f"Build {target.platform} failed: {receipt.error}")

        if target.verify_static:
            report.receipts.append(verify_static(target, registry, project_root))
        listener.step_finished(step, receipt)

    return report
