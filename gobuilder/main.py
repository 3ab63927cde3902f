"""
go-builder — CLI entrypoint.

Usage:
    go-builder                      build every target (same as 'build')
    go-builder build --dry-run      print commands, run nothing
    go-builder build -n --env all   ... with the full environment
    go-builder init                 write a starter .gobuilder.yml
    go-builder config check         validate the config
    go-builder targets              list targets and output paths
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from gobuilder import __version__
from gobuilder.core.config.loader import CONFIG_FILE
from gobuilder.core.engine.dry_run import EnvMode
from gobuilder.core.engine.executor import BuildListener, BuildStep, ExecutionMode
from gobuilder.core.models.action import Receipt
from gobuilder.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


class _EchoListener(BuildListener):
    """Prints build progress and dry-run text to stdout."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def dry_run(self, step: BuildStep, text: str) -> None:
        click.echo()
        click.echo(text)

    def step_started(self, step: BuildStep) -> None:
        if self.quiet:
            return
        if step.kind == "container":
            click.secho(f">>> Delegating build to {step.title}", fg="cyan", bold=True)
        else:
            assert step.target is not None
            click.secho(f">>> Building {step.title} → {step.target.output}", fg="cyan", bold=True)

    def step_finished(self, step: BuildStep, receipt: Receipt) -> None:
        if not self.quiet:
            click.secho(f"✔ Completed in {receipt.duration_ms / 1000:.3f}s", fg="green")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="go-builder")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help=f"Path to the YAML config (default: {CONFIG_FILE}, searched upward).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """go-builder — declarative Go build matrix."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(verbose=verbose, quiet=quiet, debug=debug, env=os.environ),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(build)


@cli.command()
@click.option("--dry-run", "-n", is_flag=True, help="Print commands but do not execute.")
@click.option(
    "--env",
    "env_mode",
    type=click.Choice([m.value for m in EnvMode]),
    default=EnvMode.DIFF.value,
    show_default=True,
    help="Env vars shown by --dry-run: diff (added/changed), all, none.",
)
@click.option(
    "--no-container",
    is_flag=True,
    help="Build here even if the config has a docker section (used inside the container).",
)
@click.pass_context
def build(ctx: click.Context, dry_run: bool, env_mode: str, no_container: bool) -> None:
    """Build every target (or delegate the matrix to a container)."""
    from gobuilder.core.use_cases.build import run_build

    result = run_build(
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        env_mode=EnvMode(env_mode),
        mode=ExecutionMode.EXECUTOR if no_container else ExecutionMode.ORCHESTRATOR,
        listener=_EchoListener(quiet=ctx.obj.get("quiet", False)),
    )

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    if result.dry_run:
        click.echo()


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file without asking.")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write an annotated starter config."""
    from gobuilder.core.use_cases.init import write_example_config

    path: Path = ctx.obj.get("config_path") or Path(CONFIG_FILE)

    def _confirm(existing: Path) -> bool:
        return click.confirm(f"{existing} already exists — overwrite?", default=False)

    result = write_example_config(path, force=force, confirm=_confirm)
    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"✅ {path} written.", fg="green")


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate the config and resolve every target."""
    from gobuilder.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 2)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Config: {result.config_path}")
        click.echo(f"   Targets: {len(result.targets)}")
        if result.config.docker:
            click.echo(f"   Container: {result.config.docker.image}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(2)

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def targets(ctx: click.Context, as_json: bool) -> None:
    """List resolved targets and where each artifact goes."""
    from gobuilder.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in result.targets], indent=2))
        sys.exit(0 if result.valid else 2)

    if not result.valid:
        for err in result.errors:
            click.secho(f"❌ {err}", fg="red", err=True)
        sys.exit(2)

    for target in result.targets:
        marks = []
        if target.implicit:
            marks.append("host")
        if target.verify_static:
            marks.append("static")
        suffix = f"  [{', '.join(marks)}]" if marks else ""
        click.echo(f"{target.platform:<16} → {target.output}{suffix}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
