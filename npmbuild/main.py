"""
npmbuild — CLI entrypoint.

Usage:
    python -m npmbuild.main --help
    python -m npmbuild.main detect ./app
    python -m npmbuild.main build ./app --layers ./layers
    python -m npmbuild.main status --layers ./layers
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from npmbuild import __version__
from npmbuild.core.errors import DetectionFailed, NpmBuildError
from npmbuild.core.observability.logging_config import setup_logging

# Exit code that tells the platform "not for me" rather than "broken"
EXIT_DETECT_FAIL = 100


@click.group()
@click.version_option(version=__version__, prog_name="npmbuild")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to npmbuild.yml (default: <working dir>/npmbuild.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """npmbuild — install and cache npm dependencies for container builds."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("NPMBUILD_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("NPMBUILD_LOG_FILE"),
        log_file_level=os.environ.get("NPMBUILD_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.argument("working_dir", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(working_dir: Path, as_json: bool) -> None:
    """Detect whether WORKING_DIR is an npm application."""
    from npmbuild.core.use_cases.detect import detect as run_detect

    try:
        plan = run_detect(working_dir.resolve())
    except DetectionFailed as e:
        if as_json:
            click.echo(json.dumps({"passed": False, "reason": str(e)}, indent=2))
        else:
            click.secho(f"✗ {e}", fg="yellow")
        sys.exit(EXIT_DETECT_FAIL)
    except NpmBuildError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"passed": True, "plan": plan.to_dict()}, indent=2))
        return

    click.secho("✅ npm application detected", fg="green", bold=True)
    for provision in plan.provides:
        click.echo(f"   provides: {provision.name}")
    for requirement in plan.requires:
        version = f" {requirement.version}" if requirement.version else ""
        click.echo(f"   requires: {requirement.name}{version}")


@cli.command()
@click.argument("working_dir", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option(
    "--layers",
    "layers_dir",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Layers root directory.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(ctx: click.Context, working_dir: Path, layers_dir: Path, as_json: bool) -> None:
    """Install npm dependencies of WORKING_DIR into the layers root."""
    from npmbuild.core.config.loader import load_build_config
    from npmbuild.core.use_cases.build import build_application

    working_dir = working_dir.resolve()
    echo = None if (as_json or ctx.obj.get("quiet")) else click.echo

    try:
        config = load_build_config(ctx.obj.get("config_path"), working_dir)
        result = build_application(working_dir, layers_dir.resolve(), config=config, echo=echo)
    except (NpmBuildError, OSError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))


@cli.command()
@click.option(
    "--layers",
    "layers_dir",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Layers root directory.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def status(layers_dir: Path, as_json: bool) -> None:
    """Show what the last build stored in the modules layer."""
    from npmbuild.core.persistence.layer_store import Layers
    from npmbuild.core.use_cases.build import LAYER_NAME_CACHE, LAYER_NAME_NODE_MODULES

    layers = Layers(layers_dir)
    try:
        metadata = layers.read_metadata(LAYER_NAME_NODE_MODULES)
    except NpmBuildError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    cached = layers.metadata_path(LAYER_NAME_CACHE).is_file()

    if as_json:
        click.echo(json.dumps({"metadata": metadata, "cache_layer": cached}, indent=2))
        return

    if not metadata:
        click.secho("⚠️  No previous install recorded", fg="yellow")
        return

    click.secho("📦 modules layer", fg="cyan", bold=True)
    click.echo(f"   built at:  {metadata.get('built_at', '?')}")
    click.echo(f"   lock sha:  {metadata.get('cache_sha') or '(no lock file)'}")
    click.echo(f"   npm cache: {'kept' if cached else 'not kept'}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
