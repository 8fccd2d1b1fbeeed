"""
Moby CLI - Command line interface
"""

import asyncio
import shutil
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from moby import __version__
from moby.build.manifest import Manifest, load_manifest
from moby.build.pipeline import ImagePipeline, PipelineResult
from moby.core.context import Context
from moby.core.errors import MobyError
from moby.core.logger import console, log, setup_logging
from moby.runner.boot import BootLauncher

# CLI App
app = typer.Typer(
    name="moby",
    help="🐳 Moby - Build a bootable kernel + initrd from containers",
    add_completion=False,
    invoke_without_command=True,
)


def get_context(ctx: typer.Context) -> Context:
    """Create the execution context from the global options."""
    options = ctx.obj or {}
    try:
        return Context.create(config_path=options.get("config"))
    except MobyError as e:
        log.error(f"{e.stage}: {e}")
        raise typer.Exit(1)


def fail(error: MobyError) -> None:
    log.error(f"{error.stage} failed: {error}")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    manifest: Optional[Path] = typer.Option(None, "--manifest", "-m", help="Manifest file (default: ./moby.yaml)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Tool configuration (default: ./moby.toml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
):
    """Without a command, build bzImage and initrd.img from the manifest."""
    setup_logging(verbose=verbose, debug=debug)
    ctx.obj = {"manifest": manifest, "config": config}

    if ctx.invoked_subcommand is None:
        _build(ctx)


# ============================================================================
# Build Commands
# ============================================================================

@app.command()
def build(ctx: typer.Context):
    """Build bzImage and initrd.img from the manifest."""
    _build(ctx)


def _build(ctx: typer.Context) -> PipelineResult:
    context = get_context(ctx)
    pipeline = ImagePipeline(context.config, context.paths, context.log)

    try:
        result = asyncio.run(pipeline.run(ctx.obj.get("manifest")))
    except MobyError as e:
        fail(e)

    _print_summary(result)
    return result


def _print_summary(result: PipelineResult) -> None:
    table = Table(title="Artifacts")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("SHA256")
    table.add_column("Valid")

    for entry in result.report["artifacts"]:
        table.add_row(
            entry["path"],
            f"{entry['size']:,}",
            entry["sha256"][:16],
            "✓" if entry["valid"] else "✗",
        )

    console.print(table)


# ============================================================================
# Run Commands
# ============================================================================

@app.command()
def run(ctx: typer.Context):
    """Boot the built image by exec'ing the boot script."""
    context = get_context(ctx)
    launcher = BootLauncher(context.paths.boot_script, context.log)

    try:
        launcher.launch()
    except MobyError as e:
        fail(e)


# ============================================================================
# Utility Commands
# ============================================================================

@app.command()
def env(ctx: typer.Context):
    """Show backend and manifest information."""
    context = get_context(ctx)
    config = context.config
    paths = context.paths

    log.header("Environment")

    backend = shutil.which(config.backend.command)
    console.print("\n[cyan]🐳 Backend:[/cyan]")
    if backend:
        console.print(f"   {config.backend.command}: {backend}")
    else:
        console.print(f"   [red]{config.backend.command} not found[/red]")
    console.print(f"   Socket: {config.backend.socket}")

    manifest_path = ctx.obj.get("manifest") or paths.manifest
    console.print(f"\n[cyan]📄 Manifest:[/cyan] {manifest_path}")
    if not manifest_path.exists():
        console.print("   [red]not found[/red]")
        return

    try:
        manifest = load_manifest(manifest_path)
    except MobyError as e:
        fail(e)

    console.print(_components_table(manifest))


def _components_table(manifest: Manifest) -> Table:
    table = Table(title="Components")
    table.add_column("#", justify="right")
    table.add_column("Component")
    table.add_column("Image")
    table.add_column("Command")

    table.add_row("0", "kernel", escape(manifest.kernel) or "[red]missing[/red]", "")
    table.add_row("1", "init", escape(manifest.init) or "[red]missing[/red]", "")
    for index, service in enumerate(manifest.system, start=2):
        table.add_row(
            str(index),
            escape(f"system/{service.name}"),
            escape(service.image),
            escape(" ".join(service.command)),
        )

    return table


@app.command()
def version():
    """Show Moby version."""
    console.print(f"🐳 Moby v{__version__}")


if __name__ == "__main__":
    app()
