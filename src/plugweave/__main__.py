"""CLI entry point: inspect discovery, preview the plan, run the lifecycle."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape

from .core.config import load_config
from .core.log import setup_logging
from .plugins import PluginError, PluginsService

console = Console()


def _make_service(paths: tuple[str, ...], verbose: bool, dev: bool, disable: tuple[str, ...] = ()):
    setup_logging(verbose)
    config = load_config(search_paths=list(paths), verbose=verbose)
    if dev:
        config.dev_mode = True
    for plugin_id in disable:
        config.enabled_plugins[plugin_id] = False
    if not config.plugin_search_paths:
        console.print("error: no plugin search paths", style="bold")
        console.print("pass PATH arguments or set PLUGWEAVE_PLUGIN_PATHS", style="dim")
        sys.exit(1)
    return PluginsService(config)


def _fail(error: Exception) -> None:
    console.print(f"error: {escape(str(error))}", style="bold")
    sys.exit(1)


# ── Commands ────────────────────────────────────────────────────────


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--dev", is_flag=True, help="Also scan dev plugin paths")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, dev: bool):
    """plugweave: plugin discovery, dependency resolution and lifecycle."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["dev"] = dev


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.pass_context
def discover(ctx: click.Context, paths: tuple[str, ...]):
    """List plugins found under PATHS and any discovery errors."""
    service = _make_service(paths, ctx.obj["verbose"], ctx.obj["dev"])
    result = service.discover()

    if not result.definitions:
        console.print("no plugins found", style="dim")
    for d in result.definitions:
        parts = [name for name, on in (("server", d.manifest.server), ("ui", d.manifest.ui)) if on]
        console.print(
            f"  [bold]{d.id}[/bold]  v{d.manifest.version}  {'+'.join(parts)}  "
            f"[dim]{escape(str(d.path))}[/dim]"
        )
    for e in result.errors:
        label = "[red]error:[/red]" if e.is_fatal else "[yellow]warning:[/yellow]"
        console.print(f"  {label} {escape(str(e))}", highlight=False)


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--disable", "-d", multiple=True, help="Disable a plugin id (repeatable)")
@click.pass_context
def plan(ctx: click.Context, paths: tuple[str, ...], disable: tuple[str, ...]):
    """Show which plugins would be enabled and in which order they run."""
    service = _make_service(paths, ctx.obj["verbose"], ctx.obj["dev"], disable)
    try:
        result = service.plan(service.discover())
    except PluginError as e:
        _fail(e)
        return

    for plugin_id in result.graph.nodes:
        status = "[green]on[/green]" if result.resolution.is_enabled(plugin_id) else "[dim]off[/dim]"
        console.print(f"  [bold]{plugin_id}[/bold]  {status}")
    for reason in result.resolution.reasons:
        console.print(f"  {reason}", style="dim", highlight=False)
    console.print()
    console.print("order: " + (" -> ".join(result.order) if result.order else "(empty)"))


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--disable", "-d", multiple=True, help="Disable a plugin id (repeatable)")
@click.pass_context
def run(ctx: click.Context, paths: tuple[str, ...], disable: tuple[str, ...]):
    """Set up, start and stop every enabled plugin."""
    service = _make_service(paths, ctx.obj["verbose"], ctx.obj["dev"], disable)
    try:
        setup = service.setup({"config": service.config})
    except PluginError as e:
        _fail(e)
        return

    try:
        start = service.start({"config": service.config})
    except PluginError as e:
        service.stop()
        _fail(e)
        return

    try:
        console.print(f"set up {len(setup.contracts)} plugin(s): {', '.join(setup.contracts) or '-'}")
        console.print(f"started {len(start.contracts)} plugin(s)")
    finally:
        service.stop()


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
