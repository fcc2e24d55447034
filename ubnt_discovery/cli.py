#!/usr/bin/env python3
"""
Device Discovery CLI

Command-line front end for the discovery engine.

Usage:
    ubnt-discovery scan                  # Scan and print every device
    ubnt-discovery scan -I eth0 -g       # Only eth0, grouped by interface
    ubnt-discovery scan --json           # JSON output
    ubnt-discovery decode HEX            # Decode one captured datagram
    ubnt-discovery version               # Show version
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn
from rich.panel import Panel
from rich.logging import RichHandler

from . import __version__
from .config import load_config
from .discovery.registry import NO_INTERFACE
from .engine import DiscoveryEngine
from .protocol import MalformedPacket, ModelCatalog, ParserRegistry, RecordCodec, Service

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level: str = 'WARNING'):
    """Configure logging with rich output."""
    if verbose:
        level = 'DEBUG'
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)]
    )


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='JSON config file')
@click.option('--ipv6', is_flag=True, default=None, help='Also scan on IPv6 addresses')
@click.pass_context
def cli(ctx, verbose, config_path, ipv6):
    """Discover devices answering the UDP discovery protocol."""
    config = load_config(Path(config_path) if config_path else None)
    if ipv6:
        config.ipv6_enabled = True
    setup_logging(verbose, config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.option('--duration-ms', '-d', 'duration_ms', type=int, default=None,
              help='Scan duration in milliseconds')
@click.option('--ratio', '-r', 'ticks', type=int, default=None,
              help='Number of progress ticks during the scan')
@click.option('--interface', '-I', 'interfaces', multiple=True,
              help='Only show devices seen on this interface')
@click.option('--grouped', '-g', is_flag=True, help='Group output by interface')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of tables')
@click.option('--models', 'models_file', type=click.Path(exists=True, dir_okay=False),
              help='Model description file (key=value)')
@click.pass_context
def scan(ctx, duration_ms, ticks, interfaces, grouped, as_json, models_file):
    """Scan the local network for devices."""
    config = ctx.obj['config']
    if models_file:
        config.models_file = Path(models_file)

    with DiscoveryEngine(config) as engine:
        channels = engine.setup()
        if channels == 0:
            console.print("[red]Could not bind any network address[/red]")
            ctx.exit(1)

        logger.info("Starting to receive packets...")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
            transient=True,
            disable=as_json,
        ) as progress:
            task = progress.add_task("Scanning...", total=None)

            def on_tick(remaining_ms, finished):
                if finished:
                    progress.update(task, completed=progress.tasks[0].total or 0,
                                    description="Done!")
                    return
                total = progress.tasks[0].total
                if total is None:
                    total = remaining_ms
                    progress.update(task, total=total)
                progress.update(
                    task,
                    completed=total - remaining_ms,
                    description=f"Scanning... ({len(engine.registry)} found)",
                )

            engine.run_scan(on_tick, duration_ms=duration_ms, ticks=ticks)

        services = engine.registry.filter(interfaces)
        logger.info(f"Finished receiving packets (got {len(engine.registry)} service(s))")

        if as_json:
            click.echo(json.dumps([s.to_dict() for s in services], indent=2))
            return

        if not services:
            console.print(f"[yellow]No devices found[/yellow]"
                          + (f" [dim](filter: {' && '.join(interfaces)})[/dim]" if interfaces else ""))
            return

        groups = engine.registry.grouped(services) if grouped else None
        display_services(services, engine.models, groups)


@cli.command()
@click.argument('hex_data')
def decode(hex_data):
    """Decode one reply datagram given as hex."""
    try:
        data = bytes.fromhex(hex_data.replace(':', '').replace(' ', ''))
    except ValueError:
        console.print(f"[red]Not a hex string: {hex_data}[/red]")
        raise SystemExit(1)

    parsers = ParserRegistry.default_registry(RecordCodec.default_codec())
    try:
        service = parsers.decode(data)
    except MalformedPacket as e:
        console.print(f"[red]✗ {e}[/red]")
        raise SystemExit(1)

    console.print(service_table(service, ModelCatalog()))


@cli.command()
def version():
    """Show version."""
    console.print(f"ubnt-discovery {__version__}")


def display_services(services: List[Service], models: ModelCatalog,
                     groups: Optional[Dict[str, List[Service]]] = None):
    """Print services, or the given interface groups."""
    if groups is None:
        for service in services:
            console.print(service_table(service, models))
        return

    console.print(f"[dim]{len(groups)} distinct interface result(s)[/dim]")
    for name, members in groups.items():
        console.print(Panel.fit(f"[bold]{name}[/bold]", title="Interface"))
        for service in members:
            console.print(service_table(service, models))


def service_table(service: Service, models: Optional[ModelCatalog] = None) -> Table:
    """Build a rich table listing one service's records."""
    name = service.model_name or "Service"
    interface = service.interface or NO_INTERFACE
    title = f"'{name}' v{service.version:#04x}@{interface}"
    if models is not None and service.model_name and service.model_name in models:
        title += f" ({models.describe(service.model_name)})"

    table = Table(title=title)
    table.add_column("Record", style="cyan")
    table.add_column("Type", justify="right")
    table.add_column("Value", style="yellow")

    for record in service:
        if record.is_known:
            table.add_row(record.type_name, f"{record.type:#04x}", str(record.payload))
        else:
            table.add_row("<Unknown>", f"{record.type:#04x}", f"length={record.length} ({record.length:#04x})")

    return table


if __name__ == '__main__':
    cli()
