"""System and account information commands."""

import typer
import platform
import sys
import psutil
import asyncio
from pathlib import Path
from typing import List, Optional

from ...core import Config
from ...core.sense_api import SenseAPIClient, create_clients

app = typer.Typer()


@app.command()
def system():
    """Display system information."""
    typer.echo("System Information:")
    typer.echo("=" * 50)

    # Python information
    typer.echo(f"Python Version: {sys.version}")
    typer.echo(f"Python Executable: {sys.executable}")

    # Platform information
    typer.echo(f"Platform: {platform.platform()}")
    typer.echo(f"Machine: {platform.machine()}")

    # CPU information
    typer.echo(f"CPU Count: {psutil.cpu_count(logical=True)} (logical), {psutil.cpu_count(logical=False)} (physical)")

    # Memory information
    memory = psutil.virtual_memory()
    typer.echo(f"Total Memory: {memory.total / (1024**3):.2f} GB")
    typer.echo(f"Available Memory: {memory.available / (1024**3):.2f} GB")

    # Package versions
    typer.echo("\nKey Package Versions:")
    import importlib.metadata
    packages = ['prometheus-client', 'aiohttp', 'psutil', 'typer', 'pyyaml']
    for pkg in packages:
        try:
            version = importlib.metadata.version(pkg)
            typer.echo(f"  {pkg}: {version}")
        except importlib.metadata.PackageNotFoundError:
            typer.echo(f"  {pkg}: Not installed")


async def _describe_accounts(config: Config) -> List[str]:
    """Authenticate each account and describe its monitors and devices."""
    lines: List[str] = []
    clients: List[SenseAPIClient] = await create_clients(config.accounts, config.collection.request_timeout)
    try:
        for client in clients:
            lines.append(f"Account {client.get_account_id()} (user {client.get_user_id()})")
            for monitor in client.get_monitors():
                lines.append(f"  Monitor {monitor.id} serial={monitor.serial_number or '-'} "
                             f"tz={monitor.time_zone or '-'}")
                devices = await client.get_devices(monitor.id, include_merged=False)
                for device in devices:
                    lines.append(f"    {device.id}: {device.name} "
                                 f"[{device.type or '-'}] {device.make} {device.model}".rstrip())
    finally:
        await asyncio.gather(*(c.close() for c in clients), return_exceptions=True)
    return lines


@app.command()
def accounts(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Authenticate configured accounts and list their monitors and devices."""
    try:
        config = Config(config_path=config_file) if config_file else Config()
    except Exception as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1)

    if not config.accounts:
        typer.echo("❌ No accounts configured", err=True)
        raise typer.Exit(1)

    try:
        lines = asyncio.run(_describe_accounts(config))
    except Exception as e:
        typer.echo(f"❌ Failed to query Sense: {e}", err=True)
        raise typer.Exit(1)

    for line in lines:
        typer.echo(line)
