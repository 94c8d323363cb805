"""Serve command running the metrics HTTP endpoint."""

import typer
import asyncio
import logging
from pathlib import Path
from typing import Optional

from aiohttp import web

from ...core import Config
from ...core.sense_api import create_clients
from ...monitoring import ScrapeCoordinator, create_app, run_server

logger = logging.getLogger(__name__)


def build_app(config: Config) -> web.Application:
    """Application that authenticates all accounts on startup and closes them on shutdown."""
    coordinator = ScrapeCoordinator([], timeout=config.collection.timeout)
    app = create_app(coordinator)

    async def sense_clients(app: web.Application):
        clients = await create_clients(config.accounts, config.collection.request_timeout)
        coordinator.clients = clients
        logger.info(f"Collecting from {len(coordinator.monitor_pairs())} monitor(s) "
                    f"across {len(clients)} account(s), timeout {config.collection.timeout}s")
        yield
        await asyncio.gather(*(c.close() for c in clients), return_exceptions=True)

    app.cleanup_ctx.append(sense_clients)
    return app


def serve(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
    host: Optional[str] = typer.Option(None, "--host", help="Listen address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-monitor collection timeout in seconds (0 disables)"),
):
    """Serve /metrics for all configured accounts."""
    try:
        config = Config(config_path=config_file) if config_file else Config()

        if host is not None:
            config.server.host = host
        if port is not None:
            config.server.port = port
        if timeout is not None:
            config.collection.timeout = timeout
        config.validate()
    except Exception as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1)

    if logging.getLogger().getEffectiveLevel() == logging.INFO:
        logging.getLogger().setLevel(config.logging.level)

    if not config.accounts:
        logger.warning("No Sense accounts configured; only process metrics will be exported")

    app = build_app(config)
    try:
        run_server(app, config.server.host, config.server.port)
    except KeyboardInterrupt:
        typer.echo("\nInterrupted by user")
        raise typer.Exit(130)
    except Exception as e:
        typer.echo(f"❌ Exporter failed: {e}", err=True)
        raise typer.Exit(1)
