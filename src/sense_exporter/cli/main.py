"""
Sense Exporter CLI

Main entry point for the sense-exporter command-line tool.
"""

import typer
import logging
import sys

from . import commands

app = typer.Typer(
    name="sense-exporter",
    help="Prometheus exporter for Sense energy monitors",
    add_completion=False,
)

# Add commands and command groups
app.command(name="serve", help="Serve /metrics for all configured accounts")(commands.serve.serve)
app.add_typer(commands.validate.app, name="validate", help="Validate configurations")
app.add_typer(commands.info.app, name="info", help="Display system and account information")


def _configure_logging(verbose: bool, quiet: bool) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    # Configure root logger
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )

    # Reduce noise from third-party libraries
    if not verbose:
        logging.getLogger('aiohttp').setLevel(logging.WARNING)
        logging.getLogger('asyncio').setLevel(logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
):
    """Prometheus exporter for Sense energy monitors."""
    # Validate conflicting options
    if verbose and quiet:
        typer.echo("Error: Cannot use both --verbose and --quiet", err=True)
        raise typer.Exit(1)

    _configure_logging(verbose, quiet)


def _get_version() -> str:
    """Get package version."""
    try:
        import importlib.metadata
        return importlib.metadata.version("sense-exporter")
    except Exception:
        from .. import __version__
        return __version__


@app.command()
def version():
    """Display version information."""
    typer.echo(f"sense-exporter version {_get_version()}")

    import importlib.metadata

    typer.echo(f"Python {sys.version}")

    # Show key dependency versions
    deps = ['prometheus-client', 'aiohttp', 'typer', 'pyyaml']
    typer.echo("\nKey dependencies:")
    for dep in deps:
        try:
            dep_version = importlib.metadata.version(dep)
            typer.echo(f"  {dep}: {dep_version}")
        except importlib.metadata.PackageNotFoundError:
            typer.echo(f"  {dep}: Not found")


if __name__ == "__main__":
    app()
