"""Configuration validation commands."""

import typer
import yaml
from pathlib import Path

from ...core.config import Config, ConfigValidator

app = typer.Typer()


@app.command()
def config(
    config_file: Path = typer.Argument(..., help="Path to configuration file"),
):
    """Validate a configuration file."""
    typer.echo(f"Validating config: {config_file}")

    if not config_file.exists():
        typer.echo(f"❌ Configuration file not found: {config_file}", err=True)
        raise typer.Exit(1)

    try:
        with open(config_file, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict) or not ConfigValidator.validate(config_data):
            typer.echo("❌ Configuration validation failed", err=True)
            raise typer.Exit(1)

        config = Config(config_path=config_file)

        typer.echo("✅ Configuration validation successful!")

        # Display configuration sections
        for section in ["server", "collection", "logging", "accounts"]:
            if section in config_data:
                typer.echo(f"  {section.title()} Config: ✅")
            else:
                typer.echo(f"  {section.title()} Config: Using defaults")

        if not config.accounts:
            typer.echo("  ⚠️  No accounts configured")

        # Show effective configuration
        typer.echo("\nEffective Configuration:")
        effective_config = config.to_dict()
        for section_name, section_data in effective_config.items():
            typer.echo(f"  {section_name}:")
            if isinstance(section_data, list):
                for item in section_data:
                    typer.echo(f"    - {item['email']}")
                    for key, value in item.items():
                        if key != "email":
                            typer.echo(f"      {key}: {value}")
            else:
                for key, value in section_data.items():
                    typer.echo(f"    {key}: {value}")

    except typer.Exit:
        raise
    except yaml.YAMLError as e:
        typer.echo(f"❌ YAML parsing error: {e}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        typer.echo(f"❌ Configuration validation failed: {e}", err=True)
        raise typer.Exit(1)
