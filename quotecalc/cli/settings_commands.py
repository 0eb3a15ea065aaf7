"""Settings CLI commands for Quote Calc.

Manages settings.json - pricing file path, preferences.
"""

import click
from pathlib import Path

from quotecalc.sdk import (
    load_settings,
    get_setting,
    set_setting,
    get_settings_path,
    get_config_dir,
)


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - pricing: path to a pricing.yaml outside the config directory
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
        click.echo()
        click.echo("Effective paths:")
        click.echo(f"  pricing: {get_config_dir() / 'pricing.yaml'} (default)")
        return

    click.echo("Current settings:")
    for key, value in current.items():
        click.echo(f"  {key}: {value}")


@settings.command("pricing-path")
@click.argument("path", required=False, type=click.Path())
@click.option("--clear", is_flag=True, help="Clear custom pricing path, revert to default")
def settings_pricing_path(path, clear):
    """Set or clear the custom pricing file path.

    PATH is a pricing.yaml kept outside the config directory, e.g. in a
    shared rates repo.

    Examples:
        quote-calc settings pricing-path ~/rates/pricing.yaml
        quote-calc settings pricing-path --clear
    """
    if clear:
        if get_setting("pricing"):
            set_setting("pricing", None)
            click.echo("Cleared pricing setting.")
        else:
            click.echo("pricing was not set.")
        click.echo(f"Pricing file is now: {get_config_dir() / 'pricing.yaml'} (default)")
        return

    if not path:
        current = get_setting("pricing")
        if current:
            click.echo(f"Current pricing: {current}")
        else:
            click.echo(f"No custom pricing path set. Using default: {get_config_dir() / 'pricing.yaml'}")
        return

    pricing_path = Path(path).expanduser().resolve()
    if pricing_path.is_dir():
        raise click.ClickException(f"Path is a directory, expected a file: {pricing_path}")
    if not pricing_path.exists():
        click.echo(f"Warning: Pricing file does not exist yet: {pricing_path}", err=True)
        click.echo("Quotes will fail until it is created (quote-calc config init).", err=True)

    settings_file = set_setting("pricing", str(pricing_path))
    click.echo(f"Set pricing: {pricing_path}")
    click.echo(f"Saved to: {settings_file}")
