"""Config CLI commands for Quote Calc.

Manages pricing.yaml - rate overrides on top of the standard rates.
Machine settings (settings.json) live in settings_commands.py.
"""

import json
import os

import click
import yaml

from quotecalc.sdk import (
    get_config_dir,
    get_settings_path,
    get_setting,
    get_pricing_path,
    load_pricing_config,
    load_pricing_overrides,
    init_pricing_config,
    get_pricing_value,
    set_pricing_value,
    ConfigNotFoundError,
    PricingConfigError,
)


@click.group()
def config():
    """Manage pricing rates (pricing.yaml).

    pricing.yaml holds overrides only; anything not in it uses the
    standard rates. Keys use dot notation, e.g. bookkeeping.base_fee or
    cfo_advisory.bundle_rates.8.
    """
    pass


@config.command("path")
def config_path():
    """Show configuration paths and the active pricing file."""
    click.echo("Configuration paths:")
    click.echo()

    config_dir = get_config_dir()
    click.echo(f"  Config directory: {config_dir}")
    if os.environ.get("QUOTE_CALC_CONFIG_PATH"):
        click.echo("    (from QUOTE_CALC_CONFIG_PATH)")
    else:
        click.echo("    (XDG default)")

    settings_path = get_settings_path()
    status = "[exists]" if settings_path.exists() else "[not found]"
    click.echo(f"  Settings file:    {settings_path} {status}")

    click.echo()
    click.echo("Pricing resolution:")
    custom = get_setting("pricing")
    if custom:
        status = "[ACTIVE]" if os.path.exists(custom) else "[NOT FOUND]"
        click.echo(f"  1. settings.json 'pricing': {custom} {status}")
        return

    click.echo("  1. settings.json 'pricing': (not set)")
    default_path = get_pricing_path()
    if default_path.exists():
        click.echo(f"  2. Default pricing: {default_path} [ACTIVE]")
    else:
        click.echo(f"  2. Default pricing: {default_path} (not found, standard rates apply)")


@config.command("show")
@click.option("--format", "output_format", type=click.Choice(["yaml", "json"]), default="yaml",
              help="Output format (default: yaml)")
@click.option("--overrides", "overrides_only", is_flag=True,
              help="Show only the overrides in the pricing file")
def config_show(output_format: str, overrides_only: bool):
    """Show the effective pricing rates."""
    try:
        if overrides_only:
            data = load_pricing_overrides()
        else:
            data = load_pricing_config().model_dump(mode="json")
    except (ConfigNotFoundError, PricingConfigError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False), nl=False)


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing pricing file")
def config_init(force: bool):
    """Write the standard rates to pricing.yaml for editing."""
    try:
        path = init_pricing_config(force=force)
    except FileExistsError as e:
        raise click.ClickException(f"{e}\nUse --force to overwrite.")
    except ConfigNotFoundError as e:
        raise click.ClickException(str(e))
    click.echo(f"Wrote standard rates to: {path}")


@config.command("get")
@click.argument("key")
def config_get(key: str):
    """Get an effective pricing value by dot-notation key."""
    try:
        value = get_pricing_value(key)
    except (ConfigNotFoundError, PricingConfigError) as e:
        raise click.ClickException(str(e))

    if value is None:
        raise click.ClickException(f"Pricing key '{key}' not found")

    if isinstance(value, (dict, list)):
        click.echo(json.dumps(value, indent=2))
    else:
        click.echo(value)


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a pricing override.

    KEY is a dot-notation key (e.g., 'bookkeeping.base_fee')
    VALUE is parsed as YAML, so numbers and true/false keep their type.

    \b
    Examples:
      quote-calc config set bookkeeping.base_fee 175
      quote-calc config set services.cfo_advisory false
      quote-calc config set industry_multipliers.Brewery 1.4
    """
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError:
        parsed_value = value

    try:
        path = set_pricing_value(key, parsed_value)
    except (ConfigNotFoundError, PricingConfigError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Set {key} = {parsed_value}")
    click.echo(f"Saved to: {path}")
