"""Quote CLI command for Quote Calc.

Prices a quote form read from a JSON/YAML file (or stdin), with optional
field overrides from the command line.
"""

import json
import sys
from datetime import date, datetime
from typing import Optional, Tuple

import click
import yaml
from rich.console import Console

from quotecalc.sdk import (
    ConfigNotFoundError,
    PricingConfigError,
    build_line_items,
    compute_quote,
    load_pricing_config,
)

from .renderers.quote_renderer import render_quote


def parse_assignments(assignments: Tuple[str, ...]) -> dict:
    """Parse KEY=VALUE pairs. Values are read as YAML scalars (true, 3, 10K-25K)."""
    fields = {}
    for assignment in assignments:
        key, sep, raw = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{assignment}'", param_hint="--set")
        try:
            fields[key] = yaml.safe_load(raw) if raw.strip() else None
        except yaml.YAMLError:
            fields[key] = raw
    return fields


def read_form(source: Optional[str]) -> dict:
    """Read a quote form from a file path or '-' for stdin. None means an empty form."""
    if source is None:
        return {}
    try:
        if source == "-":
            data = yaml.safe_load(sys.stdin.read())
        else:
            with open(source, "r") as f:
                data = yaml.safe_load(f)
    except OSError as e:
        raise click.ClickException(f"Cannot read {source}: {e}")
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid JSON/YAML in {source}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise click.ClickException(f"Quote form must be a mapping, got {type(data).__name__}")
    return data


def parse_as_of(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}'. Use YYYY-MM-DD.", param_hint="--as-of")


@click.command("quote")
@click.argument("input_file", metavar="[INPUT]", required=False)
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE",
              help="Set a form field (repeatable), e.g. --set serviceBookkeeping=true")
@click.option("--pricing", "pricing_path", type=click.Path(exists=True, dir_okay=False),
              help="Pricing file (default: configured pricing.yaml or standard rates)")
@click.option("--as-of", "as_of", metavar="YYYY-MM-DD",
              help="Quote date for setup fee and cleanup rules (default: today)")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format (default: table)")
@click.option("--line-items", is_flag=True, help="Include billable line items")
def quote(input_file: Optional[str], assignments: Tuple[str, ...], pricing_path: Optional[str],
          as_of: Optional[str], output_format: str, line_items: bool):
    """Price a quote form.

    INPUT is a JSON or YAML file holding the form fields, or '-' to read
    stdin. Field names may be camelCase form names, legacy names, or
    snake_case. --set values are applied on top of INPUT.

    \b
    Examples:
      quote-calc quote form.json
      quote-calc quote --set serviceBookkeeping=true --set monthlyTransactions=100-300
      cat form.yaml | quote-calc quote - --format json --line-items
    """
    form = read_form(input_file)
    form.update(parse_assignments(assignments))
    quote_date = parse_as_of(as_of)

    try:
        pricing = load_pricing_config(pricing_path)
    except (ConfigNotFoundError, PricingConfigError) as e:
        raise click.ClickException(str(e))

    breakdown = compute_quote(form, pricing, as_of=quote_date)
    items = build_line_items(breakdown, pricing) if line_items else None

    if output_format == "json":
        output = breakdown.to_dict()
        if items is not None:
            output["lineItems"] = [item.model_dump(mode="json", by_alias=True) for item in items]
        click.echo(json.dumps(output, indent=2))
        return

    console = Console()
    render_quote(
        console,
        breakdown.to_dict(by_alias=False),
        line_items=[item.model_dump(mode="json") for item in items] if items is not None else None,
    )
