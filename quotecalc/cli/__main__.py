"""Quote Calc CLI - Command-line interface for service-fee quotes."""

import click

from quotecalc import __version__

from .config_commands import config as config_group
from .quote_commands import quote as quote_command
from .settings_commands import settings as settings_group


@click.group()
@click.version_option(version=__version__, prog_name="quote-calc")
def cli():
    """Quote Calc - Service-fee quotes for bookkeeping, tax and advisory work.

    Prices a quote form against the firm's rate table and shows the
    monthly and one-time totals with the formula behind each fee.

    Rates are loaded from (in order):

    \b
    1. --pricing PATH on the quote command
    2. settings.json 'pricing' key (if set via CLI)
    3. pricing.yaml in the config directory
       (QUOTE_CALC_CONFIG_PATH or ~/.config/quote-calc/)
    4. Standard rates

    Run 'quote-calc config path' to see which pricing file is active.
    """
    pass


cli.add_command(quote_command)
cli.add_command(config_group)
cli.add_command(settings_group)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
