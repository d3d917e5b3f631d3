"""
Click CLI implementation for the trade journal.

This module provides the command-line interface for logging trades and
reviewing journal metrics, split into logical command groups.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click

from ..config import ConfigurationError, JournalConfig
from ..manager import JournalManager
from ..market_data import MarketDataClient
from .analysis_commands import calendar, cycles, dashboard, summary
from .data_commands import export, import_journal, price, refresh, reset, settings, vix
from .trade_commands import add, close, delete, edit, list_trades


@dataclass
class CLIContext:
    """Context object passed to all CLI commands.

    Attributes:
        config: Configuration settings
        manager: JournalManager for the selected database
        verbose: Verbose output enabled
        json: JSON output enabled
    """

    config: JournalConfig
    manager: JournalManager
    verbose: bool
    json: bool


@click.group()
@click.option(
    "--db",
    default=None,
    help="Database file path",
    envvar="JOURNAL_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--json", "output_json", is_flag=True, help="JSON output (where supported)")
@click.option(
    "--config-file",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.pass_context
def cli(
    ctx: click.Context,
    db: Optional[str],
    verbose: bool,
    output_json: bool,
    config_file: Optional[str],
) -> None:
    """
    Wheel Journal - log option trades and review wheel performance.

    Tracks cash-secured puts, covered calls, assignments and LEAPS, and
    derives realized P&L, capital allocation and wheel cycles.
    """
    ctx.ensure_object(dict)

    try:
        config = JournalConfig.load_from_file(Path(config_file) if config_file else None)
    except ConfigurationError as e:
        if verbose:
            click.echo(f"! Could not load config file: {e}", err=True)
            click.echo("  Using default configuration", err=True)
        config = JournalConfig()

    if db:
        config.db_path = db
    if verbose:
        config.verbose = True
    if output_json:
        config.json_output = True

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    market_client = MarketDataClient(
        api_key=config.finnhub_api_key,
        timeout=config.request_timeout,
    )
    manager = JournalManager(db_path=config.db_path, market_client=market_client)

    ctx.obj = {
        "manager": manager,
        "verbose": config.verbose,
        "json": config.json_output,
        "cli_context": CLIContext(
            config=config,
            manager=manager,
            verbose=config.verbose,
            json=config.json_output,
        ),
    }


# Register trade commands
cli.add_command(add)
cli.add_command(edit)
cli.add_command(close)
cli.add_command(delete)
cli.add_command(list_trades, name="list")

# Register analysis commands
cli.add_command(dashboard)
cli.add_command(cycles)
cli.add_command(summary)
cli.add_command(calendar)

# Register data commands
cli.add_command(settings)
cli.add_command(price)
cli.add_command(vix)
cli.add_command(refresh)
cli.add_command(export)
cli.add_command(import_journal, name="import")
cli.add_command(reset)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


__all__ = ["cli", "main", "CLIContext"]
