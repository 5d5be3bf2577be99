#!/usr/bin/env python3
"""
Main CLI Entry Point for Household Expenses

Provides unified command-line interface for receipt splitting and debt reports.
"""

import logging
import os

import click

from ..core.config import get_config, reload_config


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    Household Expenses - Receipt Splitting and Debt Tracking

    Record receipts, apply discounts, and split the cost with the people who
    owe you.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["EXPENSES_ENV"] = config_env
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    try:
        config = reload_config() if (config_env or debug) else get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if debug:
        logging.getLogger("expenses").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config

    if verbose:
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Data directory: {config.data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from expenses import __author__, __version__

    click.echo(f"Household Expenses v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Receipts Directory: {config_obj.receipts_dir}")
    click.echo(f"  Cache Directory: {config_obj.cache_dir}")
    click.echo(f"  Debt Tracking: {'enabled' if config_obj.debt.enabled else 'disabled'}")
    click.echo(f"  Payment Methods: {'enabled' if config_obj.payment_methods.enabled else 'disabled'}")
    click.echo(f"  Currency: {config_obj.formatting.currency_symbol} ({config_obj.formatting.decimal_separator!r})")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")

    errors = config_obj.validate()
    for error in errors:
        click.echo(f"  ⚠️  {error}")


from .debts import debts  # noqa: E402
from .receipts import receipt  # noqa: E402

main.add_command(receipt)
main.add_command(debts)


if __name__ == "__main__":
    main()
