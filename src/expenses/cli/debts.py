#!/usr/bin/env python3
"""
Debts CLI - Balances Between the Owner and Debtors
"""

import click

from ..core.currency import format_amount
from ..receipts.datastore import JsonReceiptStore, ReceiptPersistenceError
from ..receipts.debts import DebtDirection, calculate_debtor_balance
from .output import echo_structured, format_option


@click.group()
def debts() -> None:
    """Debt balance commands."""
    pass


@debts.command()
@click.argument("debtor_id", type=int)
@format_option
@click.pass_context
def balance(ctx: click.Context, debtor_id: int, output_format: str) -> None:
    """
    Show what a debtor owes you and what you owe them.

    Tentative receipts are ignored; settled receipts are listed but not counted.

    Examples:
      expenses debts balance 2
      expenses debts balance 2 --format json
    """
    config = ctx.obj["config"]
    store = JsonReceiptStore(config.receipts_dir)

    try:
        receipts = store.load_all(include_tentative=False)
    except ReceiptPersistenceError as e:
        raise click.ClickException(str(e)) from e

    result = calculate_debtor_balance(debtor_id, receipts)
    name = store.debtor_names().get(debtor_id, f"Debtor {debtor_id}")

    if output_format != "text":
        data = result.to_dict()
        data["name"] = name
        echo_structured(data, output_format)
        return

    def money(value):
        return format_amount(value, config.formatting.currency_symbol, config.formatting.decimal_separator)

    click.echo(f"Balance with {name}")
    click.echo(f"  Owed to you: {money(result.debt_to_me)}")
    click.echo(f"  You owe: {money(result.debt_to_entity)}")
    click.echo(f"  Net: {money(result.net_balance)}")

    if ctx.obj.get("verbose") and result.receipts:
        click.echo("Receipts:")
        for debt in result.receipts:
            arrow = "→ you" if debt.direction == DebtDirection.TO_ME else "→ them"
            settled = " (settled)" if debt.is_settled else ""
            click.echo(f"  {debt.receipt_id}  {debt.receipt_date or '-'}  {money(debt.amount)} {arrow}{settled}")
