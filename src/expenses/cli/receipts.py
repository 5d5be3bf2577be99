#!/usr/bin/env python3
"""
Receipt CLI - Entry, Inspection and Settlement

Receipts are added from a YAML (or JSON) definition file and replayed through
the same editing session a front end uses, so every guard and validation rule
applies.
"""

from datetime import date
from pathlib import Path
from typing import Any

import click
import yaml

from ..core.config import Config
from ..core.currency import format_amount
from ..core.dates import FinancialDate
from ..receipts.datastore import JsonReceiptStore, ReceiptNotFoundError, ReceiptPersistenceError
from ..receipts.debts import receipt_debt_report, stored_receipt_total
from ..receipts.editor import ChangeResult, ChangeStatus, ReceiptEditor
from ..receipts.models import ReceiptFormat, Repayment, SplitStrategy, StoredReceipt
from ..receipts.reconciler import DraftReconciler
from ..receipts.validation import ReceiptValidationError, validate_working_set
from .output import echo_structured, format_option


def _store(ctx: click.Context) -> JsonReceiptStore:
    config: Config = ctx.obj["config"]
    return JsonReceiptStore(config.receipts_dir)


def _money(ctx: click.Context, value: Any) -> str:
    formatting = ctx.obj["config"].formatting
    return format_amount(value, formatting.currency_symbol, formatting.decimal_separator)


def _load(store: JsonReceiptStore, receipt_id: str) -> StoredReceipt:
    try:
        return store.load(receipt_id)
    except ReceiptNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except ReceiptPersistenceError as e:
        raise click.ClickException(f"Could not read receipt: {e}") from e


def _parse_date(value: Any) -> FinancialDate | None:
    if value is None:
        return None
    if isinstance(value, date):
        return FinancialDate(date=value)
    try:
        return FinancialDate.from_string(str(value))
    except ValueError as e:
        raise click.ClickException(f"Invalid date: {value}") from e


def _require(result: ChangeResult, what: str) -> ChangeResult:
    """Replayed changes must apply; definition files can't answer confirmation prompts."""
    if result.status != ChangeStatus.APPLIED:
        raise click.ClickException(f"Cannot set {what}: {result.reason}")
    return result


def build_receipt(editor: ReceiptEditor, definition: dict[str, Any]) -> None:
    """
    Apply a receipt definition to an editing session.

    Args:
        editor: Session holding a fresh working set
        definition: Parsed receipt definition file
    """
    receipt_format = ReceiptFormat(definition.get("format", ReceiptFormat.ITEMISED.value))

    editor.set_store(definition.get("store_id"))
    editor.set_date(_parse_date(definition.get("date")) or FinancialDate.today())
    editor.set_note(str(definition.get("note", "")))
    if "payment_method" in definition:
        editor.set_payment_method(definition["payment_method"])
    _require(editor.set_format(receipt_format), "format")

    if receipt_format == ReceiptFormat.TOTAL_ONLY:
        _require(editor.set_manual_total(definition.get("total", 0)), "total")

    assignments: dict[str, int | None] = {}
    excluded: list[str] = []
    for item in definition.get("items", []):
        key = _require(
            editor.add_line_item(
                quantity=item.get("quantity", 1),
                unit_price=item.get("unit_price", 0),
                product_id=item.get("product_id"),
                product_name=item.get("name"),
            ),
            "line item",
        ).key
        if item.get("debtor") is not None:
            assignments[key] = int(item["debtor"])
        if item.get("exclude_from_discount"):
            excluded.append(key)

    if receipt_format == ReceiptFormat.ITEMISED:
        _require(editor.set_discount(definition.get("discount", 0)), "discount")
        if excluded:
            _require(editor.set_excluded_items(excluded), "discount exclusions")

    if definition.get("payer") is not None:
        _require(editor.set_payer(int(definition["payer"])), "payer")

    split = definition.get("split") or {}
    strategy = SplitStrategy(split.get("strategy", SplitStrategy.NONE.value))
    _require(editor.set_split_strategy(strategy), "split strategy")

    if strategy == SplitStrategy.SHARES:
        _require(editor.set_own_shares(split.get("own_shares", 0)), "own shares")
        for debtor_id, shares in (split.get("debtors") or {}).items():
            _require(editor.add_split(int(debtor_id), shares), f"split for debtor {debtor_id}")
    elif strategy == SplitStrategy.PER_ITEM and assignments:
        _require(editor.assign_debtors(assignments), "item debtors")


@click.group()
def receipt() -> None:
    """Receipt entry, inspection and settlement commands."""
    pass


@receipt.command()
@click.argument("definition_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--tentative", is_flag=True, help="Save as tentative (excluded from debt balances)")
@click.pass_context
def add(ctx: click.Context, definition_file: Path, tentative: bool) -> None:
    """
    Add a receipt from a YAML or JSON definition file.

    Examples:
      expenses receipt add groceries.yaml
      expenses receipt add dinner.yaml --tentative
    """
    config: Config = ctx.obj["config"]
    store = _store(ctx)

    with open(definition_file) as f:
        definition = yaml.safe_load(f) or {}
    if not isinstance(definition, dict):
        raise click.ClickException(f"Receipt definition must be a mapping: {definition_file}")

    editor = ReceiptEditor(config=config, repository=store, debtors=store.load_debtors())
    try:
        build_receipt(editor, definition)
    except ValueError as e:
        raise click.ClickException(f"Invalid receipt definition: {e}") from e

    try:
        receipt_id = editor.save(tentative=tentative)
    except ReceiptValidationError as e:
        for field_name, message in e.errors.items():
            click.echo(f"  {field_name}: {message}", err=True)
        raise click.ClickException("Receipt is not valid") from e
    except ReceiptPersistenceError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"✅ Saved receipt {receipt_id}")
    totals = editor.totals()
    click.echo(f"Total: {_money(ctx, totals.total)}")
    for label, amount in editor.debt_summary().display_lines(
        config.formatting.currency_symbol, config.formatting.decimal_separator
    ):
        click.echo(f"  {label}: {amount}")


@receipt.command(name="list")
@click.option("--exclude-tentative", is_flag=True, help="Hide tentative receipts")
@click.pass_context
def list_receipts(ctx: click.Context, exclude_tentative: bool) -> None:
    """List stored receipts."""
    store = _store(ctx)
    try:
        receipts = store.load_all(include_tentative=not exclude_tentative)
    except ReceiptPersistenceError as e:
        raise click.ClickException(str(e)) from e

    if not receipts:
        click.echo("No receipts found")
        return

    for stored in receipts:
        flags = []
        if stored.is_tentative:
            flags.append("tentative")
        if stored.repayments:
            flags.append("locked")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(
            f"{stored.receipt_id}  {stored.receipt_date or '-'}  "
            f"{_money(ctx, stored_receipt_total(stored))}  {stored.split_strategy.value}{suffix}"
        )


@receipt.command()
@click.argument("receipt_id")
@format_option
@click.pass_context
def show(ctx: click.Context, receipt_id: str, output_format: str) -> None:
    """Show a receipt with its debt breakdown."""
    store = _store(ctx)
    stored = _load(store, receipt_id)
    report = receipt_debt_report(stored, store.debtor_names())

    if output_format != "text":
        echo_structured({"receipt": stored.to_dict(), "debts": report.to_dict()}, output_format)
        return

    click.echo(f"Receipt {stored.receipt_id}")
    click.echo(f"  Date: {stored.receipt_date or '-'}")
    click.echo(f"  Format: {stored.receipt_format.value}")
    click.echo(f"  Status: {stored.status.value}")
    if stored.receipt_format == ReceiptFormat.ITEMISED:
        click.echo(f"  Items: {len(stored.line_items)}")
        click.echo(f"  Discount: {stored.discount}%")
    click.echo(f"  Total: {_money(ctx, report.total)}")
    if stored.payer_debtor_id is not None:
        click.echo(f"  Paid by debtor {stored.payer_debtor_id}")

    if report.debtors:
        click.echo("Debts:")
        for line in report.debtors:
            detail = ""
            if line.shares is not None:
                detail = f" ({line.shares}/{line.total_shares} shares)"
            elif line.item_count is not None:
                detail = f" ({line.item_count}/{line.total_items} items)"
            paid = " ✅ paid" if line.is_paid else ""
            click.echo(f"  {line.label}: {_money(ctx, line.amount)}{detail}{paid}")
    if report.owner_share is not None:
        share = report.owner_share
        click.echo(f"  You: {_money(ctx, share.amount)} ({share.shares}/{share.total_shares} shares)")


@receipt.command()
@click.argument("receipt_id")
@click.pass_context
def validate(ctx: click.Context, receipt_id: str) -> None:
    """Check a stored receipt against the save rules."""
    stored = _load(_store(ctx), receipt_id)
    working_set, _ = DraftReconciler.seed_working_set(stored)
    errors = validate_working_set(working_set)

    if not errors:
        click.echo(f"✅ Receipt {receipt_id} is valid")
        return

    for field_name, message in errors.items():
        click.echo(f"  {field_name}: {message}")
    raise click.ClickException(f"Receipt {receipt_id} has {len(errors)} validation error(s)")


@receipt.command()
@click.argument("receipt_id")
@click.option("--debtor", "debtor_id", type=int, required=True, help="Debtor who paid")
@click.option("--date", "paid_date", help="Payment date (YYYY-MM-DD, default: today)")
@click.option("--payment-method", type=int, help="Payment method id")
@click.option("--note", default="", help="Payment note")
@click.pass_context
def settle(
    ctx: click.Context,
    receipt_id: str,
    debtor_id: int,
    paid_date: str | None,
    payment_method: int | None,
    note: str,
) -> None:
    """
    Record a debtor paying back their part of a receipt.

    The receipt's split configuration is locked afterwards.

    Examples:
      expenses receipt settle 3f2a9c --debtor 2
      expenses receipt settle 3f2a9c --debtor 2 --date 2024-06-01 --note "bank transfer"
    """
    store = _store(ctx)
    stored = _load(store, receipt_id)

    report = receipt_debt_report(stored)
    involved = {line.debtor_id for line in report.debtors}
    if stored.payer_debtor_id is not None:
        involved.add(stored.payer_debtor_id)
    if debtor_id not in involved:
        raise click.ClickException(f"Debtor {debtor_id} has no debt on receipt {receipt_id}")

    repayment = Repayment(
        receipt_id=receipt_id,
        debtor_id=debtor_id,
        paid_date=_parse_date(paid_date) or FinancialDate.today(),
        payment_method_id=payment_method,
        note=note,
    )
    try:
        store.add_repayment(repayment)
    except ReceiptPersistenceError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"✅ Recorded repayment from debtor {debtor_id}")
    click.echo(f"Receipt {receipt_id} is now locked")
