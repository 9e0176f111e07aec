import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterable, Iterator, Optional, TextIO

from account import Account
from errors import MalformedRecordError
from models import Transaction, TransactionType

logger = logging.getLogger(__name__)

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]
FOUR_PLACES = Decimal("0.0001")

# Keeps every balance well inside the default 28-digit decimal context.
MAX_AMOUNT = Decimal(10) ** 15
MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1


def read_transactions(stream: TextIO, on_skip: Optional[Callable[[], None]] = None) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV stream in input order.

    The first row is the header. Fields are trimmed and rows may omit trailing
    fields. Rows that can't be parsed are logged, reported to on_skip and skipped.
    """
    reader = csv.reader(stream)
    header = next(reader, None)
    if header is None:
        return
    fieldnames = [name.lstrip("\ufeff").strip().lower() for name in header]

    while True:
        try:
            fields = next(reader)
            if not any(field.strip() for field in fields):
                continue
            transaction = parse_row(fieldnames, fields)
        except StopIteration:
            return
        except (csv.Error, MalformedRecordError) as e:
            logger.warning(f"Skipping line {reader.line_num}: {e}")
            if on_skip is not None:
                on_skip()
            continue
        yield transaction


def parse_row(fieldnames: list, fields: list) -> Transaction:
    """Parse one CSV row into a Transaction. Raises MalformedRecordError."""
    if len(fields) > len(fieldnames):
        raise MalformedRecordError(f"expected at most {len(fieldnames)} fields, got {len(fields)}: {fields}")

    row: Dict[str, str] = {name: "" for name in fieldnames}
    row.update((name, value.strip()) for name, value in zip(fieldnames, fields))

    try:
        transaction_type = TransactionType(row.get("type", "").lower())
    except ValueError:
        raise MalformedRecordError(f"unknown transaction type {row.get('type')!r}")

    client_id = _parse_id("client", row.get("client", ""), MAX_CLIENT_ID)
    transaction_id = _parse_id("tx", row.get("tx", ""), MAX_TRANSACTION_ID)

    transaction = Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
    )
    if transaction.requires_amount():
        transaction.amount = _parse_amount(transaction_id, row.get("amount", ""))
    return transaction


def _parse_id(name: str, value: str, maximum: int) -> int:
    # int() alone would take "+1", "1_0" and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecordError(f"invalid {name} {value!r}")
    parsed = int(value)
    if parsed > maximum:
        raise MalformedRecordError(f"invalid {name} {value!r}: exceeds {maximum}")
    return parsed


def _parse_amount(transaction_id: int, value: str) -> Decimal:
    if not value:
        raise MalformedRecordError(f"transaction {transaction_id} requires an amount but none was provided")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecordError(f"transaction {transaction_id}: invalid amount {value!r}")
    if not amount.is_finite() or abs(amount) >= MAX_AMOUNT:
        raise MalformedRecordError(f"transaction {transaction_id}: amount out of range, got {value!r}")
    amount = amount.quantize(FOUR_PLACES)
    if amount <= 0:
        raise MalformedRecordError(f"transaction {transaction_id}: amount must be positive, got {value!r}")
    return amount


def format_amount(value: Decimal) -> str:
    """Format a balance with exactly four decimal places."""
    return f"{value.quantize(FOUR_PLACES):f}"


def write_accounts(accounts: Iterable[Account], stream: TextIO) -> None:
    """Write the final account snapshot as CSV, one row per account in the given order."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in accounts:
        writer.writerow([
            account.client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])


def open_transactions(filepath: str) -> TextIO:
    """
    Open an input file the way the csv module expects. A leading BOM is
    dropped and undecodable bytes become U+FFFD, so a bad row fails to
    parse on its own instead of aborting the read.
    """
    return open(filepath, "r", encoding="utf-8-sig", errors="replace", newline="")
