import csv
import logging
from typing import Dict, Iterable, Iterator, Optional, TextIO

from amount import format_amount, to_amount
from errors import InvalidAmountError
from models import Transaction, TransactionType
from snapshot import AccountSnapshot

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """Stream transactions from CSV, skipping rows that cannot be parsed."""
    reader = csv.DictReader(stream, skipinitialspace=True)
    for row in reader:
        transaction = parse_csv_row(row)
        if transaction:
            yield transaction


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Optional[Transaction]:
    """Parse CSV row into Transaction. Returns None for blank or malformed rows."""
    normalized = {
        k.strip().lower(): v.strip()
        for k, v in row.items()
        if isinstance(k, str) and isinstance(v, str)
    }
    if not any(normalized.values()):
        return None

    try:
        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_id(normalized["client"], MAX_CLIENT_ID, "client")
        transaction_id = _parse_id(normalized["tx"], MAX_TRANSACTION_ID, "tx")

        amount = None
        if transaction_type.carries_amount:
            amount_str = normalized.get("amount", "")
            if not amount_str:
                raise ValueError(f"{transaction_type.value} requires an amount")
            amount = to_amount(amount_str)

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidAmountError) as e:
        logger.warning(f"Failed to parse row {row}: {e}")
        return None


def _parse_id(value: str, upper_bound: int, name: str) -> int:
    parsed = int(value)
    if not 0 <= parsed <= upper_bound:
        raise ValueError(f"{name} id {parsed} out of range 0..{upper_bound}")
    return parsed


def write_snapshots(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client_id,
            format_amount(snapshot.available),
            format_amount(snapshot.held),
            format_amount(snapshot.total),
            str(snapshot.locked).lower(),
        ])
