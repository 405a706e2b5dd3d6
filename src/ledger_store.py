from typing import Dict, Optional

from errors import DuplicateTransactionError, TransactionNotFoundError
from models import LedgerEntry, LedgerStatus


class LedgerStore:
    """
    Every accepted deposit/withdrawal, keyed by transaction id.
    Entries are never removed; charged back entries stay for lookups.
    """

    def __init__(self):
        self._entries: Dict[int, LedgerEntry] = {}

    def insert(self, entry: LedgerEntry) -> None:
        """Record a new entry. Raises DuplicateTransactionError if the id is taken."""
        if entry.transaction_id in self._entries:
            raise DuplicateTransactionError(entry.transaction_id)
        self._entries[entry.transaction_id] = entry

    def get(self, transaction_id: int) -> Optional[LedgerEntry]:
        """Retrieve entry by transaction id."""
        return self._entries.get(transaction_id)

    def set_status(self, transaction_id: int, status: LedgerStatus) -> None:
        """
        Change the dispute status of an entry.
        Transition legality is the caller's responsibility.
        """
        entry = self._entries.get(transaction_id)
        if entry is None:
            raise TransactionNotFoundError(transaction_id)
        entry.status = status

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
