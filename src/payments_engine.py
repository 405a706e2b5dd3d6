import logging
from typing import Dict, Iterable, List

from account_store import AccountStore
from csv_io import read_transactions
from ledger_store import LedgerStore
from models import ClientAccount, ProcessingResult, ProcessingStats, Transaction
from snapshot import AccountSnapshot, export_snapshots
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a transaction log against client accounts, strictly in input order.
    Rejected transactions are counted and skipped; they never stop the run.
    """

    def __init__(self):
        self._ledger = LedgerStore()
        self._accounts = AccountStore()
        self._processor = TransactionProcessor(self._ledger, self._accounts)
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")

        # Undecodable bytes become U+FFFD, which fails row parsing and gets skipped
        with open(filepath, "r", newline="", encoding="utf-8", errors="replace") as f:
            self.process_transactions(read_transactions(f))

        logger.info(f"Processed: {self.stats.processed}, Failed: {self.stats.failed}")
        for result, count in self.stats.results.items():
            if result != ProcessingResult.SUCCESS:
                logger.info(f"  {result.value}: {count}")

        return self._accounts.all_accounts()

    def process_transactions(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            result = self._processor.process_transaction(transaction)
            self.stats.record(result)

    def snapshots(self) -> List[AccountSnapshot]:
        return export_snapshots(self._accounts)
