import logging

from account_store import AccountStore
from amount import is_within_bounds
from errors import DuplicateTransactionError, LedgerCorruptionError, TransactionNotFoundError
from ledger_store import LedgerStore
from models import ClientAccount, LedgerEntry, LedgerStatus, ProcessingResult, Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger and account stores, one at a time.
    Returns ProcessingResult to indicate success or the reason for rejection.
    A rejected transaction never changes any balance or ledger status.
    """

    def __init__(self, ledger: LedgerStore, accounts: AccountStore):
        self._ledger = ledger
        self._accounts = accounts

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the stores
            anything else: Rejected, stores untouched

        Raises:
            LedgerCorruptionError: An internal invariant no longer holds
        """
        account = self._accounts.get_or_create(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

        raise LedgerCorruptionError(f"Unhandled transaction type {transaction.transaction_type!r}")

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_movement(account, transaction)
        if result is not None:
            return result

        result = self._record_entry(transaction)
        if result is not None:
            return result

        account.credit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_movement(account, transaction)
        if result is not None:
            return result

        if account.available < transaction.amount:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: insufficient funds (available {account.available}, requested {transaction.amount})")
            return ProcessingResult.INSUFFICIENT_FUNDS

        result = self._record_entry(transaction)
        if result is not None:
            return result

        account.debit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry, result = self._find_entry(transaction, LedgerStatus.NORMAL)
        if result is not None:
            return result

        if account.available < entry.amount:
            logger.warning(f"Dispute for tx {transaction.transaction_id}: holding {entry.amount} would overdraw available {account.available}")
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.hold(entry.amount)
        self._set_status(entry, LedgerStatus.DISPUTED)
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry, result = self._find_entry(transaction, LedgerStatus.DISPUTED)
        if result is not None:
            return result

        self._check_held(account, entry)
        account.release_hold(entry.amount)
        self._set_status(entry, LedgerStatus.NORMAL)
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry, result = self._find_entry(transaction, LedgerStatus.DISPUTED)
        if result is not None:
            return result

        self._check_held(account, entry)
        account.remove_held(entry.amount)
        account.lock()
        self._set_status(entry, LedgerStatus.CHARGED_BACK)
        logger.info(f"Chargeback for tx {transaction.transaction_id}: client {account.client_id} locked")
        return ProcessingResult.SUCCESS

    def _check_movement(self, account: ClientAccount, transaction: Transaction):
        """Checks shared by deposits and withdrawals. Returns None when the transaction may proceed."""
        kind = transaction.transaction_type.value.capitalize()

        if account.locked:
            logger.warning(f"{kind} tx {transaction.transaction_id}: client {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        if (
            transaction.amount is None
            or not transaction.amount.is_finite()
            or transaction.amount <= 0
            or not is_within_bounds(transaction.amount)
        ):
            logger.warning(f"{kind} tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        return None

    def _record_entry(self, transaction: Transaction):
        try:
            self._ledger.insert(LedgerEntry.from_transaction(transaction))
        except DuplicateTransactionError:
            kind = transaction.transaction_type.value.capitalize()
            logger.warning(f"{kind} tx {transaction.transaction_id}: transaction id already used, skipping")
            return ProcessingResult.DUPLICATE_TRANSACTION
        return None

    def _find_entry(self, transaction: Transaction, expected_status: LedgerStatus):
        """Look up the entry a dispute-family transaction refers to and validate it."""
        kind = transaction.transaction_type.value.capitalize()
        entry = self._ledger.get(transaction.transaction_id)

        if entry is None:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: transaction not found")
            return None, ProcessingResult.TRANSACTION_NOT_FOUND

        if entry.client_id != transaction.client_id:
            logger.error(f"{kind} for tx {transaction.transaction_id}: client mismatch (expected {entry.client_id}, got {transaction.client_id})")
            return None, ProcessingResult.CLIENT_MISMATCH

        if entry.status != expected_status:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: transaction is {entry.status.value}, expected {expected_status.value}")
            return None, ProcessingResult.INVALID_STATUS

        return entry, None

    def _set_status(self, entry: LedgerEntry, status: LedgerStatus) -> None:
        try:
            self._ledger.set_status(entry.transaction_id, status)
        except TransactionNotFoundError as e:
            raise LedgerCorruptionError(f"Ledger entry {entry.transaction_id} vanished while being updated") from e

    @staticmethod
    def _check_held(account: ClientAccount, entry: LedgerEntry) -> None:
        if account.held < entry.amount:
            raise LedgerCorruptionError(
                f"Client {account.client_id} holds {account.held}, less than disputed tx {entry.transaction_id} amount {entry.amount}"
            )
