class LedgerError(Exception):
    """Base class for all ledger errors."""


class DuplicateTransactionError(LedgerError):
    def __init__(self, transaction_id: int):
        super().__init__(f"transaction {transaction_id} already recorded")
        self.transaction_id = transaction_id


class TransactionNotFoundError(LedgerError, KeyError):
    def __init__(self, transaction_id: int):
        super().__init__(f"transaction {transaction_id} not found")
        self.transaction_id = transaction_id

    def __str__(self) -> str:
        return self.args[0]


class InvalidAmountError(LedgerError, ValueError):
    pass


class LedgerCorruptionError(LedgerError, RuntimeError):
    """
    Internal invariant broken (e.g. held funds smaller than a disputed amount).
    Never raised for bad input data; indicates a bug.
    """
