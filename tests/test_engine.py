import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import ProcessingResult
from payments_engine import PaymentsEngine


def run(tmp_path, *rows):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text('\n'.join(["type, client, tx, amount", *rows]))
    engine = PaymentsEngine()
    accounts = engine.process_file(str(csv_file))
    return engine, accounts


class TestPaymentsEngine:
    def test_basic_transactions(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )

        assert 1 in accounts
        assert 2 in accounts

        assert accounts[1].available == Decimal("1.5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("1.5")

        assert accounts[2].available == Decimal("2.0")
        assert accounts[2].held == Decimal("0")
        assert accounts[2].total == Decimal("2.0")

    def test_dispute_resolve(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_chargeback(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 2, 10, 20.0",
            "dispute, 2, 10,",
            "chargeback, 2, 10,",
        )

        assert accounts[2].available == Decimal("0")
        assert accounts[2].held == Decimal("0")
        assert accounts[2].total == Decimal("0")
        assert accounts[2].locked is True

    def test_out_of_order_dispute_rejected(self, tmp_path):
        """Dispute before its deposit refers to nothing yet and is dropped."""
        engine, accounts = run(
            tmp_path,
            "dispute, 1, 1,",
            "deposit, 1, 1, 100.0",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert engine.stats.results[ProcessingResult.TRANSACTION_NOT_FOUND] == 1

    def test_insufficient_funds(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 50.0",
            "withdrawal, 1, 2, 100.0",
        )

        assert accounts[1].available == Decimal("50")
        assert accounts[1].total == Decimal("50")

    def test_decimal_precision(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 1.2345",
            "deposit, 1, 2, 0.0001",
            "withdrawal, 1, 3, 0.2346",
        )

        # 1.2345 + 0.0001 - 0.2346 = 1.0000
        assert accounts[1].available == Decimal("1.0000")

    def test_dispute_withdrawal_holds_funds(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 50.0",
            "dispute, 1, 2,",
        )

        # Deposit 100, withdraw 50, dispute withdrawal holds another 50
        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("50")

    def test_duplicate_dispute_ignored(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "dispute, 1, 1,",
        )

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("100")

    def test_frozen_account_rejects_operations(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 50.0",
            "withdrawal, 1, 3, 10.0",
        )

        assert accounts[1].available == Decimal("0")
        assert accounts[1].total == Decimal("0")
        assert accounts[1].locked is True

    def test_wrong_client_dispute_ignored(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 2, 1,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[2].total == Decimal("0")

    def test_chargeback_after_resolve_ignored(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_partial_withdrawal_then_dispute_rejected(self, tmp_path):
        """Holding the full deposit would overdraw available, so the dispute is dropped."""
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 10.0",
            "withdrawal, 1, 2, 5.0",
            "dispute, 1, 1,",
        )

        assert accounts[1].available == Decimal("5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("5")

    def test_multiple_disputes_same_client(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 50.0",
            "dispute, 1, 1,",
            "dispute, 1, 2,",
            "resolve, 1, 1,",
            "chargeback, 1, 2,",
        )

        # After resolve tx1: available=100, held=50
        # After chargeback tx2: available=100, held=0, total=100, locked=True
        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("100")
        assert accounts[1].locked is True

    def test_redispute_after_resolve(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("0")
        assert accounts[1].locked is True

    def test_negative_and_zero_amounts_rejected(self, tmp_path):
        _, accounts = run(
            tmp_path,
            "deposit, 1, 1, -100.0",
            "deposit, 1, 2, 0",
            "deposit, 1, 3, 50.0",
            "withdrawal, 1, 4, -50.0",
        )

        assert accounts[1].available == Decimal("50")
        assert accounts[1].total == Decimal("50")

    def test_duplicate_transaction_ids_rejected(self, tmp_path):
        engine, accounts = run(
            tmp_path,
            "deposit, 1, 1, 200.0",
            "deposit, 1, 1, 200.0",
            "withdrawal, 1, 2, 50.0",
            "withdrawal, 1, 2, 50.0",
        )

        assert accounts[1].available == Decimal("150")
        assert engine.stats.results[ProcessingResult.DUPLICATE_TRANSACTION] == 2

    def test_malformed_rows_skipped(self, tmp_path):
        engine, accounts = run(
            tmp_path,
            "deposit, 1, 1, 10.0",
            "deposit, x, 2, 10.0",
            "refund, 1, 3, 10.0",
            "deposit, 1, 4,",
            "deposit, 1, 5, 1.0",
        )

        assert accounts[1].available == Decimal("11")
        assert engine.stats.processed == 2
        assert engine.stats.failed == 0

    def test_snapshots_sorted(self, tmp_path):
        engine, _ = run(
            tmp_path,
            "deposit, 9, 1, 1.0",
            "deposit, 3, 2, 1.0",
            "deposit, 5, 3, 1.0",
        )

        assert [s.client_id for s in engine.snapshots()] == [3, 5, 9]

    def test_same_input_same_output(self, tmp_path):
        rows = [
            "deposit, 4, 1, 3.3333",
            "deposit, 2, 2, 7.0",
            "dispute, 4, 1,",
            "withdrawal, 2, 3, 1.25",
            "chargeback, 4, 1,",
        ]
        first, _ = run(tmp_path, *rows)
        second, _ = run(tmp_path, *rows)

        assert first.snapshots() == second.snapshots()

    def test_oversized_amount_row_skipped(self, tmp_path):
        engine, accounts = run(
            tmp_path,
            "deposit, 1, 1, 5",
            "deposit, 1, 2, 1e30",
            "deposit, 1, 3, 5",
        )

        assert accounts[1].available == Decimal("10")
        assert engine.stats.processed == 2

    def test_invalid_utf8_row_skipped(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_bytes(
            b"type, client, tx, amount\n"
            b"deposit, 1, 1, 5\n"
            b"deposit, 1, 2, \xff\xfe\n"
            b"deposit, 1, 3, 2.5\n"
        )

        engine = PaymentsEngine()
        accounts = engine.process_file(str(csv_file))

        assert accounts[1].available == Decimal("7.5")
        assert engine.stats.processed == 2
