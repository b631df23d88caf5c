"""
test_engine.py - Tests for the TransactionProcessor

Tests:
- Processing parsed rows in order
- Rejections are counted, not raised
- CSV processing with skipped and malformed rows
- Strict mode and verbose reporting
"""

import io
import pytest

from txledger import (
    Ledger, TransactionProcessor, ProcessStats, TransactionRow, TxType,
    FeedFormatError, InsufficientFunds, ContractViolation,
)

from tests.helpers import ACC, d, summary


def _csv(*rows: str) -> io.StringIO:
    return io.StringIO("type,client,tx,amount\n" + "".join(r + "\n" for r in rows))


class TestProcessorCreation:

    def test_defaults(self):
        processor = TransactionProcessor()
        assert isinstance(processor.ledger, Ledger)
        assert processor.verbose is False
        assert processor.strict is False
        assert processor.stats == ProcessStats()

    def test_uses_given_ledger(self, funded_ledger):
        processor = TransactionProcessor(funded_ledger)
        assert processor.ledger is funded_ledger


class TestProcess:
    """Tests for process() over parsed rows."""

    def test_yields_summary_per_applied_row(self):
        processor = TransactionProcessor()
        rows = [
            TransactionRow(TxType.DEPOSIT, ACC, 1, d("5.12345")),
            TransactionRow(TxType.WITHDRAWAL, ACC, 1, d("6")),
            TransactionRow(TxType.DEPOSIT, ACC, 3, d("3")),
            TransactionRow(TxType.DISPUTE, ACC, 3),
            TransactionRow(TxType.CHARGEBACK, ACC, 3),
            TransactionRow(TxType.CHARGEBACK, ACC, 3),
            TransactionRow(TxType.DISPUTE, ACC, 999),
        ]
        assert list(processor.process(rows)) == [
            summary(ACC, "5.12345"),
            summary(ACC, "8.12345"),
            summary(ACC, "5.12345", "3"),
            summary(ACC, "5.12345", locked=True),
        ]
        assert processor.stats == ProcessStats(applied=4, rejected=3)

    def test_none_rows_are_skipped(self):
        processor = TransactionProcessor()
        out = list(processor.process([None, TransactionRow(TxType.DEPOSIT, 1, 1, d("1")), None]))
        assert len(out) == 1
        assert processor.stats.skipped == 2
        assert processor.stats.total == 3

    def test_process_is_lazy(self):
        processor = TransactionProcessor()
        summaries = processor.process([TransactionRow(TxType.DEPOSIT, 1, 1, d("1"))])
        assert len(processor.ledger) == 0
        next(summaries)
        assert len(processor.ledger) == 1

    def test_apply_raises_ledger_errors(self):
        processor = TransactionProcessor()
        with pytest.raises(InsufficientFunds):
            processor.apply(TransactionRow(TxType.WITHDRAWAL, 1, 1, d("1")))

    def test_contract_violations_propagate(self):
        processor = TransactionProcessor()
        with pytest.raises(ContractViolation):
            list(processor.process([TransactionRow(TxType.DEPOSIT, 1, 1, d("-1"))]))


class TestProcessCsv:
    """Tests for process_csv()."""

    def test_scenarios(self):
        processor = TransactionProcessor()
        stream = _csv(
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )
        out = list(processor.process_csv(stream))
        assert out[-1] == summary(1, "1.5")
        assert list(processor.ledger.list_accounts()) == [summary(1, "1.5"), summary(2, "2.0")]
        assert processor.stats == ProcessStats(applied=4, rejected=1)

    def test_unknown_types_and_malformed_rows(self):
        processor = TransactionProcessor()
        stream = _csv(
            "deposit, 1, 1, 1.0",
            "transfer, 1, 2, 1.0",
            "deposit, one, 3, 1.0",
            "deposit, 1, 4, -1.0",
            "withdraw, 1, 5, 0.25",
        )
        out = list(processor.process_csv(stream))
        assert out == [summary(1, "1.0"), summary(1, "0.75")]
        assert processor.stats == ProcessStats(applied=2, skipped=1, malformed=2)

    def test_strict_mode_raises(self):
        processor = TransactionProcessor(strict=True)
        stream = _csv("deposit, 1, 1, 1.0", "deposit, 1, 2,")
        summaries = processor.process_csv(stream)
        assert next(summaries) == summary(1, "1.0")
        with pytest.raises(FeedFormatError, match="line 3: amount is required"):
            next(summaries)

    def test_verbose_reports(self):
        log = io.StringIO()
        processor = TransactionProcessor(verbose=True, log=log)
        stream = _csv(
            "withdrawal, 1, 1, 1.0",
            "refund, 1, 2, 1.0",
            "deposit, x, 3, 1.0",
        )
        assert list(processor.process_csv(stream)) == []
        assert log.getvalue().splitlines() == [
            "✗ REJECTED line 2: withdrawal tx=1 client=1 amount=1.0: "
            "insufficient funds: available 0, required 1.0",
            "✗ SKIPPED line 3: unknown transaction type 'refund'",
            "✗ MALFORMED: line 4: client must be an integer, got 'x'",
        ]

    def test_quiet_by_default(self, capsys):
        processor = TransactionProcessor()
        list(processor.process_csv(_csv("withdrawal, 1, 1, 1.0")))
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_verbose_defaults_to_stderr(self, capsys):
        processor = TransactionProcessor(verbose=True)
        list(processor.process_csv(_csv("dispute, 1, 9,")))
        assert "✗ REJECTED line 2: dispute tx=9 client=1: transaction 9 not found" in capsys.readouterr().err
