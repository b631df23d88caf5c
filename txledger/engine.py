"""
engine.py - Transaction Processor

Feeds an ordered stream of transaction records into a Ledger, one record
at a time, in stream order.

Each record is a self-contained unit of work:
1. Parse (CSV input only) - malformed rows are counted, or raised when strict
2. Dispatch to the matching Ledger operation
3. Yield the affected account's summary, or count the rejection

Rejections are expected for adversarial input and never stop processing.
ContractViolation is not caught: it means a bug, not bad data.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import IO, Iterable, Iterator, Optional
import sys

from .core import AccountSummary, LedgerError
from .feed import FeedFormatError, TransactionRow, iter_rows, parse_row
from .ledger import Ledger


@dataclass
class ProcessStats:
    """Counts of what happened to each input record."""
    applied: int = 0
    rejected: int = 0
    skipped: int = 0
    malformed: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.rejected + self.skipped + self.malformed


class TransactionProcessor:
    """
    Sequential driver that replays transaction records into a ledger.

    Features:
    - Strict file-order application (a dispute only finds earlier records)
    - Rejected records produce no output and are counted in stats
    - Optional verbose reporting of rejected and malformed records
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        verbose: bool = False,
        strict: bool = False,
        log: Optional[IO[str]] = None,
    ):
        """
        Initialize the processor.

        Args:
            ledger: The ledger to operate on (a fresh Ledger if not provided)
            verbose: Print a line per rejected or malformed record (default: False)
            strict: Raise FeedFormatError on malformed CSV rows instead of
                    counting and skipping them (default: False)
            log: Stream for verbose output (default: sys.stderr)
        """
        self.ledger = ledger if ledger is not None else Ledger()
        self.verbose = verbose
        self.strict = strict
        self.log = log
        self.stats = ProcessStats()

    def apply(self, row: TransactionRow) -> AccountSummary:
        """
        Apply a single record to the ledger.

        Returns:
            Summary of the affected account after the operation

        Raises:
            LedgerError: If the ledger rejects the record
        """
        return self.ledger.apply(row.tx_type, row.client, row.txid, row.amount)

    def process(self, rows: Iterable[Optional[TransactionRow]]) -> Iterator[AccountSummary]:
        """
        Apply records in order, yielding a summary per applied record.

        None entries stand for records with unrecognized types and are skipped.
        """
        for row in rows:
            if row is None:
                self.stats.skipped += 1
                continue
            try:
                summary = self.apply(row)
            except LedgerError as e:
                self.stats.rejected += 1
                self._report("REJECTED", row.line, f"{row!r}: {e}")
                continue
            self.stats.applied += 1
            yield summary

    def process_csv(self, stream: IO[str]) -> Iterator[AccountSummary]:
        """
        Parse and apply every row of a CSV stream.

        Raises:
            FeedFormatError: On a malformed row, only if strict is set
        """
        return self.process(self._parse(stream))

    def _parse(self, stream: IO[str]) -> Iterator[Optional[TransactionRow]]:
        for line, fields in iter_rows(stream):
            try:
                row = parse_row(fields, line)
            except FeedFormatError as e:
                if self.strict:
                    raise
                self.stats.malformed += 1
                # str(e) already names the line
                self._report("MALFORMED", 0, str(e))
                continue
            if row is None:
                self._report("SKIPPED", line, f"unknown transaction type {fields[0].strip()!r}")
            yield row

    def _report(self, result: str, line: int, detail: str) -> None:
        if not self.verbose:
            return
        log = self.log if self.log is not None else sys.stderr
        where = f" line {line}" if line else ""
        print(f"✗ {result}{where}: {detail}", file=log)
