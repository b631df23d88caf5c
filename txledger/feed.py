"""
feed.py - CSV Transaction Feed

Reads transaction records from CSV and writes account summaries back out:
1. iter_rows() - Raw (line, fields) pairs from a CSV stream, header skipped
2. parse_row() - Convert raw fields into a TransactionRow
3. read_transactions() - Strict parse of a whole stream
4. write_summaries() - Serialize AccountSummary records as CSV

Input columns are positional: type, client, tx, amount. The amount column is
only read for deposits and withdrawals and may be empty or absent otherwise.
"""

from __future__ import annotations
import csv
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import IO, Iterable, Iterator, List, Optional, Tuple

from .core import (
    AccountSummary, TxType, ClientId, TxId,
    MAX_CLIENT_ID, MAX_TX_ID,
)


# Header written by write_summaries().
SUMMARY_FIELDS = ("client", "available", "held", "total", "locked")

# Recognized type tags, lower-cased.
TX_TYPE_TAGS = {
    "deposit": TxType.DEPOSIT,
    "withdrawal": TxType.WITHDRAWAL,
    "withdraw": TxType.WITHDRAWAL,
    "dispute": TxType.DISPUTE,
    "resolve": TxType.RESOLVE,
    "chargeback": TxType.CHARGEBACK,
}

TYPE_FIELD_IDX = 0
CLIENT_FIELD_IDX = 1
TX_FIELD_IDX = 2
AMOUNT_FIELD_IDX = 3


class FeedFormatError(ValueError):
    """Raised when a CSV row cannot be turned into a transaction."""

    def __init__(self, message: str, line: int = 0):
        self.line = line
        prefix = f"line {line}: " if line else ""
        super().__init__(f"{prefix}{message}")


@dataclass(frozen=True, slots=True)
class TransactionRow:
    """
    One parsed input record.

    Attributes:
        tx_type: Which of the five transaction types this is
        client: Client id (16-bit unsigned)
        txid: Transaction id (32-bit unsigned)
        amount: Amount for deposits and withdrawals, None otherwise
        line: 1-based line number in the source, 0 if unknown
    """
    tx_type: TxType
    client: ClientId
    txid: TxId
    amount: Optional[Decimal] = None
    line: int = 0

    def __repr__(self) -> str:
        amount = f" amount={self.amount}" if self.amount is not None else ""
        return f"{self.tx_type.value} tx={self.txid} client={self.client}{amount}"


def _parse_id(text: str, name: str, maximum: int, line: int) -> int:
    try:
        value = int(text)
    except ValueError:
        raise FeedFormatError(f"{name} must be an integer, got {text!r}", line) from None
    if not 0 <= value <= maximum:
        raise FeedFormatError(f"{name} {value} out of range [0, {maximum}]", line)
    return value


def _parse_amount(text: str, line: int) -> Decimal:
    if not text:
        raise FeedFormatError("amount is required", line)
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise FeedFormatError(f"amount must be a decimal number, got {text!r}", line) from None
    if not amount.is_finite():
        raise FeedFormatError(f"amount must be finite, got {text!r}", line)
    if amount < 0:
        raise FeedFormatError(f"amount must not be negative, got {text!r}", line)
    return amount


def parse_row(fields: List[str], line: int = 0) -> Optional[TransactionRow]:
    """
    Convert the raw fields of a CSV row into a TransactionRow.

    Args:
        fields: Column values in type, client, tx, amount order
        line: Line number used in error messages

    Returns:
        The parsed row, or None if the type tag is not recognized

    Raises:
        FeedFormatError: If the row is too short, an id is not a valid integer,
            or a deposit/withdrawal amount is missing, invalid or negative
    """
    fields = [f.strip() for f in fields]
    if len(fields) < 3:
        raise FeedFormatError(f"expected at least 3 columns, got {len(fields)}", line)

    tx_type = TX_TYPE_TAGS.get(fields[TYPE_FIELD_IDX].lower())
    if tx_type is None:
        return None

    client = _parse_id(fields[CLIENT_FIELD_IDX], "client", MAX_CLIENT_ID, line)
    txid = _parse_id(fields[TX_FIELD_IDX], "tx", MAX_TX_ID, line)

    amount = None
    if tx_type in (TxType.DEPOSIT, TxType.WITHDRAWAL):
        text = fields[AMOUNT_FIELD_IDX] if len(fields) > AMOUNT_FIELD_IDX else ""
        amount = _parse_amount(text, line)

    return TransactionRow(tx_type=tx_type, client=client, txid=txid, amount=amount, line=line)


def iter_rows(stream: IO[str]) -> Iterator[Tuple[int, List[str]]]:
    """
    Yield (line_number, fields) for every non-blank data row of a CSV stream.

    The first row is taken to be the header and is not yielded.
    """
    reader = csv.reader(stream)
    header_seen = False
    for fields in reader:
        if not header_seen:
            header_seen = True
            continue
        if not any(f.strip() for f in fields):
            continue
        yield reader.line_num, fields


def read_transactions(stream: IO[str]) -> Iterator[TransactionRow]:
    """
    Parse every row of a CSV stream, skipping unrecognized type tags.

    Raises:
        FeedFormatError: On the first malformed row
    """
    for line, fields in iter_rows(stream):
        row = parse_row(fields, line)
        if row is not None:
            yield row


def format_decimal(value: Decimal) -> str:
    """Fixed-point string at the value's own scale (never scientific notation)."""
    return format(value, "f")


def summary_to_fields(summary: AccountSummary) -> List[str]:
    return [
        str(summary.client),
        format_decimal(summary.available),
        format_decimal(summary.held),
        format_decimal(summary.total),
        "true" if summary.locked else "false",
    ]


class SummaryWriter:
    """
    Incremental CSV writer for account summaries.

    The header is written before the first row, or by close() if no row was
    ever written, so a stream always starts with exactly one header.
    """

    def __init__(self, stream: IO[str]):
        self._writer = csv.writer(stream, lineterminator="\n")
        self._header_written = False

    def write(self, summary: AccountSummary) -> None:
        self._write_header()
        self._writer.writerow(summary_to_fields(summary))

    def close(self) -> None:
        self._write_header()

    def _write_header(self) -> None:
        if not self._header_written:
            self._writer.writerow(SUMMARY_FIELDS)
            self._header_written = True


def write_summaries(summaries: Iterable[AccountSummary], stream: IO[str]) -> int:
    """
    Write a header and one CSV row per summary.

    Returns:
        Number of summary rows written
    """
    writer = SummaryWriter(stream)
    count = 0
    for summary in summaries:
        writer.write(summary)
        count += 1
    writer.close()
    return count
