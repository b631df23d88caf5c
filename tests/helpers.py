"""
helpers.py - Test helpers shared by the txledger test suites
"""

from decimal import Decimal
from typing import Tuple

from txledger import Ledger, AccountSummary, TransactionRecord


# The account ID most tests use.
ACC = 100


def d(s: str) -> Decimal:
    """Helper to create a decimal."""
    return Decimal(s)


def summary(client: int, available: str, held: str = "0", locked: bool = False) -> AccountSummary:
    """Build the AccountSummary a test expects, deriving total."""
    return AccountSummary(
        client=client,
        available=d(available),
        held=d(held),
        total=d(available) + d(held),
        locked=locked,
    )


def snapshot(ledger: Ledger) -> Tuple[Tuple[AccountSummary, ...], Tuple[TransactionRecord, ...]]:
    """Capture everything observable about a ledger's state."""
    return tuple(ledger.list_accounts()), tuple(ledger.list_transactions())
