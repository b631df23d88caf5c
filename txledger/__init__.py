"""
txledger - Client Account Transaction Ledger

Replays an ordered stream of deposits, withdrawals, disputes, resolutions and
chargebacks into per-client accounts.

Usage:
    from decimal import Decimal
    from txledger import Ledger, InsufficientFunds

    ledger = Ledger()
    ledger.deposit(1, 100, Decimal("5.12345"))

    try:
        ledger.withdraw(2, 100, Decimal("6"))
    except InsufficientFunds as e:
        print(e.available, e.required)

    ledger.dispute(100, 1)
    ledger.resolve(100, 1)

    for summary in ledger.list_accounts():
        print(summary)
"""

# Core types
from .core import (
    TxType,
    DisputeState,
    Account,
    AccountSummary,
    TransactionRecord,
    ClientId,
    TxId,
    LedgerError,
    InsufficientFunds,
    TxNotFound,
    TxInWrongState,
    ClientMismatch,
    DuplicateTransaction,
    AccountNotFound,
    ContractViolation,
    MAX_CLIENT_ID,
    MAX_TX_ID,
)

# Ledger
from .ledger import Ledger, AccountListing

# CSV feed
from .feed import (
    TransactionRow,
    FeedFormatError,
    SummaryWriter,
    parse_row,
    iter_rows,
    read_transactions,
    write_summaries,
    SUMMARY_FIELDS,
)

# Processing
from .engine import TransactionProcessor, ProcessStats

__all__ = [
    # Core
    'TxType', 'DisputeState', 'Account', 'AccountSummary', 'TransactionRecord',
    'ClientId', 'TxId',
    'LedgerError', 'InsufficientFunds', 'TxNotFound', 'TxInWrongState',
    'ClientMismatch', 'DuplicateTransaction', 'AccountNotFound', 'ContractViolation',
    'MAX_CLIENT_ID', 'MAX_TX_ID',
    # Ledger
    'Ledger', 'AccountListing',
    # Feed
    'TransactionRow', 'FeedFormatError', 'SummaryWriter',
    'parse_row', 'iter_rows', 'read_transactions', 'write_summaries', 'SUMMARY_FIELDS',
    # Processing
    'TransactionProcessor', 'ProcessStats',
]

__version__ = '1.0.0'
