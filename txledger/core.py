"""
Core types and pure functions for the transaction ledger.

This module provides the foundational data structures for the ledger:
1. Enums: TxType and DisputeState
2. Exceptions: LedgerError (recoverable domain failures) and ContractViolation
3. Immutable data structures: Account, AccountSummary, TransactionRecord
4. Type aliases: ClientId, TxId

Account and TransactionRecord are frozen. Every transition returns a new
value, so the Ledger can compute the complete outcome of an operation before
committing any of it.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_EVEN, getcontext
from enum import Enum
from typing import Dict, Optional, Tuple


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Amounts are added and subtracted exactly; prec=50 leaves room for any
# realistic balance at the input's own scale without rounding.
#
# PRECONDITION: No other code should modify the global Decimal context.
# If thread-local contexts are needed, use decimal.localcontext().
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 50
_LEDGER_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Client ids are 16-bit unsigned, transaction ids 32-bit unsigned.
MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TX_ID = 2 ** 32 - 1

ZERO = Decimal("0")


# ============================================================================
# TYPE ALIASES
# ============================================================================

ClientId = int
TxId = int


# ============================================================================
# ENUMS
# ============================================================================

class TxType(Enum):
    """
    The five transaction types a feed may carry.

    Only DEPOSIT and WITHDRAWAL are stored in history. The other three are
    actions on an already stored record.
    """
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeState(Enum):
    """
    Where a stored transaction stands with regard to disputes.

        NORMAL --dispute--> DISPUTED --resolve----> RESOLVED     (terminal)
                            DISPUTED --chargeback-> CHARGED_BACK (terminal)
    """
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


# action -> (required source state, resulting state)
DISPUTE_TRANSITIONS: Dict[TxType, Tuple[DisputeState, DisputeState]] = {
    TxType.DISPUTE: (DisputeState.NORMAL, DisputeState.DISPUTED),
    TxType.RESOLVE: (DisputeState.DISPUTED, DisputeState.RESOLVED),
    TxType.CHARGEBACK: (DisputeState.DISPUTED, DisputeState.CHARGED_BACK),
}

# Transaction types that are recorded in history.
HISTORY_TYPES = frozenset({TxType.DEPOSIT, TxType.WITHDRAWAL})


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """
    Base exception for recoverable ledger failures.

    These are expected outcomes of adversarial or out-of-order input. The
    ledger is guaranteed to be unchanged when one is raised.
    """
    pass


class InsufficientFunds(LedgerError):
    """Raised when an account's available funds do not cover the required amount."""

    def __init__(self, available: Decimal, required: Decimal):
        self.available = available
        self.required = required
        super().__init__(f"insufficient funds: available {available}, required {required}")


class TxNotFound(LedgerError):
    """Raised when an operation references a transaction id not in history."""

    def __init__(self, txid: TxId):
        self.txid = txid
        super().__init__(f"transaction {txid} not found")


class TxInWrongState(LedgerError):
    """Raised when a dispute action is not allowed from the record's current state."""

    def __init__(self, txid: TxId, action: TxType, state: DisputeState):
        self.txid = txid
        self.action = action
        self.state = state
        super().__init__(
            f"cannot {action.value} transaction {txid} in state {state.value}"
        )


class ClientMismatch(LedgerError):
    """Raised (only with verify_owner enabled) when a dispute action names the wrong client."""

    def __init__(self, txid: TxId, owner: ClientId, client: ClientId):
        self.txid = txid
        self.owner = owner
        self.client = client
        super().__init__(
            f"transaction {txid} belongs to client {owner}, not client {client}"
        )


class DuplicateTransaction(LedgerError):
    """Raised (only with reject_duplicate_txids enabled) when a txid is reused."""

    def __init__(self, txid: TxId):
        self.txid = txid
        super().__init__(f"transaction {txid} already recorded")


class AccountNotFound(LedgerError):
    """Raised when reading an account that has never been referenced."""

    def __init__(self, client: ClientId):
        self.client = client
        super().__init__(f"account {client} not found")


class ContractViolation(Exception):
    """
    A caller broke the ledger's contract, or an internal invariant failed.

    Deliberately NOT a LedgerError: negative amounts, float amounts,
    out-of-range ids and held-balance underflow are bugs in the caller,
    not data errors, and should not be swallowed alongside domain failures.
    """
    pass


# ============================================================================
# VALIDATION
# ============================================================================

def check_amount(amount: Decimal) -> Decimal:
    """Validate a transaction amount: a finite, non-negative Decimal."""
    if not isinstance(amount, Decimal):
        raise ContractViolation(f"amount must be Decimal, got {type(amount).__name__}")
    if not amount.is_finite():
        raise ContractViolation(f"amount must be finite, got {amount}")
    if amount < 0:
        raise ContractViolation(f"amount must not be negative, got {amount}")
    return amount


def check_client_id(client: ClientId) -> ClientId:
    if isinstance(client, bool) or not isinstance(client, int) or not 0 <= client <= MAX_CLIENT_ID:
        raise ContractViolation(f"client id must be an integer in [0, {MAX_CLIENT_ID}], got {client!r}")
    return client


def check_tx_id(txid: TxId) -> TxId:
    if isinstance(txid, bool) or not isinstance(txid, int) or not 0 <= txid <= MAX_TX_ID:
        raise ContractViolation(f"transaction id must be an integer in [0, {MAX_TX_ID}], got {txid!r}")
    return txid


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountSummary:
    """
    Read-only projection of an account, as reported to callers.

    Attributes:
        client: The client this summary represents
        available: Funds available for withdrawal or dispute holds
        held: Funds held by active disputes
        total: available + held
        locked: Whether the account has suffered a chargeback
    """
    client: ClientId
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass(frozen=True, slots=True)
class Account:
    """
    Balance record for one client.

    total is never stored; it is always derived in summary(). Transition
    methods return a new Account and never mutate self.
    """
    id: ClientId
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def summary(self) -> AccountSummary:
        return AccountSummary(
            client=self.id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )

    def require_available(self, amount: Decimal) -> None:
        """
        Assert the account can cover amount from its available funds.

        Raises:
            InsufficientFunds: If available < amount
        """
        if self.available < amount:
            raise InsufficientFunds(available=self.available, required=amount)

    def credit(self, amount: Decimal) -> Account:
        return replace(self, available=self.available + amount)

    def debit(self, amount: Decimal) -> Account:
        self.require_available(amount)
        return replace(self, available=self.available - amount)

    def hold(self, amount: Decimal) -> Account:
        """Move amount from available to held."""
        self.require_available(amount)
        return replace(self, available=self.available - amount, held=self.held + amount)

    def release(self, amount: Decimal) -> Account:
        """Move amount from held back to available."""
        self._check_held(amount)
        return replace(self, available=self.available + amount, held=self.held - amount)

    def charge_back(self, amount: Decimal) -> Account:
        """Remove amount from held and lock the account permanently."""
        self._check_held(amount)
        return replace(self, held=self.held - amount, locked=True)

    def _check_held(self, amount: Decimal) -> None:
        # held always covers every dispute that placed funds on this account
        if self.held < amount:
            raise ContractViolation(
                f"held funds of account {self.id} would underflow: held {self.held}, releasing {amount}"
            )


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """
    A deposit or withdrawal as kept in history.

    Attributes:
        txid: The transaction ID
        tx_type: TxType.DEPOSIT or TxType.WITHDRAWAL
        client: The client that made the transaction
        amount: The original amount (never negative)
        dispute_state: Where the record stands with regard to disputes
        held_by: Client whose account holds the funds while disputed (None until disputed)
    """
    txid: TxId
    tx_type: TxType
    client: ClientId
    amount: Decimal
    dispute_state: DisputeState = DisputeState.NORMAL
    held_by: Optional[ClientId] = None

    def __post_init__(self):
        if self.tx_type not in HISTORY_TYPES:
            raise ContractViolation(f"only deposits and withdrawals are recorded, got {self.tx_type}")

    def advance(self, action: TxType, client: ClientId) -> TransactionRecord:
        """
        Return this record moved along the dispute state machine by action.

        Args:
            action: TxType.DISPUTE, TxType.RESOLVE or TxType.CHARGEBACK
            client: The client performing the action

        Raises:
            TxInWrongState: If the record is not in the action's source state
        """
        source, target = DISPUTE_TRANSITIONS[action]
        if self.dispute_state is not source:
            raise TxInWrongState(txid=self.txid, action=action, state=self.dispute_state)
        held_by = client if action is TxType.DISPUTE else self.held_by
        return replace(self, dispute_state=target, held_by=held_by)

    def __repr__(self) -> str:
        return (f"TransactionRecord({self.tx_type.value} tx={self.txid} client={self.client} "
                f"amount={self.amount} {self.dispute_state.value})")
