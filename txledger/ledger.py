"""
ledger.py - Stateful Client Account Ledger

The Ledger class is the central state manager for the transaction ledger.
It is the only module that mutates state, ensuring controlled changes.

Key responsibilities:
    - Owns the client accounts and the deposit/withdrawal history
    - Applies one operation per transaction type atomically (fully or not at all)
    - Walks history records through the dispute state machine
    - Verifies that held funds match the open disputes
"""

from __future__ import annotations
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterator, List, Any, Optional

from .core import (
    # Types
    Account, AccountSummary, TransactionRecord,
    TxType, DisputeState, ClientId, TxId,
    # Constants
    ZERO,
    # Exceptions
    AccountNotFound, ClientMismatch, DuplicateTransaction, TxNotFound,
    # Validation
    check_amount, check_client_id, check_tx_id,
)


class AccountListing:
    """
    Restartable view over the ledger's accounts.

    Every iteration walks the accounts afresh in ascending client id order,
    so the listing reflects the ledger as it is when iterated, not when the
    listing was created.
    """

    def __init__(self, accounts: Dict[ClientId, Account]):
        self._accounts = accounts

    def __iter__(self) -> Iterator[AccountSummary]:
        for client in sorted(self._accounts):
            yield self._accounts[client].summary()

    def __len__(self) -> int:
        return len(self._accounts)

    def __repr__(self) -> str:
        return f"AccountListing({len(self)} accounts)"


class Ledger:
    """
    In-memory ledger of client accounts fed by an ordered transaction stream.

    Every operation either returns the affected account's post-operation
    AccountSummary or raises a LedgerError, in which case neither the
    accounts nor the history have changed. Contract breaches by the caller
    (negative amounts, bad ids) raise ContractViolation instead.

    Design Principles:
        - Accounts are created on first reference by a successful operation,
          with zero balances, and are never deleted.
        - Only deposits and withdrawals are stored in history. Disputes,
          resolutions and chargebacks are transitions on stored records.
        - A dispute moves the record's amount from available to held on the
          named client's account, whether the record is a deposit or a
          withdrawal.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger()
        ledger.deposit(1, 100, Decimal("5.12345"))
        ledger.dispute(100, 1)
        summary = ledger.chargeback(100, 1)
        assert summary.locked
    """

    def __init__(
        self,
        verify_owner: bool = False,
        reject_duplicate_txids: bool = False,
    ):
        """
        Create an empty ledger.

        Args:
            verify_owner: Reject dispute, resolve and chargeback calls whose client
                does not own the referenced transaction (default: False, the
                client argument is trusted)
            reject_duplicate_txids: Reject deposits and withdrawals that reuse a
                recorded txid (default: False, the new record replaces the old one)
        """
        self.verify_owner = verify_owner
        self.reject_duplicate_txids = reject_duplicate_txids
        self._accounts: Dict[ClientId, Account] = {}
        self._history: Dict[TxId, TransactionRecord] = {}

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    def list_accounts(self) -> AccountListing:
        """Summaries of all known accounts, in ascending client id order."""
        return AccountListing(self._accounts)

    def get_account(self, client: ClientId) -> AccountSummary:
        """
        Get the summary of a known account.

        Raises:
            AccountNotFound: If no operation has created the account yet
        """
        if client not in self._accounts:
            raise AccountNotFound(client)
        return self._accounts[client].summary()

    def get_transaction(self, txid: TxId) -> TransactionRecord:
        """
        Get the history record for a deposit or withdrawal.

        Raises:
            TxNotFound: If txid is not in history
        """
        record = self._history.get(txid)
        if record is None:
            raise TxNotFound(txid)
        return record

    def list_transactions(self) -> List[TransactionRecord]:
        """All history records, in ascending txid order."""
        return [self._history[txid] for txid in sorted(self._history)]

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, client: object) -> bool:
        return client in self._accounts

    def __repr__(self) -> str:
        return f"Ledger({len(self._accounts)} accounts, {len(self._history)} transactions)"

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Verify that held funds are consistent with the open disputes.

        For every account, held must be non-negative and equal to the sum of
        the amounts of DISPUTED records whose funds it holds.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every account is consistent
            - 'discrepancies': List[Dict] - One entry per inconsistent account,
              with client, expected, actual and difference

        Example:
            result = ledger.verify_invariants()
            assert result['valid'], f"Held funds drifted: {result['discrepancies']}"
        """
        expected_held: Dict[ClientId, Decimal] = defaultdict(lambda: Decimal("0"))
        for record in self._history.values():
            if record.dispute_state is DisputeState.DISPUTED:
                expected_held[record.held_by] += record.amount

        discrepancies = []
        for client in sorted(set(self._accounts) | set(expected_held)):
            account = self._accounts.get(client)
            actual = account.held if account is not None else ZERO
            expected = expected_held.get(client, ZERO)
            if actual < 0:
                discrepancies.append({
                    'client': client,
                    'expected': expected,
                    'actual': actual,
                    'difference': actual - expected,
                    'error': 'negative held balance',
                })
            elif actual != expected:
                discrepancies.append({
                    'client': client,
                    'expected': expected,
                    'actual': actual,
                    'difference': actual - expected,
                })

        return {
            'valid': len(discrepancies) == 0,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # TRANSACTION OPERATIONS (Mutating)
    # ========================================================================

    def deposit(self, txid: TxId, client: ClientId, amount: Decimal) -> AccountSummary:
        """
        Credit amount to the client's available funds and record the deposit.

        A recorded transaction with the same txid is replaced, unless the
        ledger rejects duplicate txids.

        Raises:
            DuplicateTransaction: If txid is reused and reject_duplicate_txids is set
            ContractViolation: If amount is negative, not a Decimal, or an id is out of range
        """
        self._check_new_transaction(txid, client, amount)
        account = self._account(client).credit(amount)
        record = TransactionRecord(txid=txid, tx_type=TxType.DEPOSIT, client=client, amount=amount)
        return self._commit(account, record)

    def withdraw(self, txid: TxId, client: ClientId, amount: Decimal) -> AccountSummary:
        """
        Debit amount from the client's available funds and record the withdrawal.

        Raises:
            InsufficientFunds: If available funds are below amount
            DuplicateTransaction: If txid is reused and reject_duplicate_txids is set
            ContractViolation: If amount is negative, not a Decimal, or an id is out of range
        """
        self._check_new_transaction(txid, client, amount)
        account = self._account(client).debit(amount)
        record = TransactionRecord(txid=txid, tx_type=TxType.WITHDRAWAL, client=client, amount=amount)
        return self._commit(account, record)

    def dispute(self, client: ClientId, txid: TxId) -> AccountSummary:
        """
        Open a dispute on a recorded transaction.

        Moves the transaction's amount from the client's available funds to
        held funds. The record is only marked disputed if the hold succeeds.

        Raises:
            TxNotFound: If txid is not in history
            TxInWrongState: If the record is not NORMAL
            ClientMismatch: If verify_owner is set and client does not own the record
            InsufficientFunds: If available funds cannot cover the held amount
        """
        return self._settle(TxType.DISPUTE, client, txid)

    def resolve(self, client: ClientId, txid: TxId) -> AccountSummary:
        """
        Close a dispute in the client's favour: held funds return to available.

        Raises:
            TxNotFound: If txid is not in history
            TxInWrongState: If the record is not DISPUTED
            ClientMismatch: If verify_owner is set and client does not own the record
        """
        return self._settle(TxType.RESOLVE, client, txid)

    def chargeback(self, client: ClientId, txid: TxId) -> AccountSummary:
        """
        Close a dispute by reversing it: held funds are removed and the
        account is locked permanently.

        Raises:
            TxNotFound: If txid is not in history
            TxInWrongState: If the record is not DISPUTED
            ClientMismatch: If verify_owner is set and client does not own the record
        """
        return self._settle(TxType.CHARGEBACK, client, txid)

    def apply(
        self,
        tx_type: TxType,
        client: ClientId,
        txid: TxId,
        amount: Optional[Decimal] = None,
    ) -> AccountSummary:
        """
        Dispatch a transaction to the matching operation.

        amount is required for deposits and withdrawals and ignored otherwise.
        """
        if tx_type is TxType.DEPOSIT:
            return self.deposit(txid, client, amount)
        if tx_type is TxType.WITHDRAWAL:
            return self.withdraw(txid, client, amount)
        if tx_type is TxType.DISPUTE:
            return self.dispute(client, txid)
        if tx_type is TxType.RESOLVE:
            return self.resolve(client, txid)
        if tx_type is TxType.CHARGEBACK:
            return self.chargeback(client, txid)
        raise ValueError(f"Unknown transaction type: {tx_type!r}")

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _account(self, client: ClientId) -> Account:
        # Not inserted here: _commit() stores it once the operation succeeds
        account = self._accounts.get(client)
        return account if account is not None else Account(client)

    def _check_new_transaction(self, txid: TxId, client: ClientId, amount: Decimal) -> None:
        check_tx_id(txid)
        check_client_id(client)
        check_amount(amount)
        if self.reject_duplicate_txids and txid in self._history:
            raise DuplicateTransaction(txid)

    def _settle(self, action: TxType, client: ClientId, txid: TxId) -> AccountSummary:
        check_client_id(client)
        check_tx_id(txid)
        record = self.get_transaction(txid)
        advanced = record.advance(action, client)
        if self.verify_owner and record.client != client:
            raise ClientMismatch(txid=txid, owner=record.client, client=client)

        account = self._account(client)
        if action is TxType.DISPUTE:
            account = account.hold(record.amount)
        elif action is TxType.RESOLVE:
            account = account.release(record.amount)
        else:
            account = account.charge_back(record.amount)
        return self._commit(account, advanced)

    def _commit(self, account: Account, record: TransactionRecord) -> AccountSummary:
        self._accounts[account.id] = account
        self._history[record.txid] = record
        return account.summary()

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> Ledger:
        """
        Create an independent copy of this ledger.

        Accounts and records are immutable, so copying the two maps is enough
        for modifications to the clone not to affect the original.
        """
        cloned = Ledger.__new__(Ledger)
        cloned.verify_owner = self.verify_owner
        cloned.reject_duplicate_txids = self.reject_duplicate_txids
        cloned._accounts = dict(self._accounts)
        cloned._history = dict(self._history)
        return cloned
