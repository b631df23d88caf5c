"""
Dispute State Machine Conformance Tests

INVARIANTS:

    NORMAL --dispute--> DISPUTED --resolve----> RESOLVED     (terminal)
                        DISPUTED --chargeback-> CHARGED_BACK (terminal)

    - No transition is reversible
    - An action from the wrong state raises TxInWrongState and changes nothing
    - locked, once set, is never cleared
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from txledger import (
    Ledger, LedgerError, ContractViolation, TxInWrongState, TxNotFound,
    TxType, DisputeState,
)

from tests.conformance.strategies import operation, DISPUTE_ACTIONS
from tests.helpers import ACC, d, snapshot


# Every state reachable from NORMAL and the order in which it may be reached.
STATE_ORDER = {
    DisputeState.NORMAL: 0,
    DisputeState.DISPUTED: 1,
    DisputeState.RESOLVED: 2,
    DisputeState.CHARGED_BACK: 2,
}

TERMINAL_STATES = {DisputeState.RESOLVED, DisputeState.CHARGED_BACK}


def _ledger_in_state(state: DisputeState) -> Ledger:
    """Ledger whose tx 1 (a deposit of 3 by ACC) is in the given state."""
    ledger = Ledger()
    ledger.deposit(1, ACC, d("3"))
    if state is not DisputeState.NORMAL:
        ledger.dispute(ACC, 1)
    if state is DisputeState.RESOLVED:
        ledger.resolve(ACC, 1)
    elif state is DisputeState.CHARGED_BACK:
        ledger.chargeback(ACC, 1)
    return ledger


class TestTransitionTable:
    """Every (state, action) pair, explicitly."""

    @pytest.mark.parametrize("state", list(DisputeState))
    @pytest.mark.parametrize("action", DISPUTE_ACTIONS)
    def test_transition(self, state, action):
        ledger = _ledger_in_state(state)
        assert ledger.get_transaction(1).dispute_state is state

        allowed = {
            (DisputeState.NORMAL, TxType.DISPUTE): DisputeState.DISPUTED,
            (DisputeState.DISPUTED, TxType.RESOLVE): DisputeState.RESOLVED,
            (DisputeState.DISPUTED, TxType.CHARGEBACK): DisputeState.CHARGED_BACK,
        }
        if (state, action) in allowed:
            ledger.apply(action, ACC, 1)
            assert ledger.get_transaction(1).dispute_state is allowed[(state, action)]
        else:
            before = snapshot(ledger)
            with pytest.raises(TxInWrongState) as exc_info:
                ledger.apply(action, ACC, 1)
            assert exc_info.value.action is action
            assert exc_info.value.state is state
            assert snapshot(ledger) == before

    @pytest.mark.parametrize("action", DISPUTE_ACTIONS)
    def test_unknown_txid(self, action):
        ledger = _ledger_in_state(DisputeState.NORMAL)
        with pytest.raises(TxNotFound) as exc_info:
            ledger.apply(action, ACC, 999)
        assert exc_info.value.txid == 999

    def test_dispute_actions_are_not_recorded(self):
        ledger = _ledger_in_state(DisputeState.CHARGED_BACK)
        assert [r.txid for r in ledger.list_transactions()] == [1]


class TestStateMachineProperties:
    """Property-based state machine tests."""

    @given(st.lists(operation(max_txid=6), min_size=1, max_size=80))
    @settings(max_examples=200)
    def test_states_only_move_forward(self, ops):
        """
        PROPERTY: Dispute actions never move a record backwards, and records
        in a terminal state stay there. Only a new deposit/withdrawal reusing
        the txid replaces a record.
        """
        ledger = Ledger()
        for tx_type, client, txid, amount in ops:
            before = {r.txid: r for r in ledger.list_transactions()}
            try:
                ledger.apply(tx_type, client, txid, amount)
            except (LedgerError, ContractViolation):
                continue
            if tx_type not in DISPUTE_ACTIONS:
                continue
            old = before[txid].dispute_state
            new = ledger.get_transaction(txid).dispute_state
            assert old not in TERMINAL_STATES
            assert STATE_ORDER[new] == STATE_ORDER[old] + 1

    @given(st.lists(operation(max_txid=6), min_size=1, max_size=80))
    @settings(max_examples=200)
    def test_lock_is_monotonic(self, ops):
        """
        PROPERTY: Once an account is locked it stays locked, whatever follows.
        """
        ledger = Ledger()
        locked = set()
        for tx_type, client, txid, amount in ops:
            try:
                ledger.apply(tx_type, client, txid, amount)
            except (LedgerError, ContractViolation):
                pass
            now_locked = {s.client for s in ledger.list_accounts() if s.locked}
            assert locked <= now_locked
            locked = now_locked

    @given(st.lists(operation(max_txid=6), min_size=1, max_size=80))
    @settings(max_examples=100)
    def test_only_chargeback_locks(self, ops):
        """
        PROPERTY: An account becomes locked only through a successful chargeback.
        """
        ledger = Ledger()
        for tx_type, client, txid, amount in ops:
            was_locked = client in ledger and ledger.get_account(client).locked
            try:
                result = ledger.apply(tx_type, client, txid, amount)
            except (LedgerError, ContractViolation):
                continue
            if result.locked and not was_locked:
                assert tx_type is TxType.CHARGEBACK
