"""
conftest.py - Shared pytest fixtures for txledger tests

Provides common fixtures used across unit and conformance tests:
- Basic ledgers (empty, funded, mid-dispute)
- A ledger with both optional checks enabled
"""

import pytest

from txledger import Ledger

from tests.helpers import ACC, d


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Fresh ledger with default settings."""
    return Ledger()


@pytest.fixture
def funded_ledger(ledger):
    """Ledger where client 100 deposited 5.12345 as tx 1."""
    ledger.deposit(1, ACC, d("5.12345"))
    return ledger


@pytest.fixture
def disputed_ledger(funded_ledger):
    """Funded ledger with tx 3 (a deposit of 3) under dispute."""
    funded_ledger.deposit(3, ACC, d("3"))
    funded_ledger.dispute(ACC, 3)
    return funded_ledger


@pytest.fixture
def strict_ledger():
    """Ledger that cross-checks clients and rejects reused txids."""
    return Ledger(verify_owner=True, reject_duplicate_txids=True)
