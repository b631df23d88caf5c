#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Transaction Ledger Step by Step

This is a pedagogical demonstration of how client accounts move through
deposits, withdrawals and the dispute lifecycle. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation  - The empty ledger, deposits, withdrawals
  4-5:  Rejections  - Insufficient funds, atomicity
  6-8:  Disputes    - Dispute, resolve, chargeback and the permanent lock
  9:    Feeds       - Processing a CSV file end to end

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
import io
import sys

from txledger import (
    Ledger, LedgerError, InsufficientFunds, TxInWrongState,
    TransactionProcessor, write_summaries,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    alice: int = 1
    bob: int = 2

    alice_deposit: Decimal = Decimal("100.0000")
    alice_withdrawal: Decimal = Decimal("30.5")
    bob_deposit: Decimal = Decimal("5.12345")
    overdraft: Decimal = Decimal("1000")

    sample_feed: Path = Path(__file__).parent / "examples" / "transactions.csv"


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_accounts(ledger: Ledger):
    for s in ledger.list_accounts():
        lock = "  LOCKED" if s.locked else ""
        print(f"  client {s.client:>3}: available={s.available} held={s.held} total={s.total}{lock}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_ledger():
    step_header(1, "The Empty Ledger",
        "A ledger starts with no accounts and no history.")

    print("""
    The ledger tracks two things:

    1. ACCOUNTS - one per client: available, held, locked
    2. HISTORY  - every deposit and withdrawal, keyed by transaction id

    Accounts appear the first time a client is named by a successful
    operation. There is nothing to register up front.
    """)

    wait_for_enter()

    print(">>> ledger = Ledger()")
    ledger = Ledger()
    print(f"{ledger!r}")
    print(f"Accounts: {list(ledger.list_accounts())}")
    return ledger


def step_02_deposit(ledger: Ledger):
    step_header(2, "Deposits",
        "A deposit credits available funds and is recorded in history.")

    print(f">>> ledger.deposit(1, {CONFIG.alice}, Decimal('{CONFIG.alice_deposit}'))")
    summary = ledger.deposit(1, CONFIG.alice, CONFIG.alice_deposit)
    print(f"{summary}")

    print(f">>> ledger.deposit(2, {CONFIG.bob}, Decimal('{CONFIG.bob_deposit}'))")
    ledger.deposit(2, CONFIG.bob, CONFIG.bob_deposit)

    section_header("Accounts")
    show_accounts(ledger)

    section_header("Key Insight")
    print("""
    Amounts are Decimals and keep the scale they were given. There is no
    rounding: 5.12345 stays 5.12345, and total is always available + held.
    """)
    return ledger


def step_03_withdrawal(ledger: Ledger):
    step_header(3, "Withdrawals",
        "A withdrawal debits available funds when they cover the amount.")

    print(f">>> ledger.withdraw(3, {CONFIG.alice}, Decimal('{CONFIG.alice_withdrawal}'))")
    summary = ledger.withdraw(3, CONFIG.alice, CONFIG.alice_withdrawal)
    print(f"{summary}")

    section_header("History")
    for record in ledger.list_transactions():
        print(f"  {record!r}")
    return ledger


# ============================================================================
# PHASE 2: REJECTIONS (Steps 4-5)
# ============================================================================

def step_04_insufficient_funds(ledger: Ledger):
    step_header(4, "Rejected Withdrawals",
        "A withdrawal larger than available funds is REJECTED. State unchanged.")

    print(f">>> ledger.withdraw(4, {CONFIG.alice}, Decimal('{CONFIG.overdraft}'))")
    try:
        ledger.withdraw(4, CONFIG.alice, CONFIG.overdraft)
    except InsufficientFunds as e:
        print(f"InsufficientFunds: {e}")
        print(f"  e.available = {e.available}")
        print(f"  e.required  = {e.required}")

    section_header("Accounts (unchanged)")
    show_accounts(ledger)
    print(f"\nTransaction 4 recorded? {any(r.txid == 4 for r in ledger.list_transactions())}")
    return ledger


def step_05_atomicity(ledger: Ledger):
    step_header(5, "Atomicity (All-or-Nothing)",
        "A failed operation never creates an account or a history record.")

    print(">>> ledger.withdraw(5, 99, Decimal('1'))   # client 99 has never been seen")
    try:
        ledger.withdraw(5, 99, Decimal("1"))
    except LedgerError as e:
        print(f"{type(e).__name__}: {e}")

    print(f"\nClient 99 has an account? {99 in ledger}")

    section_header("Key Insight")
    print("""
    Every operation computes the new account and the new history record
    first, then stores both together. If any check fails, nothing is stored.
    """)
    return ledger


# ============================================================================
# PHASE 3: DISPUTES (Steps 6-8)
# ============================================================================

def step_06_dispute(ledger: Ledger):
    step_header(6, "Opening a Dispute",
        "A dispute moves a transaction's amount from available to held.")

    print(f">>> ledger.dispute({CONFIG.alice}, 3)   # the withdrawal from step 3")
    summary = ledger.dispute(CONFIG.alice, 3)
    print(f"{summary}")
    print(f"\nState of tx 3: {ledger.get_transaction(3).dispute_state.value}")

    section_header("Key Insight")
    print("""
    Total does not change: the funds are frozen, not gone. Disputing a
    withdrawal works exactly like disputing a deposit: the amount is taken
    from available, not refunded.
    """)
    return ledger


def step_07_resolve(ledger: Ledger):
    step_header(7, "Resolving a Dispute",
        "Resolve releases held funds back to available. It is final.")

    print(f">>> ledger.resolve({CONFIG.alice}, 3)")
    summary = ledger.resolve(CONFIG.alice, 3)
    print(f"{summary}")

    section_header("Disputing Again")
    print(f">>> ledger.dispute({CONFIG.alice}, 3)")
    try:
        ledger.dispute(CONFIG.alice, 3)
    except TxInWrongState as e:
        print(f"TxInWrongState: {e}")

    print("""
    A transaction goes through the dispute lifecycle at most once:

        normal -> disputed -> resolved | charged_back
    """)
    return ledger


def step_08_chargeback(ledger: Ledger):
    step_header(8, "Chargebacks and the Permanent Lock",
        "A chargeback removes held funds and locks the account for good.")

    print(f">>> ledger.dispute({CONFIG.bob}, 2)")
    ledger.dispute(CONFIG.bob, 2)
    print(f">>> ledger.chargeback({CONFIG.bob}, 2)")
    summary = ledger.chargeback(CONFIG.bob, 2)
    print(f"{summary}")

    section_header("Accounts")
    show_accounts(ledger)

    section_header("Invariants")
    result = ledger.verify_invariants()
    print(f"verify_invariants(): valid={result['valid']}, discrepancies={result['discrepancies']}")
    return ledger


# ============================================================================
# PHASE 4: FEEDS (Step 9)
# ============================================================================

def step_09_process_feed():
    step_header(9, "Processing a CSV Feed",
        "TransactionProcessor applies a CSV file in order and counts rejections.")

    print(">>> processor = TransactionProcessor(verbose=True, log=sys.stdout)")
    print(f">>> for _ in processor.process_csv(open('{CONFIG.sample_feed.name}')): pass")
    processor = TransactionProcessor(verbose=True, log=sys.stdout)
    with open(CONFIG.sample_feed, newline="") as f:
        for _ in processor.process_csv(f):
            pass

    section_header("Stats")
    print(f"{processor.stats}")

    section_header("Final Output")
    out = io.StringIO()
    write_summaries(processor.ledger.list_accounts(), out)
    print(out.getvalue())


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       TXLEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)
    print("""
    Welcome! This tutorial walks through client accounts and disputes.

    PHASES:
      1-3:  Foundation  - Empty ledger, deposits, withdrawals
      4-5:  Rejections  - Insufficient funds, atomicity
      6-8:  Disputes    - Dispute, resolve, chargeback
      9:    Feeds       - CSV in, account summaries out
    """)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    ledger = step_01_empty_ledger()
    wait_for_enter()

    ledger = step_02_deposit(ledger)
    wait_for_enter()

    ledger = step_03_withdrawal(ledger)
    wait_for_enter()

    ledger = step_04_insufficient_funds(ledger)
    wait_for_enter()

    ledger = step_05_atomicity(ledger)
    wait_for_enter()

    ledger = step_06_dispute(ledger)
    wait_for_enter()

    ledger = step_07_resolve(ledger)
    wait_for_enter()

    ledger = step_08_chargeback(ledger)
    wait_for_enter()

    step_09_process_feed()

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - Run the CLI: txledger examples/transactions.csv --final
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
