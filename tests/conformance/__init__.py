"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_atomicity.py - A failed operation changes nothing
2. test_conservation.py - Funds are neither created nor lost; held matches open disputes
3. test_dispute_states.py - The dispute state machine and the permanent lock
4. test_determinism.py - Reproducible behavior

These tests use hypothesis for property-based testing.
"""
