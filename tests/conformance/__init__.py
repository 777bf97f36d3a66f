"""
Conformance Test Suite

Normative behavior of the vault on top of the ledger. Any compliant
implementation must pass these tests.

The tests are organized by invariant:
1. atomicity.py - A vault operation applies completely or not at all
2. solvency.py - Collateral, debt and token supply stay reconciled under
   arbitrary sequences of operations

These tests use hypothesis for property-based testing.
"""
