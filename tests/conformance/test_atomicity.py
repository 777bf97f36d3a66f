"""
Atomicity Conformance Tests

INVARIANT: Vault operations are all-or-nothing.

    ∀ operation O:
        O succeeds ⟹ every balance and state change of O is applied
        O fails ⟹ no balance or unit state has changed

A transaction computed against a vault state that has since changed is
rejected as a whole.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from vault import (
    Ledger, VaultContract, ExecuteResult,
    create_debt_token_unit, compute_deposit, compute_borrow,
    ONE_NATIVE, ONE_FIXED_POINT,
    VaultError, TokenError, LtvExceeded, TokenUnauthorized, TokenInsufficientBalance,
)
from tests.helpers import START, OWNER, fund, snapshot


class TestFailedOperationsChangeNothing:
    """A raised error leaves every balance and unit state untouched."""

    def test_borrow_over_ceiling(self, vault, ledger):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        before = snapshot(ledger)
        with pytest.raises(LtvExceeded):
            vault.borrow("alice", 800 * ONE_FIXED_POINT + 1)
        assert snapshot(ledger) == before

    def test_borrow_when_vault_cannot_mint(self):
        """The vault state change is discarded when the token refuses to mint."""
        ledger = Ledger("foreign", START, verbose=False, test_mode=True)
        ledger.register_unit(create_debt_token_unit("mCSPR", "Minted CSPR", "someone_else"))
        vault = VaultContract.deploy(ledger, "vault", OWNER)
        ledger.register_wallet("alice")
        fund(ledger, "alice", 1000 * ONE_NATIVE)
        vault.deposit("alice", 1000 * ONE_NATIVE)

        before = snapshot(ledger)
        with pytest.raises(TokenUnauthorized):
            vault.borrow("alice", 100 * ONE_FIXED_POINT)
        assert snapshot(ledger) == before
        assert vault.debt_of("alice") == 0

    def test_repay_all_short_of_tokens(self, vault, ledger):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        vault.borrow("alice", 100 * ONE_FIXED_POINT)
        ledger.advance_time(START.replace(year=2026))
        vault.approve("alice", 200 * ONE_FIXED_POINT)

        before = snapshot(ledger)
        with pytest.raises(TokenInsufficientBalance):
            vault.repay_all("alice")
        assert snapshot(ledger) == before

    @given(st.integers(min_value=1, max_value=20_000 * ONE_NATIVE))
    @settings(max_examples=50, deadline=None)
    def test_any_withdraw_request(self, amount):
        """
        PROPERTY: request_withdraw either applies in full or changes nothing.
        """
        ledger = Ledger("withdraw", START, verbose=False, test_mode=True)
        vault = VaultContract.deploy(ledger, "vault", OWNER)
        ledger.register_wallet("alice")
        fund(ledger, "alice", 10_000 * ONE_NATIVE)
        vault.deposit("alice", 5000 * ONE_NATIVE)
        vault.borrow("alice", 2000 * ONE_FIXED_POINT)

        before = snapshot(ledger)
        try:
            vault.request_withdraw("alice", amount)
        except (VaultError, TokenError):
            assert snapshot(ledger) == before
        else:
            assert vault.pending_withdraw_of("alice") == amount
            assert vault.collateral_of("alice") == 5000 * ONE_NATIVE - amount


class TestStaleState:
    """Transactions built from an outdated vault state are rejected."""

    def test_second_of_two_concurrent_deposits_rejected(self, ledger):
        first = compute_deposit(ledger, "VAULT", "alice", 100 * ONE_NATIVE)
        second = compute_deposit(ledger, "VAULT", "bob", 100 * ONE_NATIVE)

        assert ledger.execute(first) == ExecuteResult.APPLIED
        before = snapshot(ledger)
        assert ledger.execute(second) == ExecuteResult.REJECTED
        assert snapshot(ledger) == before
        assert ledger.get_balance("bob", "CSPR") == 10_000 * ONE_NATIVE

    def test_recomputed_transaction_applies(self, ledger, vault):
        stale = compute_deposit(ledger, "VAULT", "bob", 100 * ONE_NATIVE)
        vault.deposit("alice", 100 * ONE_NATIVE)
        assert ledger.execute(stale) == ExecuteResult.REJECTED

        fresh = compute_deposit(ledger, "VAULT", "bob", 100 * ONE_NATIVE)
        assert ledger.execute(fresh) == ExecuteResult.APPLIED
        assert vault.total_collateral() == 200 * ONE_NATIVE
        assert vault.check_invariants() == []

    def test_stale_borrow_cannot_skip_ltv_check(self, ledger, vault):
        """Two borrows each within the ceiling alone cannot both land."""
        vault.deposit("alice", 1000 * ONE_NATIVE)
        first = compute_borrow(ledger, "VAULT", "alice", 500 * ONE_FIXED_POINT)
        second = compute_borrow(ledger, "VAULT", "alice", 500 * ONE_FIXED_POINT)

        assert ledger.execute(first) == ExecuteResult.APPLIED
        assert ledger.execute(second) == ExecuteResult.REJECTED
        assert vault.debt_of("alice") == 500 * ONE_FIXED_POINT
        assert vault.token_balance("alice") == 500 * ONE_FIXED_POINT
