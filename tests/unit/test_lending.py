"""
test_lending.py - Deposit, borrow and repay entry points

Tests:
- Deposit opens a position, batches delegation, rejects bad input
- add_collateral is an alias of deposit
- Borrow up to the LTV ceiling and not one unit more
- Repay and repay_all: allowance, cap at debt, burn, interest
"""

import pytest
from datetime import timedelta

from vault import (
    Ledger, VaultContract, VaultTerms, PositionStatus,
    ONE_NATIVE, ONE_FIXED_POINT, SECONDS_PER_YEAR,
    ZeroAmount, NoVault, WithdrawPending, LtvExceeded, InsufficientDebt,
    InsufficientAllowance, BelowMinDeposit, InsufficientLiquidBalance, ContractPaused,
    TokenInsufficientBalance,
    Deposited, Borrowed, Repaid, InterestAccrued, Minted, Burned,
)
from tests.helpers import START, OWNER, fund


ONE_YEAR = timedelta(seconds=SECONDS_PER_YEAR)


class TestDeposit:
    """deposit() / add_collateral()."""

    def test_opens_position(self, vault, ledger):
        events = vault.deposit("alice", 1000 * ONE_NATIVE)

        assert vault.status_of("alice") == PositionStatus.ACTIVE
        assert vault.collateral_of("alice") == 1000 * ONE_NATIVE
        assert vault.total_collateral() == 1000 * ONE_NATIVE
        assert vault.liquid_balance() == 1000 * ONE_NATIVE
        assert vault.native_balance("alice") == 9000 * ONE_NATIVE
        assert Deposited("alice", 1000 * ONE_NATIVE, 1000 * ONE_NATIVE) in events
        assert ledger.event_log[-1] == Deposited("alice", 1000 * ONE_NATIVE, 1000 * ONE_NATIVE)

    def test_batches_but_never_delegates(self, vault):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        assert vault.pending_to_delegate() == 1000 * ONE_NATIVE
        assert vault.total_delegated() == 0

    def test_deposit_then_add_collateral(self, vault):
        """Deposit 100 twice via deposit() then add_collateral()."""
        vault.deposit("alice", 100 * ONE_NATIVE)
        vault.add_collateral("alice", 100 * ONE_NATIVE)
        assert vault.collateral_of("alice") == 200 * ONE_NATIVE
        assert vault.pending_to_delegate() == 200 * ONE_NATIVE

    def test_zero(self, vault):
        with pytest.raises(ZeroAmount):
            vault.deposit("alice", 0)

    def test_more_than_held(self, vault):
        with pytest.raises(InsufficientLiquidBalance):
            vault.deposit("alice", 10_001 * ONE_NATIVE)
        assert vault.status_of("alice") == PositionStatus.NONE

    def test_while_withdrawing(self, vault):
        vault.deposit("alice", 100 * ONE_NATIVE)
        vault.request_withdraw("alice", 50 * ONE_NATIVE)
        with pytest.raises(WithdrawPending):
            vault.deposit("alice", 10 * ONE_NATIVE)

    def test_while_paused(self, vault):
        vault.pause(OWNER)
        with pytest.raises(ContractPaused):
            vault.deposit("alice", 100 * ONE_NATIVE)

    def test_min_deposit(self):
        ledger = Ledger("min", START, verbose=False, test_mode=True)
        vault = VaultContract.deploy(
            ledger, "vault", OWNER, terms=VaultTerms(min_deposit=10 * ONE_NATIVE),
        )
        ledger.register_wallet("alice")
        fund(ledger, "alice", 100 * ONE_NATIVE)
        with pytest.raises(BelowMinDeposit):
            vault.deposit("alice", 10 * ONE_NATIVE - 1)
        vault.deposit("alice", 10 * ONE_NATIVE)
        assert vault.collateral_of("alice") == 10 * ONE_NATIVE


class TestBorrow:
    """borrow()."""

    def test_borrow_at_ceiling(self, vault):
        """1000 native units support exactly 800 x 10^9 fixed-point units."""
        vault.deposit("alice", 1000)
        events = vault.borrow("alice", 800 * 10**9)
        assert vault.ltv_of("alice") == 8000
        assert vault.debt_of("alice") == 800 * 10**9
        assert vault.token_balance("alice") == 800 * 10**9
        assert Borrowed("alice", 800 * 10**9, 800 * 10**9) in events
        assert Minted("alice", 800 * 10**9) in events

    def test_one_over_ceiling(self, vault, ledger):
        """One unit past the ceiling reverts and changes nothing."""
        vault.deposit("alice", 1000)
        before = len(ledger.transaction_log)
        with pytest.raises(LtvExceeded):
            vault.borrow("alice", 800 * 10**9 + 1)
        assert vault.debt_of("alice") == 0
        assert vault.token_balance("alice") == 0
        assert len(ledger.transaction_log) == before

    def test_cumulative_borrows(self, vault):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        vault.borrow("alice", 500 * ONE_FIXED_POINT)
        vault.borrow("alice", 300 * ONE_FIXED_POINT)
        with pytest.raises(LtvExceeded):
            vault.borrow("alice", 1)
        assert vault.total_debt() == 800 * ONE_FIXED_POINT

    def test_no_position(self, vault):
        with pytest.raises(NoVault):
            vault.borrow("alice", 1)

    def test_zero(self, vault):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        with pytest.raises(ZeroAmount):
            vault.borrow("alice", 0)

    def test_while_withdrawing(self, vault):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        vault.request_withdraw("alice", 100 * ONE_NATIVE)
        with pytest.raises(WithdrawPending):
            vault.borrow("alice", 1)

    def test_interest_accrues(self, vault, ledger):
        """100 units borrowed for a year accrue 2 units at 2%."""
        vault.deposit("alice", 1000 * ONE_NATIVE)
        vault.borrow("alice", 100)
        before = vault.debt_of("alice")
        ledger.advance_time(START + ONE_YEAR)
        after = vault.debt_of("alice")
        assert after > before
        assert after - before == 2

    def test_borrow_accrues_first(self, vault, ledger):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        vault.borrow("alice", 100 * ONE_FIXED_POINT)
        ledger.advance_time(START + ONE_YEAR)
        events = vault.borrow("alice", ONE_FIXED_POINT)
        assert InterestAccrued("alice", 2 * ONE_FIXED_POINT, 102 * ONE_FIXED_POINT) in events
        assert vault.debt_of("alice") == 103 * ONE_FIXED_POINT
        assert vault.total_debt() == 103 * ONE_FIXED_POINT


class TestRepay:
    """repay() / repay_all()."""

    @pytest.fixture
    def borrowed(self, vault):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        vault.borrow("alice", 400 * ONE_FIXED_POINT)
        return vault

    def test_requires_allowance(self, borrowed):
        with pytest.raises(InsufficientAllowance):
            borrowed.repay("alice", 100 * ONE_FIXED_POINT)

    def test_partial(self, borrowed, ledger):
        borrowed.approve("alice", 100 * ONE_FIXED_POINT)
        events = borrowed.repay("alice", 100 * ONE_FIXED_POINT)
        assert borrowed.debt_of("alice") == 300 * ONE_FIXED_POINT
        assert borrowed.total_debt() == 300 * ONE_FIXED_POINT
        assert borrowed.token_balance("alice") == 300 * ONE_FIXED_POINT
        assert borrowed.token_balance("vault") == 0
        assert Repaid("alice", 100 * ONE_FIXED_POINT, 300 * ONE_FIXED_POINT) in events
        assert Burned("vault", 100 * ONE_FIXED_POINT) in events
        assert ledger.circulating_supply("mCSPR") == 300 * ONE_FIXED_POINT

    def test_excess_is_not_taken(self, borrowed):
        borrowed.approve("alice", 1000 * ONE_FIXED_POINT)
        borrowed.repay("alice", 1000 * ONE_FIXED_POINT)
        assert borrowed.debt_of("alice") == 0
        assert borrowed.token_balance("alice") == 0
        assert borrowed.status_of("alice") == PositionStatus.ACTIVE

    def test_no_debt(self, vault):
        vault.deposit("alice", 1000 * ONE_NATIVE)
        with pytest.raises(InsufficientDebt):
            vault.repay("alice", 1)

    def test_no_position(self, vault):
        with pytest.raises(NoVault):
            vault.repay("alice", 1)

    def test_zero(self, borrowed):
        with pytest.raises(ZeroAmount):
            borrowed.repay("alice", 0)

    def test_repay_all_with_interest(self, borrowed, ledger):
        # bob borrows and hands alice enough to cover her interest
        borrowed.deposit("bob", 1000 * ONE_NATIVE)
        borrowed.borrow("bob", 10 * ONE_FIXED_POINT)
        borrowed.transfer("bob", "alice", 10 * ONE_FIXED_POINT)

        ledger.advance_time(START + ONE_YEAR)
        borrowed.approve("alice", 408 * ONE_FIXED_POINT)
        events = borrowed.repay_all("alice")

        assert InterestAccrued("alice", 8 * ONE_FIXED_POINT, 408 * ONE_FIXED_POINT) in events
        assert Repaid("alice", 408 * ONE_FIXED_POINT, 0) in events
        assert borrowed.debt_of("alice") == 0
        assert borrowed.token_balance("alice") == 2 * ONE_FIXED_POINT
        # bob's interest is not yet folded into the aggregate
        assert borrowed.total_debt() == 10 * ONE_FIXED_POINT
        assert borrowed.check_invariants() == []

    def test_repay_all_without_tokens_for_interest(self, borrowed, ledger):
        ledger.advance_time(START + ONE_YEAR)
        borrowed.approve("alice", 500 * ONE_FIXED_POINT)
        with pytest.raises(TokenInsufficientBalance):
            borrowed.repay_all("alice")
        assert borrowed.token_balance("alice") == 400 * ONE_FIXED_POINT

    def test_while_paused(self, borrowed):
        borrowed.approve("alice", 100 * ONE_FIXED_POINT)
        borrowed.pause(OWNER)
        with pytest.raises(ContractPaused):
            borrowed.repay("alice", 100 * ONE_FIXED_POINT)
