"""
lending.py - Deposit, borrow and repay entry points

Every function here follows the same order: pause gate, argument checks,
interest accrual for the caller, the position change (with the LTV guard
where debt grows), then the collaborator effects on the debt token. All of
it lands in a single PendingTransaction, so a failing check anywhere means
nothing is applied.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional

from ..core import (
    LedgerView, Move, PendingTransaction,
    U256_MAX, U512_MAX,
    ZeroAmount, NoVault, WithdrawPending, InsufficientDebt, InsufficientAllowance,
    BelowMinDeposit, InsufficientLiquidBalance,
)
from ..amounts import checked_add, checked_sub
from ..events import Deposited, Borrowed, Repaid
from .debt_token import TokenDraft
from .delegation import batch_delegate
from .vault import (
    PositionStatus,
    from_state_dict, accrue_in_state, assert_within_ltv,
    require_not_paused, build_vault_transaction,
)


# ============================================================================
# DEPOSIT
# ============================================================================

def compute_deposit(view: LedgerView, symbol: str, caller: str, amount: int) -> PendingTransaction:
    """
    Lock amount of the caller's native asset as collateral.

    The first deposit opens the position (NONE -> ACTIVE). The amount is
    queued for delegation but never delegated here; see force_delegate.

    Raises:
        ContractPaused, ZeroAmount, BelowMinDeposit, WithdrawPending,
        InsufficientLiquidBalance
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_not_paused(state)
    if amount <= 0:
        raise ZeroAmount("deposit amount must be positive")
    if amount < terms.min_deposit:
        raise BelowMinDeposit(f"deposit {amount} below minimum {terms.min_deposit}")
    if state.position(caller).status == PositionStatus.WITHDRAWING:
        raise WithdrawPending("finalize the pending withdrawal before depositing")

    available = view.get_balance(caller, state.native_symbol)
    if available < amount:
        raise InsufficientLiquidBalance(f"{caller} holds {available}, cannot attach {amount}")

    state, position, events = accrue_in_state(terms, state, caller, view.current_time)
    position = replace(
        position,
        collateral=checked_add(position.collateral, amount, U512_MAX),
        status=PositionStatus.ACTIVE,
    )
    state = replace(
        state.with_position(caller, position),
        total_collateral=checked_add(state.total_collateral, amount, U512_MAX),
    )
    state = batch_delegate(state, amount)
    events.append(Deposited(caller, amount, position.collateral))

    moves = [Move(amount, state.native_symbol, caller, state.address, f"{symbol}_deposit")]
    return build_vault_transaction(
        view, symbol, raw, terms, state, caller, "DEPOSIT", moves=moves, events=events,
    )


def compute_add_collateral(view: LedgerView, symbol: str, caller: str, amount: int) -> PendingTransaction:
    """Alias of compute_deposit."""
    return compute_deposit(view, symbol, caller, amount)


# ============================================================================
# BORROW
# ============================================================================

def compute_borrow(view: LedgerView, symbol: str, caller: str, amount: int) -> PendingTransaction:
    """
    Mint amount of debt token to the caller against their collateral.

    Raises:
        ContractPaused, ZeroAmount, NoVault, WithdrawPending,
        LtvExceeded: If accrued debt plus amount exceeds max_borrowable
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_not_paused(state)
    if amount <= 0:
        raise ZeroAmount("borrow amount must be positive")
    status = state.position(caller).status
    if status == PositionStatus.NONE:
        raise NoVault(f"{caller} has no position")
    if status == PositionStatus.WITHDRAWING:
        raise WithdrawPending("cannot borrow while a withdrawal is pending")

    state, position, events = accrue_in_state(terms, state, caller, view.current_time)
    new_debt = checked_add(position.debt_principal, amount, U256_MAX)
    assert_within_ltv(new_debt, position.collateral, terms)

    state = replace(
        state.with_position(caller, replace(position, debt_principal=new_debt)),
        total_debt=checked_add(state.total_debt, amount, U256_MAX),
    )

    token = TokenDraft(view, state.debt_token)
    token.mint(state.address, caller, amount)
    events.append(Borrowed(caller, amount, new_debt))

    return build_vault_transaction(
        view, symbol, raw, terms, state, caller, "BORROW",
        moves=token.moves, other_changes=[token.state_change()], events=events + token.events,
    )


# ============================================================================
# REPAY
# ============================================================================

def _compute_repayment(
    view: LedgerView,
    symbol: str,
    caller: str,
    amount: Optional[int],
) -> PendingTransaction:
    """Shared body of repay and repay_all; amount None repays the full accrued debt."""
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_not_paused(state)
    if amount is not None and amount <= 0:
        raise ZeroAmount("repay amount must be positive")
    if state.position(caller).status == PositionStatus.NONE:
        raise NoVault(f"{caller} has no position")

    state, position, events = accrue_in_state(terms, state, caller, view.current_time)
    debt = position.debt_principal
    if debt == 0:
        raise InsufficientDebt(f"{caller} has no debt")
    payment = debt if amount is None else min(amount, debt)

    token = TokenDraft(view, state.debt_token)
    approved = token.allowance(caller, state.address)
    if approved < payment:
        raise InsufficientAllowance(f"allowance {approved} below repayment {payment}")
    token.transfer_from(state.address, caller, state.address, payment)
    token.burn(state.address, state.address, payment)

    new_debt = checked_sub(debt, payment)
    state = replace(
        state.with_position(caller, replace(position, debt_principal=new_debt)),
        total_debt=max(state.total_debt - payment, 0),
    )
    events.append(Repaid(caller, payment, new_debt))

    return build_vault_transaction(
        view, symbol, raw, terms, state, caller, "REPAY" if amount is not None else "REPAY_ALL",
        moves=token.moves, other_changes=[token.state_change()], events=events + token.events,
    )


def compute_repay(view: LedgerView, symbol: str, caller: str, amount: int) -> PendingTransaction:
    """
    Repay up to amount of debt; any excess over the accrued debt is not taken.

    The caller must first approve the vault address on the debt token for at
    least the amount actually repaid. The tokens are pulled and burned.

    Raises:
        ContractPaused, ZeroAmount, NoVault, InsufficientDebt, InsufficientAllowance
    """
    return _compute_repayment(view, symbol, caller, amount)


def compute_repay_all(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """Repay the full debt, interest included, as of the current time."""
    return _compute_repayment(view, symbol, caller, None)
