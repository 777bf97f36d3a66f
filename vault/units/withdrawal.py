"""
withdrawal.py - Two-phase withdrawal state machine

    ACTIVE --request_withdraw / withdraw_max--> WITHDRAWING
    WITHDRAWING --finalize_withdraw--> ACTIVE   (collateral or debt remains)
    WITHDRAWING --finalize_withdraw--> NONE     (position emptied)

A request removes the collateral from the position at once, so it stops
backing debt, and parks it in pending_withdraw. Payout happens on finalize,
which needs the vault's liquid balance to cover the pending amount. When a
request finds the liquid balance short, it asks the staking subsystem to
undelegate; those funds come back only after the unbonding delay, and until
then finalize fails with UnbondingNotComplete.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..core import (
    LedgerView, Move, PendingTransaction,
    ZeroAmount, NoVault, WithdrawPending, NoWithdrawPending, UnbondingNotComplete,
    InsufficientCollateral, LtvExceeded,
)
from ..amounts import checked_sub, to_fixed_point
from ..events import WithdrawRequested, WithdrawFinalized, UndelegationRequested
from .staking import StakingDraft
from .vault import (
    PositionStatus, VaultTerms, VaultState, Position,
    from_state_dict, accrue_in_state, assert_within_ltv, max_withdrawable,
    min_collateral_fixed_point, require_not_paused, build_vault_transaction,
)


def _require_requestable(state: VaultState, caller: str) -> None:
    status = state.position(caller).status
    if status == PositionStatus.NONE:
        raise NoVault(f"{caller} has no position")
    if status == PositionStatus.WITHDRAWING:
        raise WithdrawPending("a withdrawal is already pending")


def _request(
    view: LedgerView,
    symbol: str,
    raw: Dict[str, Any],
    terms: VaultTerms,
    state: VaultState,
    position: Position,
    events: List[Any],
    caller: str,
    amount: int,
    event_type: str,
) -> PendingTransaction:
    """Move amount from collateral into pending_withdraw, undelegating any shortfall."""
    remaining = checked_sub(position.collateral, amount)
    if position.debt_principal > 0:
        assert_within_ltv(position.debt_principal, remaining, terms)

    position = replace(
        position,
        collateral=remaining,
        pending_withdraw=amount,
        status=PositionStatus.WITHDRAWING,
    )
    state = replace(
        state.with_position(caller, position),
        total_collateral=checked_sub(state.total_collateral, amount),
    )

    staking: Optional[StakingDraft] = None
    liquid = view.get_balance(state.address, state.native_symbol)
    if liquid < amount and state.validator_identity:
        to_undelegate = min(amount, state.total_delegated)
        if to_undelegate > 0:
            staking = StakingDraft(view, state.staking)
            staking.undelegate(state.address, state.validator_identity, to_undelegate)
            state = replace(state, total_delegated=state.total_delegated - to_undelegate)
            events.append(UndelegationRequested(to_undelegate))
            events.extend(staking.events)

    events.append(WithdrawRequested(caller, amount))
    return build_vault_transaction(
        view, symbol, raw, terms, state, caller, event_type,
        other_changes=[staking.state_change()] if staking else None,
        events=events,
    )


def compute_request_withdraw(view: LedgerView, symbol: str, caller: str, amount: int) -> PendingTransaction:
    """
    Start withdrawing amount of collateral (native scale).

    Raises:
        ContractPaused, ZeroAmount, NoVault, WithdrawPending,
        InsufficientCollateral: If amount exceeds the position's collateral
        LtvExceeded: If the remaining collateral would not cover the debt
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_not_paused(state)
    if amount <= 0:
        raise ZeroAmount("withdraw amount must be positive")
    _require_requestable(state, caller)

    state, position, events = accrue_in_state(terms, state, caller, view.current_time)
    if amount > position.collateral:
        raise InsufficientCollateral(f"requested {amount}, collateral is {position.collateral}")
    return _request(view, symbol, raw, terms, state, position, events, caller, amount, "REQUEST_WITHDRAW")


def compute_withdraw_max(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """
    Request the largest withdrawal that keeps the position within the LTV ceiling.

    Raises:
        ContractPaused, NoVault, WithdrawPending,
        InsufficientCollateral: If there is no collateral, or the maximum rounds to 0
        LtvExceeded: If collateral is already at or under the debt's floor
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_not_paused(state)
    _require_requestable(state, caller)

    state, position, events = accrue_in_state(terms, state, caller, view.current_time)
    if position.collateral == 0:
        raise InsufficientCollateral(f"{caller} has no collateral")
    if position.debt_principal > 0:
        floor = min_collateral_fixed_point(position.debt_principal, terms)
        if to_fixed_point(position.collateral) <= floor:
            raise LtvExceeded("collateral is at or below the minimum for the current debt")

    amount = max_withdrawable(position.collateral, position.debt_principal, terms)
    if amount == 0:
        raise InsufficientCollateral("withdrawable amount rounds to zero")
    return _request(view, symbol, raw, terms, state, position, events, caller, amount, "WITHDRAW_MAX")


def compute_finalize_withdraw(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """
    Pay out a pending withdrawal once the vault holds enough liquid funds.

    Raises:
        ContractPaused,
        NoWithdrawPending: If the position is not WITHDRAWING
        UnbondingNotComplete: If the liquid balance is below the pending amount;
            expected while undelegated stake is unbonding, retry later
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_not_paused(state)

    position = state.position(caller)
    if position.status != PositionStatus.WITHDRAWING or position.pending_withdraw == 0:
        raise NoWithdrawPending(f"{caller} has no pending withdrawal")

    pending = position.pending_withdraw
    liquid = view.get_balance(state.address, state.native_symbol)
    if liquid < pending:
        raise UnbondingNotComplete(f"liquid balance {liquid} below pending {pending}")

    emptied = position.collateral == 0 and position.debt_principal == 0
    position = replace(
        position,
        pending_withdraw=0,
        status=PositionStatus.NONE if emptied else PositionStatus.ACTIVE,
    )
    state = state.with_position(caller, position)

    moves = [Move(pending, state.native_symbol, state.address, caller, f"{symbol}_withdraw")]
    return build_vault_transaction(
        view, symbol, raw, terms, state, caller, "FINALIZE_WITHDRAW",
        moves=moves, events=[WithdrawFinalized(caller, pending)],
    )
