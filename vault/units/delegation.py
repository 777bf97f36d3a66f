"""
delegation.py - Delegation batcher

Deposits never delegate in the same transaction that brings the funds in:
the staking subsystem enforces a minimum delegation size and does not
reliably accept stake that arrived in the same call. Deposits only grow
pending_to_delegate; the owner triggers force_delegate to hand the batch to
the validator once it is large enough.
"""

from __future__ import annotations
from dataclasses import replace

from ..core import LedgerView, PendingTransaction, OriginType, U512_MAX, empty_pending_transaction
from ..amounts import checked_add
from ..events import DelegationBatched
from .staking import StakingDraft
from .vault import (
    VaultState,
    from_state_dict, require_owner, build_vault_transaction,
)


def batch_delegate(state: VaultState, amount: int) -> VaultState:
    """Queue amount for the next force_delegate. Never calls the staking subsystem."""
    return replace(state, pending_to_delegate=checked_add(state.pending_to_delegate, amount, U512_MAX))


def compute_force_delegate(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """
    Delegate the pending batch to the validator on record (owner only).

    The batch is capped at the vault's liquid balance. It is a no-op, and
    the funds stay pending, when nothing is pending, no validator is set,
    or the capped amount is below the minimum delegation.

    Raises:
        Unauthorized: If caller is not the owner
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_owner(state, caller)

    if state.pending_to_delegate == 0 or not state.validator_identity:
        return empty_pending_transaction(view)

    liquid = view.get_balance(state.address, state.native_symbol)
    amount = min(state.pending_to_delegate, liquid)
    if amount < terms.min_delegation or amount == 0:
        return empty_pending_transaction(view)

    staking = StakingDraft(view, state.staking)
    staking.delegate(state.address, state.validator_identity, amount)
    state = replace(
        state,
        total_delegated=checked_add(state.total_delegated, amount, U512_MAX),
        pending_to_delegate=0,
    )
    return build_vault_transaction(
        view, symbol, raw, terms, state, caller, "FORCE_DELEGATE",
        moves=staking.moves, other_changes=[staking.state_change()],
        events=[DelegationBatched(amount)] + staking.events,
        origin_type=OriginType.ADMIN,
    )
