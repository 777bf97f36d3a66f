"""
admin.py - Owner-only controls: pause switch and validator identity
"""

from __future__ import annotations
from dataclasses import replace

from ..core import LedgerView, PendingTransaction, OriginType, ContractPaused
from ..events import Paused, Unpaused, ValidatorIdentitySet
from .vault import from_state_dict, require_owner, normalize_validator_identity, build_vault_transaction


def _compute_set_paused(view: LedgerView, symbol: str, caller: str, paused: bool) -> PendingTransaction:
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_owner(state, caller)
    if state.paused == paused:
        raise ContractPaused("vault is already paused" if paused else "vault is not paused")

    event = Paused(caller) if paused else Unpaused(caller)
    return build_vault_transaction(
        view, symbol, raw, terms, replace(state, paused=paused), caller,
        "PAUSE" if paused else "UNPAUSE",
        events=[event], origin_type=OriginType.ADMIN,
    )


def compute_pause(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """
    Block every user entry point until unpaused. Views and admin calls still work.

    Raises:
        Unauthorized: If caller is not the owner
        ContractPaused: If the vault is already paused
    """
    return _compute_set_paused(view, symbol, caller, True)


def compute_unpause(view: LedgerView, symbol: str, caller: str) -> PendingTransaction:
    """
    Raises:
        Unauthorized: If caller is not the owner
        ContractPaused: If the vault is not paused
    """
    return _compute_set_paused(view, symbol, caller, False)


def compute_set_validator_identity(view: LedgerView, symbol: str, caller: str, key: str) -> PendingTransaction:
    """
    Record the validator that force_delegate and withdrawals talk to.

    Changing it does not move existing stake; stake delegated to the previous
    validator stays there. An empty key clears the identity, which pauses
    delegation.

    Raises:
        Unauthorized: If caller is not the owner
        InvalidValidatorKey: If key is not a tagged ED25519/SECP256K1 hex key
    """
    raw = view.get_unit_state(symbol)
    terms, state = from_state_dict(raw)
    require_owner(state, caller)
    normalized = normalize_validator_identity(key)
    return build_vault_transaction(
        view, symbol, raw, terms, replace(state, validator_identity=normalized), caller,
        "SET_VALIDATOR",
        events=[ValidatorIdentitySet(caller, normalized)], origin_type=OriginType.ADMIN,
    )
