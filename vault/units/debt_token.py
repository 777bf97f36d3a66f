"""
debt_token.py - Synthetic debt token minted against vault collateral

Balances live in the ledger under the token's symbol, with 18 decimal places.
Unit state carries the token metadata, the allowance table, the tracked
total supply, and the minter: the only caller allowed to mint and burn.

The minter's canonical key is computed when it is recorded and every mint,
burn and set_minter checks the caller against it with same_entity(), so a
vault reaching the token under its package identity or its contract identity
is recognised as the same minter.

TokenDraft accumulates token effects against one snapshot so that several of
them (transfer_from then burn, for instance) can be folded into a single
atomic transaction together with another unit's state change.
"""

from __future__ import annotations
from collections import defaultdict
import copy
from typing import Any, Dict, List, Optional

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    TransactionOrigin, OriginType,
    SYSTEM_WALLET, UNIT_TYPE_DEBT_TOKEN, FIXED_POINT_DECIMALS, U256_MAX,
    TokenInsufficientBalance, TokenInsufficientAllowance, CannotTargetSelf,
    TokenUnauthorized,
    build_transaction, _freeze_state,
)
from ..amounts import checked_add, checked_sub
from ..events import Minted, Burned, Transferred, AllowanceSet, MinterSet
from ..identity import Identity, canonical_identity, same_entity


# ============================================================================
# UNIT FACTORY
# ============================================================================

def create_debt_token_unit(
    symbol: str,
    name: str,
    minter: str,
    decimals: int = FIXED_POINT_DECIMALS,
) -> Unit:
    """
    Create the debt token unit.

    Args:
        symbol: Token symbol (e.g., "mCSPR")
        name: Human-readable token name
        minter: Identity allowed to mint and burn (normally the vault address)
        decimals: Display decimals (default: 18)

    Raises:
        ValueError: If symbol or minter is empty
    """
    if not symbol or not symbol.strip():
        raise ValueError("symbol cannot be empty")
    minter_identity = canonical_identity(minter)

    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_DEBT_TOKEN,
        min_balance=0,
        max_balance=U256_MAX,
        _frozen_state=_freeze_state({
            'name': name,
            'symbol': symbol,
            'decimals': decimals,
            'minter': minter,
            'minter_key': minter_identity.key,
            'allowances': {},
            'total_supply': 0,
        }),
    )


# ============================================================================
# DRAFT - accumulate effects against a single snapshot
# ============================================================================

class TokenDraft:
    """
    Mutable scratch copy of the token used while building one transaction.

    Balance checks see the moves already drafted, so a transfer into a wallet
    followed by a burn from it validates against the post-transfer balance.
    """

    def __init__(self, view: LedgerView, symbol: str):
        self.view = view
        self.symbol = symbol
        self.old_state = view.get_unit_state(symbol)
        self.state = copy.deepcopy(self.old_state)
        self.moves: List[Move] = []
        self.events: List[Any] = []
        self._deltas: Dict[str, int] = defaultdict(int)

    # --- reads -------------------------------------------------------------

    def balance_of(self, holder: str) -> int:
        return self.view.get_balance(holder, self.symbol) + self._deltas[holder]

    def allowance(self, owner: str, spender: str) -> int:
        return self.state['allowances'].get(owner, {}).get(spender, 0)

    def is_minter(self, caller: str) -> bool:
        return same_entity(caller, Identity.from_key(self.state['minter_key']))

    # --- writes ------------------------------------------------------------

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        self.state['allowances'].setdefault(owner, {})[spender] = amount
        self.events.append(AllowanceSet(owner, spender, amount))

    def _move(self, source: str, dest: str, amount: int, contract_id: str) -> None:
        if amount == 0:
            return
        self.moves.append(Move(amount, self.symbol, source, dest, contract_id))
        self._deltas[source] -= amount
        self._deltas[dest] += amount

    def _raw_transfer(self, sender: str, recipient: str, amount: int) -> None:
        balance = self.balance_of(sender)
        if balance < amount:
            raise TokenInsufficientBalance(
                f"{sender} holds {balance} {self.symbol}, needs {amount}"
            )
        self._move(sender, recipient, amount, f"{self.symbol}_transfer")

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if same_entity(sender, recipient):
            raise CannotTargetSelf(f"{sender} cannot transfer to itself")
        self._raw_transfer(sender, recipient, amount)
        self.events.append(Transferred(sender, recipient, amount))

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if same_entity(owner, spender):
            raise CannotTargetSelf(f"{owner} cannot approve itself")
        self._set_allowance(owner, spender, amount)

    def increase_allowance(self, owner: str, spender: str, amount: int) -> None:
        if same_entity(owner, spender):
            raise CannotTargetSelf(f"{owner} cannot approve itself")
        self._set_allowance(owner, spender, min(self.allowance(owner, spender) + amount, U256_MAX))

    def decrease_allowance(self, owner: str, spender: str, amount: int) -> None:
        if same_entity(owner, spender):
            raise CannotTargetSelf(f"{owner} cannot approve itself")
        self._set_allowance(owner, spender, max(self.allowance(owner, spender) - amount, 0))

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        """Move amount from owner to recipient against spender's allowance."""
        if same_entity(owner, recipient):
            raise CannotTargetSelf(f"{owner} cannot transfer to itself")
        if amount == 0:
            return
        allowance = self.allowance(owner, spender)
        if allowance < amount:
            raise TokenInsufficientAllowance(
                f"{spender} may spend {allowance} of {owner}'s {self.symbol}, needs {amount}"
            )
        self.state['allowances'][owner][spender] = allowance - amount
        self._raw_transfer(owner, recipient, amount)
        self.events.append(Transferred(owner, recipient, amount, spender=spender))

    def mint(self, caller: str, recipient: str, amount: int) -> None:
        if not self.is_minter(caller):
            raise TokenUnauthorized(f"{caller} is not the minter of {self.symbol}")
        self.state['total_supply'] = checked_add(self.state['total_supply'], amount, U256_MAX)
        self._move(SYSTEM_WALLET, recipient, amount, f"{self.symbol}_mint")
        self.events.append(Minted(recipient, amount))

    def burn(self, caller: str, holder: str, amount: int) -> None:
        if not self.is_minter(caller):
            raise TokenUnauthorized(f"{caller} is not the minter of {self.symbol}")
        balance = self.balance_of(holder)
        if balance < amount:
            raise TokenInsufficientBalance(
                f"{holder} holds {balance} {self.symbol}, cannot burn {amount}"
            )
        self.state['total_supply'] = checked_sub(self.state['total_supply'], amount)
        self._move(holder, SYSTEM_WALLET, amount, f"{self.symbol}_burn")
        self.events.append(Burned(holder, amount))

    def set_minter(self, caller: str, new_minter: str) -> None:
        if not self.is_minter(caller):
            raise TokenUnauthorized(f"{caller} is not the minter of {self.symbol}")
        old_minter = self.state['minter']
        self.state['minter'] = new_minter
        self.state['minter_key'] = canonical_identity(new_minter).key
        self.events.append(MinterSet(old_minter, new_minter))

    # --- output ------------------------------------------------------------

    def state_change(self) -> Optional[UnitStateChange]:
        if self.state == self.old_state:
            return None
        return UnitStateChange(unit=self.symbol, old_state=self.old_state, new_state=self.state)

    def to_transaction(self, origin: TransactionOrigin) -> PendingTransaction:
        change = self.state_change()
        return build_transaction(
            self.view, self.moves, [change] if change else [], origin, self.events,
        )


def _origin(caller: str, symbol: str, event_type: str) -> TransactionOrigin:
    return TransactionOrigin(OriginType.USER_ACTION, caller, symbol, event_type)


# ============================================================================
# COMPUTE FUNCTIONS
# ============================================================================

def compute_transfer(view: LedgerView, symbol: str, caller: str, recipient: str, amount: int) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.transfer(caller, recipient, amount)
    return draft.to_transaction(_origin(caller, symbol, "TRANSFER"))


def compute_approve(view: LedgerView, symbol: str, caller: str, spender: str, amount: int) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.approve(caller, spender, amount)
    return draft.to_transaction(_origin(caller, symbol, "APPROVE"))


def compute_increase_allowance(view: LedgerView, symbol: str, caller: str, spender: str, amount: int) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.increase_allowance(caller, spender, amount)
    return draft.to_transaction(_origin(caller, symbol, "INCREASE_ALLOWANCE"))


def compute_decrease_allowance(view: LedgerView, symbol: str, caller: str, spender: str, amount: int) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.decrease_allowance(caller, spender, amount)
    return draft.to_transaction(_origin(caller, symbol, "DECREASE_ALLOWANCE"))


def compute_transfer_from(
    view: LedgerView,
    symbol: str,
    caller: str,
    owner: str,
    recipient: str,
    amount: int,
) -> PendingTransaction:
    """
    Spend caller's allowance over owner's balance.

    Raises:
        CannotTargetSelf: If owner and recipient are the same
        TokenInsufficientAllowance: If the allowance does not cover amount
        TokenInsufficientBalance: If owner holds less than amount
    """
    draft = TokenDraft(view, symbol)
    draft.transfer_from(caller, owner, recipient, amount)
    return draft.to_transaction(_origin(caller, symbol, "TRANSFER_FROM"))


def compute_mint(view: LedgerView, symbol: str, caller: str, recipient: str, amount: int) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.mint(caller, recipient, amount)
    return draft.to_transaction(_origin(caller, symbol, "MINT"))


def compute_burn(view: LedgerView, symbol: str, caller: str, holder: str, amount: int) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.burn(caller, holder, amount)
    return draft.to_transaction(_origin(caller, symbol, "BURN"))


def compute_set_minter(view: LedgerView, symbol: str, caller: str, new_minter: str) -> PendingTransaction:
    draft = TokenDraft(view, symbol)
    draft.set_minter(caller, new_minter)
    return draft.to_transaction(_origin(caller, symbol, "SET_MINTER"))


# ============================================================================
# VIEWS
# ============================================================================

def balance_of(view: LedgerView, symbol: str, holder: str) -> int:
    return view.get_balance(holder, symbol)


def allowance(view: LedgerView, symbol: str, owner: str, spender: str) -> int:
    return view.get_unit_state(symbol)['allowances'].get(owner, {}).get(spender, 0)


def total_supply(view: LedgerView, symbol: str) -> int:
    return view.get_unit_state(symbol)['total_supply']


def minter_of(view: LedgerView, symbol: str) -> str:
    return view.get_unit_state(symbol)['minter']
