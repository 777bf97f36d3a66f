"""
staking.py - Simulated staking subsystem

Stands in for the network's auction contract through a narrow interface:
delegate, undelegate, and delegated_amount. Delegated native funds move from
the delegator into the pool wallet. Undelegation does not return them; it
queues an unbonding entry that staking_contract releases back to the
delegator once the unbonding delay has elapsed, when polled by the
LifecycleEngine.

Nothing here settles synchronously with the caller's transaction except the
bookkeeping, matching a real subsystem where stake moves on its own clock.
"""

from __future__ import annotations
from collections import defaultdict
import copy
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    TransactionOrigin, OriginType,
    UNIT_TYPE_STAKING, StakingError,
    build_transaction, empty_pending_transaction, _freeze_state,
)
from ..events import Delegated, Undelegated, UnbondingReleased


DEFAULT_UNBONDING_DELAY = timedelta(hours=14)


# ============================================================================
# UNIT FACTORY
# ============================================================================

def create_staking_unit(
    symbol: str,
    pool_wallet: str,
    native_symbol: str,
    unbonding_delay: timedelta = DEFAULT_UNBONDING_DELAY,
) -> Unit:
    """
    Create the staking subsystem unit.

    Args:
        symbol: Unit symbol (e.g., "AUCTION")
        pool_wallet: Wallet holding delegated and unbonding stake
        native_symbol: Symbol of the staked native asset
        unbonding_delay: Time between undelegation and release

    Raises:
        ValueError: If pool_wallet is empty or the delay is negative
    """
    if not pool_wallet or not pool_wallet.strip():
        raise ValueError("pool_wallet cannot be empty")
    if unbonding_delay < timedelta(0):
        raise ValueError(f"unbonding_delay cannot be negative, got {unbonding_delay}")

    return Unit(
        symbol=symbol,
        name="Staking",
        unit_type=UNIT_TYPE_STAKING,
        _frozen_state=_freeze_state({
            'pool_wallet': pool_wallet,
            'native_symbol': native_symbol,
            'unbonding_delay_seconds': int(unbonding_delay.total_seconds()),
            'delegations': {},
            'unbonding': [],
        }),
    )


# ============================================================================
# DRAFT
# ============================================================================

class StakingDraft:
    """Mutable scratch copy of the staking unit used while building one transaction."""

    def __init__(self, view: LedgerView, symbol: str):
        self.view = view
        self.symbol = symbol
        self.old_state = view.get_unit_state(symbol)
        self.state = copy.deepcopy(self.old_state)
        self.moves: List[Move] = []
        self.events: List[Any] = []
        self._deltas: Dict[str, int] = defaultdict(int)

    def delegated_amount(self, validator: str, delegator: Optional[str] = None) -> int:
        stakes = self.state['delegations'].get(validator, {})
        if delegator is None:
            return sum(stakes.values())
        return stakes.get(delegator, 0)

    def delegate(self, delegator: str, validator: str, amount: int) -> None:
        if not validator:
            raise StakingError("validator is required")
        if amount <= 0:
            raise StakingError(f"delegation amount must be positive, got {amount}")
        native = self.state['native_symbol']
        available = self.view.get_balance(delegator, native) + self._deltas[delegator]
        if available < amount:
            raise StakingError(f"{delegator} holds {available}, cannot delegate {amount}")

        pool = self.state['pool_wallet']
        self.moves.append(Move(amount, native, delegator, pool, f"{self.symbol}_delegate"))
        self._deltas[delegator] -= amount
        self._deltas[pool] += amount

        stakes = self.state['delegations'].setdefault(validator, {})
        stakes[delegator] = stakes.get(delegator, 0) + amount
        self.events.append(Delegated(delegator, validator, amount))

    def undelegate(self, delegator: str, validator: str, amount: int) -> None:
        current = self.delegated_amount(validator, delegator)
        if amount <= 0:
            raise StakingError(f"undelegation amount must be positive, got {amount}")
        if amount > current:
            raise StakingError(
                f"{delegator} has {current} delegated to {validator}, cannot undelegate {amount}"
            )
        stakes = self.state['delegations'][validator]
        stakes[delegator] = current - amount
        if stakes[delegator] == 0:
            del stakes[delegator]

        release_time = self.view.current_time + timedelta(
            seconds=self.state['unbonding_delay_seconds']
        )
        self.state['unbonding'].append({
            'delegator': delegator,
            'validator': validator,
            'amount': amount,
            'release_time': release_time,
        })
        self.events.append(Undelegated(delegator, validator, amount, release_time))

    def state_change(self) -> Optional[UnitStateChange]:
        if self.state == self.old_state:
            return None
        return UnitStateChange(unit=self.symbol, old_state=self.old_state, new_state=self.state)


# ============================================================================
# COMPUTE FUNCTIONS
# ============================================================================

def compute_delegate(view: LedgerView, symbol: str, delegator: str, validator: str, amount: int) -> PendingTransaction:
    draft = StakingDraft(view, symbol)
    draft.delegate(delegator, validator, amount)
    origin = TransactionOrigin(OriginType.USER_ACTION, delegator, symbol, "DELEGATE")
    return build_transaction(view, draft.moves, [draft.state_change()], origin, draft.events)


def compute_undelegate(view: LedgerView, symbol: str, delegator: str, validator: str, amount: int) -> PendingTransaction:
    draft = StakingDraft(view, symbol)
    draft.undelegate(delegator, validator, amount)
    origin = TransactionOrigin(OriginType.USER_ACTION, delegator, symbol, "UNDELEGATE")
    return build_transaction(view, draft.moves, [draft.state_change()], origin, draft.events)


def compute_unbonding_release(view: LedgerView, symbol: str, timestamp: datetime) -> PendingTransaction:
    """
    Release every unbonding entry whose release time has passed.

    Returns:
        PendingTransaction moving matured stake from the pool back to each
        delegator, or an empty transaction if nothing has matured.
    """
    state = view.get_unit_state(symbol)
    matured = [e for e in state['unbonding'] if e['release_time'] <= timestamp]
    if not matured:
        return empty_pending_transaction(view)

    pool = state['pool_wallet']
    native = state['native_symbol']
    moves = [
        Move(e['amount'], native, pool, e['delegator'], f"{symbol}_unbond")
        for e in matured
    ]
    events = [UnbondingReleased(e['delegator'], e['validator'], e['amount']) for e in matured]
    new_state = {
        **state,
        'unbonding': [e for e in state['unbonding'] if e['release_time'] > timestamp],
    }
    changes = [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)]
    origin = TransactionOrigin(OriginType.LIFECYCLE, "staking", symbol, "UNBOND")
    return build_transaction(view, moves, changes, origin, events)


# ============================================================================
# VIEWS
# ============================================================================

def delegated_amount(view: LedgerView, symbol: str, validator: str, delegator: Optional[str] = None) -> int:
    """Stake currently delegated to validator, by one delegator or in total."""
    stakes = view.get_unit_state(symbol)['delegations'].get(validator, {})
    if delegator is None:
        return sum(stakes.values())
    return stakes.get(delegator, 0)


def unbonding_of(view: LedgerView, symbol: str, delegator: str) -> List[Dict[str, Any]]:
    """Unbonding entries not yet released for delegator."""
    return [e for e in view.get_unit_state(symbol)['unbonding'] if e['delegator'] == delegator]


# ============================================================================
# SMART CONTRACT
# ============================================================================

def staking_contract(view: LedgerView, symbol: str, timestamp: datetime) -> PendingTransaction:
    """SmartContract entry polled by LifecycleEngine: settle matured unbondings."""
    return compute_unbonding_release(view, symbol, timestamp)
