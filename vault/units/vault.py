"""
vault.py - Staked collateral vault: position ledger, interest, LTV and views

Users lock the native asset as collateral and borrow the debt token against
it up to an LTV ceiling. This module holds the vault unit's typed state and
the pure calculations every entry point shares. The entry points themselves
live in lending.py, withdrawal.py, delegation.py and admin.py.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASSES (explicit inputs):
   - VaultTerms: immutable configuration (LTV ceiling, rate, thresholds)
   - Position: one user's collateral, debt and withdrawal status
   - VaultState: globals plus every position, as one snapshot

2. PURE CALCULATION FUNCTIONS (calculate_*, accrue, max_*):
   - Integer arithmetic only, every division truncates toward zero
   - No LedgerView, no hidden state

3. ADAPTER FUNCTIONS (load_vault / to_state_dict):
   - The only place that translates between unit state and dataclasses

4. VIEWS (get_position, collateral_of, ...):
   - Interest-current reads that never write

Key Formulas:
    interest       = principal * rate_bps * elapsed / (seconds_per_year * 10000)
    max_borrowable = collateral_fp * ltv_max_bps / 10000
    ltv_bps        = debt * 10000 / collateral_fp
    health_bps     = max_borrowable * 10000 / debt
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum
from typing import Dict, Any, List, Optional, Tuple, Mapping

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    TransactionOrigin, OriginType,
    UNIT_TYPE_VAULT, BPS_DIVISOR, LTV_MAX_BPS, INTEREST_RATE_BPS,
    SECONDS_PER_YEAR, MIN_DELEGATION, U256_MAX, HEALTH_FACTOR_MAX,
    ContractPaused, Unauthorized, LtvExceeded,
    build_transaction, _freeze_state,
)
from ..amounts import checked_add, to_fixed_point, to_native
from ..events import InterestAccrued
from ..identity import canonical_identity, same_entity
from ..keys import parse_validator_key
from .staking import delegated_amount as staking_delegated_amount


class PositionStatus(IntEnum):
    NONE = 0
    ACTIVE = 1
    WITHDRAWING = 2


# ============================================================================
# FROZEN DATACLASSES - Explicit Inputs for Pure Functions
# ============================================================================

@dataclass(frozen=True, slots=True)
class VaultTerms:
    """
    Immutable vault configuration, fixed when the vault unit is created.

    min_deposit of 0 disables the minimum deposit check.
    """
    ltv_max_bps: int = LTV_MAX_BPS
    interest_rate_bps: int = INTEREST_RATE_BPS
    seconds_per_year: int = SECONDS_PER_YEAR
    min_delegation: int = MIN_DELEGATION
    min_deposit: int = 0

    def __post_init__(self):
        if not 0 < self.ltv_max_bps <= BPS_DIVISOR:
            raise ValueError(f"ltv_max_bps must be in (0, {BPS_DIVISOR}], got {self.ltv_max_bps}")
        if self.interest_rate_bps < 0:
            raise ValueError(f"interest_rate_bps cannot be negative, got {self.interest_rate_bps}")
        if self.seconds_per_year <= 0:
            raise ValueError(f"seconds_per_year must be positive, got {self.seconds_per_year}")
        if self.min_delegation < 0 or self.min_deposit < 0:
            raise ValueError("thresholds cannot be negative")


@dataclass(frozen=True, slots=True)
class Position:
    """
    One user's record. Never deleted; an emptied position returns to NONE
    with zeroed fields.
    """
    collateral: int = 0                         # native scale
    debt_principal: int = 0                     # fixed-point scale, as of last_accrual_time
    last_accrual_time: Optional[datetime] = None
    status: PositionStatus = PositionStatus.NONE
    pending_withdraw: int = 0                   # native scale


EMPTY_POSITION = Position()


@dataclass(frozen=True, slots=True)
class VaultState:
    """
    Snapshot of the vault's globals and every position.

    total_delegated is the vault's own belief about delegated stake. It is
    only updated by the vault's delegate/undelegate calls and can lag what
    the staking subsystem reports through delegated_amount().
    """
    address: str
    owner: str
    native_symbol: str
    debt_token: str
    staking: str
    validator_identity: str = ""
    paused: bool = False
    total_collateral: int = 0
    total_debt: int = 0
    pending_to_delegate: int = 0
    total_delegated: int = 0
    positions: Mapping[str, Position] = field(default_factory=dict)   # keyed by position_key()

    def position(self, user: str) -> Position:
        return self.positions.get(position_key(user), EMPTY_POSITION)

    def with_position(self, user: str, position: Position) -> VaultState:
        return replace(self, positions={**self.positions, position_key(user): position})


def position_key(user: str) -> str:
    """Positions are keyed by canonical identity, so every encoding of a caller shares one."""
    return canonical_identity(user).key


@dataclass(frozen=True, slots=True)
class PositionInfo:
    """Interest-current summary of one position, as returned by get_position()."""
    collateral_native: int
    collateral_fixed_point: int
    debt_fixed_point: int
    ltv_bps: int
    health_factor_bps: int
    pending_withdraw_native: int
    status: PositionStatus


# ============================================================================
# ADAPTER FUNCTIONS - Bridge Between LedgerView and Pure Functions
# ============================================================================

def _load_position(raw: Mapping[str, Any]) -> Position:
    return Position(
        collateral=raw.get('collateral', 0),
        debt_principal=raw.get('debt_principal', 0),
        last_accrual_time=raw.get('last_accrual_time'),
        status=PositionStatus(raw.get('status', PositionStatus.NONE)),
        pending_withdraw=raw.get('pending_withdraw', 0),
    )


def _position_dict(position: Position) -> Dict[str, Any]:
    return {
        'collateral': position.collateral,
        'debt_principal': position.debt_principal,
        'last_accrual_time': position.last_accrual_time,
        'status': int(position.status),
        'pending_withdraw': position.pending_withdraw,
    }


def load_vault(view: LedgerView, symbol: str) -> Tuple[VaultTerms, VaultState]:
    """
    Load the vault from ledger state as typed frozen dataclasses.

    Example:
        terms, state = load_vault(view, "VAULT")
        limit = max_borrowable(state.position("alice").collateral, terms)
    """
    return from_state_dict(view.get_unit_state(symbol))


def from_state_dict(raw: Mapping[str, Any]) -> Tuple[VaultTerms, VaultState]:
    terms = VaultTerms(
        ltv_max_bps=raw.get('ltv_max_bps', LTV_MAX_BPS),
        interest_rate_bps=raw.get('interest_rate_bps', INTEREST_RATE_BPS),
        seconds_per_year=raw.get('seconds_per_year', SECONDS_PER_YEAR),
        min_delegation=raw.get('min_delegation', MIN_DELEGATION),
        min_deposit=raw.get('min_deposit', 0),
    )
    state = VaultState(
        address=raw['address'],
        owner=raw['owner'],
        native_symbol=raw['native_symbol'],
        debt_token=raw['debt_token'],
        staking=raw['staking'],
        validator_identity=raw.get('validator_identity', ''),
        paused=raw.get('paused', False),
        total_collateral=raw.get('total_collateral', 0),
        total_debt=raw.get('total_debt', 0),
        pending_to_delegate=raw.get('pending_to_delegate', 0),
        total_delegated=raw.get('total_delegated', 0),
        positions={user: _load_position(p) for user, p in raw.get('positions', {}).items()},
    )
    return terms, state


def to_state_dict(terms: VaultTerms, state: VaultState) -> Dict[str, Any]:
    """Inverse of load_vault(); used to build the vault's UnitStateChange."""
    return {
        'ltv_max_bps': terms.ltv_max_bps,
        'interest_rate_bps': terms.interest_rate_bps,
        'seconds_per_year': terms.seconds_per_year,
        'min_delegation': terms.min_delegation,
        'min_deposit': terms.min_deposit,
        'address': state.address,
        'owner': state.owner,
        'native_symbol': state.native_symbol,
        'debt_token': state.debt_token,
        'staking': state.staking,
        'validator_identity': state.validator_identity,
        'paused': state.paused,
        'total_collateral': state.total_collateral,
        'total_debt': state.total_debt,
        'pending_to_delegate': state.pending_to_delegate,
        'total_delegated': state.total_delegated,
        'positions': {user: _position_dict(p) for user, p in state.positions.items()},
    }


def normalize_validator_identity(key: str) -> str:
    """Validate a tagged hex key and return it lower-cased; empty clears it."""
    if not key:
        return ""
    return parse_validator_key(key).to_hex()


# ============================================================================
# UNIT FACTORY
# ============================================================================

def create_vault_unit(
    symbol: str,
    address: str,
    owner: str,
    native_symbol: str,
    debt_token: str,
    staking: str,
    validator_identity: str = "",
    terms: Optional[VaultTerms] = None,
) -> Unit:
    """
    Create the vault unit.

    Args:
        symbol: Unit symbol (e.g., "VAULT")
        address: Wallet of the vault contract; holds liquid collateral and
                 is the debt token's minter
        owner: Identity allowed to administer the vault
        native_symbol: Collateral asset symbol
        debt_token: Debt token unit symbol
        staking: Staking subsystem unit symbol
        validator_identity: Tagged hex validator key ("" for none yet)
        terms: Vault configuration (defaults to the protocol constants)

    Raises:
        ValueError: If address or owner is empty, or address equals owner
        InvalidValidatorKey: If validator_identity is malformed
    """
    if not address or not address.strip():
        raise ValueError("address cannot be empty")
    canonical_identity(owner)
    if address == owner:
        raise ValueError("address and owner must be different")

    state = VaultState(
        address=address,
        owner=owner,
        native_symbol=native_symbol,
        debt_token=debt_token,
        staking=staking,
        validator_identity=normalize_validator_identity(validator_identity),
    )
    return Unit(
        symbol=symbol,
        name="Staked Collateral Vault",
        unit_type=UNIT_TYPE_VAULT,
        _frozen_state=_freeze_state(to_state_dict(terms or VaultTerms(), state)),
    )


# ============================================================================
# INTEREST ACCRUAL - Pure Functions
# ============================================================================

def calculate_interest(principal: int, elapsed_seconds: int, terms: VaultTerms) -> int:
    """
    Simple interest on principal over elapsed_seconds, truncated.

    PURE FUNCTION. Saturates to 0 rather than failing when the widened
    numerator leaves the 256-bit range, so accrual can never block a
    position.
    """
    if principal <= 0 or elapsed_seconds <= 0:
        return 0
    numerator = principal * terms.interest_rate_bps * elapsed_seconds
    if numerator > U256_MAX:
        return 0
    return numerator // (terms.seconds_per_year * BPS_DIVISOR)


def _elapsed_seconds(position: Position, now: datetime) -> int:
    if position.last_accrual_time is None:
        return 0
    return int((now - position.last_accrual_time).total_seconds())


def accrue(position: Position, now: datetime, terms: VaultTerms) -> Tuple[Position, int]:
    """
    Bring a position's principal up to now.

    Returns:
        (updated position, interest added). Without principal only the
        accrual time is refreshed. A clock at or behind the last accrual
        leaves the position unchanged.
    """
    if position.debt_principal == 0:
        return replace(position, last_accrual_time=now), 0
    elapsed = _elapsed_seconds(position, now)
    if elapsed <= 0:
        return position, 0
    interest = calculate_interest(position.debt_principal, elapsed, terms)
    new_principal = checked_add(position.debt_principal, interest, U256_MAX)
    return replace(position, debt_principal=new_principal, last_accrual_time=now), interest


def debt_with_interest(position: Position, now: datetime, terms: VaultTerms) -> int:
    """Side-effect-free current debt, used by every view."""
    return position.debt_principal + calculate_interest(
        position.debt_principal, _elapsed_seconds(position, now), terms
    )


def accrue_in_state(
    terms: VaultTerms,
    state: VaultState,
    user: str,
    now: datetime,
) -> Tuple[VaultState, Position, List[Any]]:
    """
    Accrue user's interest into both the position and total_debt.

    Returns:
        (new state, accrued position, events) where events holds an
        InterestAccrued record when interest was added.
    """
    position, interest = accrue(state.position(user), now, terms)
    events: List[Any] = []
    total_debt = state.total_debt
    if interest > 0:
        total_debt = checked_add(total_debt, interest, U256_MAX)
        events.append(InterestAccrued(user, interest, position.debt_principal))
    state = replace(state.with_position(user, position), total_debt=total_debt)
    return state, position, events


# ============================================================================
# LTV GUARD - Pure Functions
# ============================================================================

def max_borrowable(collateral_native: int, terms: VaultTerms) -> int:
    """Largest debt (fixed-point) that collateral_native supports."""
    return to_fixed_point(collateral_native) * terms.ltv_max_bps // BPS_DIVISOR


def assert_within_ltv(debt_fixed_point: int, collateral_native: int, terms: VaultTerms) -> None:
    """
    Raises:
        LtvExceeded: If debt_fixed_point exceeds max_borrowable(collateral_native)
    """
    limit = max_borrowable(collateral_native, terms)
    if debt_fixed_point > limit:
        raise LtvExceeded(f"debt {debt_fixed_point} exceeds limit {limit}")


def min_collateral_fixed_point(debt_fixed_point: int, terms: VaultTerms) -> int:
    return debt_fixed_point * BPS_DIVISOR // terms.ltv_max_bps


def max_withdrawable(collateral_native: int, debt_fixed_point: int, terms: VaultTerms) -> int:
    """
    Largest native amount that can leave while debt stays within the ceiling.

    Returns 0 when the collateral is already at or below the floor.
    """
    if collateral_native == 0:
        return 0
    if debt_fixed_point == 0:
        return collateral_native
    floor = min_collateral_fixed_point(debt_fixed_point, terms)
    collateral_fp = to_fixed_point(collateral_native)
    if collateral_fp <= floor:
        return 0
    return to_native(collateral_fp - floor)


def calculate_ltv_bps(debt_fixed_point: int, collateral_native: int) -> int:
    collateral_fp = to_fixed_point(collateral_native)
    if collateral_fp == 0:
        return 0
    return debt_fixed_point * BPS_DIVISOR // collateral_fp


def calculate_health_factor_bps(debt_fixed_point: int, collateral_native: int, terms: VaultTerms) -> int:
    if debt_fixed_point == 0:
        return HEALTH_FACTOR_MAX
    return max_borrowable(collateral_native, terms) * BPS_DIVISOR // debt_fixed_point


# ============================================================================
# AUTHORIZATION & PAUSE GATE
# ============================================================================

def require_not_paused(state: VaultState) -> None:
    if state.paused:
        raise ContractPaused("vault is paused")


def require_owner(state: VaultState, caller: str) -> None:
    if not same_entity(caller, state.owner):
        raise Unauthorized(f"{caller} is not the owner")


# ============================================================================
# TRANSACTION ASSEMBLY
# ============================================================================

def build_vault_transaction(
    view: LedgerView,
    symbol: str,
    old_raw: Dict[str, Any],
    terms: VaultTerms,
    new_state: VaultState,
    caller: str,
    event_type: str,
    moves: Optional[List[Move]] = None,
    other_changes: Optional[List[Optional[UnitStateChange]]] = None,
    events: Optional[List[Any]] = None,
    origin_type: OriginType = OriginType.USER_ACTION,
) -> PendingTransaction:
    """
    Wrap a vault state transition and its collaborator effects in one transaction.

    old_raw must be the exact state dict the transition was computed from;
    the ledger rejects the transaction if the vault changed in between.
    """
    changes = [UnitStateChange(unit=symbol, old_state=old_raw, new_state=to_state_dict(terms, new_state))]
    changes.extend(c for c in (other_changes or []) if c is not None)
    origin = TransactionOrigin(origin_type, caller, symbol, event_type)
    return build_transaction(view, moves or [], changes, origin, events)


# ============================================================================
# VIEWS
# ============================================================================

def get_position(view: LedgerView, symbol: str, user: str) -> PositionInfo:
    terms, state = load_vault(view, symbol)
    position = state.position(user)
    debt = debt_with_interest(position, view.current_time, terms)
    return PositionInfo(
        collateral_native=position.collateral,
        collateral_fixed_point=to_fixed_point(position.collateral),
        debt_fixed_point=debt,
        ltv_bps=calculate_ltv_bps(debt, position.collateral),
        health_factor_bps=calculate_health_factor_bps(debt, position.collateral, terms),
        pending_withdraw_native=position.pending_withdraw,
        status=position.status,
    )


def collateral_of(view: LedgerView, symbol: str, user: str) -> int:
    return load_vault(view, symbol)[1].position(user).collateral


def debt_of(view: LedgerView, symbol: str, user: str) -> int:
    terms, state = load_vault(view, symbol)
    return debt_with_interest(state.position(user), view.current_time, terms)


def ltv_of(view: LedgerView, symbol: str, user: str) -> int:
    return get_position(view, symbol, user).ltv_bps


def health_factor_of(view: LedgerView, symbol: str, user: str) -> int:
    return get_position(view, symbol, user).health_factor_bps


def pending_withdraw_of(view: LedgerView, symbol: str, user: str) -> int:
    return load_vault(view, symbol)[1].position(user).pending_withdraw


def max_withdraw_of(view: LedgerView, symbol: str, user: str) -> int:
    """Like withdraw_max() but never fails: 0 when nothing can be withdrawn."""
    terms, state = load_vault(view, symbol)
    position = state.position(user)
    debt = debt_with_interest(position, view.current_time, terms)
    return max_withdrawable(position.collateral, debt, terms)


def status_of(view: LedgerView, symbol: str, user: str) -> PositionStatus:
    return load_vault(view, symbol)[1].position(user).status


def liquid_balance(view: LedgerView, symbol: str) -> int:
    """Native balance the vault can pay out immediately."""
    state = load_vault(view, symbol)[1]
    return view.get_balance(state.address, state.native_symbol)


def total_delegated(view: LedgerView, symbol: str) -> int:
    return load_vault(view, symbol)[1].total_delegated


def delegated_amount(view: LedgerView, symbol: str) -> int:
    """Stake the staking subsystem reports for this vault at its validator."""
    state = load_vault(view, symbol)[1]
    if not state.validator_identity:
        return 0
    return staking_delegated_amount(view, state.staking, state.validator_identity, state.address)


def pending_to_delegate(view: LedgerView, symbol: str) -> int:
    return load_vault(view, symbol)[1].pending_to_delegate


def total_collateral(view: LedgerView, symbol: str) -> int:
    return load_vault(view, symbol)[1].total_collateral


def total_debt(view: LedgerView, symbol: str) -> int:
    return load_vault(view, symbol)[1].total_debt


def debt_token_address(view: LedgerView, symbol: str) -> str:
    return load_vault(view, symbol)[1].debt_token


def validator_identity(view: LedgerView, symbol: str) -> str:
    return load_vault(view, symbol)[1].validator_identity


def owner(view: LedgerView, symbol: str) -> str:
    return load_vault(view, symbol)[1].owner


def is_paused(view: LedgerView, symbol: str) -> bool:
    return load_vault(view, symbol)[1].paused


# ============================================================================
# INVARIANTS
# ============================================================================

def check_invariants(view: LedgerView, symbol: str) -> List[str]:
    """
    Structural soundness of the vault's bookkeeping.

    Returns:
        Human-readable violations; empty when sound. Checks non-negative
        amounts, pending_withdraw > 0 exactly while WITHDRAWING, an empty
        NONE position, and that collateral and recorded debt principal sum
        to total_collateral and total_debt.
    """
    _, state = load_vault(view, symbol)
    violations: List[str] = []
    collateral_sum = 0
    debt_sum = 0
    for user, p in sorted(state.positions.items()):
        collateral_sum += p.collateral
        debt_sum += p.debt_principal
        if p.collateral < 0 or p.debt_principal < 0 or p.pending_withdraw < 0:
            violations.append(f"{user}: negative amount")
        if (p.pending_withdraw > 0) != (p.status == PositionStatus.WITHDRAWING):
            violations.append(f"{user}: pending_withdraw={p.pending_withdraw} with status {p.status.name}")
        if p.status == PositionStatus.NONE and (p.collateral or p.debt_principal):
            violations.append(f"{user}: NONE position holds collateral or debt")
    if collateral_sum != state.total_collateral:
        violations.append(
            f"sum of collateral {collateral_sum} != total_collateral {state.total_collateral}"
        )
    if debt_sum != state.total_debt:
        violations.append(f"sum of debt principal {debt_sum} != total_debt {state.total_debt}")
    if min(state.total_debt, state.pending_to_delegate, state.total_delegated) < 0:
        violations.append("negative global aggregate")
    return violations
