"""
events.py - Fixed-shape records emitted by successful operations

Events ride on the PendingTransaction that produced them and reach
Ledger.event_log only when that transaction is applied.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime


# ============================================================================
# VAULT EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Deposited:
    user: str
    amount: int
    new_collateral: int


@dataclass(frozen=True, slots=True)
class Borrowed:
    user: str
    amount: int
    new_debt: int


@dataclass(frozen=True, slots=True)
class Repaid:
    user: str
    amount: int
    new_debt: int


@dataclass(frozen=True, slots=True)
class WithdrawRequested:
    user: str
    amount: int


@dataclass(frozen=True, slots=True)
class WithdrawFinalized:
    user: str
    amount: int


@dataclass(frozen=True, slots=True)
class DelegationBatched:
    amount: int


@dataclass(frozen=True, slots=True)
class UndelegationRequested:
    amount: int


@dataclass(frozen=True, slots=True)
class InterestAccrued:
    user: str
    interest: int
    new_debt: int


@dataclass(frozen=True, slots=True)
class Paused:
    by: str


@dataclass(frozen=True, slots=True)
class Unpaused:
    by: str


@dataclass(frozen=True, slots=True)
class ValidatorIdentitySet:
    by: str
    validator: str


# ============================================================================
# DEBT TOKEN EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Minted:
    recipient: str
    amount: int


@dataclass(frozen=True, slots=True)
class Burned:
    owner: str
    amount: int


@dataclass(frozen=True, slots=True)
class Transferred:
    sender: str
    recipient: str
    amount: int
    spender: str = ""


@dataclass(frozen=True, slots=True)
class AllowanceSet:
    owner: str
    spender: str
    allowance: int


@dataclass(frozen=True, slots=True)
class MinterSet:
    old_minter: str
    new_minter: str


# ============================================================================
# STAKING EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Delegated:
    delegator: str
    validator: str
    amount: int


@dataclass(frozen=True, slots=True)
class Undelegated:
    delegator: str
    validator: str
    amount: int
    release_time: datetime


@dataclass(frozen=True, slots=True)
class UnbondingReleased:
    delegator: str
    validator: str
    amount: int
