"""
Core types and pure functions for the staked collateral vault.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access, SmartContract for polling
2. Immutable data structures: Move, PendingTransaction, Transaction, Unit
3. Exceptions: LedgerError and the vault, token and staking error taxonomies
4. Constants: decimal scales, basis-point ratios, interest and delegation terms
5. Unit factories: the native network asset

All amounts are integers in the smallest unit of their scale. Native balances
carry NATIVE_DECIMALS places, debt token balances FIXED_POINT_DECIMALS places.

All functions in this module are pure and operate on read-only views.
No function can mutate ledger state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import copy
import hashlib
from typing import (
    Dict, List, Set, Optional, Callable, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and burning.
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

# Unit type constants (strings, not enum).
UNIT_TYPE_NATIVE = "NATIVE"
UNIT_TYPE_DEBT_TOKEN = "DEBT_TOKEN"
UNIT_TYPE_STAKING = "STAKING"
UNIT_TYPE_VAULT = "VAULT"

# Decimal scales. One native unit of collateral is NATIVE_TO_FIXED_POINT
# fixed-point units once converted.
NATIVE_DECIMALS = 9
FIXED_POINT_DECIMALS = 18
ONE_NATIVE = 10 ** NATIVE_DECIMALS
ONE_FIXED_POINT = 10 ** FIXED_POINT_DECIMALS
NATIVE_TO_FIXED_POINT = 10 ** (FIXED_POINT_DECIMALS - NATIVE_DECIMALS)

# Ratios are expressed in basis points.
BPS_DIVISOR = 10_000
LTV_MAX_BPS = 8_000
INTEREST_RATE_BPS = 200
SECONDS_PER_YEAR = 31_536_000

# Smallest amount the staking subsystem accepts in one delegation (500 whole units).
MIN_DELEGATION = 500 * ONE_NATIVE

# Integer widths of the host platform's amount types.
U64_MAX = 2 ** 64 - 1
U256_MAX = 2 ** 256 - 1
U512_MAX = 2 ** 512 - 1

# Reported health factor for a position without debt.
HEALTH_FACTOR_MAX = U64_MAX


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to quantity held by that wallet for a specific unit.
Positions = Dict[str, int]

# Mapping from unit symbol to quantity held in a single wallet.
BalanceMap = Dict[str, int]

# Internal state for a unit: configuration, per-user records, aggregates.
UnitState = Dict[str, Any]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Compute functions accept a LedgerView to declare their read-only intent.
    The Ledger class implements this protocol but also provides mutation
    methods. For testing, FakeView provides a truly immutable implementation.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str, unit_symbol: str) -> int:
        """
        Return the balance of a specific unit in a wallet.

        Returns 0 if the wallet holds none of the unit.
        """
        ...

    def get_unit_state(self, unit_symbol: str) -> UnitState:
        """Return a copy of the unit's internal state."""
        ...

    def get_positions(self, unit_symbol: str) -> Positions:
        """Return all non-zero positions for a unit across all wallets."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...

    def get_unit(self, symbol: str) -> 'Unit':
        """Return the Unit object for a given symbol."""
        ...


class SmartContract(Protocol):
    """
    Protocol for lifecycle-aware contracts.

    Contracts are polled by the LifecycleEngine with the current time and
    return a PendingTransaction, empty if nothing is due.
    """

    def check_lifecycle(
        self,
        view: LedgerView,
        symbol: str,
        timestamp: datetime,
    ) -> 'PendingTransaction':
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was validated and applied to the ledger.
    REJECTED: Transaction failed validation (registration, balance bounds,
              or stale unit state). Nothing was applied.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"           # Entry point called by a user
    ADMIN = "admin"                       # Owner-only administration
    LIFECYCLE = "lifecycle"               # Polled settlement (unbonding release)
    SYSTEM = "system"                     # Issuance and initial setup


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when attempting to operate on a unit that has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when attempting to operate on a wallet that has not been registered with the ledger."""
    pass


class TransactionRejected(LedgerError):
    """Raised by the contract facade when the ledger rejects a computed transaction."""
    pass


class VaultError(LedgerError):
    """
    Base of the vault's typed failures.

    Each subclass carries the numeric code the deployed contract reverts with,
    so callers can match on either the class or the code.
    """
    code: int = 0

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code}, {self.args[0]!r})"


class NoVault(VaultError):
    """Caller has no position."""
    code = 1


class VaultAlreadyExists(VaultError):
    code = 2


class InsufficientCollateral(VaultError):
    code = 3


class LtvExceeded(VaultError):
    """Resulting debt would exceed the loan-to-value ceiling."""
    code = 4


class InsufficientDebt(VaultError):
    code = 5


class InsufficientAllowance(VaultError):
    """The vault may not pull enough debt token from the caller."""
    code = 6


class WithdrawPending(VaultError):
    """A withdrawal is in flight; retry after finalize_withdraw."""
    code = 7


class NoWithdrawPending(VaultError):
    code = 8


class UnbondingNotComplete(VaultError):
    """Liquid balance does not yet cover the pending withdrawal; retry later."""
    code = 9


class BelowMinDeposit(VaultError):
    code = 10


class ContractPaused(VaultError):
    code = 11


class Unauthorized(VaultError):
    code = 12


class InvalidValidatorKey(VaultError):
    code = 13


class ZeroAmount(VaultError):
    code = 14


class Overflow(VaultError):
    code = 15


class InsufficientLiquidBalance(VaultError):
    """Caller cannot attach the native amount to the call."""
    code = 16


VAULT_ERRORS: Dict[int, type] = {
    cls.code: cls for cls in (
        NoVault, VaultAlreadyExists, InsufficientCollateral, LtvExceeded,
        InsufficientDebt, InsufficientAllowance, WithdrawPending,
        NoWithdrawPending, UnbondingNotComplete, BelowMinDeposit,
        ContractPaused, Unauthorized, InvalidValidatorKey, ZeroAmount,
        Overflow, InsufficientLiquidBalance,
    )
}


class TokenError(LedgerError):
    """Base exception for debt token failures."""
    pass


class TokenInsufficientBalance(TokenError):
    pass


class TokenInsufficientAllowance(TokenError):
    pass


class CannotTargetSelf(TokenError):
    """Owner and recipient (or spender) are the same account."""
    pass


class TokenUnauthorized(TokenError):
    """Caller is not the token's minter."""
    pass


class StakingError(LedgerError):
    """Raised by the staking subsystem on an invalid delegation request."""
    pass


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the caller (user wallet, owner, contract)
        unit_symbol: Symbol of the unit that produced this (if applicable)
        event_type: Entry point or lifecycle event (e.g., "BORROW", "UNBOND")
    """
    origin_type: OriginType
    source_id: str
    unit_symbol: Optional[str] = None
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.unit_symbol:
            parts.append(f"unit={self.unit_symbol}")
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


# ============================================================================
# UNIT STATE CHANGE
# ============================================================================

@dataclass(frozen=True, slots=True)
class UnitStateChange:
    """
    Record of a unit state change.

    old_state is the snapshot the change was computed from. The ledger
    rejects the change if the unit's current state no longer equals it.

    Attributes:
        unit: Symbol of the unit whose state changed
        old_state: Complete state before the change (dict or None)
        new_state: Complete state after the change (dict)
    """
    unit: str
    old_state: Any
    new_state: Any

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Fields that differ between old and new state, as (old, new) pairs."""
        old = self.old_state if isinstance(self.old_state, dict) else {}
        new = self.new_state if isinstance(self.new_state, dict) else {}
        changes = {}
        for key in set(old.keys()) | set(new.keys()):
            old_val = old.get(key)
            new_val = new.get(key)
            if old_val != new_val:
                changes[key] = (old_val, new_val)
        return changes


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: The amount to transfer, a positive integer in the unit's smallest scale.
        unit_symbol: The symbol of the unit being transferred.
        source: The wallet ID from which value is debited.
        dest: The wallet ID to which value is credited.
        contract_id: Identifier of the operation generating this move.
    """
    quantity: int
    unit_symbol: str
    source: str
    dest: str
    contract_id: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


def _canonicalize(value: Any) -> str:
    """
    Produce a canonical string representation of a value for hashing.

    Independent of dict insertion order and nesting depth.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"N:{value}"
    if isinstance(value, str):
        return f"S:{value}"
    if isinstance(value, datetime):
        return f"T:{value.isoformat()}"
    if isinstance(value, Enum):
        return f"E:{value.value}"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        serialized = ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items)
        return f"{{{serialized}}}"
    if isinstance(value, (list, tuple)):
        serialized = ",".join(_canonicalize(item) for item in value)
        return f"[{serialized}]"
    return f"R:{repr(value)}"


def _compute_intent_id(
    moves: Tuple[Move, ...],
    state_changes: Tuple[UnitStateChange, ...],
    origin: TransactionOrigin,
) -> str:
    """
    Compute a deterministic content hash for a transaction's intent.

    Same inputs always produce the same intent_id, regardless of dictionary
    key ordering or the order moves were listed in.
    """
    sorted_moves = tuple(sorted(
        moves,
        key=lambda m: (m.quantity, m.unit_symbol, m.source, m.dest, m.contract_id)
    ))

    content_parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.unit_symbol:
        content_parts.append(f"unit:{origin.unit_symbol}")
    if origin.event_type:
        content_parts.append(f"event:{origin.event_type}")

    for m in sorted_moves:
        content_parts.append(f"move:{m.quantity}|{m.unit_symbol}|{m.source}|{m.dest}|{m.contract_id}")

    for sc in sorted(state_changes, key=lambda s: s.unit):
        content_parts.append(
            f"state_change:{sc.unit}|{_canonicalize(sc.old_state)}|{_canonicalize(sc.new_state)}"
        )

    content = "|".join(content_parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction specification before execution - represents INTENT.

    Created by compute functions and submitted to the ledger for execution.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes (with old_state and new_state)
        origin: Who/what created this transaction and why
        timestamp: When this pending transaction was created
        events: Records emitted if, and only if, the transaction is applied
        intent_id: Content-addressable hash of the transaction intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    timestamp: datetime
    events: Tuple[Any, ...] = ()
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            computed_id = _compute_intent_id(self.moves, self.state_changes, self.origin)
            object.__setattr__(self, 'intent_id', computed_id)

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves and no state deltas."""
        return not self.moves and not self.state_changes

    def __repr__(self) -> str:
        return (
            f"PendingTransaction({len(self.moves)} moves, {len(self.state_changes)} deltas, "
            f"{len(self.events)} events, {self.origin})"
        )


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    state_changes: Optional[List[UnitStateChange]] = None,
    origin: Optional[TransactionOrigin] = None,
    events: Optional[List[Any]] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves, state deltas and events.

    This is the standard way to create transactions.

    Args:
        view: Read-only ledger view (provides current_time)
        moves: List of moves to include in the transaction
        state_changes: Optional list of UnitStateChange objects
        origin: Transaction origin (defaults to USER_ACTION origin)
        events: Optional event records to emit on success

    Returns:
        A PendingTransaction ready for execution

    Example:
        def compute_payment(view, symbol, payer, payee, amount):
            moves = [Move(amount, symbol, payer, payee, "payment")]
            return build_transaction(view, moves)
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.USER_ACTION,
            source_id="contract",
        )

    # Deep copy state changes to prevent mutation
    copied_changes: Tuple[UnitStateChange, ...] = ()
    if state_changes:
        copied_changes = tuple(
            UnitStateChange(
                unit=sc.unit,
                old_state=copy.deepcopy(sc.old_state),
                new_state=copy.deepcopy(sc.new_state),
            )
            for sc in state_changes
        )

    return PendingTransaction(
        moves=tuple(moves),
        state_changes=copied_changes,
        origin=origin,
        timestamp=view.current_time,
        events=tuple(events or ()),
    )


def empty_pending_transaction(view: LedgerView) -> PendingTransaction:
    """
    Create an empty PendingTransaction (no moves, no state changes).

    Use this when a compute function has nothing to do.
    """
    return PendingTransaction(
        moves=(),
        state_changes=(),
        origin=TransactionOrigin(OriginType.SYSTEM, "noop"),
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ledger state changes - represents FACT.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was created
        intent_id: Content hash from PendingTransaction
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed and logged
        sequence_number: Monotonic sequence within the ledger
        events: Event records emitted by this transaction
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_time: datetime
    sequence_number: int
    events: Tuple[Any, ...] = ()
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves and not self.state_changes:
            raise ValueError("Transaction must have moves or state_changes")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        w = 100  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   intent_id      : ' + self.intent_id)}│",
            f"│{pad('   execution_time : ' + str(self.execution_time))}│",
            f"│{pad('   sequence       : ' + str(self.sequence_number))}│",
            f"│{pad('   origin         : ' + str(self.origin))}│",
        ]
        lines.append(f"├{bar}┤")
        lines.append(f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│")
        for i, move in enumerate(self.moves):
            move_str = f"   [{i}] {move.quantity} {move.unit_symbol}: {move.source} → {move.dest}"
            lines.append(f"│{pad(move_str)}│")
        if self.state_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' State Changes (' + str(len(self.state_changes)) + '):')}│")
            for sc in self.state_changes:
                lines.append(f"│{pad('   [' + sc.unit + ']')}│")
                for field_name, (old_val, new_val) in sc.changed_fields().items():
                    lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        if self.events:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Events (' + str(len(self.events)) + '):')}│")
            for event in self.events:
                lines.append(f"│{pad('   ' + repr(event))}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


def _freeze_state(state: Optional[UnitState]) -> Tuple[Tuple[str, Any], ...]:
    """Convert a state dict to a tuple of (key, value) pairs sorted by key."""
    if not state:
        return ()
    return tuple(sorted(state.items()))


def _thaw_state(frozen_state: Tuple[Tuple[str, Any], ...]) -> UnitState:
    """Convert a frozen state representation back to a mutable dict."""
    return dict(frozen_state)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a unit (asset or contract) in the ledger.

    Attributes:
        symbol: Short identifier for the unit (e.g., "CSPR", "mUSD").
        name: Human-readable name for the unit.
        unit_type: Category of the unit (NATIVE, DEBT_TOKEN, STAKING, VAULT).
        min_balance: Minimum allowed balance in any wallet.
        max_balance: Maximum allowed balance in any wallet (None = unbounded).
        _frozen_state: Internal frozen state representation (tuple of key-value pairs).
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: int = 0
    max_balance: Optional[int] = None
    _frozen_state: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def state(self) -> UnitState:
        """Get the unit's state as a new dictionary."""
        return _thaw_state(self._frozen_state)


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def native_asset(symbol: str = "CSPR", name: str = "Casper") -> Unit:
    """
    Create the native network asset unit.

    Balances are integers with NATIVE_DECIMALS places and may not go
    negative. Supply enters the ledger from SYSTEM_WALLET.
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_NATIVE,
        min_balance=0,
        max_balance=U512_MAX,
        _frozen_state=_freeze_state({'decimals': NATIVE_DECIMALS}),
    )
