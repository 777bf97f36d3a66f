"""
vault - Staked Collateral Vault

Users lock the native network asset as collateral and borrow a synthetic
debt token against it, up to an 80% loan-to-value ceiling, at 2% simple
annual interest. Withdrawals are two-phase because collateral is delegated
to a validator and has to unbond before it can be paid out.

Usage:
    from datetime import datetime
    from vault import Ledger, VaultContract, LifecycleEngine, ONE_NATIVE, ONE_FIXED_POINT
    from vault import Move, build_transaction, SYSTEM_WALLET
    from vault import UNIT_TYPE_STAKING, staking_contract

    ledger = Ledger("main", datetime(2025, 1, 1))
    vault = VaultContract.deploy(ledger, address="vault", owner="admin")
    ledger.register_wallet("alice")

    # Fund alice via SYSTEM_WALLET (proper issuance)
    ledger.execute(build_transaction(ledger, [
        Move(1000 * ONE_NATIVE, "CSPR", SYSTEM_WALLET, "alice", "faucet")
    ]))

    vault.deposit("alice", 1000 * ONE_NATIVE)
    vault.borrow("alice", 800 * ONE_FIXED_POINT)   # at the 80% ceiling

    # Stake moves on its own clock
    engine = LifecycleEngine(ledger)
    engine.register(UNIT_TYPE_STAKING, staking_contract)
    engine.step(datetime(2025, 1, 2))
"""

# Core types
from .core import (
    LedgerView,
    SmartContract,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    empty_pending_transaction,
    Unit,
    UnitStateChange,
    ExecuteResult,
    native_asset,
    SYSTEM_WALLET,
    UNIT_TYPE_NATIVE,
    UNIT_TYPE_DEBT_TOKEN,
    UNIT_TYPE_STAKING,
    UNIT_TYPE_VAULT,
    NATIVE_DECIMALS,
    FIXED_POINT_DECIMALS,
    ONE_NATIVE,
    ONE_FIXED_POINT,
    NATIVE_TO_FIXED_POINT,
    BPS_DIVISOR,
    LTV_MAX_BPS,
    INTEREST_RATE_BPS,
    SECONDS_PER_YEAR,
    MIN_DELEGATION,
    U256_MAX,
    U512_MAX,
    HEALTH_FACTOR_MAX,
)

# Errors
from .core import (
    LedgerError,
    UnitNotRegistered,
    WalletNotRegistered,
    TransactionRejected,
    VaultError,
    VAULT_ERRORS,
    NoVault,
    VaultAlreadyExists,
    InsufficientCollateral,
    LtvExceeded,
    InsufficientDebt,
    InsufficientAllowance,
    WithdrawPending,
    NoWithdrawPending,
    UnbondingNotComplete,
    BelowMinDeposit,
    ContractPaused,
    Unauthorized,
    InvalidValidatorKey,
    ZeroAmount,
    Overflow,
    InsufficientLiquidBalance,
    TokenError,
    TokenInsufficientBalance,
    TokenInsufficientAllowance,
    CannotTargetSelf,
    TokenUnauthorized,
    StakingError,
)

# Ledger
from .ledger import Ledger

# Amounts
from .amounts import (
    checked_add,
    checked_sub,
    checked_mul,
    to_fixed_point,
    to_native,
    format_native,
    format_fixed_point,
    parse_native,
)

# Identity and keys
from .identity import Identity, canonical_identity, same_entity
from .keys import ValidatorKey, parse_validator_key

# Events
from .events import (
    Deposited,
    Borrowed,
    Repaid,
    WithdrawRequested,
    WithdrawFinalized,
    DelegationBatched,
    UndelegationRequested,
    InterestAccrued,
    Paused,
    Unpaused,
    ValidatorIdentitySet,
    Minted,
    Burned,
    Transferred,
    AllowanceSet,
    MinterSet,
    Delegated,
    Undelegated,
    UnbondingReleased,
)

# Units
from .units import (
    PositionStatus, VaultTerms, Position, VaultState, PositionInfo,
    create_vault_unit, load_vault, to_state_dict, from_state_dict, position_key,
    calculate_interest, accrue, debt_with_interest,
    max_borrowable, max_withdrawable, calculate_ltv_bps, calculate_health_factor_bps,
    get_position, check_invariants,
    compute_deposit, compute_add_collateral, compute_borrow,
    compute_repay, compute_repay_all,
    compute_request_withdraw, compute_withdraw_max, compute_finalize_withdraw,
    batch_delegate, compute_force_delegate,
    compute_pause, compute_unpause, compute_set_validator_identity,
    TokenDraft, create_debt_token_unit,
    compute_transfer, compute_approve, compute_increase_allowance,
    compute_decrease_allowance, compute_transfer_from,
    compute_mint, compute_burn, compute_set_minter,
    DEFAULT_UNBONDING_DELAY, StakingDraft, create_staking_unit,
    compute_delegate, compute_undelegate, compute_unbonding_release,
    unbonding_of, staking_contract,
)
from .units import __all__ as _units_all

# Contract facade and lifecycle
from .contract import VaultContract
from .lifecycle_engine import LifecycleEngine

__all__ = [
    # Core
    'LedgerView', 'SmartContract', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'build_transaction', 'empty_pending_transaction',
    'Unit', 'UnitStateChange', 'ExecuteResult', 'native_asset', 'SYSTEM_WALLET',
    'UNIT_TYPE_NATIVE', 'UNIT_TYPE_DEBT_TOKEN', 'UNIT_TYPE_STAKING', 'UNIT_TYPE_VAULT',
    'NATIVE_DECIMALS', 'FIXED_POINT_DECIMALS', 'ONE_NATIVE', 'ONE_FIXED_POINT',
    'NATIVE_TO_FIXED_POINT', 'BPS_DIVISOR', 'LTV_MAX_BPS', 'INTEREST_RATE_BPS',
    'SECONDS_PER_YEAR', 'MIN_DELEGATION', 'U256_MAX', 'U512_MAX', 'HEALTH_FACTOR_MAX',
    # Errors
    'LedgerError', 'UnitNotRegistered', 'WalletNotRegistered', 'TransactionRejected',
    'VaultError', 'VAULT_ERRORS', 'NoVault', 'VaultAlreadyExists',
    'InsufficientCollateral', 'LtvExceeded', 'InsufficientDebt', 'InsufficientAllowance',
    'WithdrawPending', 'NoWithdrawPending', 'UnbondingNotComplete', 'BelowMinDeposit',
    'ContractPaused', 'Unauthorized', 'InvalidValidatorKey', 'ZeroAmount', 'Overflow',
    'InsufficientLiquidBalance',
    'TokenError', 'TokenInsufficientBalance', 'TokenInsufficientAllowance',
    'CannotTargetSelf', 'TokenUnauthorized', 'StakingError',
    # Ledger
    'Ledger',
    # Amounts
    'checked_add', 'checked_sub', 'checked_mul', 'to_fixed_point', 'to_native',
    'format_native', 'format_fixed_point', 'parse_native',
    # Identity and keys
    'Identity', 'canonical_identity', 'same_entity', 'ValidatorKey', 'parse_validator_key',
    # Events
    'Deposited', 'Borrowed', 'Repaid', 'WithdrawRequested', 'WithdrawFinalized',
    'DelegationBatched', 'UndelegationRequested', 'InterestAccrued',
    'Paused', 'Unpaused', 'ValidatorIdentitySet',
    'Minted', 'Burned', 'Transferred', 'AllowanceSet', 'MinterSet',
    'Delegated', 'Undelegated', 'UnbondingReleased',
    # Contract and lifecycle
    'VaultContract', 'LifecycleEngine',
] + list(_units_all)

__version__ = '1.0.0'
