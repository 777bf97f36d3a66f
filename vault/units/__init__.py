"""
Units module - The vault and its simulated collaborators.

- vault: position ledger, interest, LTV guard and views
- lending / withdrawal / delegation / admin: vault entry points
- debt_token: the synthetic token minted against collateral
- staking: the staking subsystem with delayed unbonding

Unit factories and compute functions are re-exported here for convenience.
"""

# Vault state and pure calculations
from .vault import (
    PositionStatus,
    VaultTerms,
    Position,
    VaultState,
    PositionInfo,
    create_vault_unit,
    load_vault,
    to_state_dict,
    from_state_dict,
    position_key,
    calculate_interest,
    accrue,
    debt_with_interest,
    max_borrowable,
    max_withdrawable,
    calculate_ltv_bps,
    calculate_health_factor_bps,
    get_position,
    check_invariants,
)

# Vault entry points
from .lending import (
    compute_deposit,
    compute_add_collateral,
    compute_borrow,
    compute_repay,
    compute_repay_all,
)
from .withdrawal import (
    compute_request_withdraw,
    compute_withdraw_max,
    compute_finalize_withdraw,
)
from .delegation import (
    batch_delegate,
    compute_force_delegate,
)
from .admin import (
    compute_pause,
    compute_unpause,
    compute_set_validator_identity,
)

# Debt token
from .debt_token import (
    TokenDraft,
    create_debt_token_unit,
    compute_transfer,
    compute_approve,
    compute_increase_allowance,
    compute_decrease_allowance,
    compute_transfer_from,
    compute_mint,
    compute_burn,
    compute_set_minter,
)

# Staking
from .staking import (
    DEFAULT_UNBONDING_DELAY,
    StakingDraft,
    create_staking_unit,
    compute_delegate,
    compute_undelegate,
    compute_unbonding_release,
    unbonding_of,
    staking_contract,
)

__all__ = [
    # Vault
    'PositionStatus', 'VaultTerms', 'Position', 'VaultState', 'PositionInfo',
    'create_vault_unit', 'load_vault', 'to_state_dict', 'from_state_dict', 'position_key',
    'calculate_interest', 'accrue', 'debt_with_interest',
    'max_borrowable', 'max_withdrawable', 'calculate_ltv_bps', 'calculate_health_factor_bps',
    'get_position', 'check_invariants',
    'compute_deposit', 'compute_add_collateral', 'compute_borrow',
    'compute_repay', 'compute_repay_all',
    'compute_request_withdraw', 'compute_withdraw_max', 'compute_finalize_withdraw',
    'batch_delegate', 'compute_force_delegate',
    'compute_pause', 'compute_unpause', 'compute_set_validator_identity',
    # Debt token
    'TokenDraft', 'create_debt_token_unit',
    'compute_transfer', 'compute_approve', 'compute_increase_allowance',
    'compute_decrease_allowance', 'compute_transfer_from',
    'compute_mint', 'compute_burn', 'compute_set_minter',
    # Staking
    'DEFAULT_UNBONDING_DELAY', 'StakingDraft', 'create_staking_unit',
    'compute_delegate', 'compute_undelegate', 'compute_unbonding_release',
    'unbonding_of', 'staking_contract',
]
