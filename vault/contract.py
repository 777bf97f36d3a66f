"""
contract.py - VaultContract: one deployed vault bound to a ledger

The facade is the vault's public surface. Each entry point calls the matching
pure compute function with the ledger as its view, executes the result, and
returns the emitted events. Precondition failures surface as the typed
VaultError/TokenError/StakingError raised by the compute function; a
transaction the ledger refuses surfaces as TransactionRejected. Either way
nothing has changed.

Example:
    ledger = Ledger("main", datetime(2025, 1, 1))
    vault = VaultContract.deploy(ledger, address="vault", owner="admin")
    ledger.register_wallet("alice")
    vault.deposit("alice", 1000 * ONE_NATIVE)
    vault.borrow("alice", 500 * ONE_FIXED_POINT)
"""

from __future__ import annotations
from datetime import timedelta
from typing import Any, Callable, List, Optional

from .core import (
    ExecuteResult, PendingTransaction,
    TransactionRejected, VaultAlreadyExists,
    native_asset,
)
from .ledger import Ledger
from .units import admin, debt_token, delegation, lending, vault, withdrawal
from .units.debt_token import create_debt_token_unit
from .units.staking import create_staking_unit, DEFAULT_UNBONDING_DELAY
from .units.vault import PositionInfo, PositionStatus, VaultTerms, create_vault_unit


class VaultContract:
    """
    A vault unit together with the debt token and staking unit it drives.

    Attributes:
        ledger: Ledger hosting every unit
        symbol: Vault unit symbol
        address: Vault wallet; holds liquid collateral and mints the debt token
        native_symbol, debt_token, staking: Collaborator unit symbols
    """

    def __init__(self, ledger: Ledger, symbol: str):
        self.ledger = ledger
        self.symbol = symbol
        _, state = vault.load_vault(ledger, symbol)
        self.address = state.address
        self.native_symbol = state.native_symbol
        self.debt_token = state.debt_token
        self.staking = state.staking

    @classmethod
    def deploy(
        cls,
        ledger: Ledger,
        address: str,
        owner: str,
        symbol: str = "VAULT",
        native_symbol: str = "CSPR",
        debt_token_symbol: str = "mCSPR",
        debt_token_name: str = "Minted CSPR",
        staking_symbol: str = "AUCTION",
        validator_identity: str = "",
        terms: Optional[VaultTerms] = None,
        unbonding_delay: timedelta = DEFAULT_UNBONDING_DELAY,
    ) -> VaultContract:
        """
        Register the vault and any collaborator not already on the ledger.

        A new debt token names the vault address as its minter. The staking
        pool wallet is "<staking_symbol>_pool".

        Raises:
            VaultAlreadyExists: If a unit named symbol is already registered
            InvalidValidatorKey: If validator_identity is malformed
            ValueError: For empty or conflicting address/owner
        """
        if symbol in ledger.units:
            raise VaultAlreadyExists(f"unit {symbol} is already registered")

        # Built before anything is registered so bad arguments leave the ledger untouched
        vault_unit = create_vault_unit(
            symbol, address, owner, native_symbol, debt_token_symbol, staking_symbol,
            validator_identity=validator_identity, terms=terms,
        )

        pool_wallet = f"{staking_symbol}_pool"
        for wallet in (address, owner, pool_wallet):
            if not ledger.is_registered(wallet):
                ledger.register_wallet(wallet)

        if native_symbol not in ledger.units:
            ledger.register_unit(native_asset(native_symbol))
        if debt_token_symbol not in ledger.units:
            ledger.register_unit(create_debt_token_unit(debt_token_symbol, debt_token_name, address))
        if staking_symbol not in ledger.units:
            ledger.register_unit(
                create_staking_unit(staking_symbol, pool_wallet, native_symbol, unbonding_delay)
            )
        ledger.register_unit(vault_unit)
        return cls(ledger, symbol)

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def _submit(self, pending: PendingTransaction) -> List[Any]:
        if self.ledger.execute(pending) == ExecuteResult.REJECTED:
            raise TransactionRejected(f"{self.symbol}: {pending.origin}")
        if self.ledger.verbose:
            for event in pending.events:
                print(f"  event: {event}")
        return list(pending.events)

    def _run(self, compute: Callable[..., PendingTransaction], *args) -> List[Any]:
        return self._submit(compute(self.ledger, self.symbol, *args))

    # ========================================================================
    # USER ENTRY POINTS
    # ========================================================================

    def deposit(self, caller: str, amount: int) -> List[Any]:
        return self._run(lending.compute_deposit, caller, amount)

    def add_collateral(self, caller: str, amount: int) -> List[Any]:
        return self._run(lending.compute_add_collateral, caller, amount)

    def borrow(self, caller: str, amount: int) -> List[Any]:
        return self._run(lending.compute_borrow, caller, amount)

    def repay(self, caller: str, amount: int) -> List[Any]:
        return self._run(lending.compute_repay, caller, amount)

    def repay_all(self, caller: str) -> List[Any]:
        return self._run(lending.compute_repay_all, caller)

    def request_withdraw(self, caller: str, amount: int) -> List[Any]:
        return self._run(withdrawal.compute_request_withdraw, caller, amount)

    def withdraw_max(self, caller: str) -> List[Any]:
        return self._run(withdrawal.compute_withdraw_max, caller)

    def finalize_withdraw(self, caller: str) -> List[Any]:
        return self._run(withdrawal.compute_finalize_withdraw, caller)

    # ========================================================================
    # OWNER ENTRY POINTS
    # ========================================================================

    def set_validator_identity(self, caller: str, key: str) -> List[Any]:
        return self._run(admin.compute_set_validator_identity, caller, key)

    def pause(self, caller: str) -> List[Any]:
        return self._run(admin.compute_pause, caller)

    def unpause(self, caller: str) -> List[Any]:
        return self._run(admin.compute_unpause, caller)

    def force_delegate(self, caller: str) -> List[Any]:
        return self._run(delegation.compute_force_delegate, caller)

    # ========================================================================
    # DEBT TOKEN CONVENIENCE
    # ========================================================================

    def approve(self, caller: str, amount: int) -> List[Any]:
        """Let the vault pull up to amount of caller's debt token (needed before repay)."""
        return self._submit(
            debt_token.compute_approve(self.ledger, self.debt_token, caller, self.address, amount)
        )

    def transfer(self, caller: str, recipient: str, amount: int) -> List[Any]:
        return self._submit(
            debt_token.compute_transfer(self.ledger, self.debt_token, caller, recipient, amount)
        )

    def token_balance(self, holder: str) -> int:
        return debt_token.balance_of(self.ledger, self.debt_token, holder)

    def native_balance(self, holder: str) -> int:
        return self.ledger.get_balance(holder, self.native_symbol)

    # ========================================================================
    # VIEWS
    # ========================================================================

    def get_position(self, user: str) -> PositionInfo:
        return vault.get_position(self.ledger, self.symbol, user)

    def collateral_of(self, user: str) -> int:
        return vault.collateral_of(self.ledger, self.symbol, user)

    def debt_of(self, user: str) -> int:
        return vault.debt_of(self.ledger, self.symbol, user)

    def ltv_of(self, user: str) -> int:
        return vault.ltv_of(self.ledger, self.symbol, user)

    def health_factor_of(self, user: str) -> int:
        return vault.health_factor_of(self.ledger, self.symbol, user)

    def pending_withdraw_of(self, user: str) -> int:
        return vault.pending_withdraw_of(self.ledger, self.symbol, user)

    def max_withdraw_of(self, user: str) -> int:
        return vault.max_withdraw_of(self.ledger, self.symbol, user)

    def status_of(self, user: str) -> PositionStatus:
        return vault.status_of(self.ledger, self.symbol, user)

    def liquid_balance(self) -> int:
        return vault.liquid_balance(self.ledger, self.symbol)

    def total_delegated(self) -> int:
        return vault.total_delegated(self.ledger, self.symbol)

    def delegated_amount(self) -> int:
        return vault.delegated_amount(self.ledger, self.symbol)

    def pending_to_delegate(self) -> int:
        return vault.pending_to_delegate(self.ledger, self.symbol)

    def total_collateral(self) -> int:
        return vault.total_collateral(self.ledger, self.symbol)

    def total_debt(self) -> int:
        return vault.total_debt(self.ledger, self.symbol)

    def debt_token_address(self) -> str:
        return vault.debt_token_address(self.ledger, self.symbol)

    def validator_identity(self) -> str:
        return vault.validator_identity(self.ledger, self.symbol)

    def owner(self) -> str:
        return vault.owner(self.ledger, self.symbol)

    def is_paused(self) -> bool:
        return vault.is_paused(self.ledger, self.symbol)

    def check_invariants(self) -> List[str]:
        return vault.check_invariants(self.ledger, self.symbol)
