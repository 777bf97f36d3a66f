"""
conftest.py - Shared pytest fixtures for vault tests

Provides common fixtures used across unit, functional and conformance tests:
- Ledgers (empty, with the native asset)
- A deployed VaultContract with funded users, with and without a validator
- A lifecycle engine wired to the staking subsystem

Constants and helper functions live in tests/helpers.py.
"""

import pytest

from vault import (
    Ledger, VaultContract, LifecycleEngine,
    native_asset, staking_contract,
    UNIT_TYPE_STAKING, ONE_NATIVE,
)
from tests.helpers import START, OWNER, VAULT_ADDRESS, USERS, ED25519_KEY, fund


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no registrations."""
    return Ledger("test", START, verbose=False, test_mode=True)


@pytest.fixture
def native_ledger():
    """Ledger with the native asset and two wallets."""
    ledger = Ledger("test", START, verbose=False, test_mode=True)
    ledger.register_unit(native_asset())
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    return ledger


# =============================================================================
# VAULT FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Ledger with a deployed vault (no validator) and users holding 10,000 CSPR each."""
    ledger = Ledger("test", START, verbose=False, test_mode=True)
    VaultContract.deploy(ledger, address=VAULT_ADDRESS, owner=OWNER)
    for user in USERS:
        ledger.register_wallet(user)
        fund(ledger, user, 10_000 * ONE_NATIVE)
    return ledger


@pytest.fixture
def vault(ledger):
    """VaultContract for the default ledger fixture."""
    return VaultContract(ledger, "VAULT")


@pytest.fixture
def staked_vault(vault):
    """Vault with an ED25519 validator on record."""
    vault.set_validator_identity(OWNER, ED25519_KEY)
    return vault


@pytest.fixture
def engine(ledger):
    """Lifecycle engine polling the staking subsystem."""
    engine = LifecycleEngine(ledger)
    engine.register(UNIT_TYPE_STAKING, staking_contract)
    return engine
