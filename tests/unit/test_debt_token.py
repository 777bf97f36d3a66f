"""
test_debt_token.py - Unit tests for the debt token collaborator

Tests:
- Factory validation and metadata
- Minter-only mint/burn/set_minter, with alternate identity encodings
- Transfer, approve, saturating allowance changes, transfer_from
- TokenDraft composing several effects into one transaction
"""

import pytest
from datetime import datetime

from vault import (
    Ledger, ExecuteResult, native_asset,
    create_debt_token_unit, TokenDraft,
    compute_mint, compute_burn, compute_transfer, compute_approve,
    compute_increase_allowance, compute_decrease_allowance,
    compute_transfer_from, compute_set_minter,
    TransactionOrigin, OriginType,
    ONE_FIXED_POINT, U256_MAX, SYSTEM_WALLET,
    TokenInsufficientBalance, TokenInsufficientAllowance, CannotTargetSelf, TokenUnauthorized,
    Minted, Transferred, AllowanceSet, MinterSet,
)
from vault.units.debt_token import balance_of, allowance, total_supply, minter_of
from tests.fake_view import FakeView


DIGEST = "c3" * 32
MINTER = f"hash-{DIGEST}"


@pytest.fixture
def token_ledger():
    ledger = Ledger("token", datetime(2025, 1, 1), verbose=False, test_mode=True)
    ledger.register_unit(create_debt_token_unit("mCSPR", "Minted CSPR", MINTER))
    for wallet in ("alice", "bob", "carol", MINTER):
        ledger.register_wallet(wallet)
    return ledger


def _mint(ledger, recipient, amount):
    assert ledger.execute(compute_mint(ledger, "mCSPR", MINTER, recipient, amount)) == ExecuteResult.APPLIED


class TestCreateDebtToken:
    """create_debt_token_unit()."""

    def test_metadata(self, token_ledger):
        state = token_ledger.get_unit_state("mCSPR")
        assert state['decimals'] == 18
        assert state['total_supply'] == 0
        assert state['minter_key'] == f"contract:{DIGEST}"
        assert token_ledger.get_unit("mCSPR").max_balance == U256_MAX

    def test_empty_symbol(self):
        with pytest.raises(ValueError):
            create_debt_token_unit("", "x", MINTER)

    def test_empty_minter(self):
        with pytest.raises(ValueError):
            create_debt_token_unit("T", "x", "")


class TestMintBurn:
    """Minter-only supply changes."""

    def test_mint(self, token_ledger):
        _mint(token_ledger, "alice", 5 * ONE_FIXED_POINT)
        assert balance_of(token_ledger, "mCSPR", "alice") == 5 * ONE_FIXED_POINT
        assert total_supply(token_ledger, "mCSPR") == 5 * ONE_FIXED_POINT
        assert token_ledger.circulating_supply("mCSPR") == 5 * ONE_FIXED_POINT
        assert Minted("alice", 5 * ONE_FIXED_POINT) in token_ledger.event_log

    @pytest.mark.parametrize("caller", [
        f"contract-package-{DIGEST}",
        f"entity-contract-{DIGEST}",
        DIGEST,
    ])
    def test_minter_recognised_under_any_encoding(self, token_ledger, caller):
        pending = compute_mint(token_ledger, "mCSPR", caller, "alice", 1)
        assert token_ledger.execute(pending) == ExecuteResult.APPLIED

    def test_non_minter_rejected(self, token_ledger):
        with pytest.raises(TokenUnauthorized):
            compute_mint(token_ledger, "mCSPR", "alice", "alice", 1)

    def test_account_with_same_digest_is_not_minter(self, token_ledger):
        with pytest.raises(TokenUnauthorized):
            compute_mint(token_ledger, "mCSPR", f"account-hash-{DIGEST}", "alice", 1)

    def test_burn(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        token_ledger.execute(compute_burn(token_ledger, "mCSPR", MINTER, "alice", 4))
        assert balance_of(token_ledger, "mCSPR", "alice") == 6
        assert total_supply(token_ledger, "mCSPR") == 6

    def test_burn_more_than_balance(self, token_ledger):
        _mint(token_ledger, "alice", 3)
        with pytest.raises(TokenInsufficientBalance):
            compute_burn(token_ledger, "mCSPR", MINTER, "alice", 4)

    def test_burn_by_non_minter(self, token_ledger):
        _mint(token_ledger, "alice", 3)
        with pytest.raises(TokenUnauthorized):
            compute_burn(token_ledger, "mCSPR", "alice", "alice", 1)

    def test_set_minter(self, token_ledger):
        token_ledger.execute(compute_set_minter(token_ledger, "mCSPR", MINTER, "bob"))
        assert minter_of(token_ledger, "mCSPR") == "bob"
        assert MinterSet(MINTER, "bob") in token_ledger.event_log
        with pytest.raises(TokenUnauthorized):
            compute_mint(token_ledger, "mCSPR", MINTER, "alice", 1)

    def test_set_minter_stores_canonical_key(self, token_ledger):
        other = "ab" * 32
        token_ledger.execute(compute_set_minter(token_ledger, "mCSPR", MINTER, f"account-hash-{other}"))
        assert token_ledger.get_unit_state("mCSPR")['minter_key'] == f"account:{other}"
        pending = compute_mint(token_ledger, "mCSPR", f"entity-account-{other}", "alice", 1)
        assert token_ledger.execute(pending) == ExecuteResult.APPLIED

    def test_minter_check_uses_stored_key(self, token_ledger):
        state = token_ledger.get_unit_state("mCSPR")
        state['minter_key'] = "name:bob"
        draft = TokenDraft(FakeView({}, states={'mCSPR': state}), "mCSPR")
        assert draft.is_minter("bob")
        assert not draft.is_minter(MINTER)

    def test_set_minter_by_non_minter(self, token_ledger):
        with pytest.raises(TokenUnauthorized):
            compute_set_minter(token_ledger, "mCSPR", "alice", "alice")


class TestTransfers:
    """transfer / approve / transfer_from."""

    def test_transfer(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        token_ledger.execute(compute_transfer(token_ledger, "mCSPR", "alice", "bob", 4))
        assert balance_of(token_ledger, "mCSPR", "bob") == 4
        assert Transferred("alice", "bob", 4) in token_ledger.event_log

    def test_transfer_to_self(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        with pytest.raises(CannotTargetSelf):
            compute_transfer(token_ledger, "mCSPR", "alice", "alice", 1)

    def test_transfer_insufficient(self, token_ledger):
        with pytest.raises(TokenInsufficientBalance):
            compute_transfer(token_ledger, "mCSPR", "alice", "bob", 1)

    def test_approve(self, token_ledger):
        token_ledger.execute(compute_approve(token_ledger, "mCSPR", "alice", "bob", 7))
        assert allowance(token_ledger, "mCSPR", "alice", "bob") == 7
        assert AllowanceSet("alice", "bob", 7) in token_ledger.event_log

    def test_approve_self(self, token_ledger):
        with pytest.raises(CannotTargetSelf):
            compute_approve(token_ledger, "mCSPR", "alice", "alice", 7)

    def test_increase_allowance_saturates(self, token_ledger):
        token_ledger.execute(compute_approve(token_ledger, "mCSPR", "alice", "bob", U256_MAX - 1))
        token_ledger.execute(compute_increase_allowance(token_ledger, "mCSPR", "alice", "bob", 10))
        assert allowance(token_ledger, "mCSPR", "alice", "bob") == U256_MAX

    def test_decrease_allowance_saturates(self, token_ledger):
        token_ledger.execute(compute_approve(token_ledger, "mCSPR", "alice", "bob", 5))
        token_ledger.execute(compute_decrease_allowance(token_ledger, "mCSPR", "alice", "bob", 10))
        assert allowance(token_ledger, "mCSPR", "alice", "bob") == 0

    def test_transfer_from(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        token_ledger.execute(compute_approve(token_ledger, "mCSPR", "alice", "bob", 6))
        pending = compute_transfer_from(token_ledger, "mCSPR", "bob", "alice", "carol", 4)
        assert token_ledger.execute(pending) == ExecuteResult.APPLIED
        assert balance_of(token_ledger, "mCSPR", "carol") == 4
        assert allowance(token_ledger, "mCSPR", "alice", "bob") == 2
        assert Transferred("alice", "carol", 4, spender="bob") in token_ledger.event_log

    def test_transfer_from_over_allowance(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        token_ledger.execute(compute_approve(token_ledger, "mCSPR", "alice", "bob", 3))
        with pytest.raises(TokenInsufficientAllowance):
            compute_transfer_from(token_ledger, "mCSPR", "bob", "alice", "carol", 4)

    def test_transfer_from_owner_to_self(self, token_ledger):
        with pytest.raises(CannotTargetSelf):
            compute_transfer_from(token_ledger, "mCSPR", "bob", "alice", "alice", 1)

    def test_transfer_from_zero_is_noop(self, token_ledger):
        pending = compute_transfer_from(token_ledger, "mCSPR", "bob", "alice", "carol", 0)
        assert pending.is_empty()


class TestTokenDraft:
    """Several effects against one snapshot."""

    def test_transfer_then_burn_sees_drafted_balance(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        token_ledger.execute(compute_approve(token_ledger, "mCSPR", "alice", MINTER, 10))

        draft = TokenDraft(token_ledger, "mCSPR")
        draft.transfer_from(MINTER, "alice", MINTER, 10)
        draft.burn(MINTER, MINTER, 10)
        assert draft.balance_of(MINTER) == 0

        origin = TransactionOrigin(OriginType.USER_ACTION, "alice", "mCSPR", "REPAY")
        assert token_ledger.execute(draft.to_transaction(origin)) == ExecuteResult.APPLIED
        assert balance_of(token_ledger, "mCSPR", "alice") == 0
        assert total_supply(token_ledger, "mCSPR") == 0
        assert token_ledger.get_balance(SYSTEM_WALLET, "mCSPR") == 0

    def test_unchanged_state_gives_no_state_change(self, token_ledger):
        _mint(token_ledger, "alice", 10)
        draft = TokenDraft(token_ledger, "mCSPR")
        draft.transfer("alice", "bob", 1)
        assert draft.state_change() is None
        assert len(draft.moves) == 1
