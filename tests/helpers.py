"""
helpers.py - Shared constants and helpers for vault tests
"""

import copy
from datetime import datetime
from typing import Any, Dict, Tuple

from vault import Ledger, Move, build_transaction, SYSTEM_WALLET


START = datetime(2025, 1, 1)

# Tagged ED25519 and SECP256K1 validator keys
ED25519_KEY = "01" + "ab" * 32
SECP256K1_KEY = "02" + "cd" * 33

OWNER = "admin"
VAULT_ADDRESS = "vault"
POOL_WALLET = "AUCTION_pool"
USERS = ("alice", "bob", "carol")


def fund(ledger: Ledger, wallet: str, amount: int, symbol: str = "CSPR") -> None:
    """Issue native funds to a wallet from SYSTEM_WALLET."""
    ledger.execute(build_transaction(ledger, [
        Move(amount, symbol, SYSTEM_WALLET, wallet, "faucet")
    ]))


def snapshot(ledger: Ledger) -> Tuple[Dict[str, Dict[str, int]], Dict[str, Any]]:
    """Every balance and unit state, for before/after comparisons."""
    balances = {w: {u: q for u, q in b.items() if q} for w, b in ledger.balances.items()}
    states = {symbol: copy.deepcopy(unit.state) for symbol, unit in ledger.units.items()}
    return balances, states
