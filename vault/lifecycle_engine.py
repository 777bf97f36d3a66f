"""
lifecycle_engine.py - Lifecycle Engine

Drives the parts of the system that move on their own clock, such as the
staking subsystem releasing matured unbonding entries.

Execution order each step():
1. Advance ledger time
2. Poll every registered smart contract, in unit symbol order
3. Repeat until a pass fires nothing (cascading effects)

The transaction log is the audit trail - no separate event status tracking needed.
"""

from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional

from .core import (
    PendingTransaction, Transaction,
    ExecuteResult, LedgerError,
    SmartContract,
)
from .ledger import Ledger


class LifecycleEngine:
    """
    Polls smart contracts registered per unit type.

    Contracts can be:
    - Objects implementing the SmartContract protocol
    - Callables with signature: (view, symbol, timestamp) -> PendingTransaction
    """

    def __init__(
        self,
        ledger: Ledger,
        contracts: Optional[Dict[str, SmartContract]] = None,
    ):
        self.ledger = ledger
        self.contracts: Dict[str, SmartContract] = contracts or {}

        # Safety limit for cascading events
        self.max_passes = 10
        self.verbose = ledger.verbose

    def register(self, unit_type: str, contract: SmartContract) -> None:
        """
        Register a smart contract for a unit type.

        Args:
            unit_type: Type of unit (e.g., UNIT_TYPE_STAKING)
            contract: SmartContract implementation (callable or object with check_lifecycle)
        """
        self.contracts[unit_type] = contract

    def step(self, timestamp: datetime) -> List[Transaction]:
        """
        Advance time and execute everything that has become due.

        Returns:
            List of executed transactions

        Raises:
            LedgerError: If a contract returns something other than a
                PendingTransaction, or the ledger rejects its transaction
        """
        self.ledger.advance_time(timestamp)
        executed: List[Transaction] = []

        for _ in range(self.max_passes):
            pass_executed = self._process_smart_contracts(timestamp)
            executed.extend(pass_executed)
            if not pass_executed:
                break

        return executed

    def _process_smart_contracts(self, timestamp: datetime) -> List[Transaction]:
        executed: List[Transaction] = []

        for symbol in sorted(self.ledger.units.keys()):
            unit = self.ledger.units[symbol]
            contract = self.contracts.get(unit.unit_type)
            if not contract:
                continue

            if hasattr(contract, 'check_lifecycle'):
                pending = contract.check_lifecycle(self.ledger, symbol, timestamp)
            else:
                pending = contract(self.ledger, symbol, timestamp)

            if not isinstance(pending, PendingTransaction):
                raise LedgerError(
                    f"Contract for {symbol} must return PendingTransaction, got {type(pending)}"
                )
            if pending.is_empty():
                continue

            if self.verbose:
                print(f"[LIFECYCLE] {symbol} at {timestamp}")

            exec_result = self.ledger.execute(pending)
            if exec_result == ExecuteResult.REJECTED:
                raise LedgerError(f"Lifecycle event failed for {symbol}: contract execution rejected")
            if self.ledger.transaction_log:
                executed.append(self.ledger.transaction_log[-1])

        return executed

    def run(self, timestamps: List[datetime]) -> List[Transaction]:
        """Step through each timestamp in order and return every executed transaction."""
        all_transactions: List[Transaction] = []
        for timestamp in timestamps:
            all_transactions.extend(self.step(timestamp))
        return all_transactions
