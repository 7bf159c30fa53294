"""
Hive Economy Simulator - Economy Ledger
=========================================
The currency balance. Core subsystems only ever earn; the purchase layer is
the only spender.
"""

import logging
from typing import Dict, Optional

from hive_sim.errors import InvalidArgument
from hive_sim.events import BalanceChanged, EventQueue

logger = logging.getLogger(__name__)


class EconomyLedger:
    def __init__(self, starting_balance: float = 0.0, events: Optional[EventQueue] = None):
        if starting_balance < 0:
            raise InvalidArgument(f"starting balance cannot be negative: {starting_balance}")
        self.events = events
        self._starting_balance = starting_balance
        self._balance = starting_balance
        self._total_earned = 0.0
        self._total_spent = 0.0
        self._by_source: Dict[str, float] = {}
        self._by_category: Dict[str, float] = {}

    def balance(self) -> float:
        return self._balance

    def can_afford(self, amount: float) -> bool:
        return amount <= self._balance

    def earn(self, amount: float, source: Optional[str] = None):
        if amount <= 0:
            raise InvalidArgument(f"earn amount must be positive, got {amount}")
        self._balance += amount
        self._total_earned += amount
        if source is not None:
            self._by_source[source] = self._by_source.get(source, 0.0) + amount
        logger.info("Earned %.2f%s, balance %.2f", amount,
                    f" from {source}" if source else "", self._balance)
        self._emit()

    def try_spend(self, amount: float, category: Optional[str] = None) -> bool:
        """Deduct `amount` if affordable. Returns False with no change otherwise.

        `category` labels the purchase for `spending_by_category()`.
        """
        if amount < 0:
            raise InvalidArgument(f"spend amount cannot be negative: {amount}")
        if not self.can_afford(amount):
            logger.debug("Cannot afford %.2f (balance %.2f)", amount, self._balance)
            return False
        self._balance -= amount
        self._total_spent += amount
        if category is not None:
            self._by_category[category] = self._by_category.get(category, 0.0) + amount
        logger.info("Spent %.2f%s, balance %.2f", amount,
                    f" on {category}" if category else "", self._balance)
        self._emit()
        return True

    def set_balance(self, amount: float):
        if amount < 0:
            raise InvalidArgument(f"balance cannot be negative: {amount}")
        self._balance = amount
        self._emit()

    @property
    def total_earned(self) -> float:
        return self._total_earned

    @property
    def total_spent(self) -> float:
        return self._total_spent

    def earnings_by_source(self) -> Dict[str, float]:
        return dict(self._by_source)

    def spending_by_category(self) -> Dict[str, float]:
        return dict(self._by_category)

    def reset(self):
        self._balance = self._starting_balance
        self._total_earned = 0.0
        self._total_spent = 0.0
        self._by_source.clear()
        self._by_category.clear()
        self._emit()

    def _emit(self):
        if self.events is not None:
            self.events.push(BalanceChanged(balance=self._balance))
