"""
Hive Economy Simulator - Storage Ledger
=========================================
Capacity-bounded, multi-commodity inventory for the hub.

Deliveries beyond capacity are discarded and counted, never silently lost.
Consumption is all-or-nothing.
"""

import logging
import math
from typing import Dict, Mapping, Optional

from hive_sim.constants import DEFAULT_STORAGE_CAPACITY
from hive_sim.errors import InsufficientStock, InvalidArgument
from hive_sim.events import EventQueue, OverflowDiscarded
from hive_sim.models import ReceiveReport

logger = logging.getLogger(__name__)


class StorageLedger:
    def __init__(
        self,
        default_capacity: int = DEFAULT_STORAGE_CAPACITY,
        capacities: Optional[Mapping[str, int]] = None,
        events: Optional[EventQueue] = None,
        name: str = "hub",
    ):
        if default_capacity < 0:
            raise InvalidArgument(f"default capacity cannot be negative: {default_capacity}")
        self.name = name
        self.events = events
        self.default_capacity = default_capacity

        self._quantities: Dict[str, int] = {}
        self._initial_capacities: Dict[str, int] = dict(capacities or {})
        self._base_capacities: Dict[str, int] = dict(self._initial_capacities)
        self._capacity_modifier = 1.0
        self._discarded: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def quantity(self, commodity: str) -> int:
        return self._quantities.get(commodity, 0)

    def base_capacity(self, commodity: str) -> int:
        return self._base_capacities.get(commodity, self.default_capacity)

    def capacity(self, commodity: str) -> int:
        """Effective capacity after the seasonal modifier."""
        base = self.base_capacity(commodity)
        if self._capacity_modifier == 1.0 or base <= 0:
            return base
        return max(1, math.floor(base * self._capacity_modifier))

    @property
    def capacity_modifier(self) -> float:
        return self._capacity_modifier

    def free_space(self, commodity: str) -> int:
        return max(0, self.capacity(commodity) - self.quantity(commodity))

    def snapshot(self) -> Dict[str, int]:
        """Copy of current stock, safe to mutate."""
        return dict(self._quantities)

    def total_discarded(self, commodity: Optional[str] = None) -> int:
        if commodity is not None:
            return self._discarded.get(commodity, 0)
        return sum(self._discarded.values())

    def discards(self) -> Dict[str, int]:
        return dict(self._discarded)

    def can_consume(self, requirements: Mapping[str, int]) -> bool:
        return all(self.quantity(c) >= qty for c, qty in requirements.items())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def receive(self, commodity: str, amount: int) -> ReceiveReport:
        """Add up to the free space; report the remainder as discarded."""
        if amount <= 0:
            raise InvalidArgument(f"receive amount must be positive, got {amount}")

        accepted = min(amount, self.free_space(commodity))
        discarded = amount - accepted

        if accepted:
            self._quantities[commodity] = self.quantity(commodity) + accepted
        if discarded:
            self._discarded[commodity] = self._discarded.get(commodity, 0) + discarded
            logger.warning("%s storage full for %s: discarded %d (%d/%d)",
                           self.name, commodity, discarded,
                           self.quantity(commodity), self.capacity(commodity))
            if self.events is not None:
                self.events.push(OverflowDiscarded(commodity=commodity, amount=discarded))

        return ReceiveReport(commodity=commodity, accepted=accepted, discarded=discarded)

    def consume(self, commodity: str, amount: int):
        """Remove `amount` or raise InsufficientStock without touching anything."""
        if amount <= 0:
            raise InvalidArgument(f"consume amount must be positive, got {amount}")
        have = self.quantity(commodity)
        if have < amount:
            raise InsufficientStock(commodity, amount, have)
        self._quantities[commodity] = have - amount

    def consume_many(self, requirements: Mapping[str, int]):
        """Consume several commodities at once; all or nothing."""
        for commodity, qty in requirements.items():
            if qty <= 0:
                raise InvalidArgument(f"consume amount must be positive, got {qty} {commodity}")
            have = self.quantity(commodity)
            if have < qty:
                raise InsufficientStock(commodity, qty, have)
        for commodity, qty in requirements.items():
            self._quantities[commodity] -= qty

    def set_capacity(self, commodity: str, capacity: int):
        """Set base capacity. Shrinking never destroys stock already held."""
        if capacity < 0:
            raise InvalidArgument(f"capacity cannot be negative: {capacity}")
        self._base_capacities[commodity] = capacity
        if self.quantity(commodity) > self.capacity(commodity):
            logger.info("%s capacity for %s now %d, holding %d over-cap units",
                        self.name, commodity, self.capacity(commodity),
                        self.quantity(commodity) - self.capacity(commodity))

    def upgrade_capacity(self, commodity: str, extra: int):
        if extra <= 0:
            raise InvalidArgument(f"capacity upgrade must be positive, got {extra}")
        self.set_capacity(commodity, self.base_capacity(commodity) + extra)

    def set_capacity_modifier(self, modifier: float):
        if modifier <= 0:
            raise InvalidArgument(f"capacity modifier must be positive, got {modifier}")
        self._capacity_modifier = modifier

    def reset(self):
        """Empty the hub and undo capacity upgrades."""
        self._quantities.clear()
        self._base_capacities = dict(self._initial_capacities)
        self._discarded.clear()
        self._capacity_modifier = 1.0
