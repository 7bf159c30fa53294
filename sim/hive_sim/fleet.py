"""
Hive Economy Simulator - Fleet Allocation Pool
================================================
The finite pool of carriers the player owns, and how many of them each route
has been given. available() is always derived, never stored, so it cannot
drift out of sync with the per-route allocations.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from hive_sim.errors import (
    CapacityExceeded, InvalidArgument, InvariantViolation, PoolExhausted, RouteLocked,
    Underflow,
)
from hive_sim.events import AllocationChanged, EventQueue, FleetGrown, RouteUnlocked

logger = logging.getLogger(__name__)


class FleetAllocationPool:
    def __init__(self, events: Optional[EventQueue] = None, strict: bool = True):
        self.events = events
        self.strict = strict
        self._total_owned = 0
        self._allocations: Dict[str, int] = {}
        self._capacities: Dict[str, int] = {}
        self._locked: Set[str] = set()

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    @property
    def total_owned(self) -> int:
        return self._total_owned

    def add_to_pool(self, count: int):
        if count <= 0:
            raise InvalidArgument(f"carrier count must be positive, got {count}")
        self._total_owned += count
        logger.info("Fleet grew by %d to %d", count, self._total_owned)
        if self.events is not None:
            self.events.push(FleetGrown(total_owned=self._total_owned))

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def register_route(self, route_id: str, capacity: int, locked: bool = False):
        if capacity < 0:
            raise InvalidArgument(f"route capacity cannot be negative: {capacity}")
        if route_id in self._capacities:
            raise InvalidArgument(f"route already registered: {route_id}")
        self._capacities[route_id] = capacity
        self._allocations[route_id] = 0
        if locked:
            self._locked.add(route_id)

    def has_route(self, route_id: str) -> bool:
        return route_id in self._capacities

    def is_locked(self, route_id: str) -> bool:
        self._require(route_id)
        return route_id in self._locked

    def unlock_route(self, route_id: str):
        """Open a locked route for allocation. Unlocking twice is a no-op."""
        self._require(route_id)
        if route_id not in self._locked:
            return
        self._locked.discard(route_id)
        logger.info("Route %s unlocked", route_id)
        if self.events is not None:
            self.events.push(RouteUnlocked(route_id=route_id))

    def route_capacity(self, route_id: str) -> int:
        self._require(route_id)
        return self._capacities[route_id]

    def set_route_capacity(self, route_id: str, capacity: int):
        """Change a route's ceiling. Excess allocation returns to the pool."""
        self._require(route_id)
        if capacity < 0:
            raise InvalidArgument(f"route capacity cannot be negative: {capacity}")
        self._capacities[route_id] = capacity
        current = self._allocations[route_id]
        if current > capacity:
            self._allocations[route_id] = capacity
            logger.info("Route %s capacity lowered to %d, freed %d carrier(s)",
                        route_id, capacity, current - capacity)
            self._changed(route_id)

    def release_route(self, route_id: str) -> int:
        """Forget a route entirely. Returns how many carriers were freed."""
        self._require(route_id)
        freed = self._allocations.pop(route_id)
        del self._capacities[route_id]
        self._locked.discard(route_id)
        if freed:
            logger.info("Route %s removed, freed %d carrier(s)", route_id, freed)
            if self.events is not None:
                self.events.push(AllocationChanged(route_id=route_id, new_count=0))
        return freed

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def allocate(self, route_id: str, amount: int = 1):
        self._require(route_id)
        if amount <= 0:
            raise InvalidArgument(f"allocation amount must be positive, got {amount}")
        if route_id in self._locked:
            raise RouteLocked(route_id)

        current = self._allocations[route_id]
        capacity = self._capacities[route_id]
        if current + amount > capacity:
            raise CapacityExceeded(route_id, amount, current, capacity)
        available = self.available()
        if available < amount:
            raise PoolExhausted(route_id, amount, available)

        self._allocations[route_id] = current + amount
        logger.debug("Allocated %d to %s (%d/%d)", amount, route_id,
                     current + amount, capacity)
        self._changed(route_id)

    def deallocate(self, route_id: str, amount: int = 1):
        self._require(route_id)
        if amount <= 0:
            raise InvalidArgument(f"deallocation amount must be positive, got {amount}")

        current = self._allocations[route_id]
        if current < amount:
            raise Underflow(route_id, amount, current)

        self._allocations[route_id] = current - amount
        logger.debug("Deallocated %d from %s (%d left)", amount, route_id, current - amount)
        self._changed(route_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def allocated(self, route_id: str) -> int:
        return self._allocations.get(route_id, 0)

    def total_allocated(self) -> int:
        return sum(self._allocations.values())

    def available(self) -> int:
        return self._total_owned - self.total_allocated()

    def all_routes_with_allocation(self) -> List[Tuple[str, int]]:
        """(route_id, allocated) pairs for routes holding at least one carrier."""
        return [(rid, n) for rid, n in self._allocations.items() if n > 0]

    def routes(self) -> List[str]:
        return list(self._capacities)

    def verify(self):
        """Check conservation and per-route ceilings.

        Strict mode raises InvariantViolation; otherwise allocations are
        clamped back into range and a warning is logged.
        """
        for route_id, n in self._allocations.items():
            cap = self._capacities[route_id]
            if n < 0 or n > cap:
                self._breach(f"route {route_id} allocation {n} outside [0, {cap}]",
                             {"route_id": route_id, "allocated": n, "capacity": cap})
                self._allocations[route_id] = max(0, min(n, cap))
                self._changed(route_id)

        excess = self.total_allocated() - self._total_owned
        if excess > 0:
            self._breach(f"allocated {self.total_allocated()} exceeds owned {self._total_owned}",
                         {"allocated": self.total_allocated(), "owned": self._total_owned})
            # Trim from the most recently registered route backwards
            for route_id in reversed(list(self._allocations)):
                if excess <= 0:
                    break
                take = min(excess, self._allocations[route_id])
                if take:
                    self._allocations[route_id] -= take
                    excess -= take
                    self._changed(route_id)

    def reset(self):
        self._total_owned = 0
        self._allocations.clear()
        self._capacities.clear()
        self._locked.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, route_id: str):
        if route_id not in self._capacities:
            raise InvalidArgument(f"unknown route: {route_id}")

    def _changed(self, route_id: str):
        if self.events is not None:
            self.events.push(AllocationChanged(
                route_id=route_id, new_count=self._allocations[route_id]))

    def _breach(self, message: str, detail: dict):
        if self.strict:
            raise InvariantViolation(message, detail)
        logger.warning("Clamping fleet invariant breach: %s", message)
