"""
Hive Economy Simulator - Demand Tracker
=========================================
Rolling delivery-rate windows per commodity, compared against demand targets.

A commodity with no target always counts as met. Targets grow by
`growth_factor` every `scaling_interval` seconds of simulated time.
"""

import logging
from collections import deque
from typing import Deque, Dict, Optional

from hive_sim.constants import (
    DEMAND_WINDOW_SECONDS, DEMAND_SCALING_INTERVAL, DEMAND_SCALING_MULTIPLIER,
    PAYMENT_MULTIPLIER_MET, PAYMENT_MULTIPLIER_NOT_MET,
)
from hive_sim.errors import InvalidArgument
from hive_sim.events import DemandChanged, EventQueue

logger = logging.getLogger(__name__)


class DemandTracker:
    def __init__(
        self,
        window: float = DEMAND_WINDOW_SECONDS,
        reduced_factor: float = PAYMENT_MULTIPLIER_NOT_MET,
        growth_factor: float = DEMAND_SCALING_MULTIPLIER,
        scaling_interval: float = DEMAND_SCALING_INTERVAL,
        targets: Optional[Dict[str, float]] = None,
        events: Optional[EventQueue] = None,
    ):
        if window <= 0:
            raise InvalidArgument(f"demand window must be positive, got {window}")
        self.window = window
        self.reduced_factor = reduced_factor
        self.growth_factor = growth_factor
        self.scaling_interval = scaling_interval
        self.events = events

        self._initial_targets: Dict[str, float] = dict(targets or {})
        self._targets: Dict[str, float] = dict(self._initial_targets)
        self._deliveries: Dict[str, Deque[float]] = {}
        self._scaling_timer = 0.0

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def set_target(self, commodity: str, target: float):
        if target < 0:
            raise InvalidArgument(f"demand target cannot be negative: {target}")
        self._targets[commodity] = target
        self._emit(commodity)

    def remove_target(self, commodity: str):
        self._targets.pop(commodity, None)

    def target(self, commodity: str) -> Optional[float]:
        return self._targets.get(commodity)

    def targets(self) -> Dict[str, float]:
        return dict(self._targets)

    def scale_targets(self, factor: Optional[float] = None):
        """Multiply every target by `factor` (default: growth_factor)."""
        factor = self.growth_factor if factor is None else factor
        if factor <= 0:
            raise InvalidArgument(f"scaling factor must be positive, got {factor}")
        for commodity in list(self._targets):
            self._targets[commodity] *= factor
            self._emit(commodity)
        if self._targets:
            logger.info("Demand targets scaled x%.2f: %s", factor,
                        {c: round(t, 2) for c, t in self._targets.items()})

    def advance(self, dt: float):
        """Advance the scaling timer; may scale several times for a large dt."""
        if self.scaling_interval <= 0:
            return
        self._scaling_timer += dt
        while self._scaling_timer >= self.scaling_interval:
            self._scaling_timer -= self.scaling_interval
            self.scale_targets()

    # ------------------------------------------------------------------
    # Delivery window
    # ------------------------------------------------------------------

    def record_delivery(self, commodity: str, timestamp: float):
        self._deliveries.setdefault(commodity, deque()).append(timestamp)
        if commodity in self._targets:
            self._emit(commodity)

    def prune(self, now: float):
        """Drop timestamps older than now - window."""
        cutoff = now - self.window
        for timestamps in self._deliveries.values():
            while timestamps and timestamps[0] < cutoff:
                timestamps.popleft()

    def current_rate(self, commodity: str) -> int:
        timestamps = self._deliveries.get(commodity)
        return len(timestamps) if timestamps else 0

    def is_demand_met(self, commodity: str) -> bool:
        target = self._targets.get(commodity)
        if target is None:
            return True
        return self.current_rate(commodity) >= target

    def payout_multiplier(self, commodity: str) -> float:
        if self.is_demand_met(commodity):
            return PAYMENT_MULTIPLIER_MET
        return self.reduced_factor

    def reset(self):
        self._targets = dict(self._initial_targets)
        self._deliveries.clear()
        self._scaling_timer = 0.0

    def _emit(self, commodity: str):
        if self.events is None:
            return
        self.events.push(DemandChanged(
            commodity=commodity,
            target=self._targets[commodity],
            current_rate=self.current_rate(commodity),
        ))
