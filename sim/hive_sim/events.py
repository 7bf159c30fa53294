"""
Hive Economy Simulator - Events
=================================
Typed events emitted by the core for external collaborators (audio, VFX,
stats, UI). Subsystems push onto a shared EventQueue; the engine drains it
once per tick, after every phase has finished, so listeners never run in the
middle of a pass.
"""

from dataclasses import dataclass
from typing import Callable, List


@dataclass
class SimEvent:
    """An event that occurred during a tick."""
    pass


@dataclass
class RecipeStarted(SimEvent):
    recipe_id: str
    tier: int
    total_time: float


@dataclass
class RecipeCompleted(SimEvent):
    recipe_id: str
    value: float


@dataclass
class AllocationChanged(SimEvent):
    route_id: str
    new_count: int


@dataclass
class FleetGrown(SimEvent):
    total_owned: int


@dataclass
class RouteUnlocked(SimEvent):
    route_id: str


@dataclass
class CarrierSpawned(SimEvent):
    route_id: str
    carrier_id: int


@dataclass
class CarrierDespawned(SimEvent):
    route_id: str
    carrier_id: int


@dataclass
class Delivered(SimEvent):
    route_id: str
    commodity: str
    amount: int


@dataclass
class OverflowDiscarded(SimEvent):
    commodity: str
    amount: int


@dataclass
class DemandChanged(SimEvent):
    commodity: str
    target: float
    current_rate: float


@dataclass
class BalanceChanged(SimEvent):
    balance: float


@dataclass
class SeasonChanged(SimEvent):
    season: str


@dataclass
class WeekChanged(SimEvent):
    week: int


@dataclass
class YearEnded(SimEvent):
    pass


Listener = Callable[[SimEvent], None]


class EventQueue:
    """Outbound FIFO of events plus the listeners that consume them."""

    def __init__(self):
        self._pending: List[SimEvent] = []
        self._listeners: List[Listener] = []

    def push(self, event: SimEvent):
        self._pending.append(event)

    def subscribe(self, listener: Listener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def pending(self) -> List[SimEvent]:
        return list(self._pending)

    def drain(self) -> List[SimEvent]:
        """Remove and return everything queued so far."""
        events = self._pending
        self._pending = []
        return events

    def dispatch(self, events: List[SimEvent]):
        """Hand events to listeners in registration order."""
        for event in events:
            for listener in list(self._listeners):
                listener(event)
