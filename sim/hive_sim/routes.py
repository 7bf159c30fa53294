"""
Hive Economy Simulator - Route Timing Engine
==============================================
Owns every route's carriers: spawns them at an even cadence, flies them along
the route's Bezier arc, and reports deliveries at the hub.

Carrier loop:
    AT_PRODUCER -> GATHERING -> TO_HUB -> AT_HUB -> TO_PRODUCER -> AT_PRODUCER

The engine never mutates the fleet pool. It only reads allocation counts and
despawns carriers above them.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from hive_sim.arc import RouteTiming, arc_length, compute_timing, point_on_arc
from hive_sim.constants import ARC_SEGMENTS, PRODUCER_LANDING_OFFSET
from hive_sim.errors import InvalidArgument
from hive_sim.events import CarrierDespawned, CarrierSpawned, Delivered, EventQueue
from hive_sim.models import Carrier, CarrierPhase, Route, Vec3

logger = logging.getLogger(__name__)


@dataclass
class _RouteState:
    route: Route
    length: float
    timing: RouteTiming
    allocated: int = 0
    carriers: List[Carrier] = field(default_factory=list)
    since_last_spawn: float = 0.0
    spawn_now: bool = True          # never spawned, or allocation just grew


class RouteTimingEngine:
    def __init__(
        self,
        events: Optional[EventQueue] = None,
        segments: int = ARC_SEGMENTS,
    ):
        if segments <= 0:
            raise InvalidArgument(f"segments must be positive, got {segments}")
        self.events = events
        self.segments = segments
        self._speed_modifier = 1.0
        self._routes: Dict[str, _RouteState] = {}
        self._next_carrier_id = 1
        self.clock = 0.0

    # ------------------------------------------------------------------
    # Route lifecycle
    # ------------------------------------------------------------------

    def add_route(self, route: Route, allocated: int = 0):
        if route.route_id in self._routes:
            raise InvalidArgument(f"route already exists: {route.route_id}")
        if route.base_speed <= 0:
            raise InvalidArgument(f"route {route.route_id} base speed must be positive")
        length = self._length(route)
        self._routes[route.route_id] = _RouteState(
            route=route,
            length=length,
            timing=compute_timing(length, route.base_speed, allocated, self._speed_modifier),
            allocated=allocated,
        )
        logger.debug("Route %s added: arc %.2f, round trip %.2fs",
                     route.route_id, length, self._routes[route.route_id].timing.round_trip_time)

    def remove_route(self, route_id: str):
        state = self._require(route_id)
        while state.carriers:
            self._despawn(state)
        del self._routes[route_id]

    def update_route(self, route_id: str, **changes) -> RouteTiming:
        """Replace route fields (speed, altitude, positions...) and recompute timing."""
        state = self._require(route_id)
        if "route_id" in changes:
            raise InvalidArgument("route_id cannot be changed")
        # The pool holds the live ceiling and lock state
        pool_owned = sorted({"capacity", "unlocked"} & set(changes))
        if pool_owned:
            raise InvalidArgument(
                f"{', '.join(pool_owned)} is owned by the fleet pool; use "
                f"SimulationEngine.set_route_capacity or UpgradeShop.unlock_route")
        route = replace(state.route, **changes)
        if route.base_speed <= 0:
            raise InvalidArgument(f"route {route_id} base speed must be positive")
        state.route = route
        state.length = self._length(route)
        self._recompute(state)
        return state.timing

    def has_route(self, route_id: str) -> bool:
        return route_id in self._routes

    def route(self, route_id: str) -> Route:
        return self._require(route_id).route

    def route_ids(self) -> List[str]:
        return list(self._routes)

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    @property
    def speed_modifier(self) -> float:
        return self._speed_modifier

    def set_speed_modifier(self, modifier: float):
        if modifier <= 0:
            raise InvalidArgument(f"speed modifier must be positive, got {modifier}")
        self._speed_modifier = modifier
        for state in self._routes.values():
            self._recompute(state)

    def timing(self, route_id: str) -> RouteTiming:
        return self._require(route_id).timing

    def on_allocation_changed(self, route_id: str, new_count: int):
        """Apply a new allocation: despawn the excess or arm an immediate spawn."""
        state = self._require(route_id)
        if new_count < 0:
            raise InvalidArgument(f"allocation cannot be negative: {new_count}")
        old = state.allocated
        if new_count == old:
            return
        state.allocated = new_count
        if new_count > old:
            state.spawn_now = True
        while len(state.carriers) > new_count:
            self._despawn(state)
        self._recompute(state)

    def sync_allocations(self, allocated: Callable[[str], int]):
        for route_id in self._routes:
            self.on_allocation_changed(route_id, allocated(route_id))

    # ------------------------------------------------------------------
    # Carriers
    # ------------------------------------------------------------------

    def carriers(self, route_id: Optional[str] = None) -> List[Carrier]:
        if route_id is not None:
            return list(self._require(route_id).carriers)
        return [c for s in self._routes.values() for c in s.carriers]

    def carrier_count(self, route_id: str) -> int:
        return len(self._require(route_id).carriers)

    def active_count(self) -> int:
        return sum(len(s.carriers) for s in self._routes.values())

    def carrier_position(self, carrier: Carrier) -> Vec3:
        route = self._require(carrier.route_id).route
        landing = route.producer_position + Vec3(0.0, PRODUCER_LANDING_OFFSET, 0.0)
        if carrier.phase in (CarrierPhase.AT_PRODUCER, CarrierPhase.GATHERING):
            return landing
        if carrier.phase == CarrierPhase.AT_HUB:
            return route.hub_position
        if carrier.phase == CarrierPhase.TO_HUB:
            return point_on_arc(carrier.progress, route.producer_position,
                                route.hub_position, route.arc_altitude)
        return point_on_arc(carrier.progress, route.hub_position,
                            route.producer_position, route.arc_altitude)

    def advance_carriers(self, dt: float) -> List[Delivered]:
        """Move every carrier by dt. Returns the deliveries made at the hub."""
        deliveries: List[Delivered] = []
        for state in self._routes.values():
            speed = state.timing.effective_speed
            for carrier in state.carriers:
                delivered = self._advance_carrier(carrier, state, speed, dt)
                if delivered is not None:
                    deliveries.append(delivered)
        return deliveries

    def advance_spawns(self, dt: float, allocated: Callable[[str], int]):
        """Spawn at most one carrier per route whose cadence is due."""
        for route_id, state in self._routes.items():
            state.since_last_spawn += dt
            target = allocated(route_id)
            if target != state.allocated:
                self.on_allocation_changed(route_id, target)

            if len(state.carriers) >= target:
                continue
            interval = state.timing.spawn_interval
            if state.spawn_now or (interval is not None and state.since_last_spawn >= interval):
                self._spawn(state)

    def reset(self):
        for state in self._routes.values():
            while state.carriers:
                self._despawn(state)
        self._routes.clear()
        self._speed_modifier = 1.0
        self._next_carrier_id = 1
        self.clock = 0.0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance_carrier(self, carrier: Carrier, state: _RouteState,
                         speed: float, dt: float) -> Optional[Delivered]:
        route = state.route

        if carrier.phase == CarrierPhase.AT_PRODUCER:
            carrier.phase = CarrierPhase.GATHERING
            carrier.gather_elapsed = 0.0

        if carrier.phase == CarrierPhase.GATHERING:
            carrier.gather_elapsed += dt
            if carrier.gather_elapsed >= route.gathering_duration:
                carrier.payload = route.commodity
                carrier.payload_amount = route.payload_size
                carrier.gather_elapsed = 0.0
                carrier.phase = CarrierPhase.TO_HUB
                carrier.progress = 0.0
            return None

        step = 1.0 if state.length <= 0 else speed * dt / state.length

        if carrier.phase == CarrierPhase.TO_HUB:
            carrier.progress = min(1.0, carrier.progress + step)
            if carrier.progress < 1.0:
                return None
            carrier.phase = CarrierPhase.AT_HUB

        if carrier.phase == CarrierPhase.AT_HUB:
            delivered = None
            if carrier.payload is not None and carrier.payload_amount > 0:
                delivered = Delivered(route_id=route.route_id,
                                      commodity=carrier.payload,
                                      amount=carrier.payload_amount)
                if self.events is not None:
                    self.events.push(delivered)
            carrier.payload = None
            carrier.payload_amount = 0
            carrier.phase = CarrierPhase.TO_PRODUCER
            carrier.progress = 0.0
            return delivered

        if carrier.phase == CarrierPhase.TO_PRODUCER:
            carrier.progress = min(1.0, carrier.progress + step)
            if carrier.progress >= 1.0:
                carrier.phase = CarrierPhase.AT_PRODUCER
                carrier.progress = 0.0
        return None

    def _spawn(self, state: _RouteState):
        carrier = Carrier(carrier_id=self._next_carrier_id,
                          route_id=state.route.route_id,
                          spawned_at=self.clock)
        self._next_carrier_id += 1
        state.carriers.append(carrier)
        state.since_last_spawn = 0.0
        state.spawn_now = False
        logger.debug("Spawned carrier %d on %s (%d/%d)", carrier.carrier_id,
                     state.route.route_id, len(state.carriers), state.allocated)
        if self.events is not None:
            self.events.push(CarrierSpawned(route_id=state.route.route_id,
                                            carrier_id=carrier.carrier_id))

    def _despawn(self, state: _RouteState):
        carrier = state.carriers.pop()
        logger.debug("Despawned carrier %d from %s", carrier.carrier_id, state.route.route_id)
        if self.events is not None:
            self.events.push(CarrierDespawned(route_id=state.route.route_id,
                                              carrier_id=carrier.carrier_id))

    def _length(self, route: Route) -> float:
        return arc_length(route.producer_position, route.hub_position,
                          route.arc_altitude, self.segments)

    def _recompute(self, state: _RouteState):
        state.timing = compute_timing(state.length, state.route.base_speed,
                                      state.allocated, self._speed_modifier)

    def _require(self, route_id: str) -> _RouteState:
        state = self._routes.get(route_id)
        if state is None:
            raise InvalidArgument(f"unknown route: {route_id}")
        return state
