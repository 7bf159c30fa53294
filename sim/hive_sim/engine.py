"""
Hive Economy Simulator - Simulation Engine
============================================
Tick-based economy simulation. Owns one instance of every subsystem and
drives them in a fixed order each tick:

  0. clock + seasons (push modifiers on season change)
  1. demand windows prune, demand scaling timer
  2. carriers move; arrivals go to storage and demand
  3. production timers advance, finished runs pay out
  4. new production runs start against the updated stock
  5. route spawn timers (read the pool, never write it)

Then a snapshot if one is due, and the tick's events are drained and handed
to listeners.
"""

import logging
from typing import List

from hive_sim.arc import RouteTiming
from hive_sim.constants import DEFAULT_SNAPSHOT_INTERVAL, DEFAULT_TICK_SECONDS
from hive_sim.demand import DemandTracker
from hive_sim.econ import EconomyLedger
from hive_sim.errors import AllocationError, InvalidArgument, InvariantViolation
from hive_sim.events import EventQueue, Listener, SeasonChanged, SimEvent, YearEnded
from hive_sim.fleet import FleetAllocationPool
from hive_sim.models import Route, Scenario, SimResult, Snapshot
from hive_sim.production import ProductionScheduler
from hive_sim.routes import RouteTimingEngine
from hive_sim.seasons import SeasonClock
from hive_sim.storage import StorageLedger
from hive_sim.upgrades import UpgradeShop

logger = logging.getLogger(__name__)


class SimulationEngine:
    def __init__(self, scenario: Scenario, strict: bool = True,
                 snapshot_interval: float = DEFAULT_SNAPSHOT_INTERVAL):
        self.scenario = scenario
        self.strict = strict
        self.snapshot_interval = snapshot_interval

        self.events = EventQueue()
        self.economy = EconomyLedger(scenario.starting_balance, events=self.events)
        self.storage = StorageLedger(
            default_capacity=scenario.storage.default_capacity,
            capacities=scenario.storage.capacities,
            events=self.events,
        )
        self.demand = DemandTracker(
            window=scenario.demand.window,
            reduced_factor=scenario.demand.reduced_factor,
            growth_factor=scenario.demand.growth_factor,
            scaling_interval=scenario.demand.scaling_interval,
            targets=scenario.demand.targets,
            events=self.events,
        )
        self.pool = FleetAllocationPool(events=self.events, strict=strict)
        self.routes = RouteTimingEngine(events=self.events)
        self.scheduler = ProductionScheduler(
            self.storage, self.economy,
            recipes=scenario.recipes,
            events=self.events,
            payout_multiplier=self.demand.payout_multiplier,
        )
        self.seasons = SeasonClock(
            seasons=scenario.seasons.seasons or None,
            seconds_per_week=scenario.seasons.seconds_per_week,
            enabled=scenario.seasons.enabled,
            events=self.events,
        )
        self.shop = UpgradeShop(self.economy, self.pool, self.routes, self.scheduler,
                                self.storage, scenario.fleet)

        self.time = 0.0
        self._in_tick = False
        self._populate()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> List[SimEvent]:
        """Advance the whole economy by dt seconds. Returns the tick's events."""
        if self._in_tick:
            raise InvariantViolation("tick() called while a tick is in progress")
        if dt < 0:
            raise InvalidArgument(f"dt cannot be negative, got {dt}")

        self._in_tick = True
        try:
            self.routes.sync_allocations(self.pool.allocated)
            self._step_tick(dt)
            self.pool.verify()
            self._maybe_snapshot()

            events = self.events.drain()
            self._track_events(events)
            self.events.dispatch(events)
        finally:
            self._in_tick = False
        return events

    def run(self, duration: float, dt: float = DEFAULT_TICK_SECONDS,
            stop_at_year_end: bool = True) -> SimResult:
        if dt <= 0:
            raise InvalidArgument(f"dt must be positive, got {dt}")
        steps = int(round(duration / dt))
        for _ in range(steps):
            self.tick(dt)
            if stop_at_year_end and self.seasons.year_ended:
                logger.info("Stopping at year end (t=%.1f)", self.time)
                break
        self._finalize()
        return self.result

    def subscribe(self, listener: Listener):
        self.events.subscribe(listener)

    def unsubscribe(self, listener: Listener):
        self.events.unsubscribe(listener)

    def reset(self):
        """Restart the campaign from the scenario. Listeners stay subscribed."""
        if self._in_tick:
            raise InvariantViolation("reset() called while a tick is in progress")
        self.routes.reset()
        self.pool.reset()
        self.storage.reset()
        self.demand.reset()
        self.economy.reset()
        self.scheduler.reset()
        self.seasons.reset()
        self.shop.reset()
        self.events.drain()
        self.time = 0.0
        self._populate()

    # ------------------------------------------------------------------
    # Routes and allocation
    # ------------------------------------------------------------------

    def add_route(self, route: Route, allocated: int = 0):
        """Register a route with the pool and the route engine.

        The route engine validates first, so a rejected route leaves the pool
        untouched.
        """
        self.routes.add_route(route)
        try:
            self.pool.register_route(route.route_id, route.capacity,
                                     locked=not route.unlocked)
        except InvalidArgument:
            self.routes.remove_route(route.route_id)
            raise
        if allocated:
            try:
                self.allocate(route.route_id, allocated)
            except (AllocationError, InvalidArgument):
                self.remove_route(route.route_id)
                raise

    def remove_route(self, route_id: str) -> int:
        """Tear down a route and return its carriers to the pool."""
        freed = self.pool.release_route(route_id)
        self.routes.remove_route(route_id)
        return freed

    def allocate(self, route_id: str, amount: int = 1):
        self.pool.allocate(route_id, amount)
        self.routes.on_allocation_changed(route_id, self.pool.allocated(route_id))

    def deallocate(self, route_id: str, amount: int = 1):
        self.pool.deallocate(route_id, amount)
        self.routes.on_allocation_changed(route_id, self.pool.allocated(route_id))

    def set_route_capacity(self, route_id: str, capacity: int):
        self.pool.set_route_capacity(route_id, capacity)
        self.routes.on_allocation_changed(route_id, self.pool.allocated(route_id))

    def route_timing(self, route_id: str) -> RouteTiming:
        return self.routes.timing(route_id)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _populate(self):
        sc = self.scenario
        self.result = SimResult(scenario_name=sc.name)
        self._next_snapshot = 0.0

        if sc.starting_carriers > 0:
            self.pool.add_to_pool(sc.starting_carriers)
        for route in sc.routes:
            self.add_route(route)
        for route_id, count in sc.allocations.items():
            if count > 0:
                self.allocate(route_id, count)

        self.seasons.start()
        self._apply_season()
        if self.seasons.current_season is not None:
            self.result.season_log.append((0.0, self.seasons.current_season.name))
        self._maybe_snapshot()

    # ------------------------------------------------------------------
    # Per-tick simulation
    # ------------------------------------------------------------------

    def _step_tick(self, dt: float):
        # 0. clock and seasons
        self.time += dt
        self.routes.clock = self.time
        self.scheduler.clock = self.time
        if self.seasons.advance(dt):
            self._apply_season()

        # 1. demand
        self.demand.prune(self.time)
        self.demand.advance(dt)

        # 2. carriers
        for delivery in self.routes.advance_carriers(dt):
            self.storage.receive(delivery.commodity, delivery.amount)
            for _ in range(delivery.amount):
                self.demand.record_delivery(delivery.commodity, self.time)
            by_commodity = self.result.deliveries_by_commodity
            by_commodity[delivery.commodity] = by_commodity.get(delivery.commodity, 0) + delivery.amount

        # 3. production timers
        for done in self.scheduler.advance(dt):
            self.result.completion_log.append((self.time, done.recipe_id, done.value))
            counts = self.result.recipe_completions
            counts[done.recipe_id] = counts.get(done.recipe_id, 0) + 1

        # 4. production starts
        self.scheduler.start_pending()

        # 5. spawns
        self.routes.advance_spawns(dt, self.pool.allocated)

        self.result.peak_balance = max(self.result.peak_balance, self.economy.balance())

    def _apply_season(self):
        m = self.seasons.modifiers()
        self.routes.set_speed_modifier(m.speed)
        self.storage.set_capacity_modifier(m.storage_capacity)
        self.scheduler.income_modifier = m.income
        self.scheduler.production_time_modifier = m.production_time

    def _track_events(self, events: List[SimEvent]):
        for event in events:
            if isinstance(event, SeasonChanged):
                log = self.result.season_log
                if not log or log[-1][1] != event.season:
                    log.append((self.time, event.season))
            elif isinstance(event, YearEnded):
                self.result.year_ended_at = self.time

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        season = self.seasons.current_season
        return Snapshot(
            time=self.time,
            balance=self.economy.balance(),
            stock=self.storage.snapshot(),
            carriers_owned=self.pool.total_owned,
            carriers_available=self.pool.available(),
            carriers_active=self.routes.active_count(),
            running_recipes=self.scheduler.running_count(),
            total_discarded=self.storage.total_discarded(),
            season=season.name if season else None,
        )

    def _maybe_snapshot(self):
        if self.snapshot_interval <= 0:
            return
        if self.time + 1e-9 >= self._next_snapshot:
            self.result.snapshots.append(self.snapshot())
            while self._next_snapshot <= self.time + 1e-9:
                self._next_snapshot += self.snapshot_interval

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _finalize(self):
        r = self.result
        r.duration = self.time
        r.total_earned = self.economy.total_earned
        r.total_spent = self.economy.total_spent
        r.spending_by_category = self.economy.spending_by_category()
        r.final_balance = self.economy.balance()
        r.peak_balance = max(r.peak_balance, r.final_balance, self.scenario.starting_balance)
        r.discards_by_commodity = self.storage.discards()
        if not r.snapshots or r.snapshots[-1].time < self.time:
            r.snapshots.append(self.snapshot())
