"""
Hive Economy Simulator - Production Scheduler
===============================================
Turns hub stock into currency.

Each tick runs two passes:
  1. advance(dt)      - tick every unpaused run, pay out the finished ones
  2. start_pending()  - walk recipes in priority order against ONE working
                        copy of hub stock, so a higher-priority recipe always
                        gets first claim on scarce ingredients

Recipe ownership of tier and unlock state lives here too.
"""

import copy
import logging
from typing import Callable, Dict, List, Optional, Set

from hive_sim.econ import EconomyLedger
from hive_sim.errors import InsufficientStock, InvalidArgument, InvariantViolation
from hive_sim.events import EventQueue, RecipeCompleted, RecipeStarted
from hive_sim.models import ProductionRun, Recipe
from hive_sim.storage import StorageLedger

logger = logging.getLogger(__name__)


class ProductionScheduler:
    def __init__(
        self,
        storage: StorageLedger,
        economy: EconomyLedger,
        recipes: Optional[List[Recipe]] = None,
        events: Optional[EventQueue] = None,
        payout_multiplier: Optional[Callable[[str], float]] = None,
    ):
        self.storage = storage
        self.economy = economy
        self.events = events
        self.payout_multiplier = payout_multiplier

        self.income_modifier = 1.0
        self.production_time_modifier = 1.0
        self.clock = 0.0

        self._initial: List[Recipe] = [copy.deepcopy(r) for r in recipes or []]
        self._recipes: Dict[str, Recipe] = {}
        self._order: List[str] = []
        self._runs: Dict[str, ProductionRun] = {}
        self._paused: Set[str] = set()

        self._in_pass = False
        self._deferred: List[Callable[[], None]] = []
        self._pending_adds: Set[str] = set()

        for recipe in self._initial:
            self._add(copy.deepcopy(recipe))

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> List[RecipeCompleted]:
        completed = self.advance(dt)
        self.start_pending()
        return completed

    def advance(self, dt: float) -> List[RecipeCompleted]:
        """Move run timers forward and complete anything that finished."""
        completed = []
        self._in_pass = True
        try:
            for recipe_id in self._order:
                run = self._runs.get(recipe_id)
                if run is None or run.paused:
                    continue
                run.time_remaining -= dt
                if run.time_remaining <= 0:
                    completed.append(self._complete(run))
        finally:
            self._in_pass = False
        self._flush()
        return completed

    def start_pending(self) -> List[ProductionRun]:
        """Start every recipe the working copy of stock can cover, in priority order."""
        started = []
        working = self.storage.snapshot()
        self._in_pass = True
        try:
            for recipe_id in self._order:
                recipe = self._recipes[recipe_id]
                if not recipe.unlocked or recipe_id in self._runs or recipe_id in self._paused:
                    continue

                required = recipe.required_ingredients()
                short = {c: q for c, q in required.items() if working.get(c, 0) < q}
                if short:
                    logger.debug("Skipping %s: short %s", recipe_id, short)
                    continue

                for commodity, qty in required.items():
                    working[commodity] -= qty
                try:
                    self.storage.consume_many(required)
                except InsufficientStock as e:
                    raise InvariantViolation(
                        f"stock for {recipe_id} vanished between snapshot and commit",
                        {"recipe_id": recipe_id, "commodity": e.commodity,
                         "requested": e.requested, "available": e.available},
                    ) from e

                started.append(self._start(recipe))
        finally:
            self._in_pass = False
        self._flush()
        return started

    # ------------------------------------------------------------------
    # Recipe list and priority
    # ------------------------------------------------------------------

    def add_recipe(self, recipe: Recipe):
        """Append at the lowest priority."""
        if recipe.recipe_id in self._recipes or recipe.recipe_id in self._pending_adds:
            raise InvalidArgument(f"recipe already present: {recipe.recipe_id}")
        self._pending_adds.add(recipe.recipe_id)
        self._defer_or_run(lambda: self._add(recipe))

    def remove_recipe(self, recipe_id: str):
        """Drop a recipe and cancel its run. Consumed ingredients are not refunded."""
        self._require(recipe_id)

        def apply():
            if recipe_id not in self._recipes:
                return
            self._runs.pop(recipe_id, None)
            self._paused.discard(recipe_id)
            self._order.remove(recipe_id)
            del self._recipes[recipe_id]

        self._defer_or_run(apply)

    def increase_priority(self, recipe_id: str):
        self._require(recipe_id)
        self._defer_or_run(lambda: self._swap(recipe_id, -1))

    def decrease_priority(self, recipe_id: str):
        self._require(recipe_id)
        self._defer_or_run(lambda: self._swap(recipe_id, +1))

    def priority_order(self) -> List[str]:
        return list(self._order)

    def recipe(self, recipe_id: str) -> Recipe:
        return self._require(recipe_id)

    def recipes(self) -> List[Recipe]:
        return [self._recipes[rid] for rid in self._order]

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def pause(self, recipe_id: str):
        """Freeze a running timer and block new starts."""
        self._require(recipe_id)

        def apply():
            self._paused.add(recipe_id)
            run = self._runs.get(recipe_id)
            if run is not None:
                run.paused = True

        self._defer_or_run(apply)

    def resume(self, recipe_id: str):
        self._require(recipe_id)

        def apply():
            self._paused.discard(recipe_id)
            run = self._runs.get(recipe_id)
            if run is not None:
                run.paused = False

        self._defer_or_run(apply)

    def cancel(self, recipe_id: str):
        self._require(recipe_id)
        self._defer_or_run(lambda: self._runs.pop(recipe_id, None))

    def is_paused(self, recipe_id: str) -> bool:
        return recipe_id in self._paused

    def is_running(self, recipe_id: str) -> bool:
        return recipe_id in self._runs

    def run(self, recipe_id: str) -> Optional[ProductionRun]:
        return self._runs.get(recipe_id)

    def running_count(self) -> int:
        return len(self._runs)

    def progress(self, recipe_id: str) -> float:
        """0..1 progress of the active run, 0.0 when idle."""
        self._require(recipe_id)
        run = self._runs.get(recipe_id)
        return run.progress if run is not None else 0.0

    # ------------------------------------------------------------------
    # Unlocks and tiers
    # ------------------------------------------------------------------

    def missing_prerequisites(self, recipe_id: str) -> List[str]:
        recipe = self._require(recipe_id)
        return [p for p in recipe.prerequisites
                if p not in self._recipes or not self._recipes[p].unlocked]

    def unlock(self, recipe_id: str):
        recipe = self._require(recipe_id)
        if recipe.unlocked:
            return
        missing = self.missing_prerequisites(recipe_id)
        if missing:
            raise InvalidArgument(f"{recipe_id} requires {', '.join(missing)} first")
        recipe.unlocked = True
        logger.info("Unlocked recipe %s", recipe_id)

    def upgrade_tier(self, recipe_id: str) -> int:
        """Raise the tier by one. A run already in progress keeps its start tier."""
        recipe = self._require(recipe_id)
        if not recipe.unlocked:
            raise InvalidArgument(f"cannot upgrade locked recipe {recipe_id}")
        if not recipe.can_upgrade:
            raise InvalidArgument(f"{recipe_id} is already at max tier {recipe.max_tier}")
        recipe.tier += 1
        logger.info("Recipe %s upgraded to tier %d", recipe_id, recipe.tier)
        return recipe.tier

    def reset(self):
        self._recipes.clear()
        self._order.clear()
        self._runs.clear()
        self._paused.clear()
        self._deferred.clear()
        self._pending_adds.clear()
        self.income_modifier = 1.0
        self.production_time_modifier = 1.0
        self.clock = 0.0
        for recipe in self._initial:
            self._add(copy.deepcopy(recipe))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start(self, recipe: Recipe) -> ProductionRun:
        total = recipe.production_time(modifier=self.production_time_modifier)
        run = ProductionRun(
            recipe_id=recipe.recipe_id,
            tier_at_start=recipe.tier,
            time_remaining=total,
            total_time=total,
            started_at=self.clock,
        )
        self._runs[recipe.recipe_id] = run
        logger.debug("Started %s (tier %d, %.2fs)", recipe.recipe_id, recipe.tier, total)
        if self.events is not None:
            self.events.push(RecipeStarted(recipe_id=recipe.recipe_id,
                                           tier=recipe.tier, total_time=total))
        return run

    def _complete(self, run: ProductionRun) -> RecipeCompleted:
        recipe = self._recipes[run.recipe_id]
        value = recipe.value(run.tier_at_start, self.income_modifier) * self._demand_multiplier(recipe)
        del self._runs[run.recipe_id]
        if value > 0:
            self.economy.earn(value, source=run.recipe_id)
        event = RecipeCompleted(recipe_id=run.recipe_id, value=value)
        if self.events is not None:
            self.events.push(event)
        return event

    def _demand_multiplier(self, recipe: Recipe) -> float:
        if self.payout_multiplier is None or not recipe.ingredients:
            return 1.0
        return min(self.payout_multiplier(c) for c in recipe.ingredients)

    def _add(self, recipe: Recipe):
        self._pending_adds.discard(recipe.recipe_id)
        if recipe.recipe_id in self._recipes:
            raise InvalidArgument(f"recipe already present: {recipe.recipe_id}")
        self._recipes[recipe.recipe_id] = recipe
        self._order.append(recipe.recipe_id)

    def _swap(self, recipe_id: str, direction: int):
        # Recipe may have been removed by an earlier deferred mutation
        if recipe_id not in self._recipes:
            return
        i = self._order.index(recipe_id)
        j = i + direction
        if 0 <= j < len(self._order):
            self._order[i], self._order[j] = self._order[j], self._order[i]

    def _defer_or_run(self, mutation: Callable[[], None]):
        if self._in_pass:
            self._deferred.append(mutation)
        else:
            mutation()

    def _flush(self):
        pending, self._deferred = self._deferred, []
        for mutation in pending:
            mutation()

    def _require(self, recipe_id: str) -> Recipe:
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise InvalidArgument(f"unknown recipe: {recipe_id}")
        return recipe
