"""
Hive Economy Simulator - Upgrade Shop
=======================================
Player-facing purchases. Every action checks affordability first, spends,
then calls into the core. Actions return True on success; a refused action
leaves every ledger untouched.
"""

import logging
from typing import Dict, Optional

from hive_sim.econ import EconomyLedger
from hive_sim.fleet import FleetAllocationPool
from hive_sim.models import FleetConfig
from hive_sim.production import ProductionScheduler
from hive_sim.routes import RouteTimingEngine
from hive_sim.storage import StorageLedger

logger = logging.getLogger(__name__)


class UpgradeShop:
    def __init__(
        self,
        economy: EconomyLedger,
        pool: FleetAllocationPool,
        routes: RouteTimingEngine,
        scheduler: ProductionScheduler,
        storage: StorageLedger,
        fleet_config: Optional[FleetConfig] = None,
    ):
        self.economy = economy
        self.pool = pool
        self.routes = routes
        self.scheduler = scheduler
        self.storage = storage
        self.fleet_config = fleet_config or FleetConfig()

        self.purchase_tier = 0
        self._route_tiers: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Carriers
    # ------------------------------------------------------------------

    @property
    def max_purchase_tier(self) -> int:
        return min(len(self.fleet_config.purchase_costs), len(self.fleet_config.purchase_amounts))

    def next_purchase(self) -> Optional[tuple]:
        """(cost, carriers) for the next purchase, or None when sold out."""
        if self.purchase_tier >= self.max_purchase_tier:
            return None
        return (self.fleet_config.purchase_costs[self.purchase_tier],
                self.fleet_config.purchase_amounts[self.purchase_tier])

    def purchase_carriers(self) -> bool:
        """Buy the next tier of carriers into the pool. Nothing is auto-allocated."""
        offer = self.next_purchase()
        if offer is None:
            logger.debug("Carrier purchases exhausted at tier %d", self.purchase_tier)
            return False
        cost, amount = offer
        if not self.economy.try_spend(cost, category="carriers"):
            return False
        self.pool.add_to_pool(amount)
        self.purchase_tier += 1
        logger.info("Bought %d carriers for %.0f (tier %d)", amount, cost, self.purchase_tier)
        return True

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def route_capacity_tier(self, route_id: str) -> int:
        return self._route_tiers.get(route_id, 0)

    def unlock_route(self, route_id: str) -> bool:
        """Buy a locked producer route. Nothing is allocated to it."""
        route = self.routes.route(route_id)
        if not self.pool.is_locked(route_id):
            return False
        if not self.economy.try_spend(route.unlock_cost, category="route_unlock"):
            return False
        self.pool.unlock_route(route_id)
        return True

    def upgrade_route_capacity(self, route_id: str) -> bool:
        route = self.routes.route(route_id)
        tier = self.route_capacity_tier(route_id)
        if tier >= route.max_capacity_tiers:
            logger.debug("Route %s already at max capacity tier", route_id)
            return False
        if not self.economy.try_spend(route.capacity_upgrade_cost, category="route_capacity"):
            return False
        new_capacity = self.pool.route_capacity(route_id) + route.capacity_per_upgrade
        self.pool.set_route_capacity(route_id, new_capacity)
        self._route_tiers[route_id] = tier + 1
        logger.info("Route %s capacity upgraded to %d", route_id, new_capacity)
        return True

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    def unlock_recipe(self, recipe_id: str) -> bool:
        recipe = self.scheduler.recipe(recipe_id)
        if recipe.unlocked:
            return False
        if self.scheduler.missing_prerequisites(recipe_id):
            logger.debug("Cannot unlock %s: missing %s", recipe_id,
                         self.scheduler.missing_prerequisites(recipe_id))
            return False
        if not self.economy.try_spend(recipe.unlock_cost, category="recipe_unlock"):
            return False
        self.scheduler.unlock(recipe_id)
        return True

    def upgrade_recipe(self, recipe_id: str) -> bool:
        recipe = self.scheduler.recipe(recipe_id)
        if not recipe.unlocked:
            return False
        cost = recipe.upgrade_cost()
        if cost is None:
            return False
        if not self.economy.try_spend(cost, category="recipe_upgrade"):
            return False
        self.scheduler.upgrade_tier(recipe_id)
        return True

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def upgrade_storage(self, commodity: str, extra: int, cost: float) -> bool:
        if extra <= 0:
            return False
        if not self.economy.try_spend(cost, category="storage"):
            return False
        self.storage.upgrade_capacity(commodity, extra)
        logger.info("Storage for %s upgraded by %d", commodity, extra)
        return True

    def reset(self):
        self.purchase_tier = 0
        self._route_tiers.clear()
