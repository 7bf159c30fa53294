"""
Hive Economy Simulator - Data Models
======================================
All dataclasses for the simulation engine.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Tuple

from hive_sim.constants import (
    DEFAULT_CARRIER_SPEED, DEFAULT_ARC_ALTITUDE, DEFAULT_GATHERING_DURATION,
    DEFAULT_PAYLOAD_SIZE, DEFAULT_ROUTE_CAPACITY, ROUTE_CAPACITY_PER_UPGRADE,
    ROUTE_CAPACITY_UPGRADE_COST, ROUTE_MAX_CAPACITY_TIERS,
    RECIPE_MAX_TIER, RECIPE_UPGRADE_COSTS, RECIPE_INGREDIENT_DISCOUNT,
    RECIPE_TIME_DISCOUNT, RECIPE_VALUE_BONUS,
    DEFAULT_STORAGE_CAPACITY, DEMAND_WINDOW_SECONDS, DEMAND_SCALING_INTERVAL,
    DEMAND_SCALING_MULTIPLIER, PAYMENT_MULTIPLIER_NOT_MET,
    FLEET_PURCHASE_COSTS, FLEET_PURCHASE_AMOUNTS, SECONDS_PER_WEEK,
)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Vec3:
    """World-space point. y is height."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, k: float) -> "Vec3":
        return Vec3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def flattened(self) -> "Vec3":
        return Vec3(self.x, 0.0, self.z)

    def as_list(self) -> List[float]:
        return [self.x, self.y, self.z]

    @classmethod
    def from_seq(cls, seq) -> "Vec3":
        if isinstance(seq, Vec3):
            return seq
        values = list(seq) + [0.0] * (3 - len(seq))
        return cls(float(values[0]), float(values[1]), float(values[2]))


# ---------------------------------------------------------------------------
# Routes and carriers
# ---------------------------------------------------------------------------

@dataclass
class Route:
    route_id: str
    commodity: str
    producer_position: Vec3
    hub_position: Vec3 = field(default_factory=Vec3)
    base_speed: float = DEFAULT_CARRIER_SPEED
    arc_altitude: float = DEFAULT_ARC_ALTITUDE
    capacity: int = DEFAULT_ROUTE_CAPACITY         # initial ceiling; the pool owns the live one
    gathering_duration: float = DEFAULT_GATHERING_DURATION
    payload_size: int = DEFAULT_PAYLOAD_SIZE

    capacity_upgrade_cost: float = ROUTE_CAPACITY_UPGRADE_COST
    capacity_per_upgrade: int = ROUTE_CAPACITY_PER_UPGRADE
    max_capacity_tiers: int = ROUTE_MAX_CAPACITY_TIERS

    unlocked: bool = True                          # initial state; the pool owns the live one
    unlock_cost: float = 0.0


class CarrierPhase(Enum):
    AT_PRODUCER = auto()
    GATHERING = auto()
    TO_HUB = auto()
    AT_HUB = auto()
    TO_PRODUCER = auto()


@dataclass
class Carrier:
    carrier_id: int
    route_id: str
    phase: CarrierPhase = CarrierPhase.AT_PRODUCER
    progress: float = 0.0
    payload: Optional[str] = None
    payload_amount: int = 0
    gather_elapsed: float = 0.0
    spawned_at: float = 0.0

    @property
    def in_flight(self) -> bool:
        return self.phase in (CarrierPhase.TO_HUB, CarrierPhase.TO_PRODUCER)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@dataclass
class ReceiveReport:
    commodity: str
    accepted: int = 0
    discarded: int = 0

    @property
    def requested(self) -> int:
        return self.accepted + self.discarded


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------

def _tier_entry(table: List[float], tier: int) -> float:
    if not table:
        return 0.0
    return table[max(0, min(tier, len(table) - 1))]


@dataclass
class Recipe:
    recipe_id: str
    ingredients: Dict[str, int]
    base_production_time: float
    base_value: float
    description: str = ""

    tier: int = 0
    max_tier: int = RECIPE_MAX_TIER
    tier_ingredient_discount: List[float] = field(
        default_factory=lambda: list(RECIPE_INGREDIENT_DISCOUNT))
    tier_time_discount: List[float] = field(
        default_factory=lambda: list(RECIPE_TIME_DISCOUNT))
    tier_value_bonus: List[float] = field(
        default_factory=lambda: list(RECIPE_VALUE_BONUS))
    upgrade_costs: List[float] = field(
        default_factory=lambda: list(RECIPE_UPGRADE_COSTS))

    unlocked_by_default: bool = True
    unlocked: bool = True
    unlock_cost: float = 0.0
    prerequisites: List[str] = field(default_factory=list)

    def required_ingredients(self, tier: Optional[int] = None) -> Dict[str, int]:
        """Tier-adjusted ingredient quantities (never below 1 per ingredient)."""
        t = self.tier if tier is None else tier
        discount = _tier_entry(self.tier_ingredient_discount, t)
        required = {}
        for commodity, qty in self.ingredients.items():
            # round() first so 10 * 0.7 doesn't ceil to 8
            scaled = round(qty * (1.0 - discount), 9)
            required[commodity] = max(1, math.ceil(scaled))
        return required

    def production_time(self, tier: Optional[int] = None, modifier: float = 1.0) -> float:
        t = self.tier if tier is None else tier
        return self.base_production_time * (1.0 - _tier_entry(self.tier_time_discount, t)) * modifier

    def value(self, tier: Optional[int] = None, modifier: float = 1.0) -> float:
        t = self.tier if tier is None else tier
        return self.base_value * (1.0 + _tier_entry(self.tier_value_bonus, t)) * modifier

    def upgrade_cost(self, tier: Optional[int] = None) -> Optional[float]:
        """Cost to go from `tier` to `tier + 1`, or None at max tier."""
        t = self.tier if tier is None else tier
        if t >= self.max_tier or t < 0 or t >= len(self.upgrade_costs):
            return None
        return self.upgrade_costs[t]

    @property
    def can_upgrade(self) -> bool:
        return self.tier < self.max_tier


@dataclass
class ProductionRun:
    recipe_id: str
    tier_at_start: int
    time_remaining: float
    total_time: float
    paused: bool = False
    started_at: float = 0.0

    @property
    def progress(self) -> float:
        if self.total_time <= 0:
            return 1.0
        return min(1.0, max(0.0, 1.0 - self.time_remaining / self.total_time))


# ---------------------------------------------------------------------------
# Seasons
# ---------------------------------------------------------------------------

@dataclass
class SeasonData:
    name: str
    weeks: int = 7
    income_modifier: float = 1.0
    speed_modifier: float = 1.0
    production_time_modifier: float = 1.0
    storage_capacity_modifier: float = 1.0
    description: str = ""


@dataclass
class SeasonModifiers:
    income: float = 1.0
    speed: float = 1.0
    production_time: float = 1.0
    storage_capacity: float = 1.0


# ---------------------------------------------------------------------------
# Scenario configuration
# ---------------------------------------------------------------------------

@dataclass
class StorageConfig:
    default_capacity: int = DEFAULT_STORAGE_CAPACITY
    capacities: Dict[str, int] = field(default_factory=dict)


@dataclass
class DemandConfig:
    window: float = DEMAND_WINDOW_SECONDS
    reduced_factor: float = PAYMENT_MULTIPLIER_NOT_MET
    growth_factor: float = DEMAND_SCALING_MULTIPLIER
    scaling_interval: float = DEMAND_SCALING_INTERVAL
    targets: Dict[str, float] = field(default_factory=dict)


@dataclass
class FleetConfig:
    purchase_costs: List[float] = field(default_factory=lambda: list(FLEET_PURCHASE_COSTS))
    purchase_amounts: List[int] = field(default_factory=lambda: list(FLEET_PURCHASE_AMOUNTS))


@dataclass
class SeasonsConfig:
    enabled: bool = False
    seconds_per_week: float = SECONDS_PER_WEEK
    seasons: List[SeasonData] = field(default_factory=list)


@dataclass
class Scenario:
    name: str
    description: str = ""
    starting_balance: float = 0.0
    starting_carriers: int = 0
    hub_position: Vec3 = field(default_factory=Vec3)
    storage: StorageConfig = field(default_factory=StorageConfig)
    demand: DemandConfig = field(default_factory=DemandConfig)
    fleet: FleetConfig = field(default_factory=FleetConfig)
    seasons: SeasonsConfig = field(default_factory=SeasonsConfig)
    routes: List[Route] = field(default_factory=list)
    recipes: List[Recipe] = field(default_factory=list)  # priority order
    allocations: Dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Simulation results
# ---------------------------------------------------------------------------

@dataclass
class Snapshot:
    time: float
    balance: float = 0.0
    stock: Dict[str, int] = field(default_factory=dict)
    carriers_owned: int = 0
    carriers_available: int = 0
    carriers_active: int = 0
    running_recipes: int = 0
    total_discarded: int = 0
    season: Optional[str] = None


@dataclass
class SimResult:
    scenario_name: str = ""
    duration: float = 0.0

    snapshots: List[Snapshot] = field(default_factory=list)
    completion_log: List[Tuple[float, str, float]] = field(default_factory=list)
    recipe_completions: Dict[str, int] = field(default_factory=dict)
    deliveries_by_commodity: Dict[str, int] = field(default_factory=dict)
    discards_by_commodity: Dict[str, int] = field(default_factory=dict)
    season_log: List[Tuple[float, str]] = field(default_factory=list)

    total_earned: float = 0.0
    total_spent: float = 0.0
    spending_by_category: Dict[str, float] = field(default_factory=dict)
    final_balance: float = 0.0
    peak_balance: float = 0.0
    year_ended_at: Optional[float] = None

    @property
    def total_deliveries(self) -> int:
        return sum(self.deliveries_by_commodity.values())

    @property
    def total_discarded(self) -> int:
        return sum(self.discards_by_commodity.values())
