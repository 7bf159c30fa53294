"""
Hive Economy Simulator - I/O
==============================
Load and save scenarios from YAML files.
"""

import json
from dataclasses import asdict
from pathlib import Path

import yaml

from hive_sim.constants import (
    DEFAULT_CARRIER_SPEED, DEFAULT_ARC_ALTITUDE, DEFAULT_GATHERING_DURATION,
    DEFAULT_PAYLOAD_SIZE, DEFAULT_ROUTE_CAPACITY, ROUTE_CAPACITY_PER_UPGRADE,
    ROUTE_CAPACITY_UPGRADE_COST, ROUTE_MAX_CAPACITY_TIERS, RECIPE_MAX_TIER,
    RECIPE_UPGRADE_COSTS, RECIPE_INGREDIENT_DISCOUNT, RECIPE_TIME_DISCOUNT,
    RECIPE_VALUE_BONUS, DEFAULT_STORAGE_CAPACITY, DEMAND_WINDOW_SECONDS,
    DEMAND_SCALING_INTERVAL, DEMAND_SCALING_MULTIPLIER, PAYMENT_MULTIPLIER_NOT_MET,
    FLEET_PURCHASE_COSTS, FLEET_PURCHASE_AMOUNTS, SECONDS_PER_WEEK,
)
from hive_sim.errors import InvalidArgument, SimError
from hive_sim.models import (
    Scenario, Route, Recipe, Vec3, SeasonData, SimResult,
    StorageConfig, DemandConfig, FleetConfig, SeasonsConfig,
)


def load_scenario(filepath: str) -> Scenario:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}
    return scenario_from_dict(data, default_name=Path(filepath).stem)


def scenario_from_dict(data: dict, default_name: str = "scenario") -> Scenario:
    """Build a Scenario from parsed YAML. Malformed input raises InvalidArgument."""
    try:
        return _build_scenario(data, default_name)
    except SimError:
        raise
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"invalid scenario: {e}") from e


def _build_scenario(data: dict, default_name: str) -> Scenario:
    if not isinstance(data, dict):
        raise InvalidArgument(f"scenario must be a mapping, got {type(data).__name__}")
    hub = Vec3.from_seq(_section(data, "hub").get("position") or [0, 0, 0])

    storage_data = _section(data, "storage")
    demand_data = _section(data, "demand")
    fleet_data = _section(data, "fleet")
    seasons_data = _section(data, "seasons")

    sc = Scenario(
        name=data.get("name", default_name),
        description=data.get("description", ""),
        starting_balance=float(data.get("starting_balance", 0.0)),
        starting_carriers=int(data.get("starting_carriers", 0)),
        hub_position=hub,
        storage=StorageConfig(
            default_capacity=int(storage_data.get("default_capacity", DEFAULT_STORAGE_CAPACITY)),
            capacities={k: int(v) for k, v in _section(storage_data, "capacities").items()},
        ),
        demand=DemandConfig(
            window=float(demand_data.get("window", DEMAND_WINDOW_SECONDS)),
            reduced_factor=float(demand_data.get("reduced_factor", PAYMENT_MULTIPLIER_NOT_MET)),
            growth_factor=float(demand_data.get("growth_factor", DEMAND_SCALING_MULTIPLIER)),
            scaling_interval=float(demand_data.get("scaling_interval", DEMAND_SCALING_INTERVAL)),
            targets={k: float(v) for k, v in _section(demand_data, "targets").items()},
        ),
        fleet=FleetConfig(
            purchase_costs=[float(c) for c in _list(fleet_data, "purchase_costs", FLEET_PURCHASE_COSTS)],
            purchase_amounts=[int(a) for a in _list(fleet_data, "purchase_amounts", FLEET_PURCHASE_AMOUNTS)],
        ),
        seasons=SeasonsConfig(
            enabled=bool(seasons_data.get("enabled", False)),
            seconds_per_week=float(seasons_data.get("seconds_per_week", SECONDS_PER_WEEK)),
            seasons=[_parse_season(s) for s in _list(seasons_data, "schedule")],
        ),
    )

    seen = set()
    for item in _list(data, "routes"):
        route = _parse_route(item, hub)
        if route.route_id in seen:
            raise InvalidArgument(f"duplicate route id: {route.route_id}")
        seen.add(route.route_id)
        sc.routes.append(route)
        if item.get("allocated"):
            if not route.unlocked:
                raise InvalidArgument(f"locked route {route.route_id} cannot start with carriers")
            sc.allocations[route.route_id] = int(item["allocated"])

    seen = set()
    for item in _list(data, "recipes"):
        recipe = _parse_recipe(item)
        if recipe.recipe_id in seen:
            raise InvalidArgument(f"duplicate recipe id: {recipe.recipe_id}")
        seen.add(recipe.recipe_id)
        sc.recipes.append(recipe)

    return sc


def save_scenario(sc: Scenario, filepath: str):
    with open(filepath, "w") as f:
        yaml.dump(scenario_to_dict(sc), f, default_flow_style=False, sort_keys=False)


def scenario_to_dict(sc: Scenario) -> dict:
    data = {
        "name": sc.name,
        "description": sc.description,
        "starting_balance": sc.starting_balance,
        "starting_carriers": sc.starting_carriers,
        "hub": {"position": sc.hub_position.as_list()},
        "storage": {
            "default_capacity": sc.storage.default_capacity,
            "capacities": dict(sc.storage.capacities),
        },
        "demand": {
            "window": sc.demand.window,
            "reduced_factor": sc.demand.reduced_factor,
            "growth_factor": sc.demand.growth_factor,
            "scaling_interval": sc.demand.scaling_interval,
            "targets": dict(sc.demand.targets),
        },
        "fleet": {
            "purchase_costs": list(sc.fleet.purchase_costs),
            "purchase_amounts": list(sc.fleet.purchase_amounts),
        },
        "seasons": {
            "enabled": sc.seasons.enabled,
            "seconds_per_week": sc.seasons.seconds_per_week,
            "schedule": [_serialize_season(s) for s in sc.seasons.seasons],
        },
        "routes": [_serialize_route(r, sc.allocations.get(r.route_id, 0)) for r in sc.routes],
        "recipes": [_serialize_recipe(r) for r in sc.recipes],
    }
    return data


def export_result_json(result: SimResult, filepath: str):
    """Export a finished run as JSON for external dashboards."""
    data = asdict(result)
    data["total_deliveries"] = result.total_deliveries
    data["total_discarded"] = result.total_discarded
    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)


# ---------------------------------------------------------------------------
# Route / recipe / season YAML helpers
# ---------------------------------------------------------------------------

def _section(data: dict, key: str) -> dict:
    """A nested mapping; a missing or empty (null) key reads as {}."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidArgument(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _list(data: dict, key: str, default=()) -> list:
    value = data.get(key)
    if value is None:
        return list(default)
    if not isinstance(value, list):
        raise InvalidArgument(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _parse_route(item: dict, hub: Vec3) -> Route:
    if not isinstance(item, dict) or "id" not in item or "producer" not in item:
        raise InvalidArgument(f"route needs 'id' and 'producer': {item}")
    return Route(
        route_id=str(item["id"]),
        commodity=str(item.get("commodity", "pollen")),
        producer_position=Vec3.from_seq(item["producer"]),
        hub_position=Vec3.from_seq(item["hub"]) if "hub" in item else hub,
        base_speed=float(item.get("speed", DEFAULT_CARRIER_SPEED)),
        arc_altitude=float(item.get("altitude", DEFAULT_ARC_ALTITUDE)),
        capacity=int(item.get("capacity", DEFAULT_ROUTE_CAPACITY)),
        gathering_duration=float(item.get("gathering_duration", DEFAULT_GATHERING_DURATION)),
        payload_size=int(item.get("payload_size", DEFAULT_PAYLOAD_SIZE)),
        capacity_upgrade_cost=float(item.get("capacity_upgrade_cost", ROUTE_CAPACITY_UPGRADE_COST)),
        capacity_per_upgrade=int(item.get("capacity_per_upgrade", ROUTE_CAPACITY_PER_UPGRADE)),
        max_capacity_tiers=int(item.get("max_capacity_tiers", ROUTE_MAX_CAPACITY_TIERS)),
        unlocked=bool(item.get("unlocked", True)),
        unlock_cost=float(item.get("unlock_cost", 0.0)),
    )


def _serialize_route(route: Route, allocated: int) -> dict:
    data = {
        "id": route.route_id,
        "commodity": route.commodity,
        "producer": route.producer_position.as_list(),
        "hub": route.hub_position.as_list(),
        "speed": route.base_speed,
        "altitude": route.arc_altitude,
        "capacity": route.capacity,
        "gathering_duration": route.gathering_duration,
        "payload_size": route.payload_size,
        "capacity_upgrade_cost": route.capacity_upgrade_cost,
        "capacity_per_upgrade": route.capacity_per_upgrade,
        "max_capacity_tiers": route.max_capacity_tiers,
        "unlocked": route.unlocked,
        "unlock_cost": route.unlock_cost,
    }
    if allocated:
        data["allocated"] = allocated
    return data


def _parse_recipe(item: dict) -> Recipe:
    if not isinstance(item, dict):
        raise InvalidArgument(f"recipe must be a mapping: {item}")
    for key in ("id", "time", "value"):
        if key not in item:
            raise InvalidArgument(f"recipe needs '{key}': {item}")
    unlocked_by_default = bool(item.get("unlocked", True))
    return Recipe(
        recipe_id=str(item["id"]),
        ingredients={k: int(v) for k, v in _section(item, "ingredients").items()},
        base_production_time=float(item["time"]),
        base_value=float(item["value"]),
        description=item.get("description", ""),
        tier=int(item.get("tier", 0)),
        max_tier=int(item.get("max_tier", RECIPE_MAX_TIER)),
        tier_ingredient_discount=[float(x) for x in _list(item, "ingredient_discount", RECIPE_INGREDIENT_DISCOUNT)],
        tier_time_discount=[float(x) for x in _list(item, "time_discount", RECIPE_TIME_DISCOUNT)],
        tier_value_bonus=[float(x) for x in _list(item, "value_bonus", RECIPE_VALUE_BONUS)],
        upgrade_costs=[float(x) for x in _list(item, "upgrade_costs", RECIPE_UPGRADE_COSTS)],
        unlocked_by_default=unlocked_by_default,
        unlocked=unlocked_by_default,
        unlock_cost=float(item.get("unlock_cost", 0.0)),
        prerequisites=[str(p) for p in _list(item, "prerequisites")],
    )


def _serialize_recipe(recipe: Recipe) -> dict:
    return {
        "id": recipe.recipe_id,
        "description": recipe.description,
        "ingredients": dict(recipe.ingredients),
        "time": recipe.base_production_time,
        "value": recipe.base_value,
        "tier": recipe.tier,
        "max_tier": recipe.max_tier,
        "ingredient_discount": list(recipe.tier_ingredient_discount),
        "time_discount": list(recipe.tier_time_discount),
        "value_bonus": list(recipe.tier_value_bonus),
        "upgrade_costs": list(recipe.upgrade_costs),
        "unlocked": recipe.unlocked_by_default,
        "unlock_cost": recipe.unlock_cost,
        "prerequisites": list(recipe.prerequisites),
    }


def _parse_season(item: dict) -> SeasonData:
    if not isinstance(item, dict) or "name" not in item:
        raise InvalidArgument(f"season needs 'name': {item}")
    return SeasonData(
        name=str(item["name"]),
        weeks=int(item.get("weeks", 7)),
        income_modifier=float(item.get("income", 1.0)),
        speed_modifier=float(item.get("speed", 1.0)),
        production_time_modifier=float(item.get("production_time", 1.0)),
        storage_capacity_modifier=float(item.get("storage_capacity", 1.0)),
        description=item.get("description", ""),
    )


def _serialize_season(season: SeasonData) -> dict:
    return {
        "name": season.name,
        "weeks": season.weeks,
        "income": season.income_modifier,
        "speed": season.speed_modifier,
        "production_time": season.production_time_modifier,
        "storage_capacity": season.storage_capacity_modifier,
        "description": season.description,
    }
