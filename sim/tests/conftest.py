"""Shared test fixtures for the hive simulator test suite."""

import sys
from pathlib import Path

import pytest

# Ensure sim/ is on the path so `hive_sim` imports work
SIM_ROOT = Path(__file__).parent.parent
if str(SIM_ROOT) not in sys.path:
    sys.path.insert(0, str(SIM_ROOT))

from hive_sim.econ import EconomyLedger
from hive_sim.events import EventQueue
from hive_sim.models import (
    Recipe, Route, Scenario, StorageConfig, DemandConfig, Vec3,
)
from hive_sim.storage import StorageLedger


@pytest.fixture
def events():
    return EventQueue()


@pytest.fixture
def storage(events):
    return StorageLedger(default_capacity=100, events=events)


@pytest.fixture
def economy(events):
    return EconomyLedger(events=events)


@pytest.fixture
def straight_route():
    """Flat route, zero altitude: the arc is a straight 30-unit line."""
    return Route(
        route_id="meadow",
        commodity="pollen",
        producer_position=Vec3(30.0, 0.0, 0.0),
        hub_position=Vec3(0.0, 0.0, 0.0),
        base_speed=6.0,
        arc_altitude=0.0,
        capacity=5,
        gathering_duration=1.0,
        payload_size=1,
    )


@pytest.fixture
def honey_recipe():
    """2 pollen -> 2.0 over 5s, default tier tables."""
    return Recipe(
        recipe_id="honey",
        ingredients={"pollen": 2},
        base_production_time=5.0,
        base_value=2.0,
    )


@pytest.fixture
def simple_scenario(straight_route, honey_recipe):
    """One route with 2 carriers feeding one recipe. No seasons, no demand targets."""
    return Scenario(
        name="Simple",
        starting_balance=0.0,
        starting_carriers=2,
        storage=StorageConfig(default_capacity=100),
        demand=DemandConfig(),
        routes=[straight_route],
        recipes=[honey_recipe],
        allocations={"meadow": 2},
    )
