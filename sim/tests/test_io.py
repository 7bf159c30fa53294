"""Tests for scenario YAML I/O."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from hive_sim.constants import DEFAULT_ROUTE_CAPACITY, DEFAULT_STORAGE_CAPACITY
from hive_sim.engine import SimulationEngine
from hive_sim.errors import InvalidArgument
from hive_sim.io import export_result_json, load_scenario, save_scenario, scenario_from_dict
from hive_sim.models import Vec3

MEADOW = Path(__file__).parent.parent / "data" / "scenarios" / "meadow.yaml"


def test_load_meadow():
    sc = load_scenario(str(MEADOW))
    assert sc.name == "Meadow Start"
    assert sc.starting_carriers == 4
    assert [r.route_id for r in sc.routes] == ["wildflower_patch", "clover_patch", "heather_patch"]
    assert sc.allocations == {"wildflower_patch": 3, "clover_patch": 1}
    heather = sc.routes[2]
    assert not heather.unlocked
    assert heather.unlock_cost == 120.0
    assert sc.seasons.enabled
    assert [s.name for s in sc.seasons.seasons] == ["spring", "summer", "autumn"]

    blend = sc.recipes[1]
    assert not blend.unlocked
    assert blend.prerequisites == ["wildflower_honey"]


def test_routes_inherit_hub_position():
    sc = scenario_from_dict({
        "hub": {"position": [1, 2, 3]},
        "routes": [{"id": "r", "producer": [10, 0, 0]}],
    })
    route = sc.routes[0]
    assert route.hub_position == Vec3(1.0, 2.0, 3.0)
    assert route.capacity == DEFAULT_ROUTE_CAPACITY


def test_defaults_for_missing_sections():
    sc = scenario_from_dict({}, default_name="empty")
    assert sc.name == "empty"
    assert sc.routes == []
    assert sc.storage.default_capacity == DEFAULT_STORAGE_CAPACITY
    assert not sc.seasons.enabled


def test_duplicate_ids_rejected():
    with pytest.raises(InvalidArgument):
        scenario_from_dict({"routes": [{"id": "a", "producer": [1, 0, 0]},
                                       {"id": "a", "producer": [2, 0, 0]}]})
    with pytest.raises(InvalidArgument):
        scenario_from_dict({"recipes": [{"id": "x", "time": 1, "value": 1},
                                        {"id": "x", "time": 2, "value": 2}]})


def test_recipe_requires_time_and_value():
    with pytest.raises(InvalidArgument):
        scenario_from_dict({"recipes": [{"id": "x", "time": 1}]})


def test_save_and_reload(tmp_path, simple_scenario):
    path = tmp_path / "simple.yaml"
    save_scenario(simple_scenario, str(path))
    assert load_scenario(str(path)) == simple_scenario


def test_meadow_runs(tmp_path):
    engine = SimulationEngine(load_scenario(str(MEADOW)))
    result = engine.run(60.0)
    assert result.total_deliveries > 0
    assert result.season_log[0] == (0.0, "spring")

    out = tmp_path / "result.json"
    export_result_json(result, str(out))
    data = json.loads(out.read_text())
    assert data["scenario_name"] == "Meadow Start"
    assert data["total_deliveries"] == result.total_deliveries


def test_null_sections_take_defaults():
    sc = scenario_from_dict({"hub": None, "storage": None, "demand": None, "fleet": None,
                             "seasons": None, "routes": None, "recipes": None})
    assert sc.hub_position == Vec3(0.0, 0.0, 0.0)
    assert sc.storage.default_capacity == DEFAULT_STORAGE_CAPACITY
    assert sc.routes == []
    assert sc.recipes == []

    sc = scenario_from_dict({"storage": {"capacities": None},
                             "recipes": [{"id": "x", "time": 1, "value": 1,
                                          "ingredients": None, "prerequisites": None}]})
    assert sc.storage.capacities == {}
    assert sc.recipes[0].ingredients == {}
    assert sc.recipes[0].prerequisites == []


@pytest.mark.parametrize("data", [
    [],
    {"storage": 5},
    {"routes": {"id": "a"}},
    {"routes": ["a"]},
    {"recipes": [{"id": "x", "time": "soon", "value": 1}]},
    {"seasons": {"schedule": [{"weeks": 2}]}},
])
def test_malformed_scenarios_raise_invalid_argument(data):
    with pytest.raises(InvalidArgument):
        scenario_from_dict(data)


def test_locked_route_cannot_start_allocated():
    with pytest.raises(InvalidArgument):
        scenario_from_dict({"routes": [{"id": "r", "producer": [5, 0, 0],
                                        "unlocked": False, "allocated": 2}]})


def test_locked_route_round_trips(tmp_path):
    sc = load_scenario(str(MEADOW))
    path = tmp_path / "meadow.yaml"
    save_scenario(sc, str(path))
    again = load_scenario(str(path))
    assert not again.routes[2].unlocked
    assert again.routes[2].unlock_cost == 120.0
