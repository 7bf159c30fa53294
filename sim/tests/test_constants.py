"""Tests for the tuning constant tables."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from hive_sim.constants import (
    FLEET_PURCHASE_AMOUNTS, FLEET_PURCHASE_COSTS, RECIPE_INGREDIENT_DISCOUNT,
    RECIPE_MAX_TIER, RECIPE_TIME_DISCOUNT, RECIPE_UPGRADE_COSTS, RECIPE_VALUE_BONUS,
    SEASON_LAST_WEEK, TOTAL_WEEKS_IN_YEAR,
)


def test_recipe_tables_cover_every_tier():
    """Tier tables are indexed 0..max, upgrade costs 0..max-1."""
    for table in (RECIPE_INGREDIENT_DISCOUNT, RECIPE_TIME_DISCOUNT, RECIPE_VALUE_BONUS):
        assert len(table) == RECIPE_MAX_TIER + 1
        assert table[0] == 0.0
        assert table == sorted(table)
    assert len(RECIPE_UPGRADE_COSTS) == RECIPE_MAX_TIER


def test_fleet_tiers_pair_up():
    assert len(FLEET_PURCHASE_COSTS) == len(FLEET_PURCHASE_AMOUNTS)
    assert FLEET_PURCHASE_COSTS == [50.0, 100.0, 200.0, 400.0]
    assert FLEET_PURCHASE_AMOUNTS == [2, 3, 5, 8]


def test_season_weeks():
    assert SEASON_LAST_WEEK == {"spring": 7, "summer": 14, "autumn": 21}
    assert max(SEASON_LAST_WEEK.values()) == TOTAL_WEEKS_IN_YEAR
