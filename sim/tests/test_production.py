"""Tests for recipe tiers and the production scheduler."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from hive_sim.errors import InsufficientStock, InvalidArgument, InvariantViolation
from hive_sim.events import RecipeCompleted, RecipeStarted
from hive_sim.models import Recipe
from hive_sim.production import ProductionScheduler


def _recipe(recipe_id, ingredients, time=5.0, value=2.0, **kw):
    return Recipe(recipe_id=recipe_id, ingredients=ingredients,
                  base_production_time=time, base_value=value, **kw)


# ---------------------------------------------------------------------------
# Recipe tier math
# ---------------------------------------------------------------------------

def test_tier_two_example(honey_recipe):
    honey_recipe.tier = 2
    assert honey_recipe.required_ingredients() == {"pollen": 2}
    assert honey_recipe.production_time() == pytest.approx(3.75)
    assert honey_recipe.value() == pytest.approx(2.80)


def test_ingredient_floor_is_one():
    r = _recipe("drop", {"pollen": 1}, tier=5)
    assert r.required_ingredients() == {"pollen": 1}


def test_ingredient_ceil_is_exact_for_whole_results():
    """10 * 0.7 must not round up to 8."""
    r = _recipe("big", {"pollen": 10}, tier=3)
    assert r.required_ingredients() == {"pollen": 7}


def test_upgrade_cost_table(honey_recipe):
    assert honey_recipe.upgrade_cost() == 100.0
    honey_recipe.tier = 5
    assert honey_recipe.upgrade_cost() is None
    assert not honey_recipe.can_upgrade


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

def test_start_consumes_and_completion_pays(storage, economy, events, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe], events=events)
    storage.receive("pollen", 3)

    started = sched.start_pending()
    assert [r.recipe_id for r in started] == ["honey"]
    assert storage.quantity("pollen") == 1
    assert sched.is_running("honey")

    done = sched.advance(5.0)
    assert done == [RecipeCompleted(recipe_id="honey", value=2.0)]
    assert economy.balance() == pytest.approx(2.0)
    assert not sched.is_running("honey")

    kinds = [type(e) for e in events.drain()]
    assert RecipeStarted in kinds and RecipeCompleted in kinds


def test_insufficient_stock_is_silent(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    storage.receive("pollen", 1)
    assert sched.start_pending() == []
    assert storage.quantity("pollen") == 1


def test_higher_priority_gets_scarce_stock(storage, economy):
    a = _recipe("a", {"pollen": 2})
    b = _recipe("b", {"pollen": 2})
    sched = ProductionScheduler(storage, economy, [a, b])
    storage.receive("pollen", 2)
    assert [r.recipe_id for r in sched.start_pending()] == ["a"]


def test_priority_swap_changes_winner(storage, economy):
    a = _recipe("a", {"pollen": 2})
    b = _recipe("b", {"pollen": 2})
    sched = ProductionScheduler(storage, economy, [a, b])
    sched.increase_priority("b")
    assert sched.priority_order() == ["b", "a"]
    storage.receive("pollen", 2)
    assert [r.recipe_id for r in sched.start_pending()] == ["b"]


def test_priority_moves_are_adjacent_swaps(storage, economy):
    recipes = [_recipe(x, {"pollen": 1}) for x in ("a", "b", "c")]
    sched = ProductionScheduler(storage, economy, recipes)
    sched.increase_priority("a")       # already first
    sched.decrease_priority("c")       # already last
    assert sched.priority_order() == ["a", "b", "c"]
    sched.decrease_priority("a")
    assert sched.priority_order() == ["b", "a", "c"]


def test_lower_priority_uses_leftovers(storage, economy):
    a = _recipe("a", {"pollen": 3})
    b = _recipe("b", {"clover": 1})
    sched = ProductionScheduler(storage, economy, [a, b])
    storage.receive("pollen", 1)
    storage.receive("clover", 1)
    assert [r.recipe_id for r in sched.start_pending()] == ["b"]


def test_same_inputs_same_starts(storage, economy):
    """Identical stock and order always start the same recipes."""
    def run_once():
        from hive_sim.storage import StorageLedger
        from hive_sim.econ import EconomyLedger
        st = StorageLedger()
        st.receive("pollen", 5)
        st.receive("clover", 2)
        recipes = [_recipe("a", {"pollen": 2, "clover": 1}),
                   _recipe("b", {"pollen": 2}),
                   _recipe("c", {"clover": 2})]
        sched = ProductionScheduler(st, EconomyLedger(), recipes)
        return [r.recipe_id for r in sched.start_pending()], st.snapshot()

    assert run_once() == run_once()
    assert run_once()[0] == ["a", "b"]


def test_locked_recipe_is_skipped(storage, economy):
    locked = _recipe("royal", {"pollen": 1}, unlocked=False)
    sched = ProductionScheduler(storage, economy, [locked])
    storage.receive("pollen", 5)
    assert sched.start_pending() == []


def test_pause_freezes_timer_and_blocks_starts(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    storage.receive("pollen", 4)
    sched.start_pending()
    sched.advance(2.0)
    sched.pause("honey")
    sched.advance(100.0)
    assert sched.is_running("honey")
    assert sched.progress("honey") == pytest.approx(0.4)

    sched.resume("honey")
    assert len(sched.advance(3.0)) == 1

    sched.pause("honey")
    assert sched.start_pending() == []
    assert storage.quantity("pollen") == 2


def test_remove_recipe_cancels_run(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    storage.receive("pollen", 2)
    sched.start_pending()
    sched.remove_recipe("honey")
    assert sched.priority_order() == []
    assert sched.advance(10.0) == []
    assert economy.balance() == 0.0


def test_add_recipe_goes_last(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    sched.add_recipe(_recipe("mead", {"pollen": 4}))
    assert sched.priority_order() == ["honey", "mead"]
    with pytest.raises(InvalidArgument):
        sched.add_recipe(_recipe("mead", {"pollen": 4}))


def test_mutation_during_pass_is_deferred(storage, economy, honey_recipe):
    mead = _recipe("mead", {"pollen": 1})
    sched = ProductionScheduler(storage, economy, [honey_recipe, mead])
    storage.receive("pollen", 2)
    sched.start_pending()

    seen = []

    def earn_hook(amount, source=None):
        sched.decrease_priority("honey")
        seen.append(sched.priority_order())

    economy.earn = earn_hook
    sched.advance(5.0)
    assert seen == [["honey", "mead"]]
    assert sched.priority_order() == ["mead", "honey"]


def test_commit_failure_after_snapshot_is_fatal(storage, economy, honey_recipe, monkeypatch):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    storage.receive("pollen", 2)

    def vanish(requirements):
        raise InsufficientStock("pollen", 2, 0)

    monkeypatch.setattr(storage, "consume_many", vanish)
    with pytest.raises(InvariantViolation):
        sched.start_pending()


def test_demand_multiplier_uses_worst_ingredient(storage, economy):
    blend = _recipe("blend", {"pollen": 1, "clover": 1}, value=10.0)
    rates = {"pollen": 1.0, "clover": 0.5}
    sched = ProductionScheduler(storage, economy, [blend], payout_multiplier=rates.get)
    storage.receive("pollen", 1)
    storage.receive("clover", 1)
    sched.start_pending()
    sched.advance(5.0)
    assert economy.balance() == pytest.approx(5.0)


def test_season_modifiers(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    sched.income_modifier = 1.5
    sched.production_time_modifier = 2.0
    storage.receive("pollen", 2)
    run = sched.start_pending()[0]
    assert run.total_time == pytest.approx(10.0)
    sched.advance(10.0)
    assert economy.balance() == pytest.approx(3.0)


def test_run_keeps_tier_at_start(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    storage.receive("pollen", 2)
    sched.start_pending()
    sched.upgrade_tier("honey")
    sched.advance(5.0)
    assert economy.balance() == pytest.approx(2.0)
    assert sched.recipe("honey").tier == 1


# ---------------------------------------------------------------------------
# Unlocks and tiers
# ---------------------------------------------------------------------------

def test_unlock_requires_prerequisites(storage, economy, honey_recipe):
    royal = _recipe("royal", {"pollen": 3}, unlocked=False, prerequisites=["honey", "mead"])
    mead = _recipe("mead", {"pollen": 2}, unlocked=False)
    sched = ProductionScheduler(storage, economy, [honey_recipe, mead, royal])

    assert sched.missing_prerequisites("royal") == ["mead"]
    with pytest.raises(InvalidArgument):
        sched.unlock("royal")

    sched.unlock("mead")
    sched.unlock("royal")
    assert sched.recipe("royal").unlocked


def test_upgrade_tier_limits(storage, economy, honey_recipe):
    locked = _recipe("royal", {"pollen": 3}, unlocked=False)
    sched = ProductionScheduler(storage, economy, [honey_recipe, locked])
    with pytest.raises(InvalidArgument):
        sched.upgrade_tier("royal")
    for _ in range(5):
        sched.upgrade_tier("honey")
    with pytest.raises(InvalidArgument):
        sched.upgrade_tier("honey")


def test_reset_restores_initial_recipes(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    sched.upgrade_tier("honey")
    sched.add_recipe(_recipe("mead", {"pollen": 2}))
    sched.reset()
    assert sched.priority_order() == ["honey"]
    assert sched.recipe("honey").tier == 0


def test_is_paused(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    assert not sched.is_paused("honey")
    sched.pause("honey")
    assert sched.is_paused("honey")
    sched.resume("honey")
    assert not sched.is_paused("honey")


def test_duplicate_add_during_pass_is_rejected(storage, economy, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe])
    storage.receive("pollen", 2)
    sched.start_pending()

    errors = []

    def earn_hook(amount, source=None):
        sched.add_recipe(_recipe("mead", {"pollen": 4}))
        try:
            sched.add_recipe(_recipe("mead", {"pollen": 4}))
        except InvalidArgument as e:
            errors.append(e)

    economy.earn = earn_hook
    sched.advance(5.0)
    assert len(errors) == 1
    assert sched.priority_order() == ["honey", "mead"]


def test_finished_recipe_restarts_in_the_same_tick(storage, economy, events, honey_recipe):
    sched = ProductionScheduler(storage, economy, [honey_recipe], events=events)
    storage.receive("pollen", 4)
    sched.start_pending()
    events.drain()

    done = sched.advance(5.0)
    started = sched.start_pending()

    assert [r.recipe_id for r in done] == ["honey"]
    assert [r.recipe_id for r in started] == ["honey"]
    assert storage.quantity("pollen") == 0
    kinds = [type(e).__name__ for e in events.drain()]
    assert kinds.index("RecipeCompleted") < kinds.index("RecipeStarted")
