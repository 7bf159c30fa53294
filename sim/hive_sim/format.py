"""
Hive Economy Simulator - Output Formatting
============================================
Pretty-printing for simulation results.
"""

from hive_sim.arc import RouteTiming
from hive_sim.models import SimResult


def fmt_time(seconds: float) -> str:
    m, s = divmod(int(round(seconds)), 60)
    return f"{m}:{s:02d}"


def fmt_money(val: float) -> str:
    if val >= 10000:
        return f"{val:,.0f}"
    return f"{val:.2f}"


def print_full_report(result: SimResult):
    print()
    print("=" * 70)
    print(f"  HIVE ECONOMY SIMULATOR")
    print(f"  Scenario: {result.scenario_name}")
    print(f"  Duration: {fmt_time(result.duration)}")
    print("=" * 70)

    print_completions(result)
    print_snapshots(result)
    print_seasons(result)
    print_deliveries(result)
    print_summary(result)


def print_completions(result: SimResult, limit: int = 20):
    print()
    print("--- PRODUCTION LOG ---")
    if not result.completion_log:
        print(" Nothing produced")
        return
    print(f" {'Time':>6}  {'Recipe':<22} {'Value':>10}")
    print(f" {'----':>6}  {'------':<22} {'-----':>10}")
    for t, recipe_id, value in result.completion_log[:limit]:
        print(f" {fmt_time(t):>6}  {recipe_id:<22} {fmt_money(value):>10}")
    hidden = len(result.completion_log) - limit
    if hidden > 0:
        print(f" ... {hidden} more")


def print_snapshots(result: SimResult):
    print()
    print("--- ECONOMY SNAPSHOTS ---")
    print(f" {'Time':>6} {'Balance':>10} {'Owned':>6} {'Free':>5} {'Flying':>7} "
          f"{'Runs':>5} {'Lost':>5}  Stock")
    print(f" {'----':>6} {'-------':>10} {'-----':>6} {'----':>5} {'------':>7} "
          f"{'----':>5} {'----':>5}  -----")

    for s in result.snapshots:
        stock = ", ".join(f"{c}={q}" for c, q in sorted(s.stock.items())) or "-"
        print(f" {fmt_time(s.time):>6} {fmt_money(s.balance):>10} {s.carriers_owned:>6} "
              f"{s.carriers_available:>5} {s.carriers_active:>7} "
              f"{s.running_recipes:>5} {s.total_discarded:>5}  {stock}")


def print_seasons(result: SimResult):
    if not result.season_log:
        return
    print()
    print("--- SEASONS ---")
    for t, season in result.season_log:
        print(f" {fmt_time(t):>6}  {season}")
    if result.year_ended_at is not None:
        print(f" {fmt_time(result.year_ended_at):>6}  year ended")


def print_deliveries(result: SimResult):
    print()
    print("--- DELIVERIES ---")
    commodities = sorted(set(result.deliveries_by_commodity) | set(result.discards_by_commodity))
    if not commodities:
        print(" None")
        return
    print(f" {'Commodity':<16} {'Delivered':>10} {'Discarded':>10}")
    for c in commodities:
        print(f" {c:<16} {result.deliveries_by_commodity.get(c, 0):>10} "
              f"{result.discards_by_commodity.get(c, 0):>10}")


def print_summary(result: SimResult):
    print()
    print("--- SUMMARY ---")
    print(f" Total earned:      {fmt_money(result.total_earned)}")
    print(f" Total spent:       {fmt_money(result.total_spent)}")
    for category, amount in sorted(result.spending_by_category.items()):
        print(f"   {category:<20} {fmt_money(amount)}")
    print(f" Final balance:     {fmt_money(result.final_balance)}")
    print(f" Peak balance:      {fmt_money(result.peak_balance)}")
    print(f" Recipes completed: {sum(result.recipe_completions.values())}")
    for recipe_id, n in sorted(result.recipe_completions.items()):
        print(f"   {recipe_id:<20} x{n}")
    print(f" Units delivered:   {result.total_deliveries}")
    print(f" Units discarded:   {result.total_discarded}")


def print_route_timing(timing: RouteTiming):
    print()
    print("--- ROUTE TIMING ---")
    print(f" Arc length:      {timing.arc_length:.2f}")
    print(f" Effective speed: {timing.effective_speed:.2f}/s")
    print(f" One way:         {timing.one_way_time:.2f}s")
    print(f" Round trip:      {timing.round_trip_time:.2f}s")
    print(f" Carriers:        {timing.allocated}")
    if timing.spawns:
        print(f" Spawn interval:  {timing.spawn_interval:.2f}s")
    else:
        print(f" Spawn interval:  -- (no carriers allocated)")
