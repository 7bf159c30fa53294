"""
Hive Economy Simulator - Comparison
=====================================
Side-by-side scenario comparison.
"""

from typing import List, Optional

from hive_sim.format import fmt_money, fmt_time
from hive_sim.models import SimResult, Snapshot


def _find_snapshot_at(result: SimResult, t: float) -> Optional[Snapshot]:
    best = None
    for s in result.snapshots:
        if s.time <= t + 1e-9:
            best = s
        else:
            break
    return best


def compare_and_print(results: List[SimResult], checkpoints=(60.0, 180.0, 300.0)):
    if not results:
        return

    names = [r.scenario_name for r in results]
    col_w = max(20, max(len(n) for n in names) + 2)

    print()
    print("=" * (16 + col_w * len(results)))
    print("  SCENARIO COMPARISON")
    print("=" * (16 + col_w * len(results)))

    print(f"{'':>16}", end="")
    for name in names:
        print(f"{name:>{col_w}}", end="")
    print()
    print(f"{'':>16}", end="")
    for _ in names:
        print(f"{'=' * (col_w - 2):>{col_w}}", end="")
    print()

    for t in checkpoints:
        print(f"\nECONOMY @ {fmt_time(t)}")
        print(f" {'Balance':<15}", end="")
        for r in results:
            s = _find_snapshot_at(r, t)
            print(f"{fmt_money(s.balance) if s else '--':>{col_w}}", end="")
        print()

        print(f" {'Flying':<15}", end="")
        for r in results:
            s = _find_snapshot_at(r, t)
            print(f"{str(s.carriers_active) if s else '--':>{col_w}}", end="")
        print()

        print(f" {'Discarded':<15}", end="")
        for r in results:
            s = _find_snapshot_at(r, t)
            print(f"{str(s.total_discarded) if s else '--':>{col_w}}", end="")
        print()

    print(f"\nTOTALS")
    rows = [
        ("Earned", lambda r: fmt_money(r.total_earned)),
        ("Final balance", lambda r: fmt_money(r.final_balance)),
        ("Completions", lambda r: str(sum(r.recipe_completions.values()))),
        ("Delivered", lambda r: str(r.total_deliveries)),
        ("Discarded", lambda r: str(r.total_discarded)),
    ]
    for label, fn in rows:
        print(f" {label:<15}", end="")
        for r in results:
            print(f"{fn(r):>{col_w}}", end="")
        print()

    print(f"\nWINNER BY CATEGORY")
    _print_winner("Most earned", results, names, lambda r: r.total_earned,
                  fmt_money)
    _print_winner("Most produced", results, names,
                  lambda r: sum(r.recipe_completions.values()), str)
    _print_winner("Least waste", results, names, lambda r: r.total_discarded,
                  str, lower_is_better=True)
    print()


def best_index(values: List[float], lower_is_better: bool = False) -> int:
    """Index of the winning value; ties go to the earliest entry."""
    if lower_is_better:
        return min(range(len(values)), key=lambda i: values[i])
    return max(range(len(values)), key=lambda i: values[i])


def _print_winner(label, results, names, metric_fn, fmt_fn, lower_is_better=False):
    vals = [metric_fn(r) for r in results]
    idx = best_index(vals, lower_is_better)
    print(f" {label:<20} {names[idx]} ({fmt_fn(vals[idx])})")
