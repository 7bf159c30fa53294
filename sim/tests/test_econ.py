"""Tests for the economy ledger."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from hive_sim.econ import EconomyLedger
from hive_sim.errors import InvalidArgument
from hive_sim.events import BalanceChanged, EventQueue


def test_earn_and_spend():
    ledger = EconomyLedger(starting_balance=50.0)
    ledger.earn(25.0, source="honey")
    assert ledger.balance() == 75.0
    assert ledger.try_spend(70.0)
    assert ledger.balance() == pytest.approx(5.0)
    assert ledger.total_earned == 25.0
    assert ledger.total_spent == 70.0
    assert ledger.earnings_by_source() == {"honey": 25.0}


def test_failed_spend_changes_nothing():
    ledger = EconomyLedger(starting_balance=10.0)
    assert not ledger.try_spend(10.01)
    assert ledger.balance() == 10.0
    assert ledger.total_spent == 0.0


def test_can_afford_exact_amount():
    ledger = EconomyLedger(starting_balance=10.0)
    assert ledger.can_afford(10.0)
    assert not ledger.can_afford(10.5)


def test_earn_rejects_non_positive():
    ledger = EconomyLedger()
    with pytest.raises(InvalidArgument):
        ledger.earn(0.0)
    with pytest.raises(InvalidArgument):
        ledger.earn(-3.0)


def test_balance_events():
    events = EventQueue()
    ledger = EconomyLedger(events=events)
    ledger.earn(5.0)
    ledger.try_spend(2.0)
    ledger.try_spend(100.0)
    balances = [e.balance for e in events.drain() if isinstance(e, BalanceChanged)]
    assert balances == [5.0, 3.0]


def test_set_balance_and_reset():
    ledger = EconomyLedger(starting_balance=20.0)
    ledger.earn(5.0, source="honey")
    ledger.set_balance(999.0)
    assert ledger.balance() == 999.0
    ledger.reset()
    assert ledger.balance() == 20.0
    assert ledger.total_earned == 0.0
    assert ledger.earnings_by_source() == {}


def test_spending_by_category():
    ledger = EconomyLedger(starting_balance=100.0)
    assert ledger.try_spend(30.0, category="carriers")
    assert ledger.try_spend(20.0, category="carriers")
    assert ledger.try_spend(10.0, category="storage")
    assert ledger.try_spend(5.0)
    assert not ledger.try_spend(500.0, category="storage")

    assert ledger.spending_by_category() == {"carriers": 50.0, "storage": 10.0}
    assert ledger.total_spent == 65.0

    ledger.reset()
    assert ledger.spending_by_category() == {}
