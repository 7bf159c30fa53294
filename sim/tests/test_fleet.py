"""Tests for the shared carrier allocation pool."""

import sys
import random
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from hive_sim.errors import (
    AllocationError, CapacityExceeded, InvalidArgument, InvariantViolation, PoolExhausted,
    RouteLocked, Underflow,
)
from hive_sim.events import AllocationChanged, EventQueue, FleetGrown, RouteUnlocked
from hive_sim.fleet import FleetAllocationPool


@pytest.fixture
def pool():
    p = FleetAllocationPool()
    p.register_route("route_a", 5)
    p.register_route("route_b", 5)
    return p


def test_round_trip_example(pool):
    pool.add_to_pool(5)
    pool.allocate("route_a", 3)
    assert pool.available() == 2

    with pytest.raises(Underflow):
        pool.deallocate("route_a", 5)
    assert pool.available() == 2

    pool.deallocate("route_a", 3)
    assert pool.available() == 5


def test_pool_starts_empty():
    p = FleetAllocationPool()
    assert p.total_owned == 0
    assert p.available() == 0


def test_add_to_pool_rejects_non_positive(pool):
    with pytest.raises(InvalidArgument):
        pool.add_to_pool(0)
    with pytest.raises(InvalidArgument):
        pool.add_to_pool(-2)


def test_pool_exhausted_leaves_state_alone(pool):
    pool.add_to_pool(3)
    pool.allocate("route_a", 2)
    with pytest.raises(PoolExhausted) as exc:
        pool.allocate("route_b", 2)
    assert exc.value.available == 1
    assert pool.allocated("route_b") == 0
    assert pool.available() == 1


def test_capacity_exceeded(pool):
    pool.add_to_pool(10)
    pool.allocate("route_a", 4)
    with pytest.raises(CapacityExceeded):
        pool.allocate("route_a", 2)
    assert pool.allocated("route_a") == 4


def test_unknown_route_and_bad_amounts(pool):
    pool.add_to_pool(2)
    with pytest.raises(InvalidArgument):
        pool.allocate("nowhere")
    with pytest.raises(InvalidArgument):
        pool.allocate("route_a", 0)
    with pytest.raises(InvalidArgument):
        pool.deallocate("route_a", -1)


def test_conservation_across_routes(pool):
    pool.add_to_pool(8)
    pool.allocate("route_a", 5)
    pool.allocate("route_b", 3)
    assert pool.total_allocated() == 8
    assert pool.available() == 0
    assert sorted(pool.all_routes_with_allocation()) == [("route_a", 5), ("route_b", 3)]


def test_release_route_frees_allocation(pool):
    pool.add_to_pool(4)
    pool.allocate("route_a", 3)
    assert pool.release_route("route_a") == 3
    assert pool.available() == 4
    assert not pool.has_route("route_a")
    with pytest.raises(InvalidArgument):
        pool.allocate("route_a")


def test_lowering_capacity_trims_allocation(pool):
    pool.add_to_pool(5)
    pool.allocate("route_a", 5)
    pool.set_route_capacity("route_a", 2)
    assert pool.allocated("route_a") == 2
    assert pool.available() == 3


def test_raising_capacity_allows_more(pool):
    pool.add_to_pool(10)
    pool.allocate("route_a", 5)
    pool.set_route_capacity("route_a", 10)
    pool.allocate("route_a", 5)
    assert pool.allocated("route_a") == 10


def test_events():
    events = EventQueue()
    p = FleetAllocationPool(events=events)
    p.register_route("r", 5)
    p.add_to_pool(3)
    p.allocate("r", 2)
    p.deallocate("r", 1)

    drained = events.drain()
    assert drained[0] == FleetGrown(total_owned=3)
    changes = [e for e in drained if isinstance(e, AllocationChanged)]
    assert [c.new_count for c in changes] == [2, 1]


def test_verify_strict_raises_on_breach(pool):
    pool.add_to_pool(2)
    pool.allocate("route_a", 2)
    pool._allocations["route_a"] = 4  # corrupt directly
    with pytest.raises(InvariantViolation):
        pool.verify()


def test_verify_lenient_clamps():
    p = FleetAllocationPool(strict=False)
    p.register_route("r", 5)
    p.add_to_pool(2)
    p._allocations["r"] = 4
    p.verify()
    assert p.allocated("r") == 2
    assert p.available() == 0


def test_reset(pool):
    pool.add_to_pool(3)
    pool.allocate("route_a", 1)
    pool.reset()
    assert pool.total_owned == 0
    assert pool.routes() == []


def test_locked_route_refuses_allocation_until_unlocked():
    events = EventQueue()
    p = FleetAllocationPool(events=events)
    p.add_to_pool(3)
    p.register_route("orchard", 4, locked=True)
    assert p.is_locked("orchard")

    with pytest.raises(RouteLocked):
        p.allocate("orchard", 1)
    assert p.allocated("orchard") == 0
    assert p.available() == 3

    p.unlock_route("orchard")
    p.unlock_route("orchard")
    assert not p.is_locked("orchard")
    assert [e for e in events.drain() if isinstance(e, RouteUnlocked)] == [
        RouteUnlocked(route_id="orchard")]
    p.allocate("orchard", 2)
    assert p.allocated("orchard") == 2


def test_release_and_reset_forget_locks():
    p = FleetAllocationPool()
    p.register_route("orchard", 4, locked=True)
    p.release_route("orchard")
    p.register_route("orchard", 4)
    assert not p.is_locked("orchard")
    p.reset()
    with pytest.raises(InvalidArgument):
        p.is_locked("orchard")


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_conservation_holds_through_random_operations(seed):
    rng = random.Random(seed)
    p = FleetAllocationPool()
    p.add_to_pool(12)
    names = ["r0", "r1", "r2", "r3"]
    for name in names:
        p.register_route(name, rng.randint(0, 6))

    for _ in range(300):
        name = rng.choice(names)
        op = rng.choice(["allocate", "deallocate", "capacity", "release", "grow"])
        try:
            if op == "allocate":
                p.allocate(name, rng.randint(1, 4))
            elif op == "deallocate":
                p.deallocate(name, rng.randint(1, 4))
            elif op == "capacity":
                p.set_route_capacity(name, rng.randint(0, 8))
            elif op == "release":
                p.release_route(name)
                p.register_route(name, rng.randint(0, 6))
            else:
                p.add_to_pool(rng.randint(1, 2))
        except AllocationError:
            pass

        assert p.total_owned == p.available() + p.total_allocated()
        assert p.available() >= 0
        for route_id in p.routes():
            assert 0 <= p.allocated(route_id) <= p.route_capacity(route_id)
        p.verify()
