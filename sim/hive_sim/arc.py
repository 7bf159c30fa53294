"""
Hive Economy Simulator - Flight Arc Geometry
==============================================
Cubic Bezier flight paths between a producer and the hub, their arc length,
and the spawn cadence that keeps carriers evenly spaced around a route.

Carrier movement and spawn timing both come from these functions, so the path
a carrier flies is exactly the path the spacing was computed for.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from hive_sim.constants import ARC_SEGMENTS, CONTROL_POINT_FRACTIONS
from hive_sim.errors import InvalidArgument
from hive_sim.models import Vec3


def control_points(start: Vec3, end: Vec3, altitude: float) -> Tuple[Vec3, Vec3]:
    """Ascent and descent control points for a flattened cruise arc.

    Both sit over the horizontal projection of the displacement (30% and 70%
    of the way along) at max(start.y, end.y) + altitude.
    """
    horizontal = (end - start).flattened()
    cruise_height = max(start.y, end.y) + altitude

    f1, f2 = CONTROL_POINT_FRACTIONS
    a = start + horizontal * f1
    b = start + horizontal * f2
    return Vec3(a.x, cruise_height, a.z), Vec3(b.x, cruise_height, b.z)


def bezier_point(t: float, p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3) -> Vec3:
    # B(t) = (1-t)^3 P0 + 3(1-t)^2 t P1 + 3(1-t) t^2 P2 + t^3 P3
    u = 1.0 - t
    uu = u * u
    tt = t * t
    return (p0 * (uu * u)) + (p1 * (3.0 * uu * t)) + (p2 * (3.0 * u * tt)) + (p3 * (tt * t))


def point_on_arc(t: float, start: Vec3, end: Vec3, altitude: float) -> Vec3:
    """Position at parameter t in [0, 1] along the flight arc."""
    t = max(0.0, min(1.0, t))
    c1, c2 = control_points(start, end, altitude)
    return bezier_point(t, start, c1, c2, end)


def arc_length(start: Vec3, end: Vec3, altitude: float, segments: int = ARC_SEGMENTS) -> float:
    """Approximate arc length by summing chords over uniform parameter steps.

    Same `segments` always samples the same points, so results are exactly
    reproducible.
    """
    if segments <= 0:
        raise InvalidArgument(f"segments must be positive, got {segments}")

    c1, c2 = control_points(start, end, altitude)
    length = 0.0
    previous = start
    for i in range(1, segments + 1):
        current = bezier_point(i / segments, start, c1, c2, end)
        length += previous.distance_to(current)
        previous = current
    return length


# ---------------------------------------------------------------------------
# Spawn cadence
# ---------------------------------------------------------------------------

@dataclass
class RouteTiming:
    arc_length: float
    effective_speed: float
    one_way_time: float
    round_trip_time: float
    allocated: int
    spawn_interval: Optional[float]     # None = no spawning

    @property
    def spawns(self) -> bool:
        return self.spawn_interval is not None


def compute_timing(length: float, base_speed: float, allocated: int,
                   speed_modifier: float = 1.0) -> RouteTiming:
    """Timing for a route of one-way arc `length` with `allocated` carriers.

    spawn_interval = (2 * length / speed) / allocated, or None when nothing
    is allocated.
    """
    effective_speed = base_speed * speed_modifier
    if effective_speed <= 0:
        raise InvalidArgument(f"effective speed must be positive, got {effective_speed}")
    if allocated < 0:
        raise InvalidArgument(f"allocated count cannot be negative, got {allocated}")

    one_way = length / effective_speed
    round_trip = one_way * 2.0
    interval = round_trip / allocated if allocated > 0 else None

    return RouteTiming(
        arc_length=length,
        effective_speed=effective_speed,
        one_way_time=one_way,
        round_trip_time=round_trip,
        allocated=allocated,
        spawn_interval=interval,
    )
