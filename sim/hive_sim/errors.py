"""
Hive Economy Simulator - Errors
=================================
Exception taxonomy shared by every subsystem.

Allocation and stock errors are recoverable: they are raised before any state
changes, so callers can turn them into "cannot do that" feedback.
InvariantViolation means the single-threaded tick discipline was broken and
must never be swallowed.
"""

from typing import Optional


class SimError(Exception):
    """Base class for all simulator errors."""


class InvalidArgument(SimError, ValueError):
    """Zero/negative quantity, unknown id, or similar caller bug."""


# ---------------------------------------------------------------------------
# Fleet allocation
# ---------------------------------------------------------------------------

class AllocationError(SimError):
    def __init__(self, route_id: str, message: str):
        super().__init__(message)
        self.route_id = route_id


class PoolExhausted(AllocationError):
    def __init__(self, route_id: str, requested: int, available: int):
        super().__init__(
            route_id,
            f"Cannot allocate {requested} carrier(s) to '{route_id}': "
            f"only {available} available",
        )
        self.requested = requested
        self.available = available


class CapacityExceeded(AllocationError):
    def __init__(self, route_id: str, requested: int, allocated: int, capacity: int):
        super().__init__(
            route_id,
            f"Route '{route_id}' holds {allocated}/{capacity}; "
            f"cannot add {requested} more",
        )
        self.requested = requested
        self.allocated = allocated
        self.capacity = capacity


class Underflow(AllocationError):
    def __init__(self, route_id: str, requested: int, allocated: int):
        super().__init__(
            route_id,
            f"Cannot release {requested} carrier(s) from '{route_id}': "
            f"only {allocated} allocated",
        )
        self.requested = requested
        self.allocated = allocated


class RouteLocked(AllocationError):
    def __init__(self, route_id: str):
        super().__init__(route_id, f"Route '{route_id}' is locked; unlock it before allocating")


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class InsufficientStock(SimError):
    def __init__(self, commodity: str, requested: int, available: int):
        super().__init__(
            f"Insufficient {commodity}: need {requested}, have {available}"
        )
        self.commodity = commodity
        self.requested = requested
        self.available = available


# ---------------------------------------------------------------------------
# Fatal
# ---------------------------------------------------------------------------

class InvariantViolation(SimError, RuntimeError):
    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.detail = detail or {}
