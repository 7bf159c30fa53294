"""
Hive Economy Simulator - Tuning Constants
===========================================
Central registry of every tuned constant in the simulation.
Scenario files override most of these; anything they leave out falls back here.
"""

# ---------------------------------------------------------------------------
# Flight path geometry
# ---------------------------------------------------------------------------
# Control points sit at 30% / 70% of the horizontal displacement, raised to
# max(start.y, end.y) + altitude. Arc length is the sum of chord lengths over
# ARC_SEGMENTS uniform parameter steps.

ARC_SEGMENTS = 100
CONTROL_POINT_FRACTIONS = (0.3, 0.7)

# ---------------------------------------------------------------------------
# Carriers and routes
# ---------------------------------------------------------------------------

DEFAULT_CARRIER_SPEED = 6.0       # units/s
DEFAULT_ARC_ALTITUDE = 2.0        # units above the higher endpoint
DEFAULT_GATHERING_DURATION = 2.5  # seconds hovering at the producer
DEFAULT_PAYLOAD_SIZE = 1          # units carried per trip
PRODUCER_LANDING_OFFSET = 0.5     # carriers hover this far above the producer

DEFAULT_ROUTE_CAPACITY = 5
ROUTE_CAPACITY_PER_UPGRADE = 5
ROUTE_CAPACITY_UPGRADE_COST = 100.0
ROUTE_MAX_CAPACITY_TIERS = 3

# ---------------------------------------------------------------------------
# Fleet purchases (tier index -> cost / carriers granted)
# ---------------------------------------------------------------------------

FLEET_PURCHASE_COSTS = [50.0, 100.0, 200.0, 400.0]
FLEET_PURCHASE_AMOUNTS = [2, 3, 5, 8]

# ---------------------------------------------------------------------------
# Hub storage
# ---------------------------------------------------------------------------

DEFAULT_STORAGE_CAPACITY = 100

# ---------------------------------------------------------------------------
# Demand
# ---------------------------------------------------------------------------

DEMAND_WINDOW_SECONDS = 60.0
DEMAND_SCALING_INTERVAL = 60.0    # targets grow every minute
DEMAND_SCALING_MULTIPLIER = 1.2   # +20% per interval
PAYMENT_MULTIPLIER_MET = 1.0
PAYMENT_MULTIPLIER_NOT_MET = 0.5

# ---------------------------------------------------------------------------
# Recipes (index = tier, 0 = base)
# ---------------------------------------------------------------------------

RECIPE_MAX_TIER = 5
RECIPE_UPGRADE_COSTS = [100.0, 300.0, 800.0, 2000.0, 5000.0]
RECIPE_INGREDIENT_DISCOUNT = [0.0, 0.10, 0.20, 0.30, 0.40, 0.50]
RECIPE_TIME_DISCOUNT = [0.0, 0.15, 0.25, 0.35, 0.50, 0.60]
RECIPE_VALUE_BONUS = [0.0, 0.20, 0.40, 0.60, 1.00, 1.50]

# ---------------------------------------------------------------------------
# Seasons
# ---------------------------------------------------------------------------

SECONDS_PER_WEEK = 60.0
TOTAL_WEEKS_IN_YEAR = 21
# Last week (inclusive) of each season
SEASON_LAST_WEEK = {
    "spring": 7,
    "summer": 14,
    "autumn": 21,
}

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

DEFAULT_TICK_SECONDS = 0.1
DEFAULT_SNAPSHOT_INTERVAL = 30.0
