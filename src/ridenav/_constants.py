"""Internal constants shared across the library."""

API_BASE_URL = "https://ts-backend-1-jyit.onrender.com"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
USER_AGENT = "ridenav/1 (+aiohttp)"

EARTH_RADIUS_M = 6_371_000.0

# ------------------------------------------------------------------
# Traffic rating  (duration_in_traffic / duration  →  1-5)
# ------------------------------------------------------------------

#: Upper bounds (inclusive) for ratings 1-4; anything above the last is 5.
TRAFFIC_RATIO_BREAKPOINTS: tuple[float, ...] = (1.2, 1.5, 2.0, 2.5)
TRAFFIC_RATING_MIN = 1
TRAFFIC_RATING_MAX = 5

# ------------------------------------------------------------------
# Off-route thresholds
# ------------------------------------------------------------------

OFF_ROUTE_THRESHOLDS_M: dict[str, float] = {"strict": 50.0, "tolerant": 100.0}

# ------------------------------------------------------------------
# Fuel model
# ------------------------------------------------------------------

FUEL_LEVEL_MIN = 0.0
FUEL_LEVEL_MAX = 100.0
FUEL_RANGE_LOW_FACTOR = 0.9
FUEL_RANGE_HIGH_FACTOR = 1.1

MPS_TO_KMH = 3.6

# Directions service statuses that mean "no route" rather than a failure.
NO_ROUTE_STATUSES: frozenset[str] = frozenset({"ZERO_RESULTS", "NOT_FOUND"})
