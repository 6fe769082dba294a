"""Geographic helpers shared by location-based tools."""

import math

EARTH_RADIUS_M = 6_371_000
WALK_METERS_PER_MINUTE = 80
TILE_SIZE = 256


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def walk_minutes(meters: float) -> int:
    """Walking time at the real-estate industry standard of 80 m per minute."""
    if meters <= 0:
        return 0
    return math.ceil(meters / WALK_METERS_PER_MINUTE)


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.1f}km"
    return f"{round(meters)}m"


def tile_for(lat: float, lon: float, zoom: int) -> tuple[int, int]:
    """Web Mercator tile (x, y) containing a point."""
    n = 2**zoom
    lat_rad = math.radians(max(min(lat, 85.0511), -85.0511))
    x = int((lon + 180.0) / 360.0 * n)
    y = int((1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n)
    return min(max(x, 0), n - 1), min(max(y, 0), n - 1)
