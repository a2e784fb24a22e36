"""Great-circle distance and coordinate parsing.

Coordinates are plain ``(latitude, longitude)`` pairs in decimal degrees.
Validation of user input belongs to the callers (``parse_coordinates`` or
the ``GeoPoint`` value object); ``distance_km`` trusts its arguments.
"""

import math

EARTH_RADIUS_KM = 6371.0


def distance_km(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Haversine distance in kilometres between two ``(lat, lng)`` pairs."""
    lat1, lng1 = a
    lat2, lng2 = b

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_valid_pair(latitude, longitude) -> bool:
    """True for finite numbers inside the latitude/longitude ranges."""
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def parse_coordinates(text: str | None) -> tuple[float, float] | None:
    """Parse ``"lat, lng"`` into a pair, or ``None`` when malformed."""
    if not text:
        return None
    parts = [part.strip() for part in str(text).split(",")]
    if len(parts) != 2:
        return None
    if not is_valid_pair(parts[0], parts[1]):
        return None
    return float(parts[0]), float(parts[1])
