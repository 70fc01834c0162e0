"""
Geographic utilities for bounding boxes, cache cells and distance checks.
"""

import math

# Rough conversion used for search boxes; accurate enough at city scale.
DEGREES_PER_KM = 0.009


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lng1: Coordinates of point 1
        lat2, lng2: Coordinates of point 2

    Returns:
        Distance in kilometers
    """
    R = 6371  # Earth's radius in kilometers

    # Convert to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    # Haversine formula
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return R * c


def bounding_box(lat: float, lng: float, radius_km: float) -> tuple[float, float, float, float]:
    """
    Square box around a point.

    Returns:
        (south, west, north, east) in degrees, the order Overpass expects
    """
    half = radius_km * DEGREES_PER_KM
    return (lat - half, lng - half, lat + half, lng + half)


def coarse_cell(lat: float, lng: float, precision: int = 2) -> str:
    """Coordinates rounded to a ~1km grid, e.g. (48.8566, 2.3522) -> "48.86-2.35"."""
    # Adding 0.0 turns -0.0 into 0.0 so both sides of the equator share a cell
    lat = round(lat, precision) + 0.0
    lng = round(lng, precision) + 0.0
    return f"{lat:.{precision}f}-{lng:.{precision}f}"


def is_valid_coordinate(lat: float | None, lng: float | None) -> bool:
    """Reject missing, out of range and null-island (0, 0) coordinates."""
    if lat is None or lng is None:
        return False
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return False
    return not (lat == 0 and lng == 0)


def is_within_radius(
    center_lat: float, center_lng: float, lat: float, lng: float, radius_km: float
) -> bool:
    return haversine_distance(center_lat, center_lng, lat, lng) <= radius_km
