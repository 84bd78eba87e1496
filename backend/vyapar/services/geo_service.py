# FILE: backend/vyapar/services/geo_service.py
# Great-circle distance and the "near me" radius filter.

import math
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 1.0

T = TypeVar("T")
Coordinate = Tuple[float, float]

def _hav(theta: float) -> float:
    return math.sin(theta / 2) ** 2

def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in kilometers between two lat/lon pairs given in degrees."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = _hav(d_phi) + math.cos(phi1) * math.cos(phi2) * _hav(d_lambda)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))

def distance_to(origin: Optional[Coordinate], lat: Optional[float], lon: Optional[float]) -> Optional[float]:
    if origin is None or lat is None or lon is None:
        return None
    return haversine_km(origin[0], origin[1], lat, lon)

def filter_within_radius(
    origin: Coordinate,
    items: Iterable[T],
    coords: Callable[[T], Tuple[Optional[float], Optional[float]]],
    radius_km: float = DEFAULT_RADIUS_KM,
) -> List[Tuple[T, float]]:
    """
    Keeps items whose coordinates lie within 'radius_km' (inclusive) of 'origin'.
    Items without coordinates are dropped.
    """
    kept: List[Tuple[T, float]] = []
    for item in items:
        lat, lon = coords(item)
        distance = distance_to(origin, lat, lon)
        if distance is not None and distance <= radius_km:
            kept.append((item, distance))
    return kept
