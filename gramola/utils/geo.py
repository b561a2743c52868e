import math
import os

EARTH_RADIUS_M = 6_371_000.0


def geofence_radius_m() -> float:
    return float(os.getenv("GEOFENCE_RADIUS_M", "100"))


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance orthodromique en mètres entre deux points (lat/lng en degrés)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))
