"""
distance_calculator.py - Great-circle distances between airports
=================================================================
Haversine distances from the airport database, the EU261 / UK CAA distance
tiers, and a small in-process cache for repeated route lookups.
"""

import threading

import numpy as np

from flghtly.airports import airport_table, get_airport, normalize_airport_code


EARTH_RADIUS_KM = 6371
KM_TO_MILES = 0.621371
CRUISE_SPEED_KMH = 800

# Used by the eligibility engine when a route cannot be resolved.
FALLBACK_DISTANCE_KM = 1000

SHORT_HAUL_MAX_KM = 1500
MEDIUM_HAUL_MAX_KM = 3500

EU261_AMOUNTS = {"short": 250, "medium": 400, "long": 600}
# Amounts the eligibility engine quotes for UK CAA claims.
UK_CAA_AMOUNTS = {"short": 250, "medium": 400, "long": 520}
# Sterling figures of UK261 itself, reported by get_uk_caa_compensation().
UK261_STATUTORY_AMOUNTS = {"short": 220, "medium": 350, "long": 520}


# ─────────────────────────────────────────────
# HAVERSINE
# ─────────────────────────────────────────────

def haversine_km(lat1, lon1, lat2, lon2):
    """Great-circle distance in km. Accepts scalars or numpy arrays (broadcast)."""
    lat1, lon1, lat2, lon2 = (np.radians(np.asarray(v, dtype=float)) for v in (lat1, lon1, lat2, lon2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def calculate_flight_distance(from_code, to_code):
    """
    Distance between two airports by IATA code.

    Returns:
        {"distance_km": int, "distance_miles": float, "is_valid": bool, "error": str|None}
    """
    origin = normalize_airport_code(from_code)
    destination = normalize_airport_code(to_code)

    if not origin or not destination:
        return _invalid("Both departure and arrival airport codes are required")

    dep = get_airport(origin)
    if dep is None:
        return _invalid(f"Unknown airport code: {origin}")
    arr = get_airport(destination)
    if arr is None:
        return _invalid(f"Unknown airport code: {destination}")

    if origin == destination:
        return {"distance_km": 0, "distance_miles": 0.0, "is_valid": True, "error": None}

    km = float(haversine_km(dep["latitude"], dep["longitude"], arr["latitude"], arr["longitude"]))
    distance_km = int(round(km))
    return {
        "distance_km": distance_km,
        "distance_miles": round(distance_km * KM_TO_MILES, 2),
        "is_valid": True,
        "error": None,
    }


def _invalid(error):
    return {"distance_km": 0, "distance_miles": 0.0, "is_valid": False, "error": error}


# ─────────────────────────────────────────────
# ROUTE CACHE
# ─────────────────────────────────────────────

_cache_lock = threading.Lock()
_distance_cache = {}


def calculate_flight_distance_cached(from_code, to_code):
    """Same as calculate_flight_distance; valid results are memoised per route."""
    key = f"{normalize_airport_code(from_code)}-{normalize_airport_code(to_code)}"
    with _cache_lock:
        hit = _distance_cache.get(key)
    if hit is not None:
        return dict(hit)

    result = calculate_flight_distance(from_code, to_code)
    if result["is_valid"]:
        with _cache_lock:
            _distance_cache[key] = dict(result)
    return result


def clear_distance_cache():
    with _cache_lock:
        _distance_cache.clear()


def get_cache_stats():
    with _cache_lock:
        return {"size": len(_distance_cache), "keys": list(_distance_cache.keys())}


def resolve_distance_km(from_code, to_code):
    """Distance used for compensation tiers. Unknown routes count as 1000 km."""
    result = calculate_flight_distance_cached(from_code, to_code)
    if not result["is_valid"]:
        print(f"[Distance] {from_code}-{to_code} unresolved ({result['error']}), using {FALLBACK_DISTANCE_KM}km")
        return FALLBACK_DISTANCE_KM
    return result["distance_km"]


# ─────────────────────────────────────────────
# DISTANCE TIERS
# ─────────────────────────────────────────────

def get_distance_category(distance_km):
    if distance_km <= SHORT_HAUL_MAX_KM:
        return "short"
    if distance_km <= MEDIUM_HAUL_MAX_KM:
        return "medium"
    return "long"


def get_eu261_compensation(distance_km):
    return EU261_AMOUNTS[get_distance_category(distance_km)]


def get_uk_caa_compensation(distance_km):
    return UK261_STATUTORY_AMOUNTS[get_distance_category(distance_km)]


# ─────────────────────────────────────────────
# ROUTE HELPERS
# ─────────────────────────────────────────────

def is_realistic_route(distance_km):
    """Commercial routes sit between 50 km and 20,000 km."""
    return 50 <= distance_km <= 20000


def get_route_type(distance_km):
    if distance_km < 500:
        return "domestic"
    if distance_km < 2000:
        return "regional"
    if distance_km < 5000:
        return "continental"
    return "intercontinental"


def crosses_date_line(from_code, to_code):
    """True when the shorter way round between the two airports crosses 180° longitude."""
    dep, arr = get_airport(from_code), get_airport(to_code)
    if dep is None or arr is None:
        return False
    lon1, lon2 = dep["longitude"], arr["longitude"]
    return (lon1 > 0) != (lon2 > 0) and abs(lon1 - lon2) > 180


def crosses_equator(from_code, to_code):
    dep, arr = get_airport(from_code), get_airport(to_code)
    if dep is None or arr is None:
        return False
    return (dep["latitude"] > 0) != (arr["latitude"] > 0)


def get_estimated_flight_time(distance_km):
    """
    Rough block time at cruise speed.

    Returns {"hours": int, "minutes": int, "total_minutes": int}.
    """
    total_minutes = int(round(distance_km / CRUISE_SPEED_KMH * 60))
    return {
        "hours": total_minutes // 60,
        "minutes": total_minutes % 60,
        "total_minutes": total_minutes,
    }


def find_nearest_airport(latitude, longitude):
    """Closest known airport to a point. Returns (record, distance_km)."""
    codes, coords = airport_table()
    distances = haversine_km(latitude, longitude, coords[:, 0], coords[:, 1])
    idx = int(np.argmin(distances))
    return get_airport(codes[idx]), int(round(float(distances[idx])))
