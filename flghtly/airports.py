"""
airports.py - Flghtly Airport Database
======================================
Static airport reference data used by the distance calculator, the
regulation coverage checks and the airport search endpoint.

Records live in data/airports.json and are loaded once on first use.
"""

import json
import re
import threading
from pathlib import Path

import numpy as np


DATA_FILE = Path(__file__).parent / "data" / "airports.json"
MAX_SEARCH_RESULTS = 10

_lock = threading.Lock()
_airports = None     # code -> record
_table = None        # (codes, coords) for vectorised lookups


# ─────────────────────────────────────────────
# LOADING
# ─────────────────────────────────────────────

def _load():
    """Load the airport table once. Safe to call from several threads."""
    global _airports, _table
    if _airports is not None:
        return _airports
    with _lock:
        if _airports is None:
            with open(DATA_FILE, encoding="utf-8") as f:
                records = json.load(f)
            airports = {r["code"].upper(): r for r in records}
            codes = list(airports.keys())
            coords = np.array(
                [[airports[c]["latitude"], airports[c]["longitude"]] for c in codes],
                dtype=float,
            )
            _table = (codes, coords)
            _airports = airports
            print(f"[Airports] Loaded {len(airports)} airports")
    return _airports


def all_airports():
    """Every airport record, in file order."""
    return list(_load().values())


def airport_table():
    """Return (codes, coords) where coords is an (N, 2) array of lat/lon degrees."""
    _load()
    return _table


# ─────────────────────────────────────────────
# LOOKUPS
# ─────────────────────────────────────────────

def normalize_airport_code(code):
    """Trim and upper-case an IATA code. None/empty becomes ''."""
    if not code:
        return ""
    return str(code).strip().upper()


def normalize_airport_name(name):
    """Collapse whitespace and drop the trailing 'Airport' word for display."""
    if not name:
        return ""
    cleaned = re.sub(r"\s+", " ", str(name)).strip()
    cleaned = re.sub(r"\s+(international\s+)?airport$", "", cleaned, flags=re.IGNORECASE)
    return cleaned


def get_airport(code):
    return _load().get(normalize_airport_code(code))


def is_known_airport(code):
    return get_airport(code) is not None


def get_airport_country(code):
    airport = get_airport(code)
    return airport["country"] if airport else None


def get_airport_timezone(code):
    airport = get_airport(code)
    return airport["timezone"] if airport else None


def search_airports(query, limit=MAX_SEARCH_RESULTS):
    """
    Search by IATA code, airport name, city or country.

    Exact code matches come first, then code prefixes, then text matches.
    Returns at most `limit` records.
    """
    q = (query or "").strip().lower()
    if not q:
        return []

    exact, prefix, text = [], [], []
    for airport in _load().values():
        code = airport["code"].lower()
        if code == q:
            exact.append(airport)
        elif code.startswith(q):
            prefix.append(airport)
        elif (q in airport["name"].lower()
              or q in airport["city"].lower()
              or q in airport["country"].lower()):
            text.append(airport)

    return (exact + prefix + text)[:limit]
