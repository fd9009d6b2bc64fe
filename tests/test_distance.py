import numpy as np
import pytest

from flghtly import airports
from flghtly.distance_calculator import (
    FALLBACK_DISTANCE_KM,
    calculate_flight_distance,
    calculate_flight_distance_cached,
    crosses_date_line,
    crosses_equator,
    find_nearest_airport,
    get_cache_stats,
    get_distance_category,
    get_estimated_flight_time,
    get_eu261_compensation,
    get_route_type,
    get_uk_caa_compensation,
    haversine_km,
    is_realistic_route,
    resolve_distance_km,
)


class TestAirports:
    def test_lookup_is_case_insensitive(self):
        assert airports.get_airport("lhr")["city"] == "London"
        assert airports.is_known_airport(" jfk ")
        assert not airports.is_known_airport("XXX")

    def test_country_and_timezone(self):
        assert airports.get_airport_country("DUB") == "Ireland"
        assert airports.get_airport_timezone("LHR") == "Europe/London"
        assert airports.get_airport_country("XXX") is None

    def test_search_ranks_exact_code_first(self):
        results = airports.search_airports("lhr")
        assert results[0]["code"] == "LHR"

    def test_search_by_city(self):
        codes = {a["code"] for a in airports.search_airports("london")}
        assert {"LHR", "LGW", "STN"} <= codes

    def test_search_limit_and_empty_query(self):
        assert len(airports.search_airports("a", limit=3)) == 3
        assert airports.search_airports("   ") == []

    def test_normalize_airport_name(self):
        assert airports.normalize_airport_name("London  Heathrow Airport") == "London Heathrow"
        assert airports.normalize_airport_name("Dubai International Airport") == "Dubai"
        assert airports.normalize_airport_name(None) == ""


class TestDistance:
    def test_transatlantic(self):
        result = calculate_flight_distance("LHR", "JFK")
        assert result["is_valid"] is True
        assert 5500 < result["distance_km"] < 5600
        assert result["distance_miles"] == pytest.approx(result["distance_km"] * 0.621371, abs=0.01)

    def test_lowercase_codes(self):
        assert calculate_flight_distance("cdg", "fra") == calculate_flight_distance("CDG", "FRA")

    def test_same_airport(self):
        result = calculate_flight_distance("LHR", "LHR")
        assert result["is_valid"] is True
        assert result["distance_km"] == 0

    def test_unknown_airport(self):
        result = calculate_flight_distance("LHR", "XXX")
        assert result["is_valid"] is False
        assert result["error"] == "Unknown airport code: XXX"

    def test_missing_code(self):
        result = calculate_flight_distance("", "JFK")
        assert result["is_valid"] is False
        assert "required" in result["error"]

    def test_cache_only_stores_valid_routes(self):
        calculate_flight_distance_cached("LHR", "CDG")
        calculate_flight_distance_cached("LHR", "CDG")
        calculate_flight_distance_cached("LHR", "XXX")
        assert get_cache_stats() == {"size": 1, "keys": ["LHR-CDG"]}

    def test_unresolved_route_falls_back(self):
        assert resolve_distance_km("XXX", "YYY") == FALLBACK_DISTANCE_KM

    def test_haversine_broadcasts(self):
        d = haversine_km(0, 0, np.array([0.0, 0.0]), np.array([1.0, 0.0]))
        assert d[0] == pytest.approx(111.19, abs=0.1)
        assert d[1] == 0


class TestTiers:
    @pytest.mark.parametrize("km,category", [
        (0, "short"), (1500, "short"), (1501, "medium"), (3500, "medium"), (3501, "long"),
    ])
    def test_category_boundaries(self, km, category):
        assert get_distance_category(km) == category

    def test_amounts(self):
        assert get_eu261_compensation(1000) == 250
        assert get_eu261_compensation(2000) == 400
        assert get_eu261_compensation(5000) == 600
        assert get_uk_caa_compensation(1000) == 220
        assert get_uk_caa_compensation(5000) == 520


class TestRouteHelpers:
    def test_estimated_flight_time(self):
        assert get_estimated_flight_time(800) == {"hours": 1, "minutes": 0, "total_minutes": 60}
        assert get_estimated_flight_time(1200) == {"hours": 1, "minutes": 30, "total_minutes": 90}

    def test_route_type_and_realism(self):
        assert get_route_type(300) == "domestic"
        assert get_route_type(5600) == "intercontinental"
        assert is_realistic_route(350)
        assert not is_realistic_route(10)

    def test_equator_and_date_line(self):
        assert crosses_equator("LHR", "JNB")
        assert not crosses_equator("LHR", "JFK")
        assert crosses_date_line("LAX", "NRT")
        assert not crosses_date_line("LHR", "JFK")
        assert not crosses_date_line("LHR", "XXX")

    def test_find_nearest_airport(self):
        airport, km = find_nearest_airport(51.47, -0.45)
        assert airport["code"] == "LHR"
        assert km == 0
