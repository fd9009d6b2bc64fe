from datetime import date

import pytest

from flghtly.validation import (
    validate_airport_code,
    validate_delay_duration,
    validate_email,
    validate_flight_date,
    validate_flight_form,
    validate_flight_number,
)


TODAY = date(2026, 10, 17)


@pytest.mark.parametrize("value,valid", [
    ("BA123", True),
    ("ba 123", True),
    ("U21234", False),
    ("LH1234A", True),
    ("123", False),
    ("", False),
])
def test_flight_number(value, valid):
    assert validate_flight_number(value)["valid"] is valid


def test_airport_code():
    assert validate_airport_code("lhr")["valid"] is True
    assert validate_airport_code("LH")["error"].startswith("Please enter a valid 3-letter airport code")
    assert validate_airport_code("")["error"] == "Airport code is required"


class TestFlightDate:
    def test_iso_date(self):
        assert validate_flight_date("2026-10-01", today=TODAY) == {"valid": True, "normalized": "2026-10-01"}

    def test_day_first_date(self):
        assert validate_flight_date("15/03/2025", today=TODAY)["normalized"] == "2025-03-15"

    def test_future(self):
        assert validate_flight_date("2027-01-01", today=TODAY)["error"] == "Flight date cannot be in the future"

    def test_outside_claim_window(self):
        result = validate_flight_date("2019-01-01", today=TODAY)
        assert result["error"] == "Claims must be for flights within the last 6 years"

    def test_garbage(self):
        assert validate_flight_date("last tuesday", today=TODAY)["valid"] is False


@pytest.mark.parametrize("value,normalized,minutes", [
    ("3 hours", "3h", 180),
    ("3h 30m", "3h 30m", 210),
    ("180 minutes", "3h", 180),
    ("2 hours 15 mins", "2h 15m", 135),
])
def test_delay_duration(value, normalized, minutes):
    result = validate_delay_duration(value)
    assert result["valid"] is True
    assert result["normalized"] == normalized
    assert result["total_minutes"] == minutes


def test_delay_duration_invalid():
    assert validate_delay_duration("a while")["valid"] is False
    assert validate_delay_duration("")["error"] == "Delay duration is required"


def test_email():
    assert validate_email("alex@example.com") == {"valid": True}
    assert validate_email("alex@gmial.com")["suggestion"] == "alex@gmail.com"
    assert validate_email("not-an-email")["valid"] is False


def test_flight_form_collects_errors():
    result = validate_flight_form({
        "flight_number": "BA123",
        "departure_airport": "LHR",
        "arrival_airport": "J",
        "departure_date": "2030-01-01",
    }, today=TODAY)
    assert result["valid"] is False
    assert set(result["errors"]) == {"arrival_airport", "departure_date"}
