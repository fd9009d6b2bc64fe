import pytest

from flghtly.eligibility import check_eligibility, parse_delay_hours, resolve_alternative
from flghtly.schemas import AlternativeFlight


# ============================================================
# DELAY PARSING
# ============================================================
@pytest.mark.parametrize("text,hours", [
    ("4 hours", 4),
    ("3.5h", 3.5),
    ("180 minutes", 3),
    ("4 hours 30 minutes", 4.5),
    ("2h 45m", 2.75),
    ("90 mins", 1.5),
    ("5", 5),
    ("no delay", 0),
    (None, 0),
])
def test_parse_delay_hours(text, hours):
    assert parse_delay_hours(text) == pytest.approx(hours)


# ============================================================
# DELAYS
# ============================================================
def test_eu_short_haul_delay(make_flight):
    result = check_eligibility(make_flight(delay_reason="technical issue"))
    assert result.eligible is True
    assert result.amount == "€250"
    assert result.regulation == "EU261"
    assert result.confidence == 85
    assert "Flight delayed 4 hours" in result.reason


def test_eu_medium_haul_delay(make_flight):
    result = check_eligibility(make_flight(airline="Aegean", arrival_airport="ATH"))
    assert result.amount == "€400"


def test_eu_long_haul_delay(make_flight):
    result = check_eligibility(make_flight(arrival_airport="JFK", delay_duration="5 hours"))
    assert result.eligible is True
    assert result.amount == "€600"


def test_delay_under_three_hours(make_flight):
    result = check_eligibility(make_flight(delay_duration="2 hours"))
    assert result.eligible is False
    assert result.amount == "€0"
    assert result.confidence == 100
    assert result.reason == "Insufficient delay duration"


def test_delay_in_minutes(make_flight):
    assert check_eligibility(make_flight(delay_duration="180 minutes")).eligible is True
    assert check_eligibility(make_flight(delay_duration="150 minutes")).eligible is False


def test_delay_in_hours_and_minutes(make_flight):
    assert check_eligibility(make_flight(delay_duration="2 hours 30 minutes")).eligible is False
    result = check_eligibility(make_flight(delay_duration="3 hours 15 minutes"))
    assert result.eligible is True
    assert "Flight delayed 3.25 hours" in result.reason


def test_uk_long_haul_delay(make_flight):
    result = check_eligibility(make_flight(
        airline="British Airways", flight_number="BA117",
        departure_airport="LHR", arrival_airport="JFK", delay_duration="5 hours",
    ))
    assert result.regulation == "UK CAA"
    assert result.amount == "£520"
    assert "UK CAA regulations" in result.message


def test_uk_short_haul_delay(make_flight):
    result = check_eligibility(make_flight(
        airline="British Airways", flight_number="BA1436",
        departure_airport="LHR", arrival_airport="EDI",
    ))
    assert result.regulation == "UK CAA"
    assert result.amount == "£250"


def test_ryanair_from_dublin_uses_uk_caa(make_flight):
    result = check_eligibility(make_flight(
        airline="Ryanair", flight_number="FR6361",
        departure_airport="DUB", arrival_airport="BCN",
    ))
    assert result.regulation == "UK CAA"
    assert result.amount.startswith("£")


def test_uk_takes_priority_over_eu(make_flight):
    by_airline = check_eligibility(make_flight(airline="British Airways"))
    by_airport = check_eligibility(make_flight(departure_airport="LHR"))
    assert by_airline.regulation == "UK CAA"
    assert by_airline.amount == "£250"
    assert by_airport.regulation == "UK CAA"


def test_extraordinary_delay_reason(make_flight):
    result = check_eligibility(make_flight(delay_reason="Severe thunderstorm over Paris"))
    assert result.eligible is False
    assert result.amount == "€0"
    assert result.confidence == 90


def test_us_delay_over_four_hours(make_flight):
    result = check_eligibility(make_flight(
        airline="American Airlines", flight_number="AA100",
        departure_airport="JFK", arrival_airport="LAX", delay_duration="5 hours",
    ))
    assert result.eligible is True
    assert result.amount == "Varies by airline"
    assert result.regulation == "US DOT"
    assert result.confidence == 60
    assert result.reason == "American Airlines may offer compensation for delays over 4 hours"


def test_us_delay_under_four_hours(make_flight):
    result = check_eligibility(make_flight(
        airline="American Airlines", departure_airport="JFK",
        arrival_airport="LAX", delay_duration="3.5 hours",
    ))
    assert result.eligible is False
    assert result.amount == "$0"
    assert result.confidence == 80


def test_route_not_covered(make_flight):
    result = check_eligibility(make_flight(
        airline="Emirates", flight_number="EK404",
        departure_airport="DXB", arrival_airport="SIN", delay_duration="6 hours",
    ))
    assert result.eligible is False
    assert result.regulation == "Unknown"
    assert result.amount == "€0"
    assert result.confidence == 80


def test_unknown_airports_fall_back_to_short_haul(make_flight):
    result = check_eligibility(make_flight(airline="KLM", departure_airport="XXX", arrival_airport="YYY"))
    assert result.regulation == "EU261"
    assert result.amount == "€250"


def test_accepts_camel_case_dict():
    result = check_eligibility({
        "flightNumber": "LH1234",
        "airline": "Lufthansa",
        "departureDate": "2026-09-01",
        "departureAirport": "fra",
        "arrivalAirport": "cdg",
        "delayDuration": "4 hours",
    })
    assert result.amount == "€250"


# ============================================================
# CANCELLATIONS
# ============================================================
def test_cancellation_with_long_notice(make_flight):
    result = check_eligibility(make_flight(disruption_type="cancellation"))
    assert result.eligible is False
    assert result.confidence == 95
    assert "more than 14 days" in result.message


def test_cancellation_short_notice_no_alternative(make_flight):
    result = check_eligibility(make_flight(disruption_type="cancellation", notice_given="< 7 days"))
    assert result.eligible is True
    assert result.amount == "€250"
    assert result.confidence == 85
    assert "cancelled flight" in result.message


def test_cancellation_extraordinary(make_flight):
    result = check_eligibility(make_flight(
        disruption_type="cancellation", notice_given="< 7 days",
        cancellation_reason="air traffic control restrictions",
    ))
    assert result.eligible is False
    assert result.confidence == 90


def test_cancellation_rerouting_within_limits(make_flight):
    result = check_eligibility(make_flight(
        disruption_type="cancellation", notice_given="< 7 days",
        alternative_flight=AlternativeFlight(
            offered=True, departure_time_difference=-0.5, arrival_time_difference=1.5),
    ))
    assert result.eligible is False
    assert result.confidence == 90
    assert result.message.startswith("Alternative flight offered within the permitted times")


def test_cancellation_rerouting_too_early_gets_reduction(make_flight):
    result = check_eligibility(make_flight(
        disruption_type="cancellation", notice_given="7-14 days",
        alternative_flight={"offered": True, "departureTimeDifference": -3, "arrivalTimeDifference": 1},
    ))
    assert result.eligible is True
    assert result.amount == "€125"
    assert "50% reduction" in result.message


def test_cancellation_long_haul_reduction(make_flight):
    result = check_eligibility(make_flight(
        disruption_type="cancellation", notice_given="< 7 days", arrival_airport="JFK",
        alternative_flight={"offered": True, "departure_time_difference": 0, "arrival_time_difference": 3.5},
    ))
    assert result.amount == "€300"


def test_cancellation_legacy_alternative_fields(make_flight):
    flight = make_flight(
        disruption_type="cancellation", notice_given="< 7 days",
        alternative_offered=True, alternative_timing="3 hours later",
    )
    assert resolve_alternative(flight) == (True, 0.0, 3.0)
    assert check_eligibility(flight).amount == "€125"


def test_cancellation_close_alternative_halves_short_notice(make_flight):
    result = check_eligibility(make_flight(
        flight_number="LH789", arrival_airport="AMS",
        disruption_type="cancellation", delay_duration="0", notice_given="< 7 days",
        alternative_flight={"offered": True, "departureTimeDifference": 1.5, "arrivalTimeDifference": 2.5},
    ))
    assert result.eligible is True
    assert result.amount == "€125"
    assert result.regulation == "EU261"


def test_cancellation_late_alternative_keeps_full_amount(make_flight):
    result = check_eligibility(make_flight(
        flight_number="LH789", arrival_airport="AMS",
        disruption_type="cancellation", delay_duration="0", notice_given="< 7 days",
        alternative_flight={"offered": True, "departureTimeDifference": 4, "arrivalTimeDifference": 6},
    ))
    assert result.eligible is True
    assert result.amount == "€250"


def test_cancellation_mid_notice_late_alternative_keeps_full_amount(make_flight):
    result = check_eligibility(make_flight(
        flight_number="LH789", arrival_airport="AMS",
        disruption_type="cancellation", delay_duration="0", notice_given="7-14 days",
        alternative_flight={"offered": True, "departureTimeDifference": 0, "arrivalTimeDifference": 5},
    ))
    assert result.amount == "€250"


def test_cancellation_reduction_window_is_four_hours_for_every_distance(make_flight):
    medium = check_eligibility(make_flight(
        airline="Aegean", arrival_airport="ATH",
        disruption_type="cancellation", notice_given="< 7 days",
        alternative_flight={"offered": True, "departureTimeDifference": 0, "arrivalTimeDifference": 3.5},
    ))
    assert medium.amount == "€200"


def test_cancellation_uk_medium_haul(make_flight):
    result = check_eligibility(make_flight(
        airline="British Airways", departure_airport="LHR", arrival_airport="ATH",
        disruption_type="cancellation", notice_given="< 7 days",
    ))
    assert result.amount == "£400"


def test_cancellation_us(make_flight):
    result = check_eligibility(make_flight(
        airline="American Airlines", departure_airport="JFK", arrival_airport="LAX",
        disruption_type="cancellation", notice_given="< 7 days",
    ))
    assert result.eligible is True
    assert result.amount == "Full refund"
    assert result.regulation == "US DOT"


# ============================================================
# DISPATCH
# ============================================================
def test_downgrade_alias_dispatches_to_downgrading(make_flight):
    flight = make_flight(disruption_type="downgrade", booked_class="business",
                         actual_class="economy", ticket_price=400)
    assert flight.disruption_type == "downgrading"
    assert check_eligibility(flight).amount == "€120"
