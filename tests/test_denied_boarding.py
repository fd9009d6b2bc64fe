import pytest

from flghtly.denied_boarding import US_DOT_REGULATION, parse_alternative_timing
from flghtly.eligibility import check_eligibility


@pytest.fixture
def denied(make_flight):
    def _make(**overrides):
        data = {"disruption_type": "denied_boarding", "denied_boarding_type": "involuntary"}
        data.update(overrides)
        return make_flight(**data)
    return _make


@pytest.fixture
def us_denied(denied):
    def _make(**overrides):
        data = {"airline": "American Airlines", "departure_airport": "JFK", "arrival_airport": "LAX"}
        data.update(overrides)
        return denied(**data)
    return _make


@pytest.mark.parametrize("text,hours", [
    ("1 hour 30 minutes later", 1.5),
    ("2 hours", 2),
    ("45 mins", 0.75),
    ("soon", 0),
])
def test_parse_alternative_timing(text, hours):
    assert parse_alternative_timing(text) == pytest.approx(hours)


def test_voluntary_reports_offered_amount(denied):
    result = check_eligibility(denied(denied_boarding_type="voluntary", compensation_offered=300))
    assert result.eligible is False
    assert result.amount == "$300"
    assert result.regulation == "Voluntary"
    assert result.confidence == 95


def test_voluntary_without_offer(denied):
    assert check_eligibility(denied(denied_boarding_type="voluntary")).amount == "$0"


def test_eu_involuntary_full_amount(denied):
    result = check_eligibility(denied())
    assert result.eligible is True
    assert result.amount == "€250"
    assert result.confidence == 90
    assert "short haul" in result.reason


def test_eu_involuntary_reduced_when_alternative_arrives_soon(denied):
    result = check_eligibility(denied(alternative_offered=True, alternative_arrival_delay="1 hour 30 minutes"))
    assert result.amount == "€125"
    assert "within 1.5 hours" in result.message


def test_uk_involuntary_long_haul(denied):
    result = check_eligibility(denied(airline="British Airways", departure_airport="LHR", arrival_airport="JFK"))
    assert result.regulation == "UK CAA"
    assert result.amount == "£520"


def test_us_requires_ticket_price(us_denied):
    result = check_eligibility(us_denied())
    assert result.eligible is False
    assert result.amount == "$0"
    assert result.confidence == 50
    assert "ticket price" in result.message


def test_us_domestic_low_tier(us_denied):
    result = check_eligibility(us_denied(ticket_price=300, alternative_offered=True, alternative_arrival_delay="1.5 hours"))
    assert result.eligible is True
    assert result.amount == "$600"
    assert result.regulation == US_DOT_REGULATION
    assert "(200% of $300 ticket price)" in result.message


def test_us_domestic_high_tier_is_capped(us_denied):
    result = check_eligibility(us_denied(ticket_price=500, alternative_offered=True, alternative_arrival_delay="3 hours"))
    assert result.amount == "$1550"
    assert "(capped at $1550)" in result.message


def test_us_alternative_within_one_hour(us_denied):
    result = check_eligibility(us_denied(ticket_price=300, alternative_offered=True, alternative_arrival_delay="30 minutes"))
    assert result.eligible is False
    assert result.confidence == 95
    assert "within 1 hour" in result.message


def test_us_no_alternative_is_not_compensated(us_denied):
    result = check_eligibility(us_denied(ticket_price=200, alternative_offered=False))
    assert result.eligible is False
    assert result.amount == "$0"
    assert result.confidence == 95


def test_us_arrival_delay_ignored_unless_alternative_offered(us_denied):
    result = check_eligibility(us_denied(ticket_price=200, alternative_arrival_delay="3 hours"))
    assert result.eligible is False
    assert result.amount == "$0"


def test_us_international_low_tier_window_is_four_hours(us_denied):
    result = check_eligibility(us_denied(
        airline="Delta", arrival_airport="YYZ", ticket_price=300,
        alternative_offered=True, alternative_arrival_delay="3 hours",
    ))
    assert result.amount == "$600"


def test_eu_arrival_delay_without_offer_keeps_full_amount(denied):
    result = check_eligibility(denied(alternative_arrival_delay="1 hour"))
    assert result.amount == "€250"
    assert "50% reduction" not in result.message


def test_eu_structured_alternative_reduces(denied):
    result = check_eligibility(denied(
        alternative_flight={"offered": True, "departureTimeDifference": 0, "arrivalTimeDifference": 1},
    ))
    assert result.amount == "€125"


def test_uk_involuntary_short_haul(denied):
    result = check_eligibility(denied(
        airline="British Airways", flight_number="BA1436",
        departure_airport="LHR", arrival_airport="EDI",
    ))
    assert result.regulation == "UK CAA"
    assert result.amount == "£250"


def test_uk_involuntary_medium_haul(denied):
    result = check_eligibility(denied(
        airline="British Airways", departure_airport="LHR", arrival_airport="ATH",
    ))
    assert result.amount == "£400"


def test_voluntary_large_offer_is_formatted_as_whole_dollars(denied):
    result = check_eligibility(denied(denied_boarding_type="voluntary", compensation_offered=1_000_000))
    assert result.amount == "$1000000"


def test_voluntary_fractional_offer_rounds_half_up(denied):
    result = check_eligibility(denied(denied_boarding_type="voluntary", compensation_offered=250.5))
    assert result.amount == "$251"


def test_us_fractional_fare_in_details(us_denied):
    result = check_eligibility(us_denied(
        ticket_price=299.99, alternative_offered=True, alternative_arrival_delay="1.5 hours",
    ))
    assert result.amount == "$600"
    assert "(200% of $299.99 ticket price)" in result.message


def test_us_large_fare_in_details_uses_plain_digits(us_denied):
    result = check_eligibility(us_denied(
        airline="Delta", arrival_airport="YYZ", ticket_price=300.0,
        alternative_offered=True, alternative_arrival_delay="2 hours",
    ))
    assert "$300 ticket price" in result.message
    assert "e+" not in result.message
