import pytest

from flghtly.regional import (
    check_canadian_eligibility,
    check_norwegian_eligibility,
    check_regional_eligibility,
    check_swiss_eligibility,
    is_canadian_covered,
    is_large_carrier,
    is_norwegian_covered,
    is_swiss_covered,
    is_within_airline_control,
)


def test_coverage():
    assert is_swiss_covered("zrh", "CDG")
    assert is_norwegian_covered("LHR", "OSL")
    assert is_canadian_covered("YYZ", "JFK")
    assert not is_swiss_covered("FRA", "CDG")
    assert not is_canadian_covered(None, "")


# ============================================================
# SWISS FOCA / NORWEGIAN CAA
# ============================================================
@pytest.mark.parametrize("distance, chf", [(800, 270), (2500, 432), (6000, 648)])
def test_swiss_tiers(distance, chf):
    result = check_swiss_eligibility(4, distance)
    assert result["eligible"] is True
    assert result["compensation"] == chf
    assert result["currency"] == "CHF"
    assert result["regulation"] == "Swiss FOCA"
    assert len(result["additional_rights"]) == 3


@pytest.mark.parametrize("distance, nok, amount", [
    (800, 2875, "NOK 2,875"),
    (2500, 4600, "NOK 4,600"),
    (6000, 6900, "NOK 6,900"),
])
def test_norwegian_tiers(distance, nok, amount):
    result = check_norwegian_eligibility(5, distance)
    assert result["compensation"] == nok
    assert result["amount"] == amount


class TestEuropeanRegimeExclusions:
    def test_extraordinary(self):
        result = check_swiss_eligibility(5, 800, is_extraordinary=True)
        assert result["eligible"] is False
        assert result["compensation"] == 0
        assert result["reason"] == "Extraordinary circumstances"

    def test_short_delay(self):
        result = check_norwegian_eligibility(2.5, 800)
        assert result["eligible"] is False
        assert result["reason"] == "Delay under 3 hours does not qualify"

    def test_cancellation_with_notice(self):
        result = check_swiss_eligibility(0, 800, is_cancellation=True, notice_given="> 14 days")
        assert result["reason"] == "Cancellation with adequate notice"

    def test_late_cancellation_pays_without_delay(self):
        result = check_swiss_eligibility(0, 800, is_cancellation=True, notice_given="< 7 days")
        assert result["eligible"] is True
        assert result["compensation"] == 270


# ============================================================
# CANADIAN APPR
# ============================================================
@pytest.mark.parametrize("hours, large, small", [
    (3, 400, 125),
    (6, 400, 125),
    (7.5, 700, 250),
    (9, 700, 250),
    (12, 1000, 500),
])
def test_appr_tiers(hours, large, small):
    assert check_canadian_eligibility(hours, True)["compensation"] == large
    assert check_canadian_eligibility(hours, True, large_carrier=False)["compensation"] == small


def test_appr_outside_airline_control():
    result = check_canadian_eligibility(10, False)
    assert result["eligible"] is False
    assert result["reason"] == "Delay outside airline control"


def test_appr_short_delay():
    result = check_canadian_eligibility(2, True)
    assert result["eligible"] is False
    assert result["regulation"] == "Canadian APPR (Large Carrier)"


def test_appr_denied_boarding():
    assert check_canadian_eligibility(0, True, is_denied_boarding=True)["compensation"] == 400
    assert check_canadian_eligibility(10, True, is_denied_boarding=True)["compensation"] == 1000
    small = check_canadian_eligibility(10, True, is_denied_boarding=True, large_carrier=False)
    assert small["compensation"] == 200
    assert small["regulation"] == "Canadian APPR (Small Carrier)"


@pytest.mark.parametrize("reason, inside", [
    (None, True),
    ("technical fault with the aircraft", True),
    ("crew shortage", True),
    ("heavy snow at departure", False),
    ("air traffic control restrictions", False),
    ("bird strike on approach", False),
])
def test_within_airline_control(reason, inside):
    assert is_within_airline_control(reason) is inside


def test_carrier_size():
    assert is_large_carrier("Air Canada")
    assert is_large_carrier("")
    assert not is_large_carrier("Pacific Coastal Airlines")


# ============================================================
# ENTRY POINT
# ============================================================
class TestRegionalEntryPoint:
    def test_not_covered(self, make_flight):
        assert check_regional_eligibility(make_flight()) is None

    def test_swiss_flight(self, make_flight):
        result = check_regional_eligibility(make_flight(
            flight_number="LX640", airline="Swiss", departure_airport="ZRH", arrival_airport="CDG"))
        assert result["regulation"] == "Swiss FOCA"
        assert result["amount"] == "CHF 270"

    def test_norwegian_weather_delay(self, make_flight):
        result = check_regional_eligibility(make_flight(
            departure_airport="OSL", arrival_airport="CDG", delay_reason="severe storm"))
        assert result["regulation"] == "Norwegian CAA"
        assert result["eligible"] is False

    def test_canadian_delay(self, make_flight):
        result = check_regional_eligibility(make_flight(
            flight_number="AC100", airline="Air Canada", departure_airport="YYZ",
            arrival_airport="YVR", delay_duration="7 hours", delay_reason="maintenance"))
        assert result["regulation"] == "Canadian APPR (Large Carrier)"
        assert result["amount"] == "CAD 700"

    def test_canadian_denied_boarding_uses_alternative_arrival(self, make_flight):
        result = check_regional_eligibility(make_flight(
            airline="Air Canada", departure_airport="YUL", arrival_airport="YYZ",
            disruption_type="denied_boarding", denied_boarding_type="involuntary",
            alternative_arrival_delay="10 hours"))
        assert result["compensation"] == 1000
