"""
regional.py - Swiss, Norwegian and Canadian passenger-rights regimes
====================================================================
Checked alongside the main engine for flights touching Switzerland,
Norway or Canada.

  - Swiss FOCA and the Norwegian CAA follow EU261 tiers, paid in CHF / NOK
    at a fixed approximate rate.
  - Canadian APPR pays by arrival delay and carrier size, and only when the
    disruption was within the airline's control.
"""

from flghtly.airports import normalize_airport_code
from flghtly.distance_calculator import EU261_AMOUNTS, get_distance_category, resolve_distance_km
from flghtly.eligibility import DEFAULT_NOTICE, parse_delay_hours
from flghtly.extraordinary import is_extraordinary_circumstance
from flghtly.regulations import round_half_up


SWISS_FOCA = "Swiss FOCA"
NORWEGIAN_CAA = "Norwegian CAA"
CANADIAN_APPR = "Canadian APPR"

SWISS_AIRPORTS = {"ZRH", "GVA", "BSL", "SIR", "LUG"}
NORWEGIAN_AIRPORTS = {"OSL", "BGO", "TRD", "SVG", "TOS", "AES", "BOO"}
CANADIAN_AIRPORTS = {
    "YYZ", "YVR", "YUL", "YYC", "YOW", "YHZ",
    "YEG", "YQT", "YYT", "YWG", "YQR",
}

# 1 EUR = x, display only
EUR_TO_CHF = 1.08
EUR_TO_NOK = 11.5

MIN_DELAY_HOURS = 3

# (max arrival delay in hours, CAD) per carrier size; anything longer pays the last tier
APPR_LARGE_CARRIER = [(6, 400), (9, 700), (None, 1000)]
APPR_SMALL_CARRIER = [(6, 125), (9, 250), (None, 500)]
APPR_SMALL_CARRIER_DENIED_BOARDING = 200

# Carriers under the APPR two-million-passenger threshold.
CANADIAN_SMALL_CARRIERS = [
    "Pacific Coastal",
    "Central Mountain Air",
    "Canadian North",
    "Air North",
    "PAL Airlines",
    "Harbour Air",
]

EUROPEAN_RIGHTS = [
    "Right to care (meals, refreshments, accommodation)",
    "Right to choose between refund and re-routing",
    "Right to assistance (phone calls, etc.)",
]
CANADIAN_RIGHTS = [
    "Right to alternative transportation",
    "Right to care if delayed overnight",
]


def _result(eligible, compensation, currency, regulation, reason=None, additional_rights=None):
    return {
        "eligible": eligible,
        "compensation": compensation,
        "currency": currency,
        "amount": f"{currency} {compensation:,}",
        "regulation": regulation,
        "reason": reason,
        "additional_rights": additional_rights or [],
    }


def _touches(departure_airport, arrival_airport, airports):
    return any(normalize_airport_code(code) in airports for code in (departure_airport, arrival_airport))


def is_swiss_covered(departure_airport, arrival_airport):
    return _touches(departure_airport, arrival_airport, SWISS_AIRPORTS)


def is_norwegian_covered(departure_airport, arrival_airport):
    return _touches(departure_airport, arrival_airport, NORWEGIAN_AIRPORTS)


def is_canadian_covered(departure_airport, arrival_airport):
    return _touches(departure_airport, arrival_airport, CANADIAN_AIRPORTS)


# ─────────────────────────────────────────────
# SWISS FOCA / NORWEGIAN CAA
# ─────────────────────────────────────────────

def _check_eu_style(regulation, currency, rate, delay_hours, distance_km,
                    is_cancellation, is_extraordinary, notice_given):
    if is_extraordinary:
        return _result(False, 0, currency, regulation, "Extraordinary circumstances")
    if is_cancellation and (notice_given or DEFAULT_NOTICE) == "> 14 days":
        return _result(False, 0, currency, regulation, "Cancellation with adequate notice")
    if not is_cancellation and delay_hours < MIN_DELAY_HOURS:
        return _result(False, 0, currency, regulation,
                       f"Delay under {MIN_DELAY_HOURS} hours does not qualify")

    compensation = round_half_up(EU261_AMOUNTS[get_distance_category(distance_km)] * rate)
    return _result(True, compensation, currency, regulation, additional_rights=EUROPEAN_RIGHTS)


def check_swiss_eligibility(delay_hours, distance_km, is_cancellation=False,
                            is_extraordinary=False, notice_given=None):
    """EU261 tiers converted to CHF (250/400/600 EUR -> 270/432/648 CHF)."""
    return _check_eu_style(SWISS_FOCA, "CHF", EUR_TO_CHF, delay_hours, distance_km,
                           is_cancellation, is_extraordinary, notice_given)


def check_norwegian_eligibility(delay_hours, distance_km, is_cancellation=False,
                                is_extraordinary=False, notice_given=None):
    """EU261 tiers converted to NOK (250/400/600 EUR -> 2875/4600/6900 NOK)."""
    return _check_eu_style(NORWEGIAN_CAA, "NOK", EUR_TO_NOK, delay_hours, distance_km,
                           is_cancellation, is_extraordinary, notice_given)


# ─────────────────────────────────────────────
# CANADIAN APPR
# ─────────────────────────────────────────────

def is_within_airline_control(reason):
    """Weather, security, ATC, strikes and medical emergencies are outside it; no reason counts as inside."""
    return not is_extraordinary_circumstance(reason)


def is_large_carrier(airline):
    name = (airline or "").lower()
    return not any(carrier.lower() in name for carrier in CANADIAN_SMALL_CARRIERS)


def _appr_tier(tiers, delay_hours):
    for max_hours, amount in tiers:
        if max_hours is None or delay_hours <= max_hours:
            return amount
    return tiers[-1][1]


def check_canadian_eligibility(delay_hours, within_airline_control, is_denied_boarding=False,
                               large_carrier=True):
    if not within_airline_control:
        return _result(False, 0, "CAD", CANADIAN_APPR, "Delay outside airline control")

    regulation = f"{CANADIAN_APPR} ({'Large' if large_carrier else 'Small'} Carrier)"
    if is_denied_boarding and not large_carrier:
        return _result(True, APPR_SMALL_CARRIER_DENIED_BOARDING, "CAD", regulation,
                       additional_rights=CANADIAN_RIGHTS)
    if not is_denied_boarding and delay_hours < MIN_DELAY_HOURS:
        return _result(False, 0, "CAD", regulation,
                       f"Arrival delay under {MIN_DELAY_HOURS} hours does not qualify")

    tiers = APPR_LARGE_CARRIER if large_carrier else APPR_SMALL_CARRIER
    return _result(True, _appr_tier(tiers, delay_hours), "CAD", regulation,
                   additional_rights=CANADIAN_RIGHTS)


# ─────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────

def _delay_hours(flight):
    if flight.disruption_type == "denied_boarding" and flight.alternative_arrival_delay:
        return parse_delay_hours(flight.alternative_arrival_delay)
    return parse_delay_hours(flight.delay_duration)


def check_regional_eligibility(flight):
    """
    Regional result for a FlightDetails, or None when no regional regime
    covers the route. Checked in order Swiss, Norwegian, Canadian.
    """
    dep, arr = flight.departure_airport, flight.arrival_airport
    reason = flight.cancellation_reason or flight.delay_reason or flight.denied_boarding_reason
    delay_hours = _delay_hours(flight)
    is_cancellation = flight.disruption_type == "cancellation"

    if is_swiss_covered(dep, arr):
        check = check_swiss_eligibility
    elif is_norwegian_covered(dep, arr):
        check = check_norwegian_eligibility
    else:
        check = None

    if check:
        result = check(delay_hours, resolve_distance_km(dep, arr), is_cancellation=is_cancellation,
                       is_extraordinary=is_extraordinary_circumstance(reason),
                       notice_given=flight.notice_given)
    elif is_canadian_covered(dep, arr):
        result = check_canadian_eligibility(
            delay_hours, is_within_airline_control(reason),
            is_denied_boarding=flight.disruption_type == "denied_boarding",
            large_carrier=is_large_carrier(flight.airline))
    else:
        return None

    print(f"[Regional] {flight.flight_number} {dep}-{arr}: {result['regulation']} -> {result['amount']}")
    return result
