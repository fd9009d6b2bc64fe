"""
eligibility.py - Flghtly Compensation Eligibility Engine
========================================================
Maps a disrupted flight to a compensation estimate:

    (regulation, distance tier, disruption type, notice period,
     alternative offered, seat classes, ticket price)
        -> EligibilityResult(eligible, amount, confidence, message, regulation, reason)

Delays and cancellations are handled here; denied boarding and downgrading
live in their own modules and are dispatched from check_eligibility().
All functions are pure apart from the shared distance cache.
"""

import re

from flghtly.denied_boarding import check_denied_boarding_eligibility, parse_alternative_timing
from flghtly.distance_calculator import (
    EU261_AMOUNTS,
    UK_CAA_AMOUNTS,
    get_distance_category,
    resolve_distance_km,
)
from flghtly.downgrade import check_downgrade_eligibility
from flghtly.extraordinary import is_extraordinary_circumstance
from flghtly.regulations import (
    CURRENCY_SYMBOLS,
    EU261,
    UK_CAA,
    US_DOT,
    determine_regulation,
    format_amount,
    format_hours,
    get_airline_compensation_info,
    not_covered_result,
    round_half_up,
)
from flghtly.schemas import EligibilityResult, FlightDetails


MIN_DELAY_HOURS = 3
US_DOT_MIN_DELAY_HOURS = 4

DEFAULT_NOTICE = "> 14 days"

# Article 5(1)(c): re-routing that waives compensation.
# notice -> (max hours departing early, max hours arriving late)
CANCELLATION_WAIVER_LIMITS = {
    "7-14 days": (2, 4),
    "< 7 days": (1, 2),
}

# Article 7(2): a re-routing that misses the waiver but arrives less than
# this many hours late halves the compensation.
CANCELLATION_REDUCTION_HOURS = 4


# ============================================================
# SHARED HELPERS
# ============================================================
def _result(eligible, amount, confidence, message, regulation, reason=None):
    return EligibilityResult(
        eligible=eligible,
        amount=amount,
        confidence=confidence,
        message=message,
        regulation=regulation,
        reason=reason,
    )


def base_amount(regulation, distance_km):
    """Fixed Article 7 amount for the regime and distance tier."""
    table = UK_CAA_AMOUNTS if regulation == UK_CAA else EU261_AMOUNTS
    return table[get_distance_category(distance_km)]


def regulation_label(regulation):
    return "UK CAA regulations" if regulation == UK_CAA else regulation


def parse_delay_hours(delay_duration):
    """
    Delay text in hours.

    '4 hours' -> 4, '3.5h' -> 3.5, '180 minutes' -> 3,
    '4 hours 30 minutes' -> 4.5. A bare number is hours. No number -> 0.
    """
    text = str(delay_duration or "").lower()
    hours_match = re.search(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)(?![a-z])", text)
    minutes_match = re.search(r"(\d+(?:\.\d+)?)\s*(?:minutes?|mins?|m)(?![a-z])", text)
    if hours_match or minutes_match:
        hours = float(hours_match.group(1)) if hours_match else 0.0
        if minutes_match:
            hours += float(minutes_match.group(1)) / 60
        return hours

    match = re.search(r"(\d+(?:\.\d+)?)", text)
    if not match:
        return 0
    return float(match.group(1))


# ============================================================
# DELAY
# ============================================================
def check_delay_eligibility(flight):
    delay_hours = parse_delay_hours(flight.delay_duration)

    if delay_hours < MIN_DELAY_HOURS:
        return _result(
            False, "€0", 100,
            "Delay must be at least 3 hours to qualify for compensation",
            "EU261/UK CAA/US DOT",
            "Insufficient delay duration",
        )

    regulation = determine_regulation(flight)
    if regulation in (UK_CAA, EU261):
        return _check_european_delay(flight, delay_hours, regulation)
    if regulation == US_DOT:
        return _check_us_delay(flight, delay_hours)
    return not_covered_result()


def _check_european_delay(flight, delay_hours, regulation):
    symbol = CURRENCY_SYMBOLS[regulation]

    if is_extraordinary_circumstance(flight.delay_reason):
        return _result(
            False, format_amount(symbol, 0), 90,
            "Compensation not available due to extraordinary circumstances",
            regulation,
            "Extraordinary circumstances (weather, security, etc.)",
        )

    distance = resolve_distance_km(flight.departure_airport, flight.arrival_airport)
    amount = format_amount(symbol, base_amount(regulation, distance))
    return _result(
        True, amount, 85,
        f"You're likely entitled to {amount} compensation under {regulation_label(regulation)}",
        regulation,
        f"Flight delayed {format_hours(delay_hours)} hours, distance {distance}km",
    )


def _check_us_delay(flight, delay_hours):
    if delay_hours >= US_DOT_MIN_DELAY_HOURS:
        return _result(
            True, "Varies by airline", 60,
            "US DOT doesn't mandate compensation, but the airline may offer assistance",
            US_DOT,
            get_airline_compensation_info(flight.airline),
        )
    return _result(
        False, "$0", 80,
        "US DOT doesn't mandate compensation for delays under 4 hours",
        US_DOT,
        "Insufficient delay for DOT consideration",
    )


# ============================================================
# CANCELLATION
# ============================================================
def resolve_alternative(flight):
    """
    Normalise the re-routing offer to (offered, departure_diff_h, arrival_diff_h).

    The structured `alternative_flight` wins over the legacy
    `alternative_offered` + `alternative_timing` pair. Missing differences
    count as 0; legacy timing text is the arrival difference.
    """
    alt = flight.alternative_flight
    if alt is not None:
        if not alt.offered:
            return False, 0.0, 0.0
        return (
            True,
            float(alt.departure_time_difference or 0),
            float(alt.arrival_time_difference or 0),
        )
    if flight.alternative_offered:
        return True, 0.0, parse_alternative_timing(flight.alternative_timing or "")
    return False, 0.0, 0.0


def check_cancellation_eligibility(flight):
    regulation = determine_regulation(flight)
    if regulation is None:
        return not_covered_result()

    if regulation == US_DOT:
        return _result(
            True, "Full refund", 80,
            "US DOT requires a full refund for cancelled flights, "
            "but does not mandate additional compensation",
            US_DOT,
            "Flight cancelled by airline",
        )

    symbol = CURRENCY_SYMBOLS[regulation]
    zero = format_amount(symbol, 0)
    notice = flight.notice_given or DEFAULT_NOTICE

    if notice == "> 14 days":
        return _result(
            False, zero, 95,
            "No compensation due: the airline gave more than 14 days notice of the cancellation",
            regulation,
            "Cancellation notified more than 14 days before departure",
        )

    if is_extraordinary_circumstance(flight.cancellation_reason or flight.delay_reason):
        return _result(
            False, zero, 90,
            "Compensation not available due to extraordinary circumstances",
            regulation,
            "Extraordinary circumstances (weather, security, etc.)",
        )

    offered, departure_diff, arrival_diff = resolve_alternative(flight)

    if offered:
        max_early, max_late = CANCELLATION_WAIVER_LIMITS[notice]
        if departure_diff >= -max_early and arrival_diff < max_late:
            return _result(
                False, zero, 90,
                f"Alternative flight offered within the permitted times "
                f"(departing no more than {max_early}h early and arriving less than "
                f"{max_late}h late), so no compensation is due",
                regulation,
                f"Re-routing met the limits for {notice} notice",
            )

    distance = resolve_distance_km(flight.departure_airport, flight.arrival_airport)
    value = base_amount(regulation, distance)

    reduction_note = ""
    if offered and arrival_diff < CANCELLATION_REDUCTION_HOURS:
        value = round_half_up(value * 0.5)
        reduction_note = (f" (50% reduction applied because the alternative flight "
                          f"arrived {format_hours(arrival_diff)} hours late)")

    amount = format_amount(symbol, value)
    return _result(
        True, amount, 85,
        f"You're likely entitled to {amount} compensation under "
        f"{regulation_label(regulation)} for your cancelled flight{reduction_note}",
        regulation,
        f"Flight cancelled with {notice} notice, distance {distance}km",
    )


# ============================================================
# DISPATCH
# ============================================================
_HANDLERS = {
    "delay": check_delay_eligibility,
    "cancellation": check_cancellation_eligibility,
    "denied_boarding": check_denied_boarding_eligibility,
    "downgrading": check_downgrade_eligibility,
}


def check_eligibility(flight):
    """Entry point. Accepts a FlightDetails or a plain dict of its fields."""
    if isinstance(flight, dict):
        flight = FlightDetails.model_validate(flight)
    handler = _HANDLERS.get(flight.disruption_type, check_delay_eligibility)
    result = handler(flight)
    print(f"[Eligibility] {flight.flight_number or '?'} {flight.departure_airport}-{flight.arrival_airport} "
          f"{flight.disruption_type}: eligible={result.eligible} {result.amount} ({result.regulation})")
    return result
