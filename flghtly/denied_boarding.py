"""
denied_boarding.py - Denied boarding compensation
==================================================
EU261 Article 4 / UK CAA fixed amounts with the Article 7(2) 50% reduction,
and US DOT 14 CFR Part 250 fare-multiple compensation with caps.
"""

import re

from flghtly.distance_calculator import (
    EU261_AMOUNTS,
    UK_CAA_AMOUNTS,
    get_distance_category,
    resolve_distance_km,
)
from flghtly.regulations import (
    CURRENCY_SYMBOLS,
    UK_CAA,
    US_DOT,
    determine_regulation,
    format_amount,
    format_hours,
    is_us_domestic,
    not_covered_result,
    round_half_up,
)
from flghtly.schemas import EligibilityResult


US_DOT_REGULATION = "US DOT 14 CFR Part 250"

# Article 7(2) reduction windows by distance tier, in hours
REDUCTION_HOURS = {"short": 2, "medium": 3, "long": 4}

DISTANCE_LABELS = {
    "short": "short haul (≤1500km)",
    "medium": "medium haul (1500-3500km)",
    "long": "long haul (>3500km)",
}

# 14 CFR 250.5
US_LOW_TIER = (200, 775)     # percent of fare, cap in USD
US_HIGH_TIER = (400, 1550)


def parse_alternative_timing(timing):
    """'1 hour 30 minutes later' -> 1.5. Text without hours/minutes -> 0."""
    text = (timing or "").lower()
    hours_match = re.search(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b", text)
    minutes_match = re.search(r"(\d+(?:\.\d+)?)\s*(?:minutes?|mins?|m)\b", text)

    total = 0.0
    if hours_match:
        total += float(hours_match.group(1))
    if minutes_match:
        total += float(minutes_match.group(1)) / 60
    return total


def _alternative_arrival_delay(flight):
    """
    Hours the replacement flight arrived late, or None when no alternative
    with a known arrival delay was offered.
    """
    if flight.alternative_offered and flight.alternative_arrival_delay:
        return parse_alternative_timing(flight.alternative_arrival_delay)
    alt = flight.alternative_flight
    if (flight.alternative_offered is not False and alt is not None and alt.offered
            and alt.arrival_time_difference is not None):
        return float(alt.arrival_time_difference)
    return None


def _dollars(value):
    """'$1000000' for whole amounts, '$299.99' otherwise."""
    if float(value).is_integer():
        return f"${int(value)}"
    return f"${value:.2f}"


def check_denied_boarding_eligibility(flight):
    if flight.denied_boarding_type == "voluntary":
        offered = flight.compensation_offered
        return EligibilityResult(
            eligible=False,
            amount=f"${round_half_up(offered)}" if offered else "$0",
            confidence=95,
            message="Voluntary denied boarding - compensation is at airline discretion",
            regulation="Voluntary",
            reason="Passenger voluntarily gave up seat",
        )

    regulation = determine_regulation(flight)
    if regulation is None:
        return not_covered_result()
    if regulation == US_DOT:
        return _check_us_denied_boarding(flight)
    return _check_european_denied_boarding(flight, regulation)


def _check_european_denied_boarding(flight, regulation):
    distance = resolve_distance_km(flight.departure_airport, flight.arrival_airport)
    category = get_distance_category(distance)
    table = UK_CAA_AMOUNTS if regulation == UK_CAA else EU261_AMOUNTS
    value = table[category]

    arrival_delay = _alternative_arrival_delay(flight)
    reduction_note = ""
    if arrival_delay is not None and arrival_delay < REDUCTION_HOURS[category]:
        value = round_half_up(value * 0.5)
        reduction_note = (f" (50% reduction applied due to alternative flight arriving "
                          f"within {format_hours(arrival_delay)} hours)")

    amount = format_amount(CURRENCY_SYMBOLS[regulation], value)
    return EligibilityResult(
        eligible=True,
        amount=amount,
        confidence=90,
        message=(f"You're entitled to {amount} compensation under {regulation} "
                 f"for involuntary denied boarding{reduction_note}"),
        regulation=regulation,
        reason=f"Involuntary denied boarding, {DISTANCE_LABELS[category]}, distance {distance}km",
    )


def _check_us_denied_boarding(flight):
    fare = flight.ticket_price
    if not fare or fare <= 0:
        return EligibilityResult(
            eligible=False,
            amount="$0",
            confidence=50,
            message=("US DOT denied boarding compensation requires ticket price information. "
                     "Please provide the original ticket price."),
            regulation=US_DOT_REGULATION,
            reason="Missing ticket price for percentage calculation",
        )

    domestic = is_us_domestic(flight)
    # no alternative offered counts as no extra arrival delay
    arrival_delay = _alternative_arrival_delay(flight) or 0.0

    if arrival_delay < 1:
        return EligibilityResult(
            eligible=False,
            amount="$0",
            confidence=95,
            message=("Alternative flight arrived within 1 hour - no compensation required "
                     "under US DOT regulations"),
            regulation=US_DOT_REGULATION,
            reason=f"Alternative arrival delay under 1 hour ({arrival_delay:.1f} hours)",
        )
    elif (domestic and arrival_delay < 2) or (not domestic and arrival_delay < 4):
        percentage, cap = US_LOW_TIER
        reason = f"Alternative arrival delay {arrival_delay:.1f} hours - 200% compensation"
    else:
        percentage, cap = US_HIGH_TIER
        reason = f"Alternative arrival delay {arrival_delay:.1f} hours - 400% compensation"

    raw = fare * percentage / 100
    compensation = min(raw, cap)
    amount = f"${round_half_up(compensation)}"
    if raw >= cap:
        details = f" (capped at ${cap})"
    else:
        details = f" ({percentage}% of {_dollars(fare)} ticket price)"

    return EligibilityResult(
        eligible=True,
        amount=amount,
        confidence=95,
        message=(f"You're entitled to {amount} compensation under US DOT regulations "
                 f"for involuntary denied boarding{details}"),
        regulation=US_DOT_REGULATION,
        reason=reason,
    )
