"""
downgrade.py - Involuntary downgrade refunds (EU261 Article 10)
================================================================
Passengers placed in a lower class than booked are refunded a share of the
ticket price: 30% short haul, 50% medium haul, 75% long haul. There is no
extraordinary-circumstances exemption. US DOT sets no fixed amount.
"""

from flghtly.distance_calculator import get_distance_category, resolve_distance_km
from flghtly.regulations import (
    CURRENCY_SYMBOLS,
    US_DOT,
    determine_regulation,
    format_amount,
    not_covered_result,
    round_half_up,
)
from flghtly.schemas import EligibilityResult


# Lowest to highest
CLASS_HIERARCHY = ["economy", "premium_economy", "business", "first"]

REFUND_PERCENTAGES = {"short": 30, "medium": 50, "long": 75}


def _class_label(seat_class):
    return (seat_class or "").replace("_", " ")


def calculate_class_difference(booked_class, actual_class):
    """
    Number of class steps lost. first -> economy is 3; an upgrade is negative.
    Unknown classes give 0.
    """
    if booked_class not in CLASS_HIERARCHY or actual_class not in CLASS_HIERARCHY:
        return 0
    return CLASS_HIERARCHY.index(booked_class) - CLASS_HIERARCHY.index(actual_class)


def check_downgrade_eligibility(flight):
    regulation = determine_regulation(flight)
    if regulation is None:
        return not_covered_result()

    symbol = CURRENCY_SYMBOLS[regulation]
    zero = format_amount(symbol, 0)

    if not flight.booked_class or not flight.actual_class:
        return EligibilityResult(
            eligible=False,
            amount=zero,
            confidence=50,
            message="Unable to assess downgrade: missing booked or actual class information",
            regulation=regulation,
            reason="Missing class information",
        )

    if calculate_class_difference(flight.booked_class, flight.actual_class) <= 0:
        return EligibilityResult(
            eligible=False,
            amount=zero,
            confidence=100,
            message="No downgrade detected - you travelled in the same or better class than booked",
            regulation=regulation,
            reason="No downgrade occurred",
        )

    downgrade_text = (f"Downgraded from {_class_label(flight.booked_class)} "
                      f"to {_class_label(flight.actual_class)}")

    if regulation == US_DOT:
        return EligibilityResult(
            eligible=True,
            amount="Varies by airline",
            confidence=65,
            message=("US DOT does not mandate specific compensation for downgrades. "
                     "You are usually owed the fare difference; contact the airline directly."),
            regulation=US_DOT,
            reason=f"{downgrade_text} - check airline policy",
        )

    distance = resolve_distance_km(flight.departure_airport, flight.arrival_airport)
    category = get_distance_category(distance)
    percentage = REFUND_PERCENTAGES[category]

    if not flight.ticket_price or flight.ticket_price <= 0:
        return EligibilityResult(
            eligible=True,
            amount="To be calculated",
            confidence=70,
            message=(f"You're entitled to a {percentage}% refund of your ticket price under "
                     f"{regulation} Article 10. Please provide your ticket price to calculate "
                     f"the exact amount."),
            regulation=regulation,
            reason=downgrade_text,
        )

    refund = round_half_up(flight.ticket_price * percentage / 100)
    amount = format_amount(symbol, refund)
    return EligibilityResult(
        eligible=True,
        amount=amount,
        confidence=95,
        message=(f"You're entitled to a {percentage}% refund ({amount}) of your ticket price "
                 f"under {regulation} Article 10 for the downgrade"),
        regulation=regulation,
        reason=f"{downgrade_text}, distance {distance}km, {percentage}% refund",
    )
