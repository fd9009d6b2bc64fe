"""
scenario_detector.py - Disruption detection from free text
===========================================================
Regex detection of cancellations, denied boarding and downgrades in email
bodies or passenger descriptions. Every detected scenario is scored and the
most confident one is reported; text that matches nothing is treated as a
delay.

Each detector returns a plain dict of what it found, or None.
"""

import re


# ============================================================
# PATTERNS
# ============================================================
CANCELLATION_PATTERNS = [
    r"flight\s+\w*\d+\s+has\s+been\s+cancell?ed",
    r"flight\s+\w*\d+\s+is\s+no\s+longer\s+operating",
    r"due\s+to\s+cancellation",
    r"flight\s+cancellation",
    r"cancell?ed\s+due\s+to",
    r"service\s+cancell?ed",
    r"flight\s+will\s+not\s+operate",
    r"flight\s+has\s+been\s+discontinued",
    r"(?:has|was|been)\s+cancell?ed",
]

ALTERNATIVE_FLIGHT_PATTERNS = [
    r"alternative\s+flight",
    r"rebooked\s+on",
    r"transferred\s+to",
    r"moved\s+to\s+flight",
    r"new\s+flight\s+number",
    r"replacement\s+flight",
    r"next\s+available\s+flight",
]

# Checked in order: the first period with a match wins.
NOTICE_PERIOD_PATTERNS = [
    ("immediate", [r"less\s+than\s+24\s+hours", r"same\s+day", r"last\s+minute", r"immediate"]),
    ("short", [r"within\s+14\s+days", r"less\s+than\s+14\s+days", r"short\s+notice"]),
    ("adequate", [r"more\s+than\s+14\s+days", r"at\s+least\s+14\s+days",
                  r"advance\s+notice", r"sufficient\s+notice"]),
]

# immediate / short -> the notice buckets the eligibility engine understands
NOTICE_TO_ENGINE = {
    "immediate": "< 7 days",
    "short": "7-14 days",
    "adequate": "> 14 days",
}

EXTRAORDINARY_PATTERNS = [
    r"weather", r"storm", r"snow", r"\bfog\b", r"security", r"terroris[tm]",
    r"\bstrikes?\b", r"industrial\s+action", r"air\s+traffic\s+control", r"\batc\b",
    r"medical\s+emergency", r"bird\s+strike", r"volcanic\s+ash", r"natural\s+disaster",
    r"\bwar\b", r"political\s+unrest",
]

CANCELLATION_REASONS = [
    ("weather", "Weather conditions"),
    ("storm", "Severe weather"),
    ("snow", "Snow conditions"),
    ("fog", "Fog conditions"),
    ("technical", "Technical issues"),
    ("maintenance", "Aircraft maintenance"),
    ("security", "Security concerns"),
    ("strike", "Industrial action"),
    ("crew", "Crew shortage"),
    ("air traffic", "Air traffic control"),
    ("operational", "Operational reasons"),
]

DENIED_BOARDING_PATTERNS = [
    r"denied\s+boarding",
    r"unable\s+to\s+board",
    r"cannot\s+board",
    r"seat\s+not\s+available",
    r"overbooked",
    r"oversold",
    r"more\s+passengers\s+than\s+seats",
    r"give\s+up\s+your\s+seat",
    r"volunteer\s+to\s+give\s+up",
    r"compensation\s+for\s+volunteering",
    r"bumped\s+from",
    r"removed\s+from\s+(?:the\s+)?flight",
]

VOLUNTARY_PATTERNS = [
    r"voluntar", r"volunteer", r"incentive", r"give\s+up\s+(?:my|your)?\s*seat",
    r"willing\s+to\s+change",
]

INVOLUNTARY_PATTERNS = [
    r"involuntar", r"forced", r"required\s+to\s+give\s+up", r"no\s+volunteers",
    r"last\s+to\s+check\s+in", r"random\s+selection",
]

OVERBOOKING_PATTERNS = [
    r"overbook(?:ed|ing)?", r"oversold", r"more\s+passengers\s+than\s+seats",
    r"too\s+many\s+passengers", r"booking\s+error", r"reservation\s+conflict",
]

COMPENSATION_OFFER_PATTERNS = [
    r"compensation\s+of\s+[$€£]?(\d+)",
    r"offered\s+(?:a\s+)?[$€£]?(\d+)",
    r"voucher\s+worth\s+[$€£]?(\d+)",
    r"travel\s+credit\s+of\s+[$€£]?(\d+)",
    r"(\d+)\s+miles",
]

DOWNGRADE_PATTERNS = [
    r"downgraded",
    r"moved\s+to\s+economy",
    r"changed\s+to\s+economy",
    r"seat\s+class\s+change",
    r"cabin\s+change",
    r"class\s+downgrade",
    r"business\s+(?:class\s+)?to\s+economy",
    r"first\s+(?:class\s+)?to\s+business",
    r"premium\s+(?:economy\s+)?to\s+economy",
    r"seat\s+reassignment",
]

# premium economy is tested before economy and removed from the text,
# so "premium economy" is not also counted as economy.
CABIN_CLASS_PATTERNS = [
    ("premium_economy", [r"premium\s+economy", r"economy\s+plus", r"economy\s+comfort",
                         r"comfort\s+plus", r"premium\s+(?!economy)"]),
    ("first", [r"first\s+class", r"\bfirst\b(?!\s+(?:time|available|officer))", r"\bsuites?\b"]),
    ("business", [r"business\s+class", r"\bbusiness\b", r"\bclub\b", r"\bexecutive\b"]),
    ("economy", [r"economy", r"\bcoach\b", r"\bstandard\s+class\b"]),
]

FARE_DIFFERENCE_PATTERNS = [
    r"fare\s+difference\s+of\s+[$€£]?(\d+)",
    r"price\s+difference\s+of\s+[$€£]?(\d+)",
    r"refund\s+of\s+[$€£]?(\d+)",
    r"difference\s+of\s+[$€£]?(\d+)",
]

DOWNGRADE_REASON_PATTERNS = [
    ("aircraft change", [r"aircraft\s+change", r"different\s+aircraft",
                         r"equipment\s+change", r"aircraft\s+substitution"]),
    ("overbooking", [r"overbooked", r"oversold", r"too\s+many\s+passengers"]),
    ("maintenance", [r"maintenance", r"technical\s+issue", r"aircraft\s+problem"]),
    ("operational", [r"operational", r"schedule\s+change"]),
]

DELAY_PATTERNS = [
    r"delayed\s+by\s+(\d+(?:\.\d+)?)\s+hours?",
    r"(\d+(?:\.\d+)?)[\s-]hours?\s+delay",
    r"delay\s+of\s+(\d+(?:\.\d+)?)\s+hours?",
    r"running\s+(\d+(?:\.\d+)?)\s+hours?\s+late",
    r"arrived?\s+(\d+(?:\.\d+)?)\s+hours?\s+late",
]
DELAY_MINUTE_PATTERNS = [
    r"delay\s+of\s+(\d+)\s+minutes?",
    r"(\d+)[\s-]minutes?\s+delay",
    r"delayed\s+by\s+(\d+)\s+minutes?",
]

CLASS_ORDER = ["economy", "premium_economy", "business", "first"]


def _any(patterns, text):
    return any(re.search(p, text) for p in patterns)


def _first_group(patterns, text):
    for pattern in patterns:
        match = re.search(pattern, text)
        if match:
            return match.group(1)
    return None


def _currency(text):
    if "$" in text:
        return "USD"
    if "£" in text:
        return "GBP"
    return "EUR"


def _offer_type(text, default):
    if "voucher" in text or "credit" in text:
        return "voucher"
    if "miles" in text or "points" in text:
        return "miles"
    return default


def _alternative_flight(text):
    """Replacement flight details. Requires an explicit re-routing phrase."""
    if not _any(ALTERNATIVE_FLIGHT_PATTERNS, text):
        return None

    flight_number = None
    for match in re.finditer(r"flight\s+(?:number\s+)?([a-z]{2}\s?\d{1,4})\b", text):
        flight_number = match.group(1).replace(" ", "").upper()
    departure = re.search(r"depart(?:ure|s|ing)?\D{0,20}?(\d{1,2}:\d{2})", text)
    arrival = re.search(r"arriv(?:al|es|ing)?\D{0,20}?(\d{1,2}:\d{2})", text)
    later = re.search(r"(\d+(?:\.\d+)?)\s+hours?\s+later", text)

    return {
        "flight_number": flight_number,
        "departure_time": departure.group(1) if departure else "TBD",
        "arrival_time": arrival.group(1) if arrival else "TBD",
        "delay_hours": float(later.group(1)) if later else extract_delay_hours(text),
    }


def extract_delay_hours(text):
    """Hours of delay mentioned in the text. 0 when none."""
    text = (text or "").lower()
    hours = _first_group(DELAY_PATTERNS, text)
    if hours is not None:
        return float(hours)
    minutes = _first_group(DELAY_MINUTE_PATTERNS, text)
    if minutes is not None:
        return int(minutes) / 60
    return 0.0


def has_extraordinary_indicators(text):
    return _any(EXTRAORDINARY_PATTERNS, (text or "").lower())


# ============================================================
# CANCELLATION
# ============================================================
def _cancellation_reason(text):
    for keyword, reason in CANCELLATION_REASONS:
        if keyword in text:
            return reason
    if re.search(r"\batc\b", text):
        return "Air traffic control"
    return "Operational reasons"


def _notice_period(text):
    for period, patterns in NOTICE_PERIOD_PATTERNS:
        if _any(patterns, text):
            return period
    return "immediate"


def detect_cancellation(text):
    content = (text or "").lower()
    if not _any(CANCELLATION_PATTERNS, content):
        return None

    alternative = _alternative_flight(content)
    notice = _notice_period(content)
    return {
        "is_cancelled": True,
        "cancellation_reason": _cancellation_reason(content),
        "alternative_flight_offered": alternative is not None,
        "alternative_flight": alternative,
        "notice_period": notice,
        "notice_given": NOTICE_TO_ENGINE[notice],
        "extraordinary_circumstances": has_extraordinary_indicators(content),
    }


# ============================================================
# DENIED BOARDING
# ============================================================
def _denied_boarding_type(text):
    voluntary = _any(VOLUNTARY_PATTERNS, text)
    involuntary = _any(INVOLUNTARY_PATTERNS, text)
    if voluntary and not involuntary:
        return "voluntary"
    return "involuntary"


def _denied_boarding_reason(text):
    if _any(OVERBOOKING_PATTERNS, text):
        return "overbooking"
    if "aircraft" in text and "change" in text:
        return "aircraft_change"
    if "weight" in text or "heavy" in text:
        return "weight_restrictions"
    return "other"


def _compensation_offer(text):
    amount = _first_group(COMPENSATION_OFFER_PATTERNS, text)
    if amount is None:
        return None
    return {"amount": int(amount), "currency": _currency(text), "type": _offer_type(text, "cash")}


def detect_denied_boarding(text):
    content = (text or "").lower()
    if not _any(DENIED_BOARDING_PATTERNS, content):
        return None

    count = re.search(r"(\d+)\s+passengers?\s+(?:were\s+)?(?:denied|unable|bumped)", content)
    return {
        "is_denied_boarding": True,
        "type": _denied_boarding_type(content),
        "reason": _denied_boarding_reason(content),
        "compensation_offered": _compensation_offer(content),
        "alternative_flight": _alternative_flight(content),
        "passenger_count": int(count.group(1)) if count else None,
    }


def analyze_overbooking(text):
    content = (text or "").lower()
    if "volunteer" in content and "first" in content:
        policy = "voluntary_first"
    else:
        policy = "involuntary_allowed"
    return {
        "is_overbooking": _any(OVERBOOKING_PATTERNS, content),
        "airline_policy": policy,
        "compensation_offered": _any(COMPENSATION_OFFER_PATTERNS, content),
        "alternative_arrangements": any(
            word in content for word in ("alternative", "rebook", "next flight", "replacement")
        ),
    }


# ============================================================
# DOWNGRADE
# ============================================================
def extract_cabin_classes(text):
    """Cabin classes mentioned in the text, lowest first."""
    content = (text or "").lower()
    found = set()
    for seat_class, patterns in CABIN_CLASS_PATTERNS:
        for pattern in patterns:
            if re.search(pattern, content):
                found.add(seat_class)
                content = re.sub(pattern, " ", content)
    return [c for c in CLASS_ORDER if c in found]


def detect_downgrade(text):
    content = (text or "").lower()
    if not _any(DOWNGRADE_PATTERNS, content):
        return None

    classes = extract_cabin_classes(content)
    if len(classes) >= 2:
        original, new = classes[-1], classes[0]
    else:
        original = new = None

    fare = _first_group(FARE_DIFFERENCE_PATTERNS, content)
    reason = "operational reasons"
    for label, patterns in DOWNGRADE_REASON_PATTERNS:
        if _any(patterns, content):
            reason = label
            break

    offer = re.search(r"compensation\s+of\s+[$€£]?(\d+)", content)
    return {
        "is_downgrade": True,
        "original_class": original,
        "new_class": new,
        "fare_difference": int(fare) if fare else None,
        "currency": _currency(content),
        "downgrade_reason": reason,
        "compensation_offered": (
            {"amount": int(offer.group(1)), "currency": _currency(content),
             "type": _offer_type(content, "refund")}
            if offer else None
        ),
    }


# ============================================================
# DELAY
# ============================================================
def detect_delay(text):
    content = (text or "").lower()
    hours = extract_delay_hours(content)
    mentioned = hours > 0 or _any(
        [r"behind\s+schedule", r"late\s+departure", r"delayed"], content
    )
    if not mentioned:
        return None
    return {
        "is_delayed": True,
        "delay_hours": hours,
        "extraordinary_circumstances": has_extraordinary_indicators(content),
    }


# ============================================================
# SCORING
# ============================================================
# Tie-break order when two scenarios score the same.
SCENARIO_PRIORITY = ["denied_boarding", "downgrading", "cancellation", "delay"]


def _score(base, *signals):
    return round(min(base + 0.1 * sum(1 for s in signals if s), 1.0), 2)


def delay_confidence(text, delay):
    content = (text or "").lower()
    explicit = _any(DELAY_PATTERNS + DELAY_MINUTE_PATTERNS, content)
    score = 0.5 + (0.3 if delay["delay_hours"] > 0 else 0)
    return _score(score, delay["extraordinary_circumstances"], explicit)


def cancellation_confidence(cancellation):
    return _score(0.7, cancellation["cancellation_reason"],
                  cancellation["alternative_flight_offered"], cancellation["notice_period"])


def denied_boarding_confidence(denied):
    score = 0.6 + (0.2 if denied["type"] else 0)
    return _score(score, denied["reason"], denied["compensation_offered"])


def downgrade_confidence(downgrade):
    changed = downgrade["original_class"] is not None and downgrade["original_class"] != downgrade["new_class"]
    score = 0.5 + (0.3 if changed else 0)
    return _score(score, downgrade["fare_difference"], downgrade["downgrade_reason"])


def detect_scenario(text):
    """
    Run every detector over the text and pick the disruption type.

    Each detected scenario gets a confidence score; the highest wins, ties
    going to denied boarding, downgrading, cancellation, then delay. Nothing
    detected is a delay with no details and confidence 0.

    Returns {"disruption_type", "details", "confidence", "all_scenarios",
    "scenario_confidence"}.
    """
    found = {
        "denied_boarding": detect_denied_boarding(text),
        "downgrading": detect_downgrade(text),
        "cancellation": detect_cancellation(text),
        "delay": detect_delay(text),
    }
    scorers = {
        "denied_boarding": denied_boarding_confidence,
        "downgrading": downgrade_confidence,
        "cancellation": cancellation_confidence,
        "delay": lambda details: delay_confidence(text, details),
    }
    scores = {
        kind: (scorers[kind](details) if details else 0.0)
        for kind, details in found.items()
    }
    detected = [kind for kind in SCENARIO_PRIORITY if found[kind]]

    if detected:
        primary = max(detected, key=lambda kind: (scores[kind], -SCENARIO_PRIORITY.index(kind)))
        confidence = round(sum(scores[kind] for kind in detected) / len(detected), 2)
    else:
        primary, confidence = "delay", 0.0

    return {
        "disruption_type": primary,
        "details": found[primary],
        "confidence": confidence,
        "all_scenarios": detected,
        "scenario_confidence": scores,
    }
