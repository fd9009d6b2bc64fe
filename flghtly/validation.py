"""
Field validators for the claim and eligibility forms.

Each returns a dict: {"valid": bool} plus "error" on failure and, where
useful, a "normalized" value or a typo "suggestion".
"""

import re
from datetime import date, datetime


FLIGHT_NUMBER_RE = re.compile(r"^[A-Z]{2}[0-9]{1,4}[A-Z]?$")
AIRPORT_CODE_RE = re.compile(r"^[A-Z]{3}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CLAIM_WINDOW_YEARS = 6

COMMON_EMAIL_TYPOS = {
    "gmial.com": "gmail.com",
    "gmai.com": "gmail.com",
    "gmal.com": "gmail.com",
    "yahooo.com": "yahoo.com",
    "hotmial.com": "hotmail.com",
    "hotmal.com": "hotmail.com",
    "outlok.com": "outlook.com",
}


def validate_flight_number(value):
    if not value or not value.strip():
        return {"valid": False, "error": "Flight number is required"}
    if not FLIGHT_NUMBER_RE.match(value.strip().upper().replace(" ", "")):
        return {
            "valid": False,
            "error": "Flight number should be airline code (2 letters) followed by 1-4 digits (e.g., BA123)",
        }
    return {"valid": True}


def validate_airport_code(value):
    if not value or not value.strip():
        return {"valid": False, "error": "Airport code is required"}
    if not AIRPORT_CODE_RE.match(value.strip().upper()):
        return {"valid": False, "error": "Please enter a valid 3-letter airport code (e.g., LHR, JFK)"}
    return {"valid": True}


def _parse_date(value):
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%d %B %Y", "%d %b %Y", "%B %d, %Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _years_before(day, years):
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February
        return day.replace(year=day.year - years, day=28)


def validate_flight_date(value, today=None):
    """Flight date must be a real date, not in the future, within the last 6 years."""
    if not value or not str(value).strip():
        return {"valid": False, "error": "Flight date is required"}

    flight_date = _parse_date(str(value))
    if flight_date is None:
        return {"valid": False, "error": "Please enter a valid date"}

    today = today or date.today()
    if flight_date > today:
        return {"valid": False, "error": "Flight date cannot be in the future"}
    if flight_date < _years_before(today, CLAIM_WINDOW_YEARS):
        return {"valid": False, "error": "Claims must be for flights within the last 6 years"}
    return {"valid": True, "normalized": flight_date.isoformat()}


def validate_delay_duration(value):
    """
    Accepts '3 hours', '3h', '3h 30m', '180 minutes', '2 hours 15 mins'.
    Normalised to '3h' / '3h 30m'.
    """
    if not value or not str(value).strip():
        return {"valid": False, "error": "Delay duration is required"}

    text = str(value).lower()
    hours = re.search(r"(\d+(?:\.\d+)?)\s*h(?:ours?|rs?)?\b", text)
    minutes = re.search(r"(\d+)\s*m(?:in(?:ute)?s?)?\b", text)

    total_minutes = 0
    if hours:
        total_minutes += int(round(float(hours.group(1)) * 60))
    if minutes:
        total_minutes += int(minutes.group(1))

    if total_minutes == 0:
        return {"valid": False, "error": 'Please enter delay in hours (e.g., "3 hours" or "3h")'}

    h, m = divmod(total_minutes, 60)
    normalized = f"{h}h {m}m" if m else f"{h}h"
    return {"valid": True, "normalized": normalized, "total_minutes": total_minutes}


def validate_email(value):
    if not value or not value.strip():
        return {"valid": False, "error": "Email is required"}

    email = value.strip()
    if not EMAIL_RE.match(email):
        return {"valid": False, "error": "Please enter a valid email address"}

    local, domain = email.rsplit("@", 1)
    fix = COMMON_EMAIL_TYPOS.get(domain.lower())
    if fix:
        return {"valid": True, "suggestion": f"{local}@{fix}"}
    return {"valid": True}


def validate_flight_form(data, today=None):
    """
    Validate the eligibility form fields in one pass.

    Returns {"valid": bool, "errors": {field: message}}.
    """
    checks = {
        "flight_number": validate_flight_number(data.get("flight_number", "")),
        "departure_airport": validate_airport_code(data.get("departure_airport", "")),
        "arrival_airport": validate_airport_code(data.get("arrival_airport", "")),
        "departure_date": validate_flight_date(data.get("departure_date", ""), today=today),
    }
    errors = {field: result["error"] for field, result in checks.items() if not result["valid"]}
    return {"valid": not errors, "errors": errors}
