"""
email_parser.py - Flight details from confirmation / disruption emails
======================================================================
Claude extracts a fixed JSON shape from the pasted email. Confidence is
recomputed locally from which fields came back and whether they are well
formed.
"""

import os
import re
from datetime import date

from flghtly.llm import ask_claude_json
from flghtly.parse_cache import get_parse_cache


REQUIRED_FIELDS = [
    "flightNumber",
    "airline",
    "departureDate",
    "scheduledDeparture",
    "scheduledArrival",
    "departureAirport",
    "arrivalAirport",
]

BONUS_FIELDS = ["delayDuration", "delayReason", "passengerName", "bookingReference"]

MAX_EMAIL_CHARS = 50_000

PARSING_PROMPT = """You are an expert at parsing flight-related emails to extract structured flight information.

Analyze the following email content and extract flight details. Return ONLY a valid JSON object with the exact structure specified below.

Email Content:
{email}

Extract the following information and return as JSON:

{{
  "flightNumber": "string (e.g., 'AA123', 'BA456')",
  "airline": "string (e.g., 'American Airlines', 'British Airways')",
  "departureDate": "string in YYYY-MM-DD format",
  "scheduledDeparture": "string in HH:MM format (24-hour)",
  "scheduledArrival": "string in HH:MM format (24-hour)",
  "departureAirport": "string (3-letter airport code, e.g., 'JFK', 'LHR')",
  "arrivalAirport": "string (3-letter airport code, e.g., 'LAX', 'CDG')",
  "delayDuration": "string (e.g., '2 hours', '120 minutes') or null if not mentioned",
  "delayReason": "string (reason for delay) or null if not mentioned",
  "isCancelled": "boolean (true if flight was cancelled)",
  "cancellationReason": "string (reason for cancellation) or null if not cancelled",
  "passengerName": "string (passenger name) or null if not found",
  "bookingReference": "string (PNR/booking reference) or null if not found",
  "ticketNumber": "string (ticket number) or null if not found",
  "confidence": "number between 0 and 1 (confidence in the extracted data)"
}}

RULES:
1. If any field cannot be determined from the email, use null
2. Dates in YYYY-MM-DD, times in 24-hour HH:MM
3. Airport codes are 3-letter IATA codes
4. Set isCancelled to true only if explicitly mentioned
5. Return ONLY the JSON object, no other text"""


def is_anthropic_configured():
    return bool(os.environ.get("ANTHROPIC_API_KEY"))


def _filled(data, field):
    value = data.get(field)
    return value is not None and value != ""


def is_valid_date(value):
    if not isinstance(value, str) or not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time(value):
    return isinstance(value, str) and re.fullmatch(r"\d{2}:\d{2}", value) is not None


def calculate_confidence(data):
    """Share of required fields present, plus bonuses, minus format penalties. Clamped to 0..1."""
    filled = sum(1 for field in REQUIRED_FIELDS if _filled(data, field))
    confidence = filled / len(REQUIRED_FIELDS)

    confidence += 0.1 * sum(1 for field in BONUS_FIELDS if _filled(data, field))

    if _filled(data, "departureDate") and not is_valid_date(data["departureDate"]):
        confidence -= 0.2
    if _filled(data, "scheduledDeparture") and not is_valid_time(data["scheduledDeparture"]):
        confidence -= 0.1
    if _filled(data, "scheduledArrival") and not is_valid_time(data["scheduledArrival"]):
        confidence -= 0.1

    return max(0.0, min(1.0, round(confidence, 4)))


def validate_flight_email_data(data):
    errors = []

    if not _filled(data, "flightNumber"):
        errors.append("Flight number is required")
    if not _filled(data, "airline"):
        errors.append("Airline is required")

    if not _filled(data, "departureDate"):
        errors.append("Departure date is required")
    elif not is_valid_date(data["departureDate"]):
        errors.append("Invalid departure date format")

    if not _filled(data, "scheduledDeparture"):
        errors.append("Scheduled departure time is required")
    elif not is_valid_time(data["scheduledDeparture"]):
        errors.append("Invalid scheduled departure time format")

    if _filled(data, "scheduledArrival") and not is_valid_time(data["scheduledArrival"]):
        errors.append("Invalid scheduled arrival time format")

    for field, label in (("departureAirport", "Departure"), ("arrivalAirport", "Arrival")):
        if not _filled(data, field):
            errors.append(f"{label} airport is required")
        elif not re.fullmatch(r"[A-Z]{3}", str(data[field])):
            errors.append(f"Invalid {label.lower()} airport code format")

    if data.get("confidence", 0) < 0.5:
        errors.append("Low confidence in extracted data")

    return {"is_valid": not errors, "errors": errors}


def _failure(error):
    return {"success": False, "data": None, "error": error, "confidence": 0, "cached": False}


def parse_flight_email(email_content, use_cache=True):
    """
    Extract flight details from an email body.

    Returns {"success", "data", "error", "confidence", "cached"}.
    """
    if not email_content or not isinstance(email_content, str) or not email_content.strip():
        return _failure("Invalid email content")
    if len(email_content) > MAX_EMAIL_CHARS:
        return _failure(f"Email content too long (max {MAX_EMAIL_CHARS} characters)")
    if not is_anthropic_configured():
        return _failure("Anthropic API not configured")

    cache = get_parse_cache()
    if use_cache:
        cached = cache.get(email_content)
        if cached is not None:
            return {**cached, "cached": True}

    try:
        data = ask_claude_json(PARSING_PROMPT.format(email=email_content), max_tokens=2000)
    except Exception as e:
        print(f"[EmailParser] Error parsing flight email: {e}")
        return _failure(str(e) or "Unknown error occurred")

    if not isinstance(data, dict):
        return _failure("Unexpected response format from Claude")

    confidence = calculate_confidence(data)
    data["confidence"] = confidence
    for field in ("departureAirport", "arrivalAirport", "flightNumber"):
        if isinstance(data.get(field), str):
            data[field] = data[field].strip().upper()

    result = {"success": True, "data": data, "error": None, "confidence": confidence, "cached": False}
    print(f"[EmailParser] Parsed {data.get('flightNumber') or '?'} (confidence {confidence:.2f})")
    if use_cache:
        cache.set(email_content, result)
    return result
