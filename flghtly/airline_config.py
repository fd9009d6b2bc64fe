"""
airline_config.py - How each airline takes compensation claims
==============================================================
Submission method (email, web form or post), where to send the claim, the
documents it needs, expected response time and follow-up cadence.

Records live in data/airline_configs.json and are loaded once on first use.
"""

import json
import re
import threading
from pathlib import Path


DATA_FILE = Path(__file__).parent / "data" / "airline_configs.json"

SUBMISSION_METHODS = ("email", "web_form", "postal")

# Queries too vague to match an airline by name.
GENERIC_QUERIES = {"airline", "air", "airways", "aviation"}

DEFAULT_FOLLOW_UP_DAYS = 14

SERVICE_FOOTER = ("This claim is being processed by Flghtly on behalf of the passenger.\n"
                  "For any questions, please contact: claims@flghtly.com")

_lock = threading.Lock()
_configs = None     # code -> record


# ─────────────────────────────────────────────
# LOADING
# ─────────────────────────────────────────────

def _load():
    global _configs
    if _configs is not None:
        return _configs
    with _lock:
        if _configs is None:
            with open(DATA_FILE, encoding="utf-8") as f:
                records = json.load(f)
            _configs = {r["code"].upper(): r for r in records}
            print(f"[AirlineConfig] Loaded {len(_configs)} airline configurations")
    return _configs


def get_all_airline_configs():
    return list(_load().values())


def get_airlines_by_submission_method(method):
    return [c for c in _load().values() if c["submission_method"] == method]


# ─────────────────────────────────────────────
# LOOKUP
# ─────────────────────────────────────────────

def _name_matches(config, query):
    name = config["name"].lower()
    if name == query or (len(query) >= 4 and (query in name or name in query)):
        return True
    for alias in config.get("aliases", []):
        alias = alias.lower()
        if alias == query or (len(query) >= 3 and query in alias):
            return True
    return False


def get_airline_config(airline):
    """
    Config for an airline code or name, or None.

    An exact IATA code wins; otherwise the first record whose name or alias
    matches the (case-insensitive) query.
    """
    if not airline:
        return None
    configs = _load()
    code_match = configs.get(airline.strip().upper())
    if code_match:
        return code_match

    query = airline.strip().lower()
    if len(query) < 3 or query in GENERIC_QUERIES:
        return None
    for config in configs.values():
        if _name_matches(config, query):
            return config
    return None


def first_follow_up_days(config):
    """Days until the first follow-up: the first entry of the schedule ('3 weeks' -> 21)."""
    if not config or not config.get("follow_up_schedule"):
        return DEFAULT_FOLLOW_UP_DAYS
    match = re.search(r"(\d+)", config["follow_up_schedule"][0])
    if not match:
        return DEFAULT_FOLLOW_UP_DAYS
    return int(match.group(1)) * 7


# ─────────────────────────────────────────────
# SUBMISSION TEMPLATES
# ─────────────────────────────────────────────

def _claim_lines(claim):
    return (
        f"- Passenger Name: {claim.get('first_name', '')} {claim.get('last_name', '')}\n"
        f"- Flight Number: {claim.get('flight_number', '')}\n"
        f"- Departure Date: {claim.get('departure_date', '')}\n"
        f"- Route: {claim.get('departure_airport', '')} to {claim.get('arrival_airport', '')}\n"
        f"- Delay Duration: {claim.get('delay_duration', '')}\n"
        f"- Delay Reason: {claim.get('delay_reason') or 'Not specified'}\n"
        f"- Booking Reference: {claim.get('booking_reference') or 'Not provided'}\n"
        f"- Email: {claim.get('email', '')}"
    )


def _schedule_lines(config):
    return "\n".join(f"- {step}" for step in config.get("follow_up_schedule", []))


def _email_body(config, claim):
    name = f"{claim.get('first_name', '')} {claim.get('last_name', '')}"
    return f"""Dear {config['name']} Customer Service,

I am writing to submit a compensation claim under EU261 regulations for the following flight:

Flight Details:
- Flight Number: {claim.get('flight_number', '')}
- Departure Date: {claim.get('departure_date', '')}
- Route: {claim.get('departure_airport', '')} to {claim.get('arrival_airport', '')}
- Delay Duration: {claim.get('delay_duration', '')}
- Delay Reason: {claim.get('delay_reason') or 'Not specified'}

Passenger Details:
- Name: {name}
- Email: {claim.get('email', '')}
- Booking Reference: {claim.get('booking_reference') or 'Not provided'}

Compensation Claim:
Under EU261 regulations, I am entitled to compensation for this flight disruption. The delay duration of {claim.get('delay_duration', '')} exceeds the 3-hour threshold for compensation eligibility.

Please process this claim and provide compensation as required under EU261 regulations.

Attached documents:
- Boarding pass
- Delay proof/documentation
- Passenger details

I look forward to your prompt response.

Best regards,
{name}
{claim.get('email', '')}

---
{SERVICE_FOOTER}
"""


def _web_form_body(config, claim):
    return f"""WEB FORM SUBMISSION INSTRUCTIONS

Airline: {config['name']}
Form URL: {config.get('claim_form_url', '')}

Required Information to Enter:
{_claim_lines(claim)}

Documents to Upload:
- Boarding pass
- Delay proof/documentation
- Any additional supporting documents

Special Instructions:
{config.get('special_instructions', '')}

Expected Response Time: {config.get('expected_response_time', '')}

Follow-up Schedule:
{_schedule_lines(config)}
"""


def _postal_body(config, claim):
    return f"""POSTAL SUBMISSION INSTRUCTIONS

Airline: {config['name']}
Address: {config.get('postal_address', '')}

Required Documents to Send:
- Printed claim form (if available)
- Boarding pass copy
- Delay proof/documentation
- Passenger details form

Claim Information:
{_claim_lines(claim)}

Special Instructions:
{config.get('special_instructions', '')}

Expected Response Time: {config.get('expected_response_time', '')}

Follow-up Schedule:
{_schedule_lines(config)}
"""


def generate_submission_template(config, claim):
    """
    Ready-to-send submission for a claim dict (claim store column names).

    Returns {"type", "subject", "body", "attachments", "cc_emails"} plus
    "to" (email), "url" (web form) or "address" (postal).
    """
    method = config["submission_method"]
    attachments = list(config.get("required_documents", []))
    if method == "email":
        return {
            "type": "email",
            "to": config.get("claim_email"),
            "subject": (f"EU261 Compensation Claim - Flight {claim.get('flight_number', '')} - "
                        f"{claim.get('departure_date', '')}"),
            "body": _email_body(config, claim),
            "attachments": attachments,
            "cc_emails": [],
        }
    if method == "web_form":
        return {
            "type": "web_form",
            "url": config.get("claim_form_url"),
            "subject": f"Web Form Submission Required - {config['name']}",
            "body": _web_form_body(config, claim),
            "attachments": attachments,
            "cc_emails": [],
        }
    return {
        "type": "postal",
        "address": config.get("postal_address"),
        "subject": f"Postal Submission Required - {config['name']}",
        "body": _postal_body(config, claim),
        "attachments": attachments,
        "cc_emails": [],
    }
