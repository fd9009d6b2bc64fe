"""
claim_filing.py - Claim status lifecycle, airline submissions and follow-ups
=========================================================================
submitted -> validated -> documents_prepared -> ready_to_file -> filed
-> airline_acknowledged / monitoring -> airline_responded
-> approved | rejected -> completed | refunded

All functions return plain dicts shaped like {"success": bool, ...} so the
API layer can pass them straight through.
"""

import json
from datetime import datetime, timedelta

from flghtly.airline_config import (
    SUBMISSION_METHODS,
    first_follow_up_days,
    generate_submission_template,
    get_airline_config,
)
from flghtly.claim_id import is_valid_claim_id
from flghtly.claim_store import get_claim_store, utc_now
from flghtly.eligibility import parse_delay_hours
from flghtly.validation import validate_email


CLAIM_STATUSES = [
    "submitted",
    "validated",
    "documents_prepared",
    "ready_to_file",
    "filed",
    "airline_acknowledged",
    "monitoring",
    "airline_responded",
    "approved",
    "rejected",
    "completed",
    "refunded",
]

STATUS_TIMESTAMPS = {
    "validated": "validated_at",
    "documents_prepared": "documents_prepared_at",
    "ready_to_file": "ready_to_file_at",
    "filed": "filed_at",
    "airline_acknowledged": "airline_acknowledged_at",
    "airline_responded": "airline_responded_at",
    "completed": "completed_at",
}

REQUIRED_FILING_FIELDS = [
    "first_name",
    "last_name",
    "email",
    "flight_number",
    "airline",
    "departure_date",
    "departure_airport",
    "arrival_airport",
]

FOLLOW_UP_TYPES = ("initial", "reminder", "escalation", "final")

# First follow-up after filing, then every week; after the final notice, monthly.
FIRST_FOLLOW_UP_DAYS = 14
FOLLOW_UP_INTERVAL_DAYS = 7
AFTER_FINAL_DAYS = 30


def _append_note(existing, note, now):
    line = f"[{now.isoformat(timespec='seconds')}] {note}"
    return f"{existing}\n{line}" if existing else line


def _not_found(claim_id):
    return {"success": False, "message": f"Claim {claim_id} not found"}


def status_index(status):
    """Position of `status` in CLAIM_STATUSES, 0 for unknown values."""
    return CLAIM_STATUSES.index(status) if status in CLAIM_STATUSES else 0


def update_claim_status(claim_id, status, notes=None, now=None, store=None):
    """Move a claim to `status`, stamping the matching timestamp and appending notes."""
    if status not in CLAIM_STATUSES:
        return {"success": False, "message": f"Invalid status: {status}"}

    store = store or get_claim_store()
    claim = store.get_claim(claim_id)
    if claim is None:
        return _not_found(claim_id)

    now = now or utc_now()
    updates = {"status": status}
    if status in STATUS_TIMESTAMPS:
        updates[STATUS_TIMESTAMPS[status]] = now.isoformat()
    if status == "filed" and not claim.get("next_follow_up_date"):
        updates["next_follow_up_date"] = (now + timedelta(days=FIRST_FOLLOW_UP_DAYS)).isoformat()
    if notes:
        updates["internal_notes"] = _append_note(
            claim.get("internal_notes"), f"{claim['status']} -> {status}: {notes}", now)

    updated = store.update_claim(claim_id, updates)
    print(f"[ClaimFiling] {claim_id}: {claim['status']} -> {status}")
    return {"success": True, "message": f"Claim status updated to {status}", "claim": updated}


def validate_claim_for_filing(claim_id, store=None):
    """
    Check a stored claim is ready to be filed with the airline.

    Errors block filing (missing fields, documents, payment); warnings
    do not (short delay, invalid-looking claim ID).
    """
    store = store or get_claim_store()
    claim = store.get_claim(claim_id)
    if claim is None:
        return {
            "success": False,
            "is_valid": False,
            "errors": ["Claim not found"],
            "warnings": [],
            "missing_documents": [],
            "missing_fields": [],
        }

    errors = []
    warnings = []
    missing_documents = []
    missing_fields = []

    if not claim.get("payment_id"):
        errors.append("Payment not confirmed")

    if not claim.get("boarding_pass_url"):
        missing_documents.append("boarding_pass")
        errors.append("Boarding pass is required")
    disruption = claim.get("disruption_type") or "delay"
    if disruption in ("delay", "cancellation") and not claim.get("delay_proof_url"):
        missing_documents.append("delay_proof")
        errors.append("Delay proof is required")

    for field in REQUIRED_FILING_FIELDS:
        if not claim.get(field):
            missing_fields.append(field)
            errors.append(f"{field} is required")

    if claim.get("email") and not validate_email(claim["email"])["valid"]:
        errors.append("email is invalid")

    if disruption == "delay" and parse_delay_hours(claim.get("delay_duration")) < 3:
        warnings.append("Delay duration is less than 3 hours - may not be eligible for compensation")

    if not is_valid_claim_id(claim_id):
        warnings.append("Claim ID does not match the FLY-YYYYMMDD-XXXX format")

    if claim.get("airline") and get_airline_config(claim["airline"]) is None:
        warnings.append(f"No airline configuration found for {claim['airline']} - submission must be prepared manually")

    return {
        "success": not errors,
        "is_valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "missing_documents": missing_documents,
        "missing_fields": missing_fields,
    }


def generate_airline_submission(claim_id, now=None, store=None):
    """
    Build the airline submission for a validated claim and move it to
    documents_prepared.

    The template and the validation report are stored on the claim as JSON
    (generated_submission, validation_notes).
    """
    store = store or get_claim_store()
    claim = store.get_claim(claim_id)
    if claim is None:
        return _not_found(claim_id)

    validation = validate_claim_for_filing(claim_id, store=store)
    if not validation["is_valid"]:
        return {"success": False,
                "message": f"Claim validation failed: {', '.join(validation['errors'])}",
                "validation": validation}

    config = get_airline_config(claim["airline"])
    if config is None:
        return {"success": False, "message": f"No airline configuration found for {claim['airline']}"}

    now = now or utc_now()
    template = generate_submission_template(config, claim)
    updated = store.update_claim(claim_id, {
        "status": "documents_prepared",
        "documents_prepared_at": now.isoformat(),
        "generated_submission": json.dumps({**template, "airline_code": config["code"]}),
        "validation_notes": json.dumps(validation),
        "internal_notes": _append_note(
            claim.get("internal_notes"), f"Submission generated ({template['type']}) for {config['name']}", now),
    })
    print(f"[ClaimFiling] {claim_id}: {template['type']} submission generated for {config['code']}")
    return {
        "success": True,
        "message": f"Submission generated for {config['name']}",
        "submission_template": template,
        "airline_config": config,
        "claim": updated,
    }


def mark_claim_as_filed(claim_id, airline_reference, filed_by, filing_method, now=None, store=None):
    """Record that the claim was sent to the airline and schedule the first follow-up."""
    if filing_method not in SUBMISSION_METHODS:
        return {"success": False, "message": f"Invalid filing method: {filing_method}"}
    if not airline_reference or not filed_by:
        return {"success": False, "message": "airline_reference and filed_by are required"}

    store = store or get_claim_store()
    claim = store.get_claim(claim_id)
    if claim is None:
        return _not_found(claim_id)

    now = now or utc_now()
    days = first_follow_up_days(get_airline_config(claim.get("airline")))
    updated = store.update_claim(claim_id, {
        "status": "filed",
        "filed_at": now.isoformat(),
        "airline_reference": airline_reference,
        "filed_by": filed_by,
        "filing_method": filing_method,
        "next_follow_up_date": (now + timedelta(days=days)).isoformat(),
        "internal_notes": _append_note(
            claim.get("internal_notes"),
            f"Filed by {filed_by} via {filing_method}, airline reference {airline_reference}", now),
    })
    print(f"[ClaimFiling] {claim_id}: filed via {filing_method} ({airline_reference})")
    return {"success": True, "message": "Claim marked as filed", "claim": updated}


def get_all_claims_ready_to_file(store=None):
    store = store or get_claim_store()
    return store.get_claims_ready_to_file()


def process_automatic_claim_preparation(claim_id, now=None, store=None):
    """Validate, generate the submission and queue the claim as ready_to_file."""
    store = store or get_claim_store()
    generated = generate_airline_submission(claim_id, now=now, store=store)
    if not generated["success"]:
        print(f"[ClaimFiling] Automatic preparation failed for {claim_id}: {generated['message']}")
        return generated

    result = update_claim_status(claim_id, "ready_to_file",
                                 notes="Automatically prepared for filing", now=now, store=store)
    if result["success"]:
        result["submission_template"] = generated["submission_template"]
    return result


def schedule_follow_up(claim_id, follow_up_date, follow_up_type="reminder", notes=None, now=None, store=None):
    """Set the next follow-up date (ISO string or datetime) and log it in the notes."""
    if follow_up_type not in FOLLOW_UP_TYPES:
        return {"success": False, "message": f"Invalid follow-up type: {follow_up_type}"}

    store = store or get_claim_store()
    claim = store.get_claim(claim_id)
    if claim is None:
        return _not_found(claim_id)

    now = now or utc_now()
    when = follow_up_date.isoformat() if hasattr(follow_up_date, "isoformat") else str(follow_up_date)
    note = f"Follow-up scheduled: {follow_up_type} for {when}"
    if notes:
        note += f" - {notes}"

    updated = store.update_claim(claim_id, {
        "next_follow_up_date": when,
        "internal_notes": _append_note(claim.get("internal_notes"), note, now),
    })
    return {"success": True, "message": note, "claim": updated}


def follow_up_type_for(days_since_filing):
    if days_since_filing >= 35:
        return "final"
    if days_since_filing >= 28:
        return "escalation"
    if days_since_filing >= 14:
        return "initial"
    return "reminder"


def _days_since(timestamp, now):
    if not timestamp:
        return 0
    try:
        then = datetime.fromisoformat(timestamp)
    except ValueError:
        return 0
    if then.tzinfo is None:
        then = then.replace(tzinfo=now.tzinfo)
    return max(0, (now - then).days)


def process_follow_ups(now=None, store=None):
    """
    Cron job: record a follow-up for every claim whose follow-up date has
    passed and schedule the next one. Returns per-claim results.
    """
    store = store or get_claim_store()
    now = now or utc_now()
    results = []

    for claim in store.get_claims_needing_follow_up(now=now):
        claim_id = claim["claim_id"]
        follow_up_type = follow_up_type_for(_days_since(claim.get("filed_at"), now))
        interval = AFTER_FINAL_DAYS if follow_up_type == "final" else FOLLOW_UP_INTERVAL_DAYS
        try:
            store.update_claim(claim_id, {
                "follow_up_count": (claim.get("follow_up_count") or 0) + 1,
                "next_follow_up_date": (now + timedelta(days=interval)).isoformat(),
                "status": "monitoring" if claim["status"] == "filed" else claim["status"],
                "internal_notes": _append_note(
                    claim.get("internal_notes"), f"Follow-up sent: {follow_up_type}", now),
            })
            results.append({"claim_id": claim_id, "follow_up_type": follow_up_type, "success": True})
        except Exception as e:
            print(f"[ClaimFiling] Follow-up failed for {claim_id}: {e}")
            results.append({"claim_id": claim_id, "follow_up_type": follow_up_type,
                            "success": False, "error": str(e)})

    print(f"[ClaimFiling] Processed {len(results)} follow-ups")
    return results


def get_claim_filing_stats(now=None, store=None):
    store = store or get_claim_store()
    counts = store.count_claims_by_status()
    by_status = {status: counts.get(status, 0) for status in CLAIM_STATUSES}
    return {
        "total": sum(counts.values()),
        "by_status": by_status,
        "ready_to_file": by_status["ready_to_file"],
        "overdue": len(store.get_overdue_claims(days=2, now=now)),
        "needing_follow_up": len(store.get_claims_needing_follow_up(now=now)),
    }
