"""
Flghtly - FastAPI Backend
=========================
Serves the claim forms and admin tooling:
  - Eligibility checks (EU261 / UK CAA / US DOT engine plus regional regimes, rate limited)
  - Email parsing (Claude) and scenario detection (regex)
  - Claim submission and public claim status
  - Admin claim management, airline submissions and the follow-up cron hook
"""

import os
import secrets
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Cookie, FastAPI, Header, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from flghtly import __version__
from flghtly.admin_auth import clear_admin_session, create_admin_session, is_authorized
from flghtly.airports import all_airports, get_airport
from flghtly.claim_filing import (
    CLAIM_STATUSES,
    generate_airline_submission,
    get_all_claims_ready_to_file,
    get_claim_filing_stats,
    mark_claim_as_filed,
    process_automatic_claim_preparation,
    process_follow_ups,
    schedule_follow_up,
    update_claim_status,
    validate_claim_for_filing,
)
from flghtly.claim_id import generate_claim_id, is_valid_claim_id
from flghtly.claim_store import get_claim_store
from flghtly.distance_calculator import (
    calculate_flight_distance_cached,
    get_distance_category,
    get_estimated_flight_time,
    get_route_type,
)
from flghtly.email_parser import is_anthropic_configured, parse_flight_email, validate_flight_email_data
from flghtly.eligibility import check_eligibility
from flghtly.regional import check_regional_eligibility
from flghtly.rate_limit import ELIGIBILITY_LIMIT, eligibility_limiter, get_client_identifier
from flghtly.scenario_detector import detect_scenario
from flghtly.schemas import ClaimRequest, EligibilityResult, FlightDetails
from flghtly.validation import (
    validate_airport_code,
    validate_email,
    validate_flight_date,
    validate_flight_number,
)


ADMIN_SESSION_COOKIE = "admin_session"

DISRUPTION_STATUS_LABELS = {
    "delay": "Delayed",
    "cancellation": "Cancelled",
    "denied_boarding": "Denied Boarding",
    "downgrading": "Downgraded",
}

# Fields a passenger can see on the public claim status page
PUBLIC_CLAIM_FIELDS = [
    "claim_id", "status", "flight_number", "airline", "departure_date",
    "departure_airport", "arrival_airport", "estimated_compensation",
    "submitted_at", "filed_at", "completed_at",
]


# ============================================================
# STARTUP
# ============================================================
def init_globals():
    """Warm the airport table and claim store; report configuration."""
    if not is_anthropic_configured():
        print("[API] WARNING: ANTHROPIC_API_KEY not set, email parsing disabled.")
    if not os.environ.get("ADMIN_PASSWORD"):
        print("[API] WARNING: ADMIN_PASSWORD not set, using the default admin password.")

    airports = len(all_airports())
    store = get_claim_store()
    print(f"[API] ✅ All systems initialized ({airports} airports, "
          f"Turso {'on' if store.turso_available else 'off'})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_globals()
    yield


# ============================================================
# FASTAPI APP
# ============================================================
app = FastAPI(title="Flghtly API", version=__version__, lifespan=lifespan)

_origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)


# ============================================================
# REQUEST / RESPONSE MODELS
# ============================================================
class EmailParseRequest(BaseModel):
    email_content: str = Field(alias="emailContent")

    model_config = {"populate_by_name": True}

class ScenarioRequest(BaseModel):
    text: str

class AdminLoginRequest(BaseModel):
    password: str

class StatusUpdateRequest(BaseModel):
    status: str
    notes: Optional[str] = None

class FollowUpRequest(BaseModel):
    follow_up_date: str
    follow_up_type: str = "reminder"
    notes: Optional[str] = None

class FileClaimRequest(BaseModel):
    airline_reference: str = Field(alias="airlineReference")
    filed_by: str = Field(alias="filedBy")
    filing_method: str = Field(alias="filingMethod")

    model_config = {"populate_by_name": True}

class EligibilityResponse(BaseModel):
    success: bool
    flight: dict
    eligibility: EligibilityResult
    disruption_status: str
    regional: Optional[dict] = None

class ClaimCreatedResponse(BaseModel):
    success: bool
    claim_id: str
    status: str
    estimated_compensation: Optional[str] = None
    warnings: List[str] = []


# ============================================================
# HELPERS
# ============================================================
def _bearer(authorization):
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def _require_admin(authorization, session_cookie):
    token = _bearer(authorization) or session_cookie
    if not is_authorized(token):
        raise HTTPException(status_code=401, detail="Admin authentication required")


def _rate_limit_headers(result):
    return {
        "X-RateLimit-Limit": str(ELIGIBILITY_LIMIT),
        "X-RateLimit-Remaining": str(result["remaining"]),
        "X-RateLimit-Reset": str(int(result["reset_time"])),
    }


def _missing_flight_fields(flight):
    missing = []
    for field, value in (
        ("flightNumber", flight.flight_number),
        ("airline", flight.airline),
        ("departureDate", flight.departure_date),
        ("departureAirport", flight.departure_airport),
        ("arrivalAirport", flight.arrival_airport),
    ):
        if not str(value or "").strip():
            missing.append(field)
    if flight.disruption_type == "delay" and flight.delay_duration in ("", "0"):
        missing.append("delayDuration")
    return missing


# ============================================================
# ELIGIBILITY
# ============================================================
@app.get("/api/check-eligibility")
async def eligibility_info():
    return {
        "message": "Eligibility checker API is running",
        "endpoints": {"POST /api/check-eligibility": "Check flight eligibility for compensation"},
        "disruption_types": list(DISRUPTION_STATUS_LABELS),
    }


@app.post("/api/check-eligibility", response_model=EligibilityResponse)
async def eligibility(flight: FlightDetails, response: Response,
                      x_forwarded_for: Optional[str] = Header(None),
                      x_real_ip: Optional[str] = Header(None)):
    client_id = get_client_identifier({"x-forwarded-for": x_forwarded_for, "x-real-ip": x_real_ip})
    limit = eligibility_limiter.check(client_id)
    headers = _rate_limit_headers(limit)
    if not limit["allowed"]:
        print(f"[API] Rate limit exceeded for {client_id}")
        raise HTTPException(
            status_code=429,
            detail=f"Too many requests. Please try again in {limit['retry_after']} seconds.",
            headers={**headers, "Retry-After": str(limit["retry_after"])},
        )
    response.headers.update(headers)

    missing = _missing_flight_fields(flight)
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"The following fields are required: {', '.join(missing)}",
        )

    result = check_eligibility(flight)

    try:
        get_claim_store().log_eligibility_check(flight, result, client_id=client_id)
    except Exception as e:
        print(f"[API] Eligibility logging failed: {e}")

    return EligibilityResponse(
        success=True,
        flight={
            "flight_number": flight.flight_number,
            "departure_date": flight.departure_date,
            "departure_airport": flight.departure_airport,
            "arrival_airport": flight.arrival_airport,
        },
        eligibility=result,
        disruption_status=DISRUPTION_STATUS_LABELS[flight.disruption_type],
        regional=check_regional_eligibility(flight),
    )


# ============================================================
# EMAIL PARSING + SCENARIO DETECTION
# ============================================================
@app.post("/api/parse-flight-email")
async def parse_email(req: EmailParseRequest):
    result = parse_flight_email(req.email_content)
    if not result["success"]:
        if result["error"] == "Anthropic API not configured":
            raise HTTPException(status_code=503, detail=result["error"])
        if result["error"] == "Invalid email content" or "too long" in result["error"]:
            raise HTTPException(status_code=400, detail=result["error"])
        raise HTTPException(status_code=502, detail=f"Email parsing failed: {result['error']}")

    return {
        **result,
        "validation": validate_flight_email_data(result["data"]),
        "scenario": detect_scenario(req.email_content),
    }


@app.post("/api/detect-scenario")
async def scenario(req: ScenarioRequest):
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    return {"success": True, **detect_scenario(req.text)}


@app.get("/api/distance")
async def distance(from_code: str = Query(..., alias="from"), to_code: str = Query(..., alias="to")):
    result = calculate_flight_distance_cached(from_code, to_code)
    if not result["is_valid"]:
        raise HTTPException(status_code=400, detail=result["error"])
    km = result["distance_km"]
    return {
        **result,
        "category": get_distance_category(km),
        "route_type": get_route_type(km),
        "estimated_flight_time": get_estimated_flight_time(km),
        "from": get_airport(from_code),
        "to": get_airport(to_code),
    }


# ============================================================
# CLAIMS (PUBLIC)
# ============================================================
@app.post("/api/claims", response_model=ClaimCreatedResponse)
async def create_claim(req: ClaimRequest):
    errors = {}
    for field, check in (
        ("email", validate_email(req.email)),
        ("flight_number", validate_flight_number(req.flight_number)),
        ("departure_airport", validate_airport_code(req.departure_airport)),
        ("arrival_airport", validate_airport_code(req.arrival_airport)),
        ("departure_date", validate_flight_date(req.departure_date)),
    ):
        if not check["valid"]:
            errors[field] = check["error"]
    if not req.first_name.strip() or not req.last_name.strip():
        errors["name"] = "First and last name are required"
    if errors:
        raise HTTPException(status_code=400, detail={"message": "Invalid claim", "errors": errors})

    warnings = []
    suggestion = validate_email(req.email).get("suggestion")
    if suggestion:
        warnings.append(f"Did you mean {suggestion}?")

    estimate = req.estimated_compensation
    if not estimate:
        result = check_eligibility(FlightDetails.model_validate(req.model_dump()))
        estimate = result.amount if result.eligible else None

    record = req.model_dump()
    record.update({"claim_id": generate_claim_id(), "status": "submitted", "estimated_compensation": estimate})
    try:
        stored = get_claim_store().create_claim(record)
    except Exception as e:
        print(f"[API] Claim creation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to store claim")

    return ClaimCreatedResponse(
        success=True,
        claim_id=stored["claim_id"],
        status=stored["status"],
        estimated_compensation=estimate,
        warnings=warnings,
    )


@app.get("/api/claims/{claim_id}")
async def claim_status(claim_id: str):
    if not is_valid_claim_id(claim_id):
        raise HTTPException(status_code=400, detail="Invalid claim ID format")
    claim = get_claim_store().get_claim(claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")
    return {"success": True, "claim": {k: claim.get(k) for k in PUBLIC_CLAIM_FIELDS}}


# ============================================================
# ADMIN
# ============================================================
@app.post("/api/admin/login")
async def admin_login(req: AdminLoginRequest, response: Response):
    result = create_admin_session(req.password)
    if not result["success"]:
        raise HTTPException(status_code=401, detail=result["message"])
    response.set_cookie(
        ADMIN_SESSION_COOKIE, result["token"],
        httponly=True, samesite="strict", max_age=24 * 60 * 60,
        secure=os.environ.get("ENVIRONMENT") == "production",
    )
    return result


@app.post("/api/admin/logout")
async def admin_logout(response: Response,
                       authorization: Optional[str] = Header(None),
                       admin_session: Optional[str] = Cookie(None)):
    result = clear_admin_session(_bearer(authorization) or admin_session)
    response.delete_cookie(ADMIN_SESSION_COOKIE)
    return result


@app.get("/api/admin/status")
async def admin_status(authorization: Optional[str] = Header(None),
                       admin_session: Optional[str] = Cookie(None)):
    return {"authenticated": is_authorized(_bearer(authorization) or admin_session)}


@app.get("/api/admin/claims")
async def admin_claims(status: Optional[str] = None, limit: int = Query(100, ge=1, le=1000),
                       authorization: Optional[str] = Header(None),
                       admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    store = get_claim_store()
    if status:
        if status not in CLAIM_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
        claims = store.get_claims_by_status(status)[:limit]
    else:
        claims = store.get_all_claims(limit=limit)
    return {"success": True, "count": len(claims), "claims": claims}


@app.get("/api/admin/claims/stats")
async def admin_claim_stats(authorization: Optional[str] = Header(None),
                            admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    return {
        "success": True,
        "claims": get_claim_filing_stats(),
        "eligibility": get_claim_store().eligibility_summary(),
    }


@app.get("/api/admin/claims/ready-to-file")
async def admin_ready_to_file(authorization: Optional[str] = Header(None),
                              admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    claims = get_all_claims_ready_to_file()
    return {"success": True, "count": len(claims), "claims": claims}


@app.get("/api/admin/claims/{claim_id}")
async def admin_claim(claim_id: str, authorization: Optional[str] = Header(None),
                      admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    claim = get_claim_store().get_claim(claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")
    return {"success": True, "claim": claim}


@app.post("/api/admin/claims/{claim_id}/status")
async def admin_update_status(claim_id: str, req: StatusUpdateRequest,
                              authorization: Optional[str] = Header(None),
                              admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    result = update_claim_status(claim_id, req.status, notes=req.notes)
    if not result["success"]:
        code = 404 if "not found" in result["message"] else 400
        raise HTTPException(status_code=code, detail=result["message"])
    return result


@app.post("/api/admin/claims/{claim_id}/follow-up")
async def admin_follow_up(claim_id: str, req: FollowUpRequest,
                          authorization: Optional[str] = Header(None),
                          admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    result = schedule_follow_up(claim_id, req.follow_up_date, req.follow_up_type, notes=req.notes)
    if not result["success"]:
        code = 404 if "not found" in result["message"] else 400
        raise HTTPException(status_code=code, detail=result["message"])
    return result


@app.get("/api/admin/claims/{claim_id}/validate")
async def admin_validate(claim_id: str, authorization: Optional[str] = Header(None),
                         admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    result = validate_claim_for_filing(claim_id)
    if result["errors"] == ["Claim not found"]:
        raise HTTPException(status_code=404, detail="Claim not found")
    return result


@app.post("/api/admin/claims/{claim_id}/generate-submission")
async def admin_generate_submission(claim_id: str, authorization: Optional[str] = Header(None),
                                    admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    result = generate_airline_submission(claim_id)
    if not result["success"]:
        code = 404 if "not found" in result["message"] else 400
        raise HTTPException(status_code=code, detail=result["message"])
    return result


@app.post("/api/admin/claims/{claim_id}/prepare")
async def admin_prepare_claim(claim_id: str, authorization: Optional[str] = Header(None),
                              admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    result = process_automatic_claim_preparation(claim_id)
    if not result["success"]:
        code = 404 if "not found" in result["message"] else 400
        raise HTTPException(status_code=code, detail=result["message"])
    return result


@app.post("/api/admin/claims/{claim_id}/file")
async def admin_file_claim(claim_id: str, req: FileClaimRequest,
                           authorization: Optional[str] = Header(None),
                           admin_session: Optional[str] = Cookie(None)):
    _require_admin(authorization, admin_session)
    result = mark_claim_as_filed(claim_id, req.airline_reference, req.filed_by, req.filing_method)
    if not result["success"]:
        code = 404 if "not found" in result["message"] else 400
        raise HTTPException(status_code=code, detail=result["message"])
    return result


# ============================================================
# CRON
# ============================================================
@app.post("/api/cron/check-follow-ups")
async def cron_follow_ups(authorization: Optional[str] = Header(None)):
    secret = os.environ.get("CRON_SECRET", "")
    if not secret:
        raise HTTPException(status_code=503, detail="CRON_SECRET not configured")
    if not secrets.compare_digest((_bearer(authorization) or "").encode("utf-8"), secret.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
    results = process_follow_ups()
    return {
        "success": True,
        "processed": len(results),
        "succeeded": sum(1 for r in results if r["success"]),
        "results": results,
    }


# ============================================================
# HEALTH CHECK
# ============================================================
@app.get("/health")
async def health():
    store = get_claim_store()
    return {
        "status": "ok",
        "version": __version__,
        "anthropic": is_anthropic_configured(),
        "turso": store.turso_available,
        "airports": len(all_airports()),
    }


# ============================================================
# RUN
# ============================================================
if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("api:app", host="0.0.0.0", port=port, reload=True)
