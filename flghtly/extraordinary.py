"""
extraordinary.py - Extraordinary-circumstances analysis
========================================================
Decides whether a delay/cancellation reason exempts the airline from paying
compensation under EU261 / UK CAA.

Two layers:
  1. Claude analysis (when ANTHROPIC_API_KEY is set) with a strict JSON reply.
  2. Keyword classification, used when Claude is unavailable or returns
     something unusable. The eligibility engine uses this layer directly so
     its answers stay deterministic.
"""

import re
from concurrent.futures import ThreadPoolExecutor

from flghtly.llm import ask_claude_json


CATEGORIES = (
    "weather", "security", "air_traffic", "strike",
    "medical", "technical", "operational", "unknown",
)
EXTRAORDINARY_CATEGORIES = {"weather", "security", "air_traffic", "strike", "medical"}

# Checked in order; the first category with a whole-word hit wins.
CATEGORY_KEYWORDS = {
    "weather": [
        "weather", "storm", "thunderstorm", "snow", "fog", "ice", "icing",
        "hurricane", "tornado", "rain", "wind", "visibility",
        "volcanic ash", "natural disaster",
    ],
    "security": [
        "security", "terrorist", "threat", "bomb", "suspicious", "screening",
        "bird strike", "wildlife", "war", "political unrest",
    ],
    "air_traffic": ["air traffic control", "atc", "airspace", "traffic management"],
    "strike": ["strike", "industrial action", "union", "walkout"],
    "medical": ["medical emergency", "emergency landing", "passenger illness"],
    "technical": ["technical", "mechanical", "maintenance", "repair"],
    "operational": ["operational", "scheduling", "crew", "staffing", "overbooking"],
}

HIGH_CONFIDENCE = 0.8
MODERATE_CONFIDENCE = 0.6


def _keyword_pattern(keyword):
    body = r"\s+".join(re.escape(part) for part in keyword.split())
    return re.compile(rf"\b{body}s?\b", re.IGNORECASE)


_CATEGORY_PATTERNS = {
    category: [_keyword_pattern(k) for k in keywords]
    for category, keywords in CATEGORY_KEYWORDS.items()
}


# ─────────────────────────────────────────────
# KEYWORD CLASSIFICATION
# ─────────────────────────────────────────────

def classify_by_keywords(reason):
    """Keyword-only classification. Same result shape as the Claude analysis."""
    text = reason or ""
    for category, patterns in _CATEGORY_PATTERNS.items():
        if any(p.search(text) for p in patterns):
            extraordinary = category in EXTRAORDINARY_CATEGORIES
            if extraordinary:
                explanation = (f"Delay appears to be due to {category}, which is typically "
                               "considered extraordinary circumstances")
            else:
                explanation = (f"Delay appears to be due to {category} issues, which are "
                               "typically within airline control")
            return {
                "is_extraordinary": extraordinary,
                "confidence": 0.8 if extraordinary else 0.7,
                "reason": f"Detected {category} related delay",
                "category": category,
                "explanation": explanation,
            }

    return {
        "is_extraordinary": False,
        "confidence": 0.6,
        "reason": "No extraordinary circumstances detected",
        "category": "unknown",
        "explanation": "Could not identify extraordinary circumstances from the provided reason",
    }


def is_extraordinary_circumstance(reason):
    """True when the keyword classifier places `reason` in an exempting category."""
    if not reason or not reason.strip():
        return False
    return classify_by_keywords(reason)["is_extraordinary"]


# ─────────────────────────────────────────────
# CLAUDE ANALYSIS
# ─────────────────────────────────────────────

def _build_prompt(reason, context=None):
    context_block = ""
    if context:
        context_block = f"""
ADDITIONAL CONTEXT:
- Flight: {context.get('flight_number') or 'Unknown'}
- Airline: {context.get('airline') or 'Unknown'}
- Route: {context.get('departure_airport') or 'Unknown'} -> {context.get('arrival_airport') or 'Unknown'}
- Delay Duration: {context.get('delay_duration') or 'Unknown'}
"""

    return f"""You are an aviation lawyer specialising in EU Regulation 261/2004 and the UK CAA rules.
Decide whether the delay or cancellation reason below is an "extraordinary circumstance" that exempts
the airline from paying compensation.

Extraordinary circumstances are beyond the airline's control, could not have been avoided with all
reasonable measures, and are not inherent in the normal running of an airline.

EXTRAORDINARY: severe weather, security threats, air traffic control restrictions or ATC strikes,
industrial action by airport or ATC staff, bird strikes, medical emergencies forcing a diversion,
political unrest or war, natural disasters including volcanic ash.
NOT EXTRAORDINARY: technical faults and maintenance, crew scheduling, overbooking, baggage handling,
fuel problems, airline operational decisions, staff shortages, IT failures, gate availability.

DELAY REASON:
"{reason}"
{context_block}
Reply with ONLY this JSON object:
{{
  "is_extraordinary": boolean,
  "confidence": number between 0.0 and 1.0,
  "reason": "short summary",
  "category": "weather" | "security" | "air_traffic" | "strike" | "medical" | "technical" | "operational" | "unknown",
  "explanation": "why this is or is not extraordinary"
}}

Be conservative: when in doubt answer false. Use 0.8+ confidence only for clear cases."""


def _is_valid_result(result):
    if not isinstance(result, dict):
        return False
    confidence = result.get("confidence")
    return (
        isinstance(result.get("is_extraordinary"), bool)
        and isinstance(confidence, (int, float))
        and not isinstance(confidence, bool)
        and 0 <= confidence <= 1
        and isinstance(result.get("reason"), str)
        and isinstance(result.get("explanation"), str)
        and result.get("category") in CATEGORIES
    )


def analyze_extraordinary_circumstances(reason, context=None):
    """
    Classify a delay/cancellation reason.

    Returns:
        {"is_extraordinary": bool, "confidence": float, "reason": str,
         "category": str, "explanation": str}
    """
    if not reason or not reason.strip():
        return {
            "is_extraordinary": False,
            "confidence": 0.9,
            "reason": "No delay reason provided",
            "category": "unknown",
            "explanation": "Cannot determine extraordinary circumstances without delay reason",
        }

    try:
        result = ask_claude_json(_build_prompt(reason, context), max_tokens=1000)
    except RuntimeError:
        return classify_by_keywords(reason)
    except Exception as e:
        print(f"[Extraordinary] Claude analysis failed: {e}, using keyword fallback")
        return classify_by_keywords(reason)

    if not _is_valid_result(result):
        print("[Extraordinary] Invalid response structure from Claude, using keyword fallback")
        return classify_by_keywords(reason)

    return {
        "is_extraordinary": result["is_extraordinary"],
        "confidence": float(result["confidence"]),
        "reason": result["reason"],
        "category": result["category"],
        "explanation": result["explanation"],
    }


def _suggested_action(is_extraordinary, confidence):
    if is_extraordinary:
        return "reject" if confidence > HIGH_CONFIDENCE else "caution"
    return "proceed" if confidence > HIGH_CONFIDENCE else "caution"


def analyze_delay_reason(reason, context=None):
    """Analysis plus a suggested claim action: proceed, caution or reject."""
    analysis = analyze_extraordinary_circumstances(reason, context)
    return {
        "original_reason": reason,
        "is_extraordinary": analysis["is_extraordinary"],
        "confidence": analysis["confidence"],
        "category": analysis["category"],
        "explanation": analysis["explanation"],
        "suggested_action": _suggested_action(analysis["is_extraordinary"], analysis["confidence"]),
    }


def analyze_multiple_delay_reasons(reasons, context=None, max_workers=4):
    """Analyse several reasons concurrently. Output order matches input order."""
    if not reasons:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda r: analyze_delay_reason(r, context), reasons))


def get_confidence_recommendation(confidence, is_extraordinary):
    if is_extraordinary:
        if confidence > HIGH_CONFIDENCE:
            return ("High confidence: This appears to be extraordinary circumstances. "
                    "Compensation likely not available.")
        if confidence > MODERATE_CONFIDENCE:
            return ("Moderate confidence: This may be extraordinary circumstances. "
                    "Proceed with caution.")
        return ("Low confidence: Unclear if extraordinary circumstances. "
                "Consider proceeding with claim.")

    if confidence > HIGH_CONFIDENCE:
        return ("High confidence: This does not appear to be extraordinary circumstances. "
                "Compensation likely available.")
    if confidence > MODERATE_CONFIDENCE:
        return ("Moderate confidence: This may not be extraordinary circumstances. "
                "Proceed with claim.")
    return ("Low confidence: Unclear circumstances. "
            "Proceed with claim but expect potential challenges.")
