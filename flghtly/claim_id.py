"""Claim reference numbers: FLY-YYYYMMDD-XXXX (e.g. FLY-20251029-A7B3)."""

import re
import secrets
from datetime import datetime


# Excludes 0, O, 1 and I
CLAIM_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CLAIM_ID_RE = re.compile(r"^FLY-\d{8}-[A-Z0-9]{4}$")


def generate_claim_id(now=None):
    now = now or datetime.now()
    suffix = "".join(secrets.choice(CLAIM_ID_ALPHABET) for _ in range(4))
    return f"FLY-{now.strftime('%Y%m%d')}-{suffix}"


def is_valid_claim_id(claim_id):
    return bool(claim_id) and bool(CLAIM_ID_RE.match(claim_id))
