"""
admin_auth.py - Admin authentication
====================================
Single shared admin password from ADMIN_PASSWORD. A successful login
issues a random session token valid for 24 hours; tokens live in memory
and are lost on restart. Scripts may instead send the password itself as
a bearer token.
"""

import os
import secrets
import threading
from datetime import timedelta

from flghtly.claim_store import utc_now


DEFAULT_ADMIN_PASSWORD = 'admin123'
SESSION_TTL = timedelta(hours=24)

_sessions = {}  # token -> created_at
_sessions_lock = threading.Lock()


def get_admin_password():
    return os.environ.get('ADMIN_PASSWORD', DEFAULT_ADMIN_PASSWORD)


def verify_admin_password(password):
    if not password:
        return False
    return secrets.compare_digest(password.encode('utf-8'), get_admin_password().encode('utf-8'))


def create_admin_session(password, now=None):
    """Returns {"success", "message", "token"?, "expires_at"?}."""
    if not verify_admin_password(password):
        print("[AdminAuth] Failed admin login")
        return {"success": False, "message": "Invalid admin password"}

    now = now or utc_now()
    token = secrets.token_urlsafe(32)
    with _sessions_lock:
        _sessions[token] = now
    print("[AdminAuth] ✅ Admin session created")
    return {
        "success": True,
        "message": "Logged in",
        "token": token,
        "expires_at": (now + SESSION_TTL).isoformat(),
    }


def is_session_valid(token, now=None):
    if not token:
        return False
    now = now or utc_now()
    with _sessions_lock:
        created = _sessions.get(token)
        if created is None:
            return False
        if now - created > SESSION_TTL:
            del _sessions[token]
            return False
        return True


def clear_admin_session(token):
    with _sessions_lock:
        removed = _sessions.pop(token, None) is not None
    return {"success": True, "message": "Logged out" if removed else "No active session"}


def clear_all_sessions():
    with _sessions_lock:
        _sessions.clear()


def is_authorized(bearer, now=None):
    """A bearer value is accepted if it is a live session token or the admin password."""
    return is_session_valid(bearer, now=now) or verify_admin_password(bearer)
