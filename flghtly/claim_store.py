"""
claim_store.py - Claims and eligibility-check persistence
=========================================================
Turso over its HTTP pipeline API when TURSO_DATABASE_URL and
TURSO_AUTH_TOKEN are set; a local SQLite file (CLAIMS_DB_PATH) always.
Writes go to both. Reads prefer Turso and fall back to SQLite.
"""

import json
import os
import sqlite3
import threading
import urllib.error
import urllib.request
import uuid
from datetime import datetime, timedelta, timezone


DEFAULT_DB_PATH = 'database/flghtly_claims.db'

CLAIM_COLUMNS = [
    "claim_id",
    "first_name",
    "last_name",
    "email",
    "flight_number",
    "airline",
    "departure_date",
    "departure_airport",
    "arrival_airport",
    "delay_duration",
    "delay_reason",
    "disruption_type",
    "boarding_pass_url",
    "delay_proof_url",
    "payment_id",
    "status",
    "estimated_compensation",
    "actual_compensation",
    "airline_reference",
    "filed_by",
    "filing_method",
    "generated_submission",
    "validation_notes",
    "rejection_reason",
    "internal_notes",
    "next_follow_up_date",
    "follow_up_count",
    "submitted_at",
    "validated_at",
    "documents_prepared_at",
    "ready_to_file_at",
    "filed_at",
    "airline_acknowledged_at",
    "airline_responded_at",
    "completed_at",
    "updated_at",
]

CHECK_COLUMNS = [
    "check_id",
    "flight_number",
    "airline",
    "departure_date",
    "departure_airport",
    "arrival_airport",
    "disruption_type",
    "delay_duration",
    "eligible",
    "amount",
    "confidence",
    "regulation",
    "client_id",
    "created_at",
]

# Statuses after filing that still wait on the airline
AWAITING_AIRLINE = ("filed", "airline_acknowledged", "monitoring")

_CLAIMS_DDL = """CREATE TABLE IF NOT EXISTS claims (
    claim_id TEXT PRIMARY KEY,
    first_name TEXT,
    last_name TEXT,
    email TEXT,
    flight_number TEXT,
    airline TEXT,
    departure_date TEXT,
    departure_airport TEXT,
    arrival_airport TEXT,
    delay_duration TEXT,
    delay_reason TEXT,
    disruption_type TEXT,
    boarding_pass_url TEXT,
    delay_proof_url TEXT,
    payment_id TEXT,
    status TEXT NOT NULL,
    estimated_compensation TEXT,
    actual_compensation TEXT,
    airline_reference TEXT,
    filed_by TEXT,
    filing_method TEXT,
    generated_submission TEXT,
    validation_notes TEXT,
    rejection_reason TEXT,
    internal_notes TEXT,
    next_follow_up_date TEXT,
    follow_up_count INTEGER DEFAULT 0,
    submitted_at TEXT,
    validated_at TEXT,
    documents_prepared_at TEXT,
    ready_to_file_at TEXT,
    filed_at TEXT,
    airline_acknowledged_at TEXT,
    airline_responded_at TEXT,
    completed_at TEXT,
    updated_at TEXT
)"""

_CHECKS_DDL = """CREATE TABLE IF NOT EXISTS eligibility_checks (
    check_id TEXT PRIMARY KEY,
    flight_number TEXT,
    airline TEXT,
    departure_date TEXT,
    departure_airport TEXT,
    arrival_airport TEXT,
    disruption_type TEXT,
    delay_duration TEXT,
    eligible INTEGER,
    amount TEXT,
    confidence INTEGER,
    regulation TEXT,
    client_id TEXT,
    created_at TEXT
)"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_claims_status ON claims(status)",
    "CREATE INDEX IF NOT EXISTS idx_claims_follow_up ON claims(next_follow_up_date)",
    "CREATE INDEX IF NOT EXISTS idx_checks_created ON eligibility_checks(created_at)",
]

# Columns added after the first release, for databases created before them.
_ADDED_COLUMNS = [
    ("filed_by", "TEXT"),
    ("filing_method", "TEXT"),
    ("generated_submission", "TEXT"),
    ("validation_notes", "TEXT"),
]
_MIGRATIONS = [f"ALTER TABLE claims ADD COLUMN {name} {kind}" for name, kind in _ADDED_COLUMNS]


def utc_now():
    return datetime.now(timezone.utc)


def _turso_arg(value):
    """Python value -> Turso HTTP API typed argument."""
    if value is None:
        return {"type": "null"}
    if isinstance(value, bool):
        return {"type": "integer", "value": str(int(value))}
    if isinstance(value, int):
        return {"type": "integer", "value": str(value)}
    if isinstance(value, float):
        return {"type": "float", "value": value}
    return {"type": "text", "value": str(value)}


def _cell_value(col):
    kind = col.get('type')
    if kind == 'null':
        return None
    if kind == 'integer':
        return int(col['value'])
    if kind == 'float':
        return float(col['value'])
    return col.get('value')


class ClaimStore:
    """Claim records and eligibility-check log with Turso persistence.

    On a deploy with Turso credentials: writes to Turso and local SQLite,
    reads from Turso. Locally or when Turso is unreachable: SQLite only.
    """

    def __init__(self, db_path=None):
        self._lock = threading.Lock()
        self._turso_available = False
        self._http_url = ''
        self._turso_token = os.environ.get('TURSO_AUTH_TOKEN', '')

        turso_url = os.environ.get('TURSO_DATABASE_URL', '')
        if turso_url and self._turso_token:
            self._http_url = turso_url.replace('libsql://', 'https://') + '/v3/pipeline'
            self._init_turso()
        else:
            print("[ClaimStore] No Turso credentials, local SQLite only")

        self.db_path = db_path or os.environ.get('CLAIMS_DB_PATH', DEFAULT_DB_PATH)
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_local_db()

    @property
    def turso_available(self):
        return self._turso_available

    # ================================================================
    # TURSO HTTP API
    # ================================================================
    def _turso_request(self, statements):
        """Send SQL statements to Turso via HTTP API."""
        requests_body = []
        for stmt in statements:
            if isinstance(stmt, str):
                requests_body.append({"type": "execute", "stmt": {"sql": stmt}})
            elif isinstance(stmt, dict):
                requests_body.append({"type": "execute", "stmt": stmt})
        requests_body.append({"type": "close"})

        data = json.dumps({"requests": requests_body}).encode('utf-8')
        req = urllib.request.Request(
            self._http_url,
            data=data,
            headers={
                'Content-Type': 'application/json',
                'Authorization': f'Bearer {self._turso_token}'
            }
        )
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                return json.loads(resp.read().decode('utf-8'))
        except urllib.error.HTTPError as e:
            error_body = e.read().decode('utf-8') if e.fp else 'no body'
            print(f"[ClaimStore] Turso HTTP {e.code}: {error_body[:200]}")
            return None
        except Exception as e:
            print(f"[ClaimStore] Turso error: {e}")
            return None

    def _turso_query_rows(self, sql, params=()):
        """Execute a single SELECT on Turso. Returns a list of tuples, or None on failure."""
        stmt = {"sql": sql}
        if params:
            stmt["args"] = [_turso_arg(p) for p in params]
        result = self._turso_request([stmt])
        if not result or 'results' not in result:
            return None
        select_result = result['results'][0]
        if select_result.get('type') != 'ok':
            return None
        rows = select_result['response']['result'].get('rows', [])
        return [tuple(_cell_value(col) for col in row) for row in rows]

    def _turso_execute(self, sql, params=()):
        if not self._turso_available:
            return
        result = self._turso_request([{"sql": sql, "args": [_turso_arg(p) for p in params]}])
        if result is None:
            print("[ClaimStore] Turso write failed, kept in local SQLite")

    def _init_turso(self):
        """Create tables in Turso."""
        result = self._turso_request([_CLAIMS_DDL, _CHECKS_DDL] + _INDEXES)
        if result:
            self._turso_available = True
            # fails harmlessly per statement when the column exists
            self._turso_request(_MIGRATIONS)
            print("[ClaimStore] ✅ Turso connected, claims persist across deploys")
        else:
            print("[ClaimStore] Turso init failed, local SQLite only")

    # ================================================================
    # LOCAL SQLITE
    # ================================================================
    def _connect(self):
        return sqlite3.connect(self.db_path)

    def _init_local_db(self):
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(_CLAIMS_DDL)
            cursor.execute(_CHECKS_DDL)
            for ddl in _INDEXES:
                cursor.execute(ddl)
            existing = {row[1] for row in cursor.execute("PRAGMA table_info(claims)")}
            for name, kind in _ADDED_COLUMNS:
                if name not in existing:
                    cursor.execute(f"ALTER TABLE claims ADD COLUMN {name} {kind}")
            conn.commit()
        finally:
            conn.close()

    def _local_query(self, sql, params=()):
        with self._lock:
            conn = self._connect()
            try:
                return conn.execute(sql, params).fetchall()
            finally:
                conn.close()

    def _local_execute(self, sql, params=()):
        with self._lock:
            conn = self._connect()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()

    def _query(self, sql, params=()):
        """Read from Turso when available, otherwise local SQLite."""
        if self._turso_available:
            rows = self._turso_query_rows(sql, params)
            if rows is not None:
                return rows
        return self._local_query(sql, params)

    def _write(self, sql, params=()):
        self._turso_execute(sql, params)
        return self._local_execute(sql, params)

    # ================================================================
    # CLAIMS
    # ================================================================
    def _select_claims(self, where="", params=(), order="submitted_at DESC", limit=None):
        sql = f"SELECT {', '.join(CLAIM_COLUMNS)} FROM claims"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {order}"
        if limit:
            sql += " LIMIT ?"
            params = tuple(params) + (int(limit),)
        return [dict(zip(CLAIM_COLUMNS, row)) for row in self._query(sql, params)]

    def create_claim(self, claim):
        """Insert a claim dict. Missing status / timestamps are filled in. Returns the stored record."""
        now = utc_now().isoformat()
        record = {column: claim.get(column) for column in CLAIM_COLUMNS}
        record["status"] = record["status"] or "submitted"
        record["submitted_at"] = record["submitted_at"] or now
        record["updated_at"] = now
        record["follow_up_count"] = record["follow_up_count"] or 0

        placeholders = ", ".join("?" for _ in CLAIM_COLUMNS)
        self._write(
            f"INSERT INTO claims ({', '.join(CLAIM_COLUMNS)}) VALUES ({placeholders})",
            tuple(record[column] for column in CLAIM_COLUMNS),
        )
        print(f"[ClaimStore] Created claim {record['claim_id']} ({record['status']})")
        return record

    def get_claim(self, claim_id):
        rows = self._select_claims("claim_id = ?", (claim_id,), limit=1)
        return rows[0] if rows else None

    def update_claim(self, claim_id, updates):
        """Update known columns of a claim. Returns the updated record, or None if not found."""
        fields = {k: v for k, v in updates.items() if k in CLAIM_COLUMNS and k != "claim_id"}
        fields["updated_at"] = utc_now().isoformat()
        assignments = ", ".join(f"{column} = ?" for column in fields)
        changed = self._write(
            f"UPDATE claims SET {assignments} WHERE claim_id = ?",
            tuple(fields.values()) + (claim_id,),
        )
        if not changed and not self._turso_available:
            return None
        return self.get_claim(claim_id)

    def get_claims_by_status(self, status):
        return self._select_claims("status = ?", (status,))

    def get_claims_ready_to_file(self):
        """Claims prepared for filing, oldest first."""
        return self._select_claims("status = 'ready_to_file'", order="ready_to_file_at ASC")

    def get_all_claims(self, limit=None):
        return self._select_claims(limit=limit)

    def get_overdue_claims(self, days=2, now=None):
        """Claims still 'submitted' more than `days` days after submission."""
        cutoff = ((now or utc_now()) - timedelta(days=days)).isoformat()
        return self._select_claims("status = 'submitted' AND submitted_at < ?", (cutoff,),
                                   order="submitted_at ASC")

    def get_claims_needing_follow_up(self, now=None):
        """Claims waiting on the airline whose follow-up date has passed."""
        cutoff = (now or utc_now()).isoformat()
        placeholders = ", ".join("?" for _ in AWAITING_AIRLINE)
        return self._select_claims(
            f"status IN ({placeholders}) AND next_follow_up_date IS NOT NULL "
            f"AND next_follow_up_date <= ?",
            AWAITING_AIRLINE + (cutoff,),
            order="next_follow_up_date ASC",
        )

    def count_claims_by_status(self):
        rows = self._query("SELECT status, COUNT(*) FROM claims GROUP BY status")
        return {status: count for status, count in rows}

    # ================================================================
    # ELIGIBILITY CHECK LOG
    # ================================================================
    def log_eligibility_check(self, flight, result, client_id=None):
        """Record one eligibility check. `flight` is a FlightDetails, `result` an EligibilityResult."""
        record = {
            "check_id": f"chk_{uuid.uuid4().hex[:16]}",
            "flight_number": flight.flight_number,
            "airline": flight.airline,
            "departure_date": flight.departure_date,
            "departure_airport": flight.departure_airport,
            "arrival_airport": flight.arrival_airport,
            "disruption_type": flight.disruption_type,
            "delay_duration": flight.delay_duration,
            "eligible": 1 if result.eligible else 0,
            "amount": result.amount,
            "confidence": result.confidence,
            "regulation": result.regulation,
            "client_id": client_id,
            "created_at": utc_now().isoformat(),
        }
        placeholders = ", ".join("?" for _ in CHECK_COLUMNS)
        try:
            self._write(
                f"INSERT INTO eligibility_checks ({', '.join(CHECK_COLUMNS)}) VALUES ({placeholders})",
                tuple(record[column] for column in CHECK_COLUMNS),
            )
        except sqlite3.Error as e:
            print(f"[ClaimStore] Eligibility log write failed: {e}")
            return None
        return record["check_id"]

    def eligibility_summary(self):
        """Totals for the admin dashboard: checks, eligible share, by regulation, by disruption type."""
        total = self._query("SELECT COUNT(*), SUM(eligible) FROM eligibility_checks")
        by_regulation = self._query(
            "SELECT regulation, COUNT(*) FROM eligibility_checks GROUP BY regulation ORDER BY COUNT(*) DESC")
        by_type = self._query(
            "SELECT disruption_type, COUNT(*) FROM eligibility_checks GROUP BY disruption_type ORDER BY COUNT(*) DESC")

        checks = total[0][0] if total and total[0][0] else 0
        eligible = total[0][1] if total and total[0][1] else 0
        return {
            "total": checks,
            "eligible": eligible,
            "eligible_rate": round(eligible / checks * 100, 1) if checks else 0,
            "by_regulation": dict(by_regulation),
            "by_disruption_type": dict(by_type),
        }

    def recent_eligibility_checks(self, limit=50):
        rows = self._query(
            f"SELECT {', '.join(CHECK_COLUMNS)} FROM eligibility_checks ORDER BY created_at DESC LIMIT ?",
            (int(limit),),
        )
        return [dict(zip(CHECK_COLUMNS, row)) for row in rows]

    # ================================================================
    # EXPORT
    # ================================================================
    EXPORT_COLUMNS = [
        "claim_id", "status", "submitted_at", "first_name", "last_name", "email",
        "flight_number", "airline", "departure_date", "departure_airport",
        "arrival_airport", "disruption_type", "estimated_compensation", "filed_at",
    ]

    def export_claims_csv(self):
        """All claims as a CSV string, newest first."""
        lines = [",".join(self.EXPORT_COLUMNS)]
        for claim in self.get_all_claims():
            cells = []
            for column in self.EXPORT_COLUMNS:
                value = claim.get(column)
                text = "" if value is None else str(value)
                cells.append('"' + text.replace('"', '""') + '"')
            lines.append(",".join(cells))
        return "\n".join(lines)


_store = None
_store_lock = threading.Lock()


def get_claim_store():
    """Process-wide store, created on first use."""
    global _store
    with _store_lock:
        if _store is None:
            _store = ClaimStore()
        return _store


def reset_claim_store():
    global _store
    with _store_lock:
        _store = None
