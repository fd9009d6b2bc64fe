import pytest

from flghtly import admin_auth, claim_store, llm
from flghtly.distance_calculator import clear_distance_cache
from flghtly.parse_cache import get_parse_cache
from flghtly.rate_limit import eligibility_limiter
from flghtly.schemas import FlightDetails


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No API keys, no Turso, a throwaway SQLite file and empty in-memory state."""
    for var in ("ANTHROPIC_API_KEY", "TURSO_DATABASE_URL", "TURSO_AUTH_TOKEN",
                "ADMIN_PASSWORD", "CRON_SECRET"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CLAIMS_DB_PATH", str(tmp_path / "claims.db"))

    claim_store.reset_claim_store()
    llm.reset_client()
    clear_distance_cache()
    get_parse_cache().clear()
    eligibility_limiter.reset()
    admin_auth.clear_all_sessions()
    yield
    claim_store.reset_claim_store()


@pytest.fixture
def store():
    return claim_store.get_claim_store()


@pytest.fixture
def make_flight():
    def _make(**overrides):
        data = {
            "flight_number": "LH1234",
            "airline": "Lufthansa",
            "departure_date": "2026-09-01",
            "departure_airport": "FRA",
            "arrival_airport": "CDG",
            "delay_duration": "4 hours",
            "disruption_type": "delay",
        }
        data.update(overrides)
        return FlightDetails.model_validate(data)
    return _make


@pytest.fixture
def claim_data():
    def _make(**overrides):
        data = {
            "claim_id": "FLY-20260901-AB23",
            "first_name": "Alex",
            "last_name": "Morgan",
            "email": "alex@example.com",
            "flight_number": "LH1234",
            "airline": "Lufthansa",
            "departure_date": "2026-09-01",
            "departure_airport": "FRA",
            "arrival_airport": "CDG",
            "delay_duration": "4 hours",
            "disruption_type": "delay",
            "boarding_pass_url": "https://files.example.com/bp.pdf",
            "delay_proof_url": "https://files.example.com/proof.pdf",
            "payment_id": "pay_123",
            "estimated_compensation": "€250",
        }
        data.update(overrides)
        return data
    return _make
