import pytest

from flghtly.airline_config import (
    first_follow_up_days,
    generate_submission_template,
    get_airline_config,
    get_airlines_by_submission_method,
    get_all_airline_configs,
)


CLAIM = {
    "first_name": "Alex",
    "last_name": "Morgan",
    "email": "alex@example.com",
    "flight_number": "LH1234",
    "departure_date": "2026-09-01",
    "departure_airport": "FRA",
    "arrival_airport": "CDG",
    "delay_duration": "4 hours",
    "delay_reason": None,
    "booking_reference": None,
}


@pytest.mark.parametrize("query, code", [
    ("LH", "LH"),
    ("lh", "LH"),
    ("Lufthansa", "LH"),
    ("british airways", "BA"),
    ("Ryan Air", "FR"),
    ("easyJet", "U2"),
    ("Scandinavian Airlines", "SK"),
    ("Swiss", "LX"),
])
def test_lookup(query, code):
    assert get_airline_config(query)["code"] == code


@pytest.mark.parametrize("query", [None, "", "Ai", "Air", "airline", "Aegean Airlines"])
def test_no_match(query):
    assert get_airline_config(query) is None


def test_every_config_is_complete():
    configs = get_all_airline_configs()
    assert len(configs) >= 20
    for config in configs:
        assert config["submission_method"] in ("email", "web_form", "postal")
        if config["submission_method"] == "email":
            assert "@" in config["claim_email"]
        if config["submission_method"] == "web_form":
            assert config["claim_form_url"].startswith("https://")
        assert config["follow_up_schedule"]


def test_by_submission_method():
    email_codes = {c["code"] for c in get_airlines_by_submission_method("email")}
    assert {"FR", "LH", "IB"} <= email_codes
    assert "BA" not in email_codes
    assert get_airlines_by_submission_method("postal") == []


def test_first_follow_up_days():
    assert first_follow_up_days(get_airline_config("FR")) == 21
    assert first_follow_up_days(get_airline_config("WN")) == 7
    assert first_follow_up_days(None) == 14
    assert first_follow_up_days({"follow_up_schedule": ["soon"]}) == 14


class TestTemplates:
    def test_email(self):
        template = generate_submission_template(get_airline_config("LH"), CLAIM)
        assert template["type"] == "email"
        assert template["to"] == "eu261@lufthansa.com"
        assert template["attachments"] == ["boarding_pass", "delay_proof", "passenger_details"]
        assert template["body"].startswith("Dear Lufthansa Customer Service,")
        assert "- Delay Reason: Not specified" in template["body"]
        assert "- Booking Reference: Not provided" in template["body"]
        assert template["body"].rstrip().endswith("claims@flghtly.com")

    def test_web_form(self):
        template = generate_submission_template(get_airline_config("KL"), CLAIM)
        assert template["type"] == "web_form"
        assert template["url"] == "https://www.klm.com/customer-service/contact/compensation-claim"
        assert "Form URL: https://www.klm.com" in template["body"]
        assert "- 2 weeks\n- 4 weeks\n- 8 weeks" in template["body"]
        assert "- Passenger Name: Alex Morgan" in template["body"]

    def test_postal(self):
        config = {"code": "XX", "name": "Paper Air", "submission_method": "postal",
                  "postal_address": "1 Runway Road, Dublin", "follow_up_schedule": ["4 weeks"],
                  "required_documents": ["boarding_pass"], "special_instructions": "Send by registered post."}
        template = generate_submission_template(config, CLAIM)
        assert template["type"] == "postal"
        assert template["address"] == "1 Runway Road, Dublin"
        assert template["subject"] == "Postal Submission Required - Paper Air"
        assert "Send by registered post." in template["body"]
