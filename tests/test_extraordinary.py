import pytest

from flghtly import extraordinary
from flghtly.extraordinary import (
    analyze_delay_reason,
    analyze_extraordinary_circumstances,
    analyze_multiple_delay_reasons,
    classify_by_keywords,
    get_confidence_recommendation,
    is_extraordinary_circumstance,
)


class TestKeywordClassification:
    @pytest.mark.parametrize("reason,category", [
        ("Severe thunderstorm over Frankfurt", "weather"),
        ("Security alert in terminal 5", "security"),
        ("Air traffic control restrictions", "air_traffic"),
        ("ATC strike in France", "air_traffic"),
        ("Cabin crew strikes", "strike"),
        ("Medical emergency on board", "medical"),
        ("Technical fault with the aircraft", "technical"),
        ("Crew shortage", "operational"),
    ])
    def test_categories(self, reason, category):
        assert classify_by_keywords(reason)["category"] == category

    def test_extraordinary_confidence(self):
        result = classify_by_keywords("heavy snow")
        assert result["is_extraordinary"] is True
        assert result["confidence"] == 0.8

    def test_airline_fault_confidence(self):
        result = classify_by_keywords("maintenance issue")
        assert result["is_extraordinary"] is False
        assert result["confidence"] == 0.7

    def test_no_match(self):
        result = classify_by_keywords("late inbound aircraft")
        assert result["category"] == "unknown"
        assert result["confidence"] == 0.6

    def test_whole_words_only(self):
        assert not is_extraordinary_circumstance("warning light on the dashboard")
        assert not is_extraordinary_circumstance("crew training overran")
        assert not is_extraordinary_circumstance("   ")
        assert not is_extraordinary_circumstance(None)


class TestClaudeAnalysis:
    def test_without_api_key_uses_keywords(self):
        result = analyze_extraordinary_circumstances("dense fog at the airport")
        assert result["category"] == "weather"
        assert result["is_extraordinary"] is True

    def test_empty_reason(self):
        result = analyze_extraordinary_circumstances("")
        assert result["is_extraordinary"] is False
        assert result["confidence"] == 0.9

    def test_valid_claude_reply_is_used(self, monkeypatch):
        reply = {
            "is_extraordinary": True,
            "confidence": 0.95,
            "reason": "Volcanic ash closed the airspace",
            "category": "weather",
            "explanation": "Natural event outside airline control",
        }
        monkeypatch.setattr(extraordinary, "ask_claude_json", lambda prompt, max_tokens: reply)
        result = analyze_delay_reason("volcano", {"flight_number": "FR100"})
        assert result["is_extraordinary"] is True
        assert result["suggested_action"] == "reject"
        assert result["original_reason"] == "volcano"

    def test_malformed_reply_falls_back(self, monkeypatch):
        monkeypatch.setattr(extraordinary, "ask_claude_json",
                            lambda prompt, max_tokens: {"is_extraordinary": "yes", "category": "weather"})
        result = analyze_extraordinary_circumstances("technical problem")
        assert result["category"] == "technical"

    def test_api_error_falls_back(self, monkeypatch):
        def boom(prompt, max_tokens):
            raise ValueError("bad json")
        monkeypatch.setattr(extraordinary, "ask_claude_json", boom)
        assert analyze_extraordinary_circumstances("hurricane")["is_extraordinary"] is True


def test_suggested_actions():
    assert analyze_delay_reason("heavy snow")["suggested_action"] == "caution"
    assert analyze_delay_reason("bad luck")["suggested_action"] == "caution"


def test_multiple_reasons_keep_order():
    results = analyze_multiple_delay_reasons(["snow", "technical fault", "union walkout"])
    assert [r["category"] for r in results] == ["weather", "technical", "strike"]
    assert analyze_multiple_delay_reasons([]) == []


def test_confidence_recommendation():
    assert get_confidence_recommendation(0.9, True).startswith("High confidence")
    assert get_confidence_recommendation(0.7, False).startswith("Moderate confidence")
    assert get_confidence_recommendation(0.5, True).startswith("Low confidence")
