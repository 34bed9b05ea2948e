"""
Unit tests for the toxicity scorer (socialhub/services/toxicity.py).

The Perspective API is never called; a mocked requests session stands in.
"""

import pytest
import requests
from unittest.mock import MagicMock
from socialhub.services.moderation import ModerationSettings
from socialhub.services.toxicity import ToxicityScorer, DEFAULT_THRESHOLDS, FALLBACK_THRESHOLD
from socialhub.services.verdict import CATEGORY_SCORER


def _settings(**overrides):
    values = {
        "perspective_enabled": True,
        "perspective_api_key": "test-key",
        "request_timeout_ms": 5000,
    }
    values.update(overrides)
    return ModerationSettings(**values)


def _response(payload, status=200):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.json.return_value = payload
    return resp


def _scores(**values):
    return {"attributeScores": {name: {"summaryScore": {"value": v}} for name, v in values.items()}}


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestEnabled:
    """Test when the scorer is active."""

    def test_enabled_with_flag_and_key(self, session):
        assert ToxicityScorer(_settings(), session).enabled is True

    def test_disabled_without_key(self, session):
        assert ToxicityScorer(_settings(perspective_api_key=""), session).enabled is False

    def test_disabled_without_flag(self, session):
        assert ToxicityScorer(_settings(perspective_enabled=False), session).enabled is False

    def test_disabled_scorer_makes_no_request(self, session):
        scorer = ToxicityScorer(_settings(perspective_api_key=""), session)
        verdict = scorer.score("anything")
        assert verdict.flagged is False
        session.post.assert_not_called()

    def test_empty_text_makes_no_request(self, session):
        verdict = ToxicityScorer(_settings(), session).score("")
        assert verdict.flagged is False
        session.post.assert_not_called()


class TestScore:
    """Test verdicts from attribute scores."""

    def test_flags_attribute_at_or_above_threshold(self, session):
        session.post.return_value = _response(_scores(TOXICITY=0.90))
        verdict = ToxicityScorer(_settings(), session).score("you are awful")

        assert verdict.flagged is True
        assert verdict.category == CATEGORY_SCORER
        assert "TOXICITY" in verdict.reason
        assert "0.90" in verdict.reason
        assert verdict.reason == "TOXICITY score 0.90 >= 0.85"

    def test_score_equal_to_threshold_flags(self, session):
        session.post.return_value = _response(_scores(THREAT=0.7))
        verdict = ToxicityScorer(_settings(), session).score("text")
        assert verdict.flagged is True
        assert verdict.reason.startswith("THREAT")

    def test_scores_below_thresholds_pass(self, session):
        session.post.return_value = _response(_scores(TOXICITY=0.2, INSULT=0.1, THREAT=0.05))
        verdict = ToxicityScorer(_settings(), session).score("lovely weather")
        assert verdict.flagged is False
        assert verdict.details["attributeScores"]["TOXICITY"]["summaryScore"]["value"] == 0.2

    def test_unknown_attribute_uses_fallback_threshold(self, session):
        scorer = ToxicityScorer(_settings(), session)
        assert scorer.threshold_for("PROFANITY") == FALLBACK_THRESHOLD

        session.post.return_value = _response(_scores(PROFANITY=0.89))
        assert scorer.score("text").flagged is False

        session.post.return_value = _response(_scores(PROFANITY=0.95))
        assert scorer.score("text").flagged is True

    def test_custom_thresholds(self, session):
        thresholds = dict(DEFAULT_THRESHOLDS, TOXICITY=0.5)
        session.post.return_value = _response(_scores(TOXICITY=0.6))
        verdict = ToxicityScorer(_settings(thresholds=thresholds), session).score("text")
        assert verdict.flagged is True

    def test_missing_attribute_scores_pass(self, session):
        session.post.return_value = _response({})
        assert ToxicityScorer(_settings(), session).score("text").flagged is False

    def test_request_shape(self, session):
        session.post.return_value = _response(_scores(TOXICITY=0.1))
        ToxicityScorer(_settings(request_timeout_ms=2500, languages=("en", "de")), session).score("hello")

        args, kwargs = session.post.call_args
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["timeout"] == 2.5
        assert kwargs["json"]["comment"] == {"text": "hello"}
        assert kwargs["json"]["languages"] == ["en", "de"]
        assert "TOXICITY" in kwargs["json"]["requestedAttributes"]


class TestFailOpen:
    """Test that every failure yields a non-flagged verdict."""

    def test_timeout(self, session):
        session.post.side_effect = requests.Timeout("timed out")
        verdict = ToxicityScorer(_settings(), session).score("text")
        assert verdict.flagged is False

    def test_connection_error(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        assert ToxicityScorer(_settings(), session).score("text").flagged is False

    def test_non_ok_status(self, session):
        session.post.return_value = _response({"error": "quota"}, status=429)
        assert ToxicityScorer(_settings(), session).score("text").flagged is False

    def test_invalid_json(self, session):
        resp = _response(None)
        resp.json.side_effect = ValueError("no json")
        session.post.return_value = resp
        assert ToxicityScorer(_settings(), session).score("text").flagged is False

    def test_non_object_payload(self, session):
        session.post.return_value = _response(["not", "an", "object"])
        assert ToxicityScorer(_settings(), session).score("text").flagged is False

    def test_malformed_attribute_entry(self, session):
        session.post.return_value = _response({"attributeScores": {"TOXICITY": {"summary": 1}}})
        assert ToxicityScorer(_settings(), session).score("text").flagged is False

    def test_failure_is_logged(self, session, caplog):
        session.post.side_effect = requests.Timeout("timed out")
        with caplog.at_level("WARNING"):
            ToxicityScorer(_settings(), session).score("text")
        assert "Perspective API error" in caplog.text
