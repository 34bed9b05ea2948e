"""
Toxicity scoring via the Perspective API (comments:analyze).

score(text) submits the text for multi-attribute scoring and compares each
returned attribute against its threshold. The first breach flags the text.

Notes:
- Fail-open: when scoring is disabled, the text is empty, or the call fails in
  any way (network error, timeout, non-2xx, malformed payload) the verdict is
  non-flagged. Failure detail goes to the logs only.
- The request timeout is configured in milliseconds and bounds the whole call.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, TYPE_CHECKING
import requests
from socialhub.services.verdict import ModerationVerdict, CATEGORY_SCORER
from socialhub.utils.errors import ScorerUnavailable, log_warning

if TYPE_CHECKING:
    from socialhub.services.moderation import ModerationSettings

REQUESTED_ATTRIBUTES = ("TOXICITY", "SEXUALLY_EXPLICIT", "INSULT", "THREAT", "IDENTITY_ATTACK")

DEFAULT_THRESHOLDS: Dict[str, float] = {
    "TOXICITY": 0.85,
    "INSULT": 0.85,
    "THREAT": 0.7,
    "IDENTITY_ATTACK": 0.8,
    "SEXUALLY_EXPLICIT": 0.9,
}

# Threshold for attributes the service returns that are not configured
FALLBACK_THRESHOLD = 0.9


class ToxicityScorer:
    def __init__(self, settings: "ModerationSettings", session: Optional[requests.Session] = None):
        self.settings = settings
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.settings.perspective_enabled and bool(self.settings.perspective_api_key)

    def threshold_for(self, attribute: str) -> float:
        return self.settings.thresholds.get(attribute, FALLBACK_THRESHOLD)

    def score(self, text: Optional[str]) -> ModerationVerdict:
        if not text or not self.enabled:
            return ModerationVerdict(flagged=False)

        try:
            payload = self._analyze(text)
            return self._judge(payload)
        except ScorerUnavailable as e:
            log_warning(f"Perspective API error: {e.message}")
            return ModerationVerdict(flagged=False)
        except Exception as e:
            # Anything unexpected fails open too
            log_warning(f"Perspective API error: {e!r}")
            return ModerationVerdict(flagged=False)

    def _analyze(self, text: str) -> Dict[str, Any]:
        body = {
            "comment": {"text": text},
            "languages": list(self.settings.languages),
            "requestedAttributes": {attr: {} for attr in REQUESTED_ATTRIBUTES},
        }
        try:
            r = self._session.post(
                self.settings.perspective_api_url,
                params={"key": self.settings.perspective_api_key},
                json=body,
                timeout=self.settings.request_timeout_ms / 1000.0,
            )
        except requests.RequestException as e:
            raise ScorerUnavailable(f"request failed: {e}") from e

        if not r.ok:
            raise ScorerUnavailable(f"returned non-ok: {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise ScorerUnavailable(f"malformed JSON: {e}") from e
        if not isinstance(data, dict):
            raise ScorerUnavailable("malformed JSON: expected an object")
        return data

    def _judge(self, data: Dict[str, Any]) -> ModerationVerdict:
        scores = data.get("attributeScores") or {}
        try:
            for attr, entry in scores.items():
                score = float(entry["summaryScore"]["value"] or 0)
                threshold = self.threshold_for(attr)
                if score >= threshold:
                    return ModerationVerdict(
                        flagged=True,
                        reason=f"{attr} score {score:.2f} >= {threshold}",
                        details=data,
                        category=CATEGORY_SCORER,
                    )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ScorerUnavailable(f"malformed attribute scores: {e!r}") from e

        return ModerationVerdict(flagged=False, details=data)
