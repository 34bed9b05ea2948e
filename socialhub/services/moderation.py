"""
Moderation gate: rule-based matching first, then the external toxicity scorer.

The gate is assembled once by the app factory from ModerationSettings (built
from app config) and shared by the post, comment and cleanup services:

    gate = get_gate()
    verdict = gate.evaluate(text)
    if verdict.flagged:
        ...  # reject, and roll back anything already staged

Rules are checked first because they are free and deterministic; the scorer
is only called for text that passes them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Mapping, Tuple
from socialhub.services.rules import RuleMatcher, load_rules
from socialhub.services.toxicity import ToxicityScorer, DEFAULT_THRESHOLDS
from socialhub.services.verdict import ModerationVerdict, CATEGORY_RULE
from socialhub.utils.errors import log_info, log_warning

RULE_MATCH_REASON = "rule match"


def parse_thresholds(raw: Optional[str]) -> Dict[str, float]:
    """
    Merge "ATTR=score,ATTR=score" overrides into the default thresholds.

    Entries that don't parse, or fall outside [0, 1], are ignored with a warning.
    """
    thresholds = dict(DEFAULT_THRESHOLDS)
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        name, _, value = part.partition("=")
        try:
            score = float(value)
        except ValueError:
            log_warning(f"Ignoring malformed threshold override: {part}")
            continue
        if not 0.0 <= score <= 1.0:
            log_warning(f"Ignoring out-of-range threshold override: {part}")
            continue
        thresholds[name.strip().upper()] = score
    return thresholds


@dataclass(frozen=True)
class ModerationSettings:
    """Moderation configuration, read once at start-up."""

    rules_path: str = ""
    perspective_enabled: bool = False
    perspective_api_key: str = ""
    perspective_api_url: str = "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze"
    languages: Tuple[str, ...] = ("en",)
    thresholds: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    request_timeout_ms: int = 5000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ModerationSettings":
        languages = tuple(
            lang.strip() for lang in str(config.get("PERSPECTIVE_LANGUAGES", "en")).split(",") if lang.strip()
        )
        return cls(
            rules_path=config.get("MODERATION_RULES_PATH", ""),
            perspective_enabled=bool(config.get("USE_PERSPECTIVE_API", False)),
            perspective_api_key=config.get("PERSPECTIVE_API_KEY", "") or "",
            perspective_api_url=config.get("PERSPECTIVE_API_URL", cls.perspective_api_url),
            languages=languages or ("en",),
            thresholds=parse_thresholds(config.get("PERSPECTIVE_THRESHOLDS", "")),
            request_timeout_ms=int(config.get("CATEGORY_FILTERING_REQUEST_TIMEOUT", 5000)),
        )


class ModerationGate:
    """Combines a RuleMatcher and a ToxicityScorer into one accept/reject decision."""

    def __init__(self, matcher: RuleMatcher, scorer: ToxicityScorer):
        self.matcher = matcher
        self.scorer = scorer

    def evaluate(self, text: Optional[str]) -> ModerationVerdict:
        if self.matcher.matches(text):
            return ModerationVerdict(flagged=True, reason=RULE_MATCH_REASON, category=CATEGORY_RULE)
        return self.scorer.score(text)

    def with_rules(self, matcher: RuleMatcher) -> "ModerationGate":
        return ModerationGate(matcher, self.scorer)


# Global gate instance (initialized once per app)
_gate: Optional[ModerationGate] = None
_settings: Optional[ModerationSettings] = None


def build_gate(settings: ModerationSettings) -> ModerationGate:
    matcher = RuleMatcher(load_rules(settings.rules_path) if settings.rules_path else [])
    return ModerationGate(matcher, ToxicityScorer(settings))


def init_moderation(app) -> None:
    """
    Build the moderation gate from app config.

    Call this from the Flask app factory.
    """
    global _gate, _settings

    _settings = ModerationSettings.from_config(app.config)
    _gate = build_gate(_settings)

    app.logger.info(f"Moderation gate ready with {len(_gate.matcher)} rule(s)")
    if _settings.perspective_enabled and not _settings.perspective_api_key:
        app.logger.warning("USE_PERSPECTIVE_API is set but PERSPECTIVE_API_KEY is missing. Toxicity scoring disabled.")
    elif not _gate.scorer.enabled:
        app.logger.info("Toxicity scoring disabled")


def get_gate() -> ModerationGate:
    """Get the global gate, building a rules-only one if the app never initialized it."""
    global _gate
    if _gate is None:
        _gate = build_gate(_settings or ModerationSettings())
    return _gate


def reload_rules() -> int:
    """
    Re-read the rule file and swap in a new matcher.

    Evaluations already running keep the matcher they started with.

    Returns:
        Number of usable rules loaded
    """
    global _gate
    settings = _settings or ModerationSettings()
    gate = get_gate()
    matcher = RuleMatcher(load_rules(settings.rules_path) if settings.rules_path else [])
    _gate = gate.with_rules(matcher)
    log_info(f"Moderation rules reloaded: {len(matcher)} rule(s)")
    return len(matcher)


def evaluate(text: Optional[str]) -> ModerationVerdict:
    """Run the global gate on `text`."""
    return get_gate().evaluate(text)
