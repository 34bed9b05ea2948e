"""
Rule-based text matching.

A rule is either a literal (case-insensitive substring) or a string wrapped in
slashes, e.g. "/fr[e3]{2} crypto/", which is compiled as a case-insensitive
regular expression. Rules come from a JSON file shaped like {"rules": [...]}.

Regexes are compiled once when the matcher is built. A pattern that fails to
compile is logged and skipped; it never stops the scan.
"""

from __future__ import annotations
import json
import re
from typing import Any, Iterable, List, Optional, Union
from socialhub.utils.errors import ConfigurationError, log_error, log_warning

Rule = Union[str, re.Pattern]


def is_regex_rule(rule: str) -> bool:
    return len(rule) >= 2 and rule.startswith("/") and rule.endswith("/")


def _compile(rule: str) -> re.Pattern:
    raw = rule[1:-1]
    if not raw:
        raise ConfigurationError(f"Empty pattern: {rule}")
    try:
        return re.compile(raw, re.IGNORECASE)
    except re.error as e:
        raise ConfigurationError(f"{rule}: {e}") from e


class RuleMatcher:
    """Evaluates text against a fixed list of literal and regex rules."""

    def __init__(self, rules: Optional[Iterable[Any]] = None):
        self._rules: List[Rule] = []
        for raw in rules or []:
            rule = str(raw)
            if is_regex_rule(rule):
                try:
                    self._rules.append(_compile(rule))
                except ConfigurationError as e:
                    log_warning(f"Invalid moderation rule skipped: {e.message}")
            elif rule:
                self._rules.append(rule.lower())

    def __len__(self) -> int:
        return len(self._rules)

    def matches(self, text: Optional[str]) -> bool:
        """True as soon as one rule matches; False for empty text."""
        if not text:
            return False
        lower = text.lower()
        for rule in self._rules:
            if isinstance(rule, str):
                if rule in lower:
                    return True
            elif rule.search(text):
                return True
        return False


def load_rules(path: str) -> List[Any]:
    """
    Read the rule list from a JSON file.

    A missing or unreadable file yields an empty list (and an error log), so the
    scorer stage still runs when the rule file is broken.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
    except (OSError, ValueError) as e:
        log_error(f"Failed to load moderation rules from {path}: {e}")
        return []

    rules = doc.get("rules") if isinstance(doc, dict) else None
    if not isinstance(rules, list):
        log_warning(f"Moderation rules file {path} has no 'rules' list")
        return []
    return rules
