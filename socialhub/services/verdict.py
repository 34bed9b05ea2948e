"""Verdict returned by every moderation check."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Dict, Any

# Stable reason categories shown to users
CATEGORY_RULE = "rule"
CATEGORY_SCORER = "scorer"


@dataclass(frozen=True)
class ModerationVerdict:
    """
    Outcome of one moderation check. Built fresh per check and never stored.

    `details` carries the raw scorer payload (when there is one) for logging.
    """

    flagged: bool
    reason: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flagged": self.flagged,
            "reason": self.reason,
            "category": self.category,
            "details": self.details,
        }
