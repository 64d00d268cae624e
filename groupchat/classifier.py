"""Keyword heuristics over message text.

Nothing here understands language; every signal is a lower-cased substring
match against a fixed vocabulary.
"""

from __future__ import annotations

from typing import List

from .states import Importance, MessageType

INSIGHT_KEYWORDS = ["breakthrough", "discovery", "insight", "realize", "understand", "connect"]
QUESTION_KEYWORDS = ["why", "how", "what if", "consider", "explore"]

THEMES = [
    "consciousness",
    "ai",
    "philosophy",
    "ethics",
    "creativity",
    "logic",
    "emotion",
    "learning",
    "memory",
    "identity",
    "reality",
    "emergence",
    "complexity",
    "patterns",
    "systems",
    "feedback",
]

# checked in order, first hit wins
_TYPE_SIGNALS = [
    (MessageType.INSIGHT, ["insight", "breakthrough"]),
    (MessageType.THOUGHT, ["wonder", "thinking"]),
    (MessageType.SYNTHESIS, ["synthesis", "connecting"]),
]


def _contains_any(low: str, keywords: List[str]) -> bool:
    return any(k in low for k in keywords)


def classify_importance(content: str) -> Importance:
    text = content or ""
    low = text.lower()
    if _contains_any(low, INSIGHT_KEYWORDS) and len(text) > 100:
        return Importance.HIGH
    if _contains_any(low, QUESTION_KEYWORDS) or len(text) > 200:
        return Importance.MEDIUM
    return Importance.LOW


def extract_tags(content: str) -> List[str]:
    low = (content or "").lower()
    return [theme for theme in THEMES if theme in low]


def infer_message_type(content: str) -> MessageType:
    """Guess the type of a generated reply from its wording."""
    text = content or ""
    if "?" in text:
        return MessageType.QUESTION
    low = text.lower()
    for msg_type, words in _TYPE_SIGNALS:
        if _contains_any(low, words):
            return msg_type
    return MessageType.MESSAGE
