"""
classifier.py — Keyword-based crisis detection for chat input.

A message is a crisis message when any phrase in CRISIS_PHRASES occurs in
it as a case-insensitive substring. Nothing else is considered.

Known limitations (accepted, not to be tuned without a product decision):
    - false positives when a phrase is quoted or used in unrelated context
    - false negatives on paraphrases, typos and non-English expressions
Replacing this with a statistical classifier changes the interface.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

CRISIS_PHRASES: Tuple[str, ...] = (
    "wanna die",
    "I have suidical thoughts",
    "to suicide",
    "suicidal",
    "can't do this anymore",
    "kill myself",
    "want to die",
    "end it all",
    "no reason to live",
    "I'm done",
)

_LOWERED: Tuple[str, ...] = tuple(p.lower() for p in CRISIS_PHRASES)


def matched_phrases(text: Optional[str]) -> List[str]:
    """Return every crisis phrase found in ``text``, in list order."""
    if not text:
        return []
    lowered = text.lower()
    return [
        phrase
        for phrase, needle in zip(CRISIS_PHRASES, _LOWERED)
        if needle in lowered
    ]


def is_crisis(text: Optional[str]) -> bool:
    """True if any crisis phrase is a case-insensitive substring of ``text``."""
    if not text:
        return False
    lowered = text.lower()
    return any(needle in lowered for needle in _LOWERED)
