"""
test_classifier.py — Crisis keyword detection.

Run with:
    pytest tests/test_classifier.py -v
"""

from __future__ import annotations

import pytest

from backend.app.crisis.classifier import CRISIS_PHRASES, is_crisis, matched_phrases


class TestIsCrisis:
    """Case-insensitive substring match over the fixed phrase list."""

    def test_want_to_die(self):
        assert is_crisis("I want to die") is True

    def test_want_to_dine_is_not_a_match(self):
        assert is_crisis("I want to dine") is False

    @pytest.mark.parametrize("phrase", CRISIS_PHRASES)
    def test_every_phrase_matches_in_context(self, phrase):
        assert is_crisis(f"honestly {phrase} tonight")

    @pytest.mark.parametrize("phrase", CRISIS_PHRASES)
    def test_every_phrase_matches_uppercased(self, phrase):
        assert is_crisis(phrase.upper())

    def test_mixed_case(self):
        assert is_crisis("Sometimes I feel SUICIDAL")

    def test_embedded_substring_counts(self):
        # Quoting someone still matches: a documented false positive.
        assert is_crisis('My friend said "I want to end it all" yesterday')

    def test_paraphrase_not_detected(self):
        # Documented false negative.
        assert is_crisis("I don't see the point of going on") is False

    def test_ordinary_text(self):
        assert is_crisis("Had a great day at the park with my dog") is False

    def test_empty_and_none(self):
        assert is_crisis("") is False
        assert is_crisis(None) is False

    def test_curly_apostrophe_is_not_normalised(self):
        assert is_crisis("I’m done") is False
        assert is_crisis("I'm done") is True


class TestMatchedPhrases:

    def test_returns_phrases_in_list_order(self):
        text = "I want to die, I'm suicidal and I'm done"
        assert matched_phrases(text) == ["suicidal", "want to die", "I'm done"]

    def test_no_match(self):
        assert matched_phrases("all good") == []

    def test_agrees_with_is_crisis(self):
        for text in ("kill myself", "nothing here", "NO REASON TO LIVE"):
            assert bool(matched_phrases(text)) == is_crisis(text)
