"""
Response analysis tests.
"""
import pytest

from src.generation.domain import ResponseAnalyzer, calculate_confidence, extract_used_articles


class TestCitationExtraction:

    # Both citation forms are recognised
    def test_both_forms(self):
        text = "See (Article ID: A1) and also Article #b2-c3."
        assert extract_used_articles(text) == {"A1", "b2-c3"}

    # Repeated citations are deduplicated
    def test_dedup(self):
        text = "(Article ID: A1) ... (Article ID: A1)"
        assert extract_used_articles(text) == {"A1"}

    # No citation tokens means no articles
    def test_none(self):
        assert extract_used_articles("Please restart the app.") == set()
        assert extract_used_articles("") == set()

    # Forced empty results override textual citations
    def test_force_empty(self):
        used, _ = ResponseAnalyzer().analyze("(Article ID: A1)", force_empty_results=True)
        assert used == set()


class TestConfidence:

    # Short plain reply scores the base
    def test_base(self):
        assert calculate_confidence("OK") == 0.7

    # Length over 50 adds a step
    def test_medium_length(self):
        assert calculate_confidence("a" * 51) == 0.8

    # Length over 500 adds another step
    def test_long(self):
        assert calculate_confidence("a" * 501) == 0.9

    # Supportive language adds a step, case-insensitive
    def test_supportive(self):
        assert calculate_confidence("PATIENCE") == 0.8

    # Well-formed citation adds a step
    def test_citation(self):
        assert calculate_confidence("(Article ID: A1)") == 0.8

    # Bare citation without parentheses does not count
    def test_bare_citation(self):
        assert calculate_confidence("Article ID: A1") == 0.7

    # Everything together clamps to 1.0
    def test_clamped(self):
        text = "I understand. (Article ID: A1) " + "a" * 600
        assert calculate_confidence(text) == 1.0

    # Score never decreases as the reply grows
    @pytest.mark.parametrize("length", [0, 10, 50, 51, 200, 500, 501, 2000])
    def test_monotonic(self, length):
        score = calculate_confidence("a" * length)
        assert 0.0 <= score <= 1.0
        assert calculate_confidence("a" * (length + 1)) >= score
