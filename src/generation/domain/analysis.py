"""
Response Analysis
=================

Citation extraction and the confidence heuristic for generated replies.
"""

import re
from typing import Set

# "Article #<id>" or "Article ID: <id>"
CITATION_PATTERN = re.compile(r"(?:Article #|Article ID:)\s*([\w-]+)")
WELL_FORMED_CITATION = re.compile(r"\(Article ID: [\w-]+\)")
SUPPORTIVE_LANGUAGE = re.compile(r"empathy|understanding|patience", re.IGNORECASE)

BASE_CONFIDENCE = 0.7
CONFIDENCE_STEP = 0.1
SHORT_RESPONSE_LENGTH = 50
LONG_RESPONSE_LENGTH = 500


def extract_used_articles(response: str) -> Set[str]:
    """Return the set of article ids cited in a response."""
    if not response:
        return set()
    return {match.group(1) for match in CITATION_PATTERN.finditer(response)}


def calculate_confidence(response: str) -> float:
    """
    Score a response between 0 and 1.

    Starts at 0.7 and adds 0.1 each for: more than 50 characters, more than
    500 characters, supportive language, and a well-formed
    ``(Article ID: <id>)`` citation.
    """
    score = BASE_CONFIDENCE
    length = len(response)

    if length > SHORT_RESPONSE_LENGTH:
        score += CONFIDENCE_STEP
    if length > LONG_RESPONSE_LENGTH:
        score += CONFIDENCE_STEP
    if SUPPORTIVE_LANGUAGE.search(response):
        score += CONFIDENCE_STEP
    if WELL_FORMED_CITATION.search(response):
        score += CONFIDENCE_STEP

    return round(min(max(score, 0.0), 1.0), 2)


class ResponseAnalyzer:
    """Turns raw completion text into cited ids and a confidence score."""

    def analyze(self, response: str, force_empty_results: bool = False) -> tuple[Set[str], float]:
        used_articles = set() if force_empty_results else extract_used_articles(response)
        return used_articles, calculate_confidence(response)
