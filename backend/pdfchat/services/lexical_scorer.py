"""Lexical relevance scoring between a query and a chunk of text.

The weights below were tuned together with the suffix-stripping heuristic in
``stem``; changing either one shifts every retrieval threshold downstream.
"""
import math
import re
from typing import List

STOPWORDS = frozenset({
    "the", "is", "at", "which", "on", "a", "an", "and", "or", "but",
    "in", "with", "to", "for", "of", "as", "by", "from", "be", "are",
    "was", "were", "been", "has", "have", "had", "do", "does", "did",
    "will", "would", "could", "should", "can", "may", "might", "this",
    "that", "these", "those", "it", "its", "what", "who", "where", "when",
})

MIN_TERM_LENGTH = 3
MIN_STEM_LENGTH = 4

PHRASE_WEIGHT = 100.0
EXACT_WEIGHT = 15.0
PARTIAL_WEIGHT = 2.0
STEM_WEIGHT = 5.0
NEAR_PROXIMITY_WEIGHT = 20.0
NEAR_PROXIMITY_DISTANCE = 50
FAR_PROXIMITY_WEIGHT = 8.0
FAR_PROXIMITY_DISTANCE = 200
COVERAGE_WEIGHT = 30.0
DENSITY_WEIGHT = 150.0

# ASCII-only, so accented letters split words apart
_TOKEN_SPLIT = re.compile(r"\W+", re.ASCII)
_SUFFIX = re.compile(r"(?:ing|ed|s|es|ly|er|est)$", re.IGNORECASE)


def tokenize(text: str) -> List[str]:
    """
    Lowercase and split on non-word characters.

    Leading or trailing punctuation leaves an empty token at that end. Empty
    tokens never match a term but still count toward the token total used
    for density and length normalisation.
    """
    return _TOKEN_SPLIT.split(text.lower())


def query_terms(query: str) -> List[str]:
    """Tokens of the query that carry signal: no stopwords, no short words."""
    return [
        token for token in tokenize(query)
        if len(token) >= MIN_TERM_LENGTH and token not in STOPWORDS
    ]


def stem(word: str) -> str:
    """Strip one common English suffix."""
    return _SUFFIX.sub("", word, count=1)


def _proximity_bonus(distance: int) -> float:
    if distance < NEAR_PROXIMITY_DISTANCE:
        return NEAR_PROXIMITY_WEIGHT * (1 - distance / NEAR_PROXIMITY_DISTANCE)
    if distance < FAR_PROXIMITY_DISTANCE:
        return FAR_PROXIMITY_WEIGHT * (1 - distance / FAR_PROXIMITY_DISTANCE)
    return 0.0


def raw_score(query: str, text: str) -> float:
    """
    Score a text against a query before length normalisation.

    Args:
        query: User question
        text: Candidate chunk text

    Returns:
        Accumulated relevance score (0.0 when there is nothing to compare)
    """
    if not query or not text:
        return 0.0

    terms = query_terms(query)
    if not terms:
        return 0.0

    query_lower = query.lower()
    text_lower = text.lower()
    tokens = tokenize(text)

    score = 0.0

    if query_lower in text_lower:
        score += PHRASE_WEIGHT

    for term in terms:
        exact_matches = sum(1 for token in tokens if token == term)
        score += exact_matches * EXACT_WEIGHT

        partial_matches = sum(
            1 for token in tokens if len(token) > len(term) and term in token
        )
        score += partial_matches * PARTIAL_WEIGHT

        term_stem = stem(term)
        if len(term_stem) >= MIN_STEM_LENGTH:
            stem_matches = sum(
                1 for token in tokens if token != term and stem(token) == term_stem
            )
            score += stem_matches * STEM_WEIGHT

    for first, second in zip(terms, terms[1:]):
        first_pos = text_lower.find(first)
        second_pos = text_lower.find(second)
        if first_pos != -1 and second_pos != -1:
            score += _proximity_bonus(abs(second_pos - first_pos))

    token_set = set(tokens)
    matched_terms = sum(1 for term in terms if term in token_set)
    score += matched_terms / len(terms) * COVERAGE_WEIGHT
    score += matched_terms / max(len(tokens), 1) * DENSITY_WEIGHT

    return score


def score(query: str, text: str) -> float:
    """Score a text against a query, divided by the square root of its token count."""
    accumulated = raw_score(query, text)
    if accumulated == 0.0:
        return 0.0
    return accumulated / math.sqrt(max(len(tokenize(text)), 1))
