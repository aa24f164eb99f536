"""Edit-distance string similarity and per-field match scoring."""
from __future__ import annotations

from typing import Iterable

from rapidfuzz.distance import Levenshtein

from . import config


def edit_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """1 - distance / longer length; two empty strings are identical."""
    return Levenshtein.normalized_similarity(a, b)


def field_score(field_value: str, query_term: str, fuzzy: bool = True) -> float:
    """Score one text field against an already normalized query term.

    Exact hits score 1.0, substring hits scale with the share of the field the
    query covers, and fuzzy hits are capped well below both.
    """
    value = (field_value or "").lower()
    if value == query_term:
        return 1.0
    if query_term in value:
        return config.SUBSTRING_SCORE_FACTOR * (len(query_term) / len(value))
    if fuzzy:
        sim = similarity(value, query_term)
        if sim >= config.FUZZY_SIMILARITY_THRESHOLD:
            return sim * config.FUZZY_SCORE_FACTOR
    return 0.0


def array_field_score(values: Iterable[str], query_term: str, fuzzy: bool = True) -> float:
    best = 0.0
    for value in values:
        best = max(best, field_score(value, query_term, fuzzy))
    return best
