"""
Relevance scoring shared by fuzzy resolution and free-text search.
"""

from __future__ import annotations

import re

from .helpers import to_slug
from .models import CatalogSummary


# Scores returned immediately for exact/prefix matches; always above any partial sum
EXACT_NAME_SCORE = 100
EXACT_SLUG_SCORE = 95
PREFIX_SCORE = 90

NAME_CONTAINS_SCORE = 60
ALIAS_EXACT_SCORE = 80
ALIAS_CONTAINS_SCORE = 40
TOKEN_IN_NAME_SCORE = 6
TOKEN_IN_ALIAS_SCORE = 4
MIN_TOKEN_LENGTH = 3

EDIT_DISTANCE_MAX_QUERY = 20
EDIT_DISTANCE_BASE = 30
EDIT_DISTANCE_STEP = 3

# Small enough that it only breaks ties between equally good text matches
HOMEBREW_BONUS = 2

# Fuzzy resolution returns nothing below this score
MIN_RESOLVE_SCORE = 10

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert/delete/substitute, cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def fuzzy_score(query: str, candidate: CatalogSummary) -> float:
    """
    Score how well `query` names `candidate`.

    Exact name, exact slug and name-prefix matches return a fixed high score
    straight away. Everything else sums partial components: substring
    containment, alias matches, token coverage and an edit-distance bonus.

    Args:
        query: Free-text query
        candidate: Summary to score

    Returns:
        Non-negative relevance score (higher is better)
    """
    q = query.lower().strip()
    name = candidate.name.lower()
    aliases = [a.lower() for a in candidate.aliases]
    brew = HOMEBREW_BONUS if candidate.homebrew else 0

    if not q:
        return 0

    if name == q:
        return EXACT_NAME_SCORE + brew
    query_slug = to_slug(q)
    if query_slug and candidate.slug == query_slug:
        return EXACT_SLUG_SCORE + brew
    if name.startswith(q):
        return PREFIX_SCORE + brew

    score = 0
    if q in name:
        score += NAME_CONTAINS_SCORE
    for alias in aliases:
        if alias == q:
            score += ALIAS_EXACT_SCORE
        elif q in alias:
            score += ALIAS_CONTAINS_SCORE

    for token in _TOKEN_SPLIT_RE.split(q):
        if len(token) < MIN_TOKEN_LENGTH:
            continue
        if token in name:
            score += TOKEN_IN_NAME_SCORE
        if any(token in alias for alias in aliases):
            score += TOKEN_IN_ALIAS_SCORE

    if len(q) <= EDIT_DISTANCE_MAX_QUERY:
        distance = levenshtein(q, name)
        score += max(0, EDIT_DISTANCE_BASE - distance * EDIT_DISTANCE_STEP)

    return score + brew


__all__ = [
    "MIN_RESOLVE_SCORE",
    "HOMEBREW_BONUS",
    "levenshtein",
    "fuzzy_score",
]
