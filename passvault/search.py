"""
Fuzzy matching used to filter entries.

A query matches a text when its characters appear in the text in order,
not necessarily next to each other. Matching is case-insensitive unless the
query differs from its lowercase form (smart case). Case-insensitive
matching compares casefolded text, so titlecase letters fold too.
"""

from typing import Iterable, List, Optional, TypeVar

T = TypeVar("T")

SCORE_MATCH = 16
BONUS_CONSECUTIVE = 8
BONUS_BOUNDARY = 8
PENALTY_GAP = 1

_BOUNDARY_CHARS = " |-_./@:"


def fuzzy_score(text: str, query: str) -> Optional[int]:
    """
    Score ``query`` against ``text``.

    Returns:
        None when the query does not match, otherwise a score that is
        positive for any non-empty query. The empty query scores 0 and
        matches everything.
    """
    if not query:
        return 0
    if query == query.lower():
        text, query = text.casefold(), query.casefold()

    score = 0
    pos = 0
    prev = -2
    for ch in query:
        idx = text.find(ch, pos)
        if idx < 0:
            return None
        score += SCORE_MATCH
        if idx == prev + 1:
            score += BONUS_CONSECUTIVE
        elif prev >= 0:
            score -= min(idx - prev - 1, SCORE_MATCH - 1) * PENALTY_GAP
        if idx == 0 or text[idx - 1] in _BOUNDARY_CHARS:
            score += BONUS_BOUNDARY
        prev = idx
        pos = idx + 1
    return score


def fuzzy_filter(items: Iterable[T], query: str, key=str) -> List[T]:
    """Keep the items whose ``key`` text matches ``query``, in their original order."""
    return [item for item in items if fuzzy_score(key(item), query) is not None]
