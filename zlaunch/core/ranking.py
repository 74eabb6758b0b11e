"""Fuzzy ranking engine shared by every searchable module.

Matching is subsequence based: every query character must appear, in order,
in the entry title (case-insensitive). Among all ways to place the query in
the title, the best-scoring alignment is chosen with a small dynamic program
so that contiguous runs and word-boundary hits win over scattered matches.

Everything here is pure: no I/O, no shared state.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from zlaunch.domain.entities import Entry, Index, Query, ScoredEntry

SCORE_FLOOR = 0.0
"""Entries scoring at or below this are excluded. Any valid match scores above it."""

MATCH_SCORE = 16.0
CONSECUTIVE_BONUS = 12.0
BOUNDARY_BONUS = 10.0
CAMEL_BONUS = 6.0
GAP_PENALTY = 3.0
SPAN_WEIGHT = 24.0
COVERAGE_WEIGHT = 16.0

_NEG = float("-inf")


@dataclass(frozen=True)
class Match:
    """Result of matching one pattern against one title."""

    score: float
    positions: tuple[int, ...]


def fold(text: str) -> str:
    """Lowercase text one character at a time, preserving length.

    Characters whose lowercase form is longer than one code point are left
    unchanged so match positions still index the original string.
    """
    out = []
    for ch in text:
        low = ch.lower()
        out.append(low if len(low) == 1 else ch)
    return "".join(out)


def _is_subsequence(pattern: str, text: str) -> bool:
    it = iter(text)
    return all(ch in it for ch in pattern)


def _position_bonus(text: str, pos: int) -> float:
    if pos == 0:
        return BOUNDARY_BONUS
    prev, cur = text[pos - 1], text[pos]
    if not prev.isalnum():
        return BOUNDARY_BONUS
    if prev.islower() and cur.isupper():
        return CAMEL_BONUS
    if prev.isalpha() and cur.isdigit():
        return CAMEL_BONUS
    return 0.0


def fuzzy_match(pattern: str, title: str) -> Match | None:
    """Find the best alignment of a folded pattern inside a title.

    Args:
        pattern: Query text, already passed through fold().
        title: Entry title in its original casing.

    Returns:
        Match with score and matched positions, or None if the pattern is
        not a subsequence of the title.
    """
    m, n = len(pattern), len(title)
    if m == 0 or m > n:
        return None

    folded = fold(title)
    if not _is_subsequence(pattern, folded):
        return None

    bonuses = [_position_bonus(title, j) for j in range(n)]
    prev: list[float] = []
    back: list[list[int]] = []

    for i, qc in enumerate(pattern):
        row = [_NEG] * n
        brow = [-1] * n
        running, running_k = _NEG, -1
        for j in range(n):
            # best non-adjacent predecessor ending at or before j-2
            if i > 0 and j >= 2 and prev[j - 2] > running:
                running, running_k = prev[j - 2], j - 2
            if folded[j] != qc:
                continue
            base = MATCH_SCORE + bonuses[j]
            if i == 0:
                row[j] = base
                continue
            best, from_k = _NEG, -1
            if running > _NEG:
                best, from_k = running - GAP_PENALTY, running_k
            if j >= 1 and prev[j - 1] > _NEG:
                consecutive = prev[j - 1] + CONSECUTIVE_BONUS
                if consecutive >= best:
                    best, from_k = consecutive, j - 1
            if from_k < 0:
                continue
            row[j] = base + best
            brow[j] = from_k
        prev = row
        back.append(brow)

    end = max(range(n), key=lambda j: (prev[j], -j))
    if prev[end] == _NEG:
        return None

    positions = [end]
    for i in range(m - 1, 0, -1):
        positions.append(back[i][positions[-1]])
    positions.reverse()

    span = positions[-1] - positions[0] + 1
    score = prev[end] + SPAN_WEIGHT * m / span + COVERAGE_WEIGHT * m / n
    return Match(score=score, positions=tuple(positions))


def match_query(text: str, title: str) -> Match | None:
    """Match raw query text against a title.

    When the query contains whitespace and fails to match as typed, it is
    retried with the whitespace removed so "fire fox" still finds "Firefox".
    """
    needle = fold(text.strip())
    if not needle:
        return None
    match = fuzzy_match(needle, title)
    if match is None:
        compact = "".join(needle.split())
        if compact != needle:
            match = fuzzy_match(compact, title)
    return match


def rank_entries(text: str, entries: Sequence[Entry]) -> list[ScoredEntry]:
    """Score and order entries against query text.

    Args:
        text: Raw query text.
        entries: Candidates in index order.

    Returns:
        ScoredEntry list sorted by descending score, ties kept in index
        order. An empty query returns every entry unscored, in index order.
    """
    if not text.strip():
        return [ScoredEntry(entry=entry, score=0.0) for entry in entries]

    scored: list[ScoredEntry] = []
    for entry in entries:
        match = match_query(text, entry.title)
        if match is None or match.score <= SCORE_FLOOR:
            continue
        scored.append(
            ScoredEntry(entry=entry, score=match.score, positions=match.positions)
        )
    # list.sort is stable, so equal scores keep index order
    scored.sort(key=lambda s: -s.score)
    return scored


def rank(query: Query, index: Index) -> list[ScoredEntry]:
    """Rank an index snapshot against a query."""
    return rank_entries(query.text, index.entries)
