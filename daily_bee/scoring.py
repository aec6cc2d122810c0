"""
Word scoring:
  4-letter word = 1 point, longer words = 1 point per letter, pangram = +7
Plus the rank ladder (Beginner ... Genius) shown against a puzzle's max score.
"""
from __future__ import annotations

import math
from collections.abc import Iterable

PANGRAM_LETTERS = 7
PANGRAM_BONUS = 7
GENIUS_FRACTION = 0.8

# (minimum percentage of max score, rank name), highest first
RANKS: list[tuple[int, str]] = [
    (80, "Genius"),
    (70, "Amazing"),
    (60, "Great"),
    (50, "Nice"),
    (40, "Solid"),
    (30, "Good"),
    (20, "Moving Up"),
    (10, "Good Start"),
    (0, "Beginner"),
]


def is_pangram(word: str) -> bool:
    """True if the word uses exactly seven distinct letters."""
    return len(set(word.lower())) == PANGRAM_LETTERS


def score(word: str) -> int:
    base = 1 if len(word) == 4 else len(word)
    return base + (PANGRAM_BONUS if is_pangram(word) else 0)


def total_score(words: Iterable[str]) -> int:
    return sum(score(w) for w in words)


def pangram_count(words: Iterable[str]) -> int:
    return sum(1 for w in words if is_pangram(w))


def percentage(points: int, max_score: int) -> int:
    """Rounded percentage of max score; 0 when the puzzle has no points."""
    if max_score <= 0:
        return 0
    # Round half up, not to even
    return int(math.floor(points * 100 / max_score + 0.5))


def rank_for(points: int, max_score: int) -> str:
    pct = percentage(points, max_score)
    for threshold, name in RANKS:
        if pct >= threshold:
            return name
    return RANKS[-1][1]


def is_genius(points: int, max_score: int) -> bool:
    return max_score > 0 and points >= max_score * GENIUS_FRACTION


def next_rank(points: int, max_score: int) -> tuple[str, int] | None:
    """(next rank name, points still needed), or None once Genius is reached."""
    pct = percentage(points, max_score)
    for threshold, name in reversed(RANKS):
        if threshold > pct:
            needed = math.ceil(max_score * threshold / 100) - points
            return name, max(needed, 0)
    return None
