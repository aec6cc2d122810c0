"""
Daily puzzle generator: seed from the date, draw seven letters, check quality, retry with a
perturbed seed, and fall back to the last candidate rather than fail.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

from .config import MAX_ATTEMPTS
from .dictionary import WordDictionary
from .scoring import is_pangram, pangram_count, total_score

logger = logging.getLogger(__name__)

VOWELS = "aeiou"
CONSONANTS = "rstlndchfpgmbwyvk"
ALL_LETTERS = VOWELS + CONSONANTS
LETTER_COUNT = 7

# Quality gate
MIN_WORDS = 20
MAX_WORDS = 100
MIN_PANGRAMS = 1
MIN_TOTAL_SCORE = 50
MAX_TOTAL_SCORE = 200

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def date_key(d: date) -> str:
    """Puzzle id for a calendar date: YYYY-MM-DD."""
    return d.strftime("%Y-%m-%d")


def string_hash(s: str) -> int:
    """Polynomial rolling hash (h * 31 + c) wrapped to signed 32 bits, absolute value."""
    h = 0
    for ch in s:
        h = (h * 31 + ord(ch)) & _MASK32
    if h & 0x80000000:
        h -= 1 << 32
    return abs(h)


class SeededRandom:
    """SplitMix64: every draw advances the state by a fixed increment and mixes it.

    The same starting seed always yields the same sequence, on any machine.
    """

    def __init__(self, seed: int):
        self.state = seed & _MASK64

    def next_u64(self) -> int:
        self.state = (self.state + 0x9E3779B97F4A7C15) & _MASK64
        z = self.state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
        return z ^ (z >> 31)

    def random(self) -> float:
        """Float in [0, 1) from the top 53 bits."""
        return (self.next_u64() >> 11) / float(1 << 53)

    def choice(self, seq: Sequence[str]) -> str:
        return seq[int(self.random() * len(seq))]


class LetterSet(NamedTuple):
    letters: tuple[str, ...]
    center: str

    @classmethod
    def of(cls, letters: Iterable[str], center: str) -> "LetterSet":
        """Validated letter set: seven distinct a-z letters including the center."""
        normalized = tuple(ch.lower() for ch in letters)
        c = center.lower()
        if len(normalized) != LETTER_COUNT:
            raise ValueError(f"A letter set has {LETTER_COUNT} letters, got {len(normalized)}")
        if len(set(normalized)) != LETTER_COUNT:
            raise ValueError(f"Duplicate letters in {''.join(normalized)!r}")
        if any(len(ch) != 1 or not ("a" <= ch <= "z") for ch in normalized):
            raise ValueError(f"Letters must be single a-z characters, got {normalized!r}")
        if c not in normalized:
            raise ValueError(f"Center letter {center!r} is not in the letter set")
        return cls(normalized, c)


class QualityReport(NamedTuple):
    valid_words: list[str]
    word_count: int
    pangram_count: int
    total_score: int
    passes: bool


class Puzzle(BaseModel):
    """One day's puzzle. Frozen: a generated puzzle never changes."""

    model_config = ConfigDict(frozen=True)

    puzzle_id: str
    letters: tuple[str, ...]
    center_letter: str
    valid_words: tuple[str, ...]
    max_score: int
    pangram_count: int
    word_count: int
    generated_at: datetime
    attempts: int
    is_fallback: bool = False

    @property
    def outer_letters(self) -> tuple[str, ...]:
        return tuple(ch for ch in self.letters if ch != self.center_letter)

    @property
    def pangrams(self) -> list[str]:
        return [w for w in self.valid_words if is_pangram(w)]


def seed_key_for_attempt(puzzle_date: date, attempt: int) -> str:
    """Attempt 0 seeds from the date key; attempt n from midnight advanced by n simulated hours."""
    if attempt == 0:
        return date_key(puzzle_date)
    moment = datetime.combine(puzzle_date, time()) + timedelta(hours=attempt)
    return moment.strftime("%Y-%m-%dT%H:00")


def generate_letters(seed_key: str) -> LetterSet:
    """One vowel first (the center), then distinct draws from the full pool until seven letters."""
    rng = SeededRandom(string_hash(seed_key))
    selected = [rng.choice(VOWELS)]
    while len(selected) < LETTER_COUNT:
        letter = rng.choice(ALL_LETTERS)
        if letter not in selected:
            selected.append(letter)
    return LetterSet(tuple(selected), selected[0])


def evaluate(letter_set: LetterSet, dictionary: WordDictionary) -> QualityReport:
    words = dictionary.find_valid_words(letter_set.letters, letter_set.center)
    n_pangrams = pangram_count(words)
    points = total_score(words)
    passes = (
        MIN_WORDS <= len(words) <= MAX_WORDS
        and n_pangrams >= MIN_PANGRAMS
        and MIN_TOTAL_SCORE <= points <= MAX_TOTAL_SCORE
    )
    return QualityReport(words, len(words), n_pangrams, points, passes)


def build_puzzle(
    puzzle_id: str,
    letter_set: LetterSet,
    report: QualityReport,
    *,
    attempts: int,
    is_fallback: bool = False,
    now: datetime | None = None,
) -> Puzzle:
    return Puzzle(
        puzzle_id=puzzle_id,
        letters=letter_set.letters,
        center_letter=letter_set.center,
        valid_words=tuple(report.valid_words),
        max_score=report.total_score,
        pangram_count=report.pangram_count,
        word_count=report.word_count,
        generated_at=now or datetime.now(timezone.utc),
        attempts=attempts,
        is_fallback=is_fallback,
    )


def generate_puzzle(
    puzzle_date: date,
    dictionary: WordDictionary,
    *,
    max_attempts: int = MAX_ATTEMPTS,
    now: datetime | None = None,
) -> Puzzle:
    """
    Generate the puzzle for a date. Same date and same dictionary always give the same letters.
    Never raises for quality: after max_attempts the last candidate is returned with is_fallback=True.
    """
    puzzle_id = date_key(puzzle_date)
    letter_set: LetterSet | None = None
    report: QualityReport | None = None
    for attempt in range(max(max_attempts, 1)):
        letter_set = generate_letters(seed_key_for_attempt(puzzle_date, attempt))
        report = evaluate(letter_set, dictionary)
        if report.passes:
            logger.info(
                "Puzzle %s: %s (center %s), %d words, %d points, attempt %d",
                puzzle_id, "".join(letter_set.letters), letter_set.center,
                report.word_count, report.total_score, attempt + 1,
            )
            return build_puzzle(puzzle_id, letter_set, report, attempts=attempt + 1, now=now)

    assert letter_set is not None and report is not None
    logger.warning(
        "Puzzle %s: no letter set passed quality in %d attempts; using %s (%d words, %d points)",
        puzzle_id, max_attempts, "".join(letter_set.letters), report.word_count, report.total_score,
    )
    return build_puzzle(
        puzzle_id, letter_set, report, attempts=max(max_attempts, 1), is_fallback=True, now=now
    )
