from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from daily_bee.config import Settings
from daily_bee.dictionary import WordDictionary
from daily_bee.generator import LetterSet, Puzzle, build_puzzle, evaluate


def passing_words(letter_set: LetterSet) -> list[str]:
    """25 words that pass the quality gate for this letter set: 24 five-letter words and 1 pangram (134 points)."""
    center = letter_set.center
    outer = [ch for ch in letter_set.letters if ch != center]
    words = ["".join((center, *combo)) for combo in itertools.islice(itertools.product(outer, repeat=4), 24)]
    words.append("".join(letter_set.letters))
    return words


def make_puzzle(puzzle_id: str, letter_set: LetterSet, words: list[str] | None = None) -> Puzzle:
    words = passing_words(letter_set) if words is None else words
    dictionary = WordDictionary.from_words(words)
    report = evaluate(letter_set, dictionary)
    return build_puzzle(
        puzzle_id, letter_set, report, attempts=1, now=datetime(2024, 1, 1, tzinfo=timezone.utc)
    )


@pytest.fixture
def letter_set() -> LetterSet:
    return LetterSet.of("aplexyz", "p")


@pytest.fixture
def puzzle(letter_set) -> Puzzle:
    return make_puzzle("2024-05-01", letter_set)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        corpus_urls=(),
        corpus_timeout=0.5,
        static_dir=tmp_path / "static",
    )
