from __future__ import annotations

import itertools
from datetime import date, timedelta

import pytest

from daily_bee.dictionary import WordDictionary
from daily_bee.generator import (
    LETTER_COUNT,
    MAX_TOTAL_SCORE,
    MAX_WORDS,
    MIN_TOTAL_SCORE,
    MIN_WORDS,
    VOWELS,
    LetterSet,
    SeededRandom,
    date_key,
    evaluate,
    generate_letters,
    generate_puzzle,
    seed_key_for_attempt,
    string_hash,
)

from conftest import passing_words


def test_string_hash_small_values():
    assert string_hash("") == 0
    assert string_hash("a") == 97
    assert string_hash("ab") == 97 * 31 + 98


def test_string_hash_stays_in_32_bits():
    for key in ("2024-01-01", "2031-12-31T23:00", "x" * 200):
        h = string_hash(key)
        assert 0 <= h <= 2**31
    assert string_hash("2024-01-01") == string_hash("2024-01-01")
    assert string_hash("2024-01-01") != string_hash("2024-01-02")


def test_splitmix_reference_output():
    rng = SeededRandom(0)
    assert rng.next_u64() == 0xE220A8397B1DCDAF


def test_seeded_random_is_reproducible():
    a, b = SeededRandom(12345), SeededRandom(12345)
    draws_a = [a.random() for _ in range(100)]
    draws_b = [b.random() for _ in range(100)]
    assert draws_a == draws_b
    assert all(0.0 <= x < 1.0 for x in draws_a)
    assert draws_a != [SeededRandom(12346).random() for _ in range(100)]


def test_generated_letters_are_valid_sets():
    start = date(2024, 1, 1)
    for i in range(200):
        ls = generate_letters(date_key(start + timedelta(days=i)))
        assert len(ls.letters) == LETTER_COUNT
        assert len(set(ls.letters)) == LETTER_COUNT
        assert ls.letters[0] == ls.center
        assert ls.center in VOWELS


def test_same_date_same_letters():
    assert generate_letters("2024-05-01") == generate_letters("2024-05-01")


def test_seed_key_perturbation():
    d = date(2024, 5, 1)
    assert seed_key_for_attempt(d, 0) == "2024-05-01"
    assert seed_key_for_attempt(d, 1) == "2024-05-01T01:00"
    assert seed_key_for_attempt(d, 25) == "2024-05-02T01:00"


def test_letter_set_validation():
    assert LetterSet.of("APLEXYZ", "P") == LetterSet(tuple("aplexyz"), "p")
    with pytest.raises(ValueError):
        LetterSet.of("aplexy", "p")
    with pytest.raises(ValueError):
        LetterSet.of("aplexyy", "p")
    with pytest.raises(ValueError):
        LetterSet.of("aplexyz", "q")
    with pytest.raises(ValueError):
        LetterSet.of("aplexy1", "p")


def test_evaluate_quality_gate(letter_set):
    report = evaluate(letter_set, WordDictionary.from_words(passing_words(letter_set)))
    assert report.word_count == 25
    assert report.pangram_count == 1
    assert report.total_score == 24 * 5 + 14
    assert report.passes

    # No pangram: fails even with enough words and points
    words = passing_words(letter_set)[:-1]
    assert not evaluate(letter_set, WordDictionary.from_words(words)).passes


def _gate_words(letter_set: LetterSet, fours: int, fives: int) -> list[str]:
    """The pangram plus the requested numbers of 4-letter (1 point) and 5-letter (5 point) words."""
    center = letter_set.center
    outer = [ch for ch in letter_set.letters if ch != center]
    short = ["".join((center, *c)) for c in itertools.islice(itertools.product(outer, repeat=3), fours)]
    longer = ["".join((center, *c)) for c in itertools.islice(itertools.product(outer, repeat=4), fives)]
    return ["".join(letter_set.letters), *short, *longer]


@pytest.mark.parametrize(
    "fours, fives, word_count, points, passes",
    [
        (0, 19, 20, 109, True),
        (0, 18, 19, 104, False),
        (99, 0, 100, 113, True),
        (100, 0, 101, 114, False),
        (16, 4, 21, 50, True),
        (15, 4, 20, 49, False),
        (1, 37, 39, 200, True),
        (2, 37, 40, 201, False),
    ],
)
def test_quality_gate_boundaries(letter_set, fours, fives, word_count, points, passes):
    report = evaluate(letter_set, WordDictionary.from_words(_gate_words(letter_set, fours, fives)))
    assert report.word_count == word_count
    assert report.total_score == points
    assert report.pangram_count == 1
    assert report.passes is passes


def test_first_passing_attempt_is_used():
    d = date(2024, 5, 1)
    target = generate_letters(date_key(d))
    dictionary = WordDictionary.from_words(passing_words(target))
    puzzle = generate_puzzle(d, dictionary)
    assert puzzle.puzzle_id == "2024-05-01"
    assert puzzle.letters == target.letters
    assert puzzle.center_letter == target.center
    assert puzzle.attempts == 1
    assert not puzzle.is_fallback
    assert puzzle.word_count == 25
    assert puzzle.max_score == 134
    assert list(puzzle.valid_words) == sorted(puzzle.valid_words)


def test_later_attempt_when_first_fails():
    d = date(2024, 5, 1)
    second = generate_letters(seed_key_for_attempt(d, 1))
    first = generate_letters(seed_key_for_attempt(d, 0))
    if set(first.letters) == set(second.letters):
        pytest.skip("attempts 0 and 1 drew the same letter set")
    puzzle = generate_puzzle(d, WordDictionary.from_words(passing_words(second)))
    assert puzzle.attempts == 2
    assert puzzle.letters == second.letters


def test_fallback_after_max_attempts():
    d = date(2024, 5, 1)
    puzzle = generate_puzzle(d, WordDictionary.from_words(["zzzz"]))
    assert puzzle.is_fallback
    assert puzzle.attempts == 50
    assert puzzle.letters == generate_letters(seed_key_for_attempt(d, 49)).letters


def test_generation_is_deterministic():
    d = date(2024, 7, 4)
    dictionary = WordDictionary.from_words(passing_words(generate_letters(date_key(d))) + ["apple", "peal"])
    a = generate_puzzle(d, dictionary)
    b = generate_puzzle(d, dictionary)
    assert (a.letters, a.center_letter, a.valid_words) == (b.letters, b.center_letter, b.valid_words)


def test_puzzles_pass_quality_or_are_flagged():
    dictionary = WordDictionary.from_words(passing_words(LetterSet.of("aplexyz", "a")))
    for i in range(5):
        p = generate_puzzle(date(2024, 1, 1) + timedelta(days=i), dictionary)
        passes = (
            MIN_WORDS <= p.word_count <= MAX_WORDS
            and p.pangram_count >= 1
            and MIN_TOTAL_SCORE <= p.max_score <= MAX_TOTAL_SCORE
        )
        assert passes or (p.is_fallback and p.attempts == 50)


def test_puzzle_is_frozen(puzzle):
    with pytest.raises(Exception):
        puzzle.max_score = 0
    assert puzzle.outer_letters == tuple("alexyz")
    assert puzzle.pangrams == ["aplexyz"]
