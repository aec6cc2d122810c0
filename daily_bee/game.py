"""
One player's play of one puzzle: submitting words, shuffling the outer letters, progress.
"""
from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import NamedTuple

from .generator import Puzzle
from .profile import SessionRecord
from .scoring import (
    is_genius,
    is_pangram,
    next_rank,
    pangram_count,
    percentage,
    rank_for,
    score,
    total_score,
)
from .validation import normalize_word
from .words import MIN_LENGTH


class SubmitResult(NamedTuple):
    accepted: bool
    word: str
    message: str
    reason: str | None = None
    points: int = 0
    is_pangram: bool = False
    rank: str = ""
    level_up: bool = False


class GameSession:
    def __init__(
        self,
        puzzle: Puzzle,
        found_words: list[str] | None = None,
        started_at: datetime | None = None,
        time_spent: int = 0,
    ):
        self.puzzle = puzzle
        self._answers = frozenset(puzzle.valid_words)
        # Keep only words that are still answers, in the order found
        self.found_words: list[str] = [w for w in dict.fromkeys(found_words or []) if w in self._answers]
        self.score = total_score(self.found_words)
        self.started_at = started_at or datetime.now(timezone.utc)
        # Seconds played before this session was resumed
        self._earlier_seconds = time_spent

    @classmethod
    def from_record(cls, puzzle: Puzzle, record: SessionRecord | None) -> "GameSession":
        """Resume a stored session for this puzzle, or start fresh."""
        if record is None or record.puzzle_id != puzzle.puzzle_id:
            return cls(puzzle)
        return cls(puzzle, record.found_words, time_spent=record.time_spent)

    @property
    def rank(self) -> str:
        return rank_for(self.score, self.puzzle.max_score)

    def _reject(self, word: str, reason: str, message: str) -> SubmitResult:
        return SubmitResult(False, word, message, reason, rank=self.rank)

    def submit(self, word: str) -> SubmitResult:
        w = normalize_word(word)
        center = self.puzzle.center_letter
        if len(w) < MIN_LENGTH:
            return self._reject(w, "too_short", f"Words must be at least {MIN_LENGTH} letters long!")
        if center not in w:
            return self._reject(w, "missing_center", f'Word must contain the center letter "{center.upper()}"!')
        if w in self.found_words:
            return self._reject(w, "already_found", "Already found!")
        if any(ch not in self.puzzle.letters for ch in w):
            return self._reject(w, "bad_letters", "Cannot form this word with available letters!")
        if w not in self._answers:
            return self._reject(w, "not_in_word_list", "Not in word list!")

        old_rank = self.rank
        points = score(w)
        pangram = is_pangram(w)
        self.found_words.append(w)
        self.score += points
        new_rank = self.rank
        level_up = new_rank != old_rank

        if pangram:
            message = f"PANGRAM! +{points} points!"
        elif level_up and new_rank == "Genius":
            message = f"GENIUS! +{points} points!"
        elif level_up:
            message = f"{new_rank}! +{points} points!"
        elif len(self.found_words) == 1:
            message = f"First word! +{points} points"
        else:
            message = f"Good! +{points} points"
        return SubmitResult(True, w, message, None, points, pangram, new_rank, level_up)

    def shuffle(self, rng: random.Random | None = None) -> tuple[str, ...]:
        """Center letter first, the six outer letters in a new random order."""
        outer = list(self.puzzle.outer_letters)
        (rng or random).shuffle(outer)
        return (self.puzzle.center_letter, *outer)

    def progress(self) -> dict:
        max_score = self.puzzle.max_score
        upcoming = next_rank(self.score, max_score)
        return {
            "score": self.score,
            "max_score": max_score,
            "percentage": percentage(self.score, max_score),
            "rank": self.rank,
            "next_rank": upcoming[0] if upcoming else None,
            "points_to_next_rank": upcoming[1] if upcoming else 0,
            "is_genius": is_genius(self.score, max_score),
            "words_found": len(self.found_words),
            "total_words": self.puzzle.word_count,
            "pangrams_found": pangram_count(self.found_words),
        }

    def to_record(self, now: datetime | None = None) -> SessionRecord:
        now = now or datetime.now(timezone.utc)
        return SessionRecord(
            puzzle_id=self.puzzle.puzzle_id,
            date=now,
            letters="".join(self.puzzle.letters),
            center_letter=self.puzzle.center_letter,
            found_words=list(self.found_words),
            total_words=self.puzzle.word_count,
            score=self.score,
            max_score=self.puzzle.max_score,
            percentage=percentage(self.score, self.puzzle.max_score),
            achievement_level=self.rank,
            is_genius=is_genius(self.score, self.puzzle.max_score),
            pangram_count=pangram_count(self.found_words),
            time_spent=self._earlier_seconds + max(0, int((now - self.started_at).total_seconds())),
        )
