"""
Live validation of the word being typed, with a small memo and deferred execution.
"""
from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Callable, Iterable
from enum import Enum
from typing import NamedTuple

from .config import VALIDATION_CACHE_SIZE
from .dictionary import WordDictionary, can_form_word
from .words import MIN_LENGTH

logger = logging.getLogger(__name__)


class Status(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    PENDING = "pending"


class Reason(str, Enum):
    TOO_SHORT = "too_short"
    MISSING_CENTER = "missing_center"
    BAD_LETTERS = "bad_letters"
    NOT_IN_WORD_LIST = "not_in_word_list"


MESSAGES = {
    Reason.TOO_SHORT: f"Too short ({MIN_LENGTH} letters minimum)",
    Reason.MISSING_CENTER: 'Must contain center letter "{center}"',
    Reason.BAD_LETTERS: "Cannot form with available letters",
    Reason.NOT_IN_WORD_LIST: "Not in word list",
}


class Verdict(NamedTuple):
    status: Status
    reason: Reason | None = None
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status is Status.VALID

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


def normalize_word(word: str) -> str:
    """Typed input as checked and scored: surrounding whitespace dropped, lowercase."""
    return word.strip().lower()


def _invalid(reason: Reason, center: str = "") -> Verdict:
    return Verdict(Status.INVALID, reason, MESSAGES[reason].format(center=center.upper()))


def check_word(
    word: str, letters: Iterable[str], center_letter: str, dictionary: WordDictionary
) -> Verdict:
    """Checks in order: length, center letter, letters, then word list once the dictionary is complete."""
    w = normalize_word(word)
    center = center_letter.lower()
    if len(w) < MIN_LENGTH:
        return _invalid(Reason.TOO_SHORT)
    if center not in w:
        return _invalid(Reason.MISSING_CENTER, center)
    if not can_form_word(w, letters, center):
        return _invalid(Reason.BAD_LETTERS)
    if not dictionary.is_complete:
        return Verdict(Status.PENDING, None, "Checking word list...")
    if not dictionary.is_valid_word(w):
        return _invalid(Reason.NOT_IN_WORD_LIST)
    return Verdict(Status.VALID)


class ValidationService:
    def __init__(self, dictionary: WordDictionary, *, max_cache: int = VALIDATION_CACHE_SIZE):
        self.dictionary = dictionary
        self.max_cache = max_cache
        self._cache: OrderedDict[tuple[str, str, str], Verdict] = OrderedDict()

    @staticmethod
    def _key(word: str, letters: Iterable[str], center_letter: str) -> tuple[str, str, str]:
        return normalize_word(word), "".join(sorted(ch.lower() for ch in letters)), center_letter.lower()

    def __len__(self) -> int:
        return len(self._cache)

    def validate(self, word: str, letters: Iterable[str], center_letter: str) -> Verdict:
        """Memoised check. Pending verdicts are not stored: they change once loading completes."""
        letters = tuple(letters)
        key = self._key(word, letters, center_letter)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        verdict = check_word(word, letters, center_letter, self.dictionary)
        if verdict.status is not Status.PENDING:
            self._cache[key] = verdict
            while len(self._cache) > self.max_cache:
                self._cache.popitem(last=False)
        return verdict

    def schedule(
        self,
        word: str,
        letters: Iterable[str],
        center_letter: str,
        callback: Callable[[Verdict], None] | None = None,
    ) -> asyncio.Future:
        """Queue validation to run once the current handler yields to the event loop.

        Returns a future for the verdict; callback, if given, also receives it.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        letters = tuple(letters)

        def run() -> None:
            if future.cancelled():
                return
            try:
                verdict = self.validate(word, letters, center_letter)
            except Exception as e:
                future.set_exception(e)
                return
            future.set_result(verdict)
            if callback is not None:
                callback(verdict)

        loop.call_soon(run)
        return future

    def clear(self) -> None:
        self._cache.clear()
