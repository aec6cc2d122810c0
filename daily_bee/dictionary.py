"""
Word dictionary: membership and formability queries against the loaded corpus.

The bundled fallback list is installed synchronously the moment load() is called, so play can
start immediately. A larger corpus (local word list, cached download, then network) replaces it
if one arrives within the load budget; otherwise the fallback stays authoritative.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

import numpy as np

from . import corpus
from .config import CORPUS_TIMEOUT_SEC, Settings
from .words import MIN_LENGTH, filter_words, get_word_list_path, load_fallback_words, load_word_file

logger = logging.getLogger(__name__)

ALL_LETTERS_MASK = (1 << 26) - 1


def letter_mask(letters: Iterable[str]) -> int:
    """Bitmask of the a-z letters present (bit 0 = 'a'). Other characters are ignored."""
    mask = 0
    for ch in letters:
        ch = ch.lower()
        if len(ch) == 1 and "a" <= ch <= "z":
            mask |= 1 << (ord(ch) - 97)
    return mask


def can_form_word(word: str, letters: Iterable[str], center_letter: str) -> bool:
    """Candidate rule: length >= 4, contains the center letter, uses only letters from the set.

    Letters may be reused any number of times. Dictionary membership is not checked here.
    """
    w = word.lower()
    center = center_letter.lower()
    if len(w) < MIN_LENGTH:
        return False
    if len(center) != 1 or center not in w:
        return False
    available = {ch.lower() for ch in letters}
    return all(ch in available for ch in w)


class _Corpus:
    """Immutable snapshot of a word set plus the sorted arrays used for vectorised scans."""

    __slots__ = ("words", "ordered", "masks", "source")

    def __init__(self, words: Iterable[str], source: str):
        # dict.fromkeys keeps input order, so an already sorted list sorts in linear time
        ordered = sorted(dict.fromkeys(words))
        self.words = frozenset(ordered)
        self.ordered = np.array(ordered, dtype=object)
        self.masks = np.fromiter((letter_mask(w) for w in ordered), dtype=np.uint32, count=len(ordered))
        self.source = source

    def __len__(self) -> int:
        return len(self.words)


_EMPTY = _Corpus((), "empty")


class WordDictionary:
    def __init__(
        self,
        *,
        word_list_path: Path | None = None,
        search_system: bool = True,
        corpus_urls: Sequence[str] = (),
        cache_path: Path | None = None,
        timeout: float = CORPUS_TIMEOUT_SEC,
    ):
        self._word_list_path = word_list_path
        self._search_system = search_system
        self._corpus_urls = tuple(corpus_urls)
        self._cache_path = cache_path
        self._timeout = timeout
        self._corpus = _EMPTY
        self._complete = False
        self._load_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "WordDictionary":
        return cls(
            word_list_path=settings.word_list_path,
            corpus_urls=settings.corpus_urls,
            cache_path=settings.corpus_cache_path,
            timeout=settings.corpus_timeout,
        )

    @classmethod
    def from_words(cls, words: Iterable[str], source: str = "memory") -> "WordDictionary":
        """A dictionary that is fully loaded with exactly these words (no fallback, no upgrade)."""
        d = cls(search_system=False)
        d._corpus = _Corpus(filter_words(words), source)
        d._complete = True
        return d

    # --- Loading ---

    @property
    def is_loaded(self) -> bool:
        """True once any word set (fallback or larger) is installed."""
        return len(self._corpus) > 0

    @property
    def is_complete(self) -> bool:
        """True once loading has finished, with or without an upgrade. Verdicts are authoritative from here."""
        return self._complete

    @property
    def source(self) -> str:
        return self._corpus.source

    def __len__(self) -> int:
        return len(self._corpus)

    def install_words(self, words: Iterable[str], source: str) -> bool:
        """Replace the word set if the new one is strictly larger. Returns whether it was installed."""
        candidate = _Corpus(filter_words(words), source)
        return self._swap(candidate)

    async def install_words_async(self, words: Iterable[str], source: str) -> bool:
        """install_words with the snapshot built on a worker thread; only the swap runs on the loop."""
        candidate = await asyncio.to_thread(lambda: _Corpus(filter_words(words), source))
        return self._swap(candidate)

    def _swap(self, candidate: _Corpus) -> bool:
        if len(candidate) <= len(self._corpus):
            return False
        self._corpus = candidate
        logger.info("Dictionary now %d words from %s", len(candidate), candidate.source)
        return True

    def load_fallback(self) -> None:
        """Install the bundled word list unless something at least as large is already loaded."""
        if self.install_words(load_fallback_words(), "fallback"):
            logger.info("Using fallback dictionary for immediate play")

    async def load(self) -> None:
        """Load the dictionary once; concurrent and repeated callers share the same load."""
        if self._complete and (self._load_task is None or self._load_task.done()):
            return
        if self._load_task is None:
            self.load_fallback()
            self._load_task = asyncio.get_running_loop().create_task(self._upgrade())
        # shield: an abandoned caller must not cancel the load other callers wait on
        await asyncio.shield(self._load_task)

    async def _upgrade(self) -> None:
        try:
            await asyncio.wait_for(self._load_larger(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "No larger word list within %.1fs; keeping %s (%d words)",
                self._timeout, self.source, len(self),
            )
        finally:
            self._complete = True

    async def aclose(self) -> None:
        """Cancel an unfinished load. The word set installed so far stays usable."""
        task = self._load_task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _load_larger(self) -> None:
        path = None
        if self._word_list_path is not None or self._search_system:
            try:
                path = get_word_list_path(self._word_list_path)
            except FileNotFoundError as e:
                logger.warning("%s", e)
        if path is not None:
            try:
                words = await asyncio.to_thread(load_word_file, path)
            except OSError as e:
                logger.warning("Could not read word list %s: %s", path, e)
            else:
                if await self.install_words_async(words, str(path)):
                    return

        if self._cache_path is not None:
            words = await asyncio.to_thread(corpus.load_corpus_cache, self._cache_path)
            if await self.install_words_async(words, str(self._cache_path)):
                return

        if not self._corpus_urls:
            return
        result = await asyncio.to_thread(
            corpus.fetch_first_available, self._corpus_urls, timeout=self._timeout
        )
        if result is None:
            logger.warning("No word list reachable; keeping %s (%d words)", self.source, len(self))
            return
        url, words = result
        if await self.install_words_async(words, url) and self._cache_path is not None:
            try:
                await asyncio.to_thread(corpus.save_corpus_cache, self._cache_path, words)
            except OSError as e:
                logger.warning("Could not cache word list to %s: %s", self._cache_path, e)

    # --- Queries ---

    def is_valid_word(self, word: str) -> bool:
        """Membership of the lowercase word. False before any load (not yet authoritative)."""
        if not self.is_loaded:
            return False
        return word.lower() in self._corpus.words

    def can_form_word(self, word: str, letters: Iterable[str], center_letter: str) -> bool:
        return can_form_word(word, letters, center_letter)

    def find_valid_words(self, letters: Iterable[str], center_letter: str) -> list[str]:
        """All dictionary words formable from letters with the center letter, alphabetically."""
        center = center_letter.lower()
        if len(center) != 1:
            return []
        snapshot = self._corpus
        if not len(snapshot):
            return []
        allowed = letter_mask(letters)
        forbidden = np.uint32(ALL_LETTERS_MASK & ~allowed)
        center_bit = np.uint32(letter_mask(center))
        hits = ((snapshot.masks & forbidden) == 0) & ((snapshot.masks & center_bit) != 0)
        return [str(w) for w in snapshot.ordered[hits]]

    def stats(self) -> dict:
        return {
            "is_loaded": self.is_loaded,
            "is_complete": self.is_complete,
            "word_count": len(self),
            "source": self.source,
        }
