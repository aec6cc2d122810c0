"""
Load and filter word lists for the bee dictionary.
Bundled fallback list ships with the package; a larger local list comes from WORD_LIST
or the system dict (e.g. /usr/share/dict/words).
"""
from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path

FALLBACK_WORD_LIST = Path(__file__).resolve().parent / "fallback_words.txt"
DEFAULT_WORD_LIST = Path("/usr/share/dict/words")
MIN_LENGTH = 4
# Only lowercase letters; hyphens, apostrophes and accents are dropped
ALPHA_ONLY = re.compile(r"^[a-z]+$")


def get_word_list_path(explicit: Path | None = None) -> Path | None:
    """Local corpus path: explicit setting, then WORD_LIST, then the system dict. None if nothing exists."""
    if explicit is not None:
        if not explicit.exists():
            raise FileNotFoundError(f"Word list not found at {explicit}. Fix WORD_LIST or remove it.")
        return explicit
    p = os.environ.get("WORD_LIST")
    if p:
        path = Path(p)
        if not path.exists():
            raise FileNotFoundError(f"Word list not found at {path}. Fix WORD_LIST or remove it.")
        return path
    if DEFAULT_WORD_LIST.exists():
        return DEFAULT_WORD_LIST
    return None


def filter_words(lines: Iterable[str], *, min_length: int = MIN_LENGTH) -> list[str]:
    """Normalize raw lines to bee-eligible words: lowercase, letters only, length >= min_length, deduped."""
    words: list[str] = []
    seen: set[str] = set()
    for line in lines:
        w = line.strip().lower()
        if not w or w in seen:
            continue
        if len(w) < min_length or not ALPHA_ONLY.match(w):
            continue
        words.append(w)
        seen.add(w)
    return words


def load_word_file(path: Path, *, min_length: int = MIN_LENGTH) -> list[str]:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return filter_words(f, min_length=min_length)


def load_fallback_words() -> list[str]:
    return load_word_file(FALLBACK_WORD_LIST)
