"""
Larger word corpora fetched over the network (newline-delimited word lists).
Downloads are cached to data/corpus.txt so later loads stay local.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import requests

from .words import filter_words, load_word_file

logger = logging.getLogger(__name__)

HEADERS = {"User-Agent": "DailyBee/1.0"}


def fetch_corpus(url: str, *, timeout: float, session: requests.Session | None = None) -> list[str]:
    """GET one word list and return its bee-eligible words. Raises requests.RequestException on failure."""
    getter = session or requests
    resp = getter.get(url, headers=HEADERS, timeout=timeout)
    resp.raise_for_status()
    return filter_words(resp.text.splitlines())


def fetch_first_available(
    urls: Sequence[str],
    *,
    timeout: float,
    session: requests.Session | None = None,
) -> tuple[str, list[str]] | None:
    """Try each URL in order; return (url, words) for the first non-empty list, or None."""
    for url in urls:
        logger.info("Fetching word list from %s", url)
        try:
            words = fetch_corpus(url, timeout=timeout, session=session)
        except requests.RequestException as e:
            logger.warning("Could not fetch %s: %s", url, e)
            continue
        if words:
            return url, words
        logger.warning("Word list at %s was empty", url)
    return None


def load_corpus_cache(path: Path) -> list[str]:
    """Words from a previous download, or [] if there is no usable cache."""
    if not path.exists():
        return []
    try:
        return load_word_file(path)
    except OSError as e:
        logger.warning("Ignoring unreadable corpus cache %s: %s", path, e)
        return []


def save_corpus_cache(path: Path, words: Sequence[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write("\n".join(words))
        f.write("\n")
    tmp.replace(path)
    return path


def ensure_corpus(path: Path, urls: Sequence[str], *, timeout: float) -> Path:
    """Download the first reachable corpus into path if missing. Returns path."""
    if path.exists():
        return path
    result = fetch_first_available(urls, timeout=timeout)
    if result is None:
        raise FileNotFoundError(
            f"Could not download any word list ({', '.join(urls) or 'no URLs configured'}). "
            f"Download one manually to {path} (one word per line)."
        )
    url, words = result
    logger.info("Saving %d words from %s to %s", len(words), url, path)
    return save_corpus_cache(path, words)
