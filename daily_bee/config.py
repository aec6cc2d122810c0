"""
Runtime settings for the daily bee.
Defaults live in module constants; each can be overridden from the environment or a .env file.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import time
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = REPO_ROOT / "data"

# Larger corpora tried after the bundled fallback, in order
DEFAULT_CORPUS_URLS = (
    "https://raw.githubusercontent.com/dwyl/english-words/master/words_alpha.txt",
    "https://raw.githubusercontent.com/first20hours/google-10000-english/master/google-10000-english-usa.txt",
)
CORPUS_TIMEOUT_SEC = 5.0
TIMEZONE = "America/Los_Angeles"
ROLLOVER = time(10, 0)
RETENTION_DAYS = 7
MAX_ATTEMPTS = 50
VALIDATION_CACHE_SIZE = 100


def _parse_rollover(value: str) -> time:
    hour, _, minute = value.strip().partition(":")
    return time(int(hour), int(minute or 0))


def _parse_urls(value: str) -> tuple[str, ...]:
    return tuple(u.strip() for u in value.split(",") if u.strip())


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DATA_DIR
    word_list_path: Path | None = None
    corpus_urls: tuple[str, ...] = DEFAULT_CORPUS_URLS
    corpus_timeout: float = CORPUS_TIMEOUT_SEC
    timezone: str = TIMEZONE
    rollover: time = ROLLOVER
    retention_days: int = RETENTION_DAYS
    max_attempts: int = MAX_ATTEMPTS
    validation_cache_size: int = VALIDATION_CACHE_SIZE
    static_dir: Path = field(default_factory=lambda: Path(__file__).parent / "static")

    @property
    def puzzle_cache_path(self) -> Path:
        return self.data_dir / "puzzles.json"

    @property
    def profile_path(self) -> Path:
        return self.data_dir / "profile.json"

    @property
    def corpus_cache_path(self) -> Path:
        return self.data_dir / "corpus.txt"

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> "Settings":
        """Build settings from DAILY_BEE_* variables (and WORD_LIST), reading .env first if present."""
        load_dotenv(env_file or REPO_ROOT / ".env")
        env = os.environ
        kwargs: dict = {}
        if env.get("DAILY_BEE_DATA_DIR"):
            kwargs["data_dir"] = Path(env["DAILY_BEE_DATA_DIR"])
        if env.get("WORD_LIST"):
            kwargs["word_list_path"] = Path(env["WORD_LIST"])
        if "DAILY_BEE_CORPUS_URLS" in env:
            kwargs["corpus_urls"] = _parse_urls(env["DAILY_BEE_CORPUS_URLS"])
        if env.get("DAILY_BEE_CORPUS_TIMEOUT"):
            kwargs["corpus_timeout"] = float(env["DAILY_BEE_CORPUS_TIMEOUT"])
        if env.get("DAILY_BEE_TIMEZONE"):
            kwargs["timezone"] = env["DAILY_BEE_TIMEZONE"]
        if env.get("DAILY_BEE_ROLLOVER"):
            kwargs["rollover"] = _parse_rollover(env["DAILY_BEE_ROLLOVER"])
        if env.get("DAILY_BEE_RETENTION_DAYS"):
            kwargs["retention_days"] = int(env["DAILY_BEE_RETENTION_DAYS"])
        if env.get("DAILY_BEE_MAX_ATTEMPTS"):
            kwargs["max_attempts"] = int(env["DAILY_BEE_MAX_ATTEMPTS"])
        if env.get("DAILY_BEE_VALIDATION_CACHE"):
            kwargs["validation_cache_size"] = int(env["DAILY_BEE_VALIDATION_CACHE"])
        return cls(**kwargs)

    def ensure_data_dir(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir
