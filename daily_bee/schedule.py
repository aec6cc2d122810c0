"""
Which puzzle is live right now, and a small persistent cache of generated puzzles.

A new puzzle goes live every day at the rollover time (10:00 America/Los_Angeles by default).
Before the rollover players keep the previous day's puzzle. Puzzles are generated once per
date key and never regenerated; cache entries older than the retention window are purged
whenever a new puzzle is stored.
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from .config import MAX_ATTEMPTS, RETENTION_DAYS, ROLLOVER, TIMEZONE, Settings
from .dictionary import WordDictionary
from .generator import Puzzle, date_key, generate_puzzle

logger = logging.getLogger(__name__)


class PuzzleCache:
    """Puzzles by date key, optionally persisted to a JSON file."""

    def __init__(self, path: Path | None = None, *, retention_days: int = RETENTION_DAYS):
        self.path = path
        self.retention_days = retention_days
        self._puzzles: dict[str, Puzzle] = self._load()

    def _load(self) -> dict[str, Puzzle]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
            return {key: Puzzle.model_validate(value) for key, value in raw.items()}
        except (json.JSONDecodeError, OSError, AttributeError, ValidationError) as e:
            logger.warning("Ignoring unreadable puzzle cache %s: %s", self.path, e)
            return {}

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: p.model_dump(mode="json") for key, p in sorted(self._puzzles.items())}
        try:
            with open(self.path, "w") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            logger.warning("Could not write puzzle cache %s: %s", self.path, e)

    def get(self, key: str) -> Puzzle | None:
        return self._puzzles.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._puzzles

    def __len__(self) -> int:
        return len(self._puzzles)

    def keys(self) -> list[str]:
        return sorted(self._puzzles)

    def put(self, puzzle: Puzzle) -> Puzzle:
        """Store a puzzle unless its key is already cached; returns whichever puzzle is cached."""
        existing = self._puzzles.get(puzzle.puzzle_id)
        if existing is not None:
            return existing
        self._puzzles[puzzle.puzzle_id] = puzzle
        self.purge(puzzle.puzzle_id)
        self._save()
        return puzzle

    def purge(self, reference_key: str) -> list[str]:
        """Drop entries strictly older than retention_days before reference_key. Returns dropped keys."""
        cutoff = date_key(date.fromisoformat(reference_key) - timedelta(days=self.retention_days))
        dropped = [k for k in self._puzzles if k < cutoff]
        for k in dropped:
            del self._puzzles[k]
        if dropped:
            logger.info("Purged %d old puzzles: %s", len(dropped), ", ".join(sorted(dropped)))
        return dropped


class PuzzleScheduler:
    def __init__(
        self,
        dictionary: WordDictionary,
        cache: PuzzleCache | None = None,
        *,
        tz: str = TIMEZONE,
        rollover: time = ROLLOVER,
        max_attempts: int = MAX_ATTEMPTS,
        clock: Callable[[], datetime] | None = None,
    ):
        self.dictionary = dictionary
        self.cache = cache if cache is not None else PuzzleCache()
        self.tz = ZoneInfo(tz)
        self.rollover = rollover
        self.max_attempts = max_attempts
        self._clock = clock
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, dictionary: WordDictionary) -> "PuzzleScheduler":
        cache = PuzzleCache(settings.puzzle_cache_path, retention_days=settings.retention_days)
        return cls(
            dictionary,
            cache,
            tz=settings.timezone,
            rollover=settings.rollover,
            max_attempts=settings.max_attempts,
        )

    def reference_time(self, now: datetime | None = None) -> datetime:
        """now in the reference zone. Naive datetimes are taken as reference-zone wall time."""
        if now is None:
            now = self._clock() if self._clock else datetime.now(timezone.utc)
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz)

    def active_date(self, now: datetime | None = None) -> date:
        """Today's date after the rollover, yesterday's before it."""
        local = self.reference_time(now)
        if local.time() >= self.rollover:
            return local.date()
        return local.date() - timedelta(days=1)

    def active_puzzle_id(self, now: datetime | None = None) -> str:
        return date_key(self.active_date(now))

    def time_until_next_puzzle(self, now: datetime | None = None) -> timedelta:
        local = self.reference_time(now)
        target = datetime.combine(local.date(), self.rollover, tzinfo=self.tz)
        if local >= target:
            target = datetime.combine(local.date() + timedelta(days=1), self.rollover, tzinfo=self.tz)
        # Compare in UTC so DST changes are counted
        return target.astimezone(timezone.utc) - local.astimezone(timezone.utc)

    async def get_todays_puzzle(self, now: datetime | None = None) -> Puzzle:
        return await self.get_puzzle_for_date(self.active_date(now))

    async def get_puzzle_for_date(self, puzzle_date: date) -> Puzzle:
        key = date_key(puzzle_date)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        # One generation at a time; re-check after waiting in case another caller stored it
        async with self._lock:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            await self.dictionary.load()
            logger.info("Generating new puzzle for %s", key)
            puzzle = await asyncio.to_thread(
                generate_puzzle, puzzle_date, self.dictionary, max_attempts=self.max_attempts
            )
            return self.cache.put(puzzle)

    def stats(self, now: datetime | None = None) -> dict:
        keys = self.cache.keys()
        return {
            "cached_puzzles": len(keys),
            "oldest_date": keys[0] if keys else None,
            "newest_date": keys[-1] if keys else None,
            "next_puzzle_in": self.time_until_next_puzzle(now).total_seconds(),
        }
