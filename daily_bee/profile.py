"""
Player profile: per-puzzle session records, lifetime totals, genius streaks and preferences.
Stored as one JSON file (data/profile.json). A missing or unreadable file means a new player.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .scoring import RANKS

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30


def achievement_key(rank_name: str) -> str:
    """'Moving Up' -> 'moving_up'."""
    return rank_name.lower().replace(" ", "_")


def _default_achievements() -> dict[str, int]:
    return {achievement_key(name): 0 for _, name in RANKS}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionRecord(BaseModel):
    """Summary of one day's play, keyed by puzzle_id."""

    puzzle_id: str
    date: datetime = Field(default_factory=_now)
    letters: str = ""
    center_letter: str = ""
    found_words: list[str] = Field(default_factory=list)
    total_words: int = 0
    score: int = 0
    max_score: int = 0
    percentage: int = 0
    achievement_level: str = "Beginner"
    is_genius: bool = False
    pangram_count: int = 0
    time_spent: int = 0

    @property
    def words_found_count(self) -> int:
        return len(self.found_words)


class Preferences(BaseModel):
    show_hints: bool = False
    sort_order: str = "alphabetical"
    celebrations_enabled: bool = True
    sound_enabled: bool = False


class Profile(BaseModel):
    created_at: datetime = Field(default_factory=_now)
    last_played: datetime | None = None
    total_games_played: int = 0
    total_words_found: int = 0
    total_pangrams_found: int = 0
    total_score: int = 0
    genius_count: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_genius_puzzle_id: str | None = None
    achievement_history: dict[str, int] = Field(default_factory=_default_achievements)
    history: list[SessionRecord] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)


def _previous_puzzle_id(puzzle_id: str) -> str:
    return (date.fromisoformat(puzzle_id) - timedelta(days=1)).isoformat()


class ProfileStore:
    def __init__(self, path: Path | None = None):
        self.path = path
        self.profile = self._load()

    def _load(self) -> Profile:
        if self.path is None or not self.path.exists():
            return Profile()
        try:
            return Profile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable profile %s: %s", self.path, e)
            return Profile()

    def save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.profile.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save profile %s: %s", self.path, e)

    def get_session(self, puzzle_id: str) -> SessionRecord | None:
        return next((s for s in self.profile.history if s.puzzle_id == puzzle_id), None)

    def has_played(self, puzzle_id: str) -> bool:
        return self.get_session(puzzle_id) is not None

    def _apply(self, record: SessionRecord, sign: int) -> None:
        p = self.profile
        p.total_words_found += sign * record.words_found_count
        p.total_pangrams_found += sign * record.pangram_count
        p.total_score += sign * record.score
        if record.is_genius:
            p.genius_count += sign
        key = achievement_key(record.achievement_level)
        if key in p.achievement_history:
            p.achievement_history[key] += sign

    def _update_streak(self, record: SessionRecord) -> None:
        p = self.profile
        last = p.last_genius_puzzle_id
        previous = _previous_puzzle_id(record.puzzle_id)
        if record.is_genius:
            if last == record.puzzle_id:
                return
            p.current_streak = p.current_streak + 1 if last == previous else 1
            p.last_genius_puzzle_id = record.puzzle_id
        elif last is not None and last < previous:
            # A puzzle day went by without Genius
            p.current_streak = 0
        p.longest_streak = max(p.longest_streak, p.current_streak)

    def record_session(self, record: SessionRecord) -> SessionRecord:
        """Upsert the session for record.puzzle_id; totals count each puzzle once."""
        p = self.profile
        existing = self.get_session(record.puzzle_id)
        if existing is not None:
            self._apply(existing, -1)
            p.history = [s for s in p.history if s.puzzle_id != record.puzzle_id]
        else:
            p.total_games_played += 1
        self._apply(record, +1)
        p.history.insert(0, record)
        p.history = p.history[:HISTORY_LIMIT]
        p.last_played = record.date
        self._update_streak(record)
        self.save()
        return record

    def update_preferences(self, **changes: Any) -> Preferences:
        self.profile.preferences = self.profile.preferences.model_copy(update=changes)
        self.save()
        return self.profile.preferences

    def stats_summary(self) -> dict:
        p = self.profile
        games = p.total_games_played
        return {
            "games_played": games,
            "total_score": p.total_score,
            "average_score": round(p.total_score / games) if games else 0,
            "total_words": p.total_words_found,
            "average_words": round(p.total_words_found / games) if games else 0,
            "total_pangrams": p.total_pangrams_found,
            "genius_count": p.genius_count,
            "genius_rate": round(p.genius_count * 100 / games) if games else 0,
            "current_streak": p.current_streak,
            "longest_streak": p.longest_streak,
            "last_played": p.last_played.isoformat() if p.last_played else None,
        }

    def reset(self) -> None:
        self.profile = Profile()
        self.save()
