"""
Localhost frontend and API for the daily bee.
Run: uvicorn daily_bee.app:app --reload --host 0.0.0.0
Then open http://localhost:8000
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, HTMLResponse
from pydantic import BaseModel

from .config import Settings
from .dictionary import WordDictionary
from .game import GameSession
from .generator import Puzzle
from .profile import ProfileStore
from .schedule import PuzzleScheduler
from .validation import ValidationService, normalize_word

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything one running app owns. Built once at startup."""

    settings: Settings
    dictionary: WordDictionary
    scheduler: PuzzleScheduler
    validator: ValidationService
    profiles: ProfileStore
    # Current game by puzzle id (only today's is kept)
    games: dict[str, GameSession] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        dictionary = WordDictionary.from_settings(settings)
        return cls(
            settings=settings,
            dictionary=dictionary,
            scheduler=PuzzleScheduler.from_settings(settings, dictionary),
            validator=ValidationService(dictionary, max_cache=settings.validation_cache_size),
            profiles=ProfileStore(settings.profile_path),
        )

    def game_for(self, puzzle: Puzzle) -> GameSession:
        game = self.games.get(puzzle.puzzle_id)
        if game is None:
            self.games.clear()
            game = GameSession.from_record(puzzle, self.profiles.get_session(puzzle.puzzle_id))
            self.games[puzzle.puzzle_id] = game
        return game


class WordRequest(BaseModel):
    word: str = ""


class PreferencesRequest(BaseModel):
    show_hints: bool | None = None
    sort_order: str | None = None
    celebrations_enabled: bool | None = None
    sound_enabled: bool | None = None


def _services(request: Request) -> Services:
    return request.app.state.services


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or (services.settings if services else Settings.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.services = services or Services.from_settings(settings)
        # Start loading now; the fallback word list is usable immediately
        load_task = asyncio.create_task(app.state.services.dictionary.load())
        yield
        if not load_task.done():
            load_task.cancel()
        await app.state.services.dictionary.aclose()

    app = FastAPI(title="Daily Bee", lifespan=lifespan)

    @app.get("/api/today")
    async def api_today(request: Request, reveal_answer: bool = False):
        """Return today's puzzle and the player's progress. Includes the answers if reveal_answer=true."""
        s = _services(request)
        puzzle = await s.scheduler.get_todays_puzzle()
        game = s.game_for(puzzle)
        out = {
            "ok": True,
            "puzzle_id": puzzle.puzzle_id,
            "letters": list(puzzle.letters),
            "center_letter": puzzle.center_letter,
            "word_count": puzzle.word_count,
            "max_score": puzzle.max_score,
            "pangram_count": puzzle.pangram_count,
            "is_fallback": puzzle.is_fallback,
            "next_puzzle_in": s.scheduler.time_until_next_puzzle().total_seconds(),
            "resumed": s.profiles.has_played(puzzle.puzzle_id),
            "found_words": list(game.found_words),
            "progress": game.progress(),
        }
        if reveal_answer:
            out["valid_words"] = list(puzzle.valid_words)
        return out

    @app.post("/api/validate")
    async def api_validate(request: Request, body: WordRequest):
        """Live check of the word being typed against today's letters."""
        s = _services(request)
        puzzle = await s.scheduler.get_todays_puzzle()
        verdict = await s.validator.schedule(body.word, puzzle.letters, puzzle.center_letter)
        return {"ok": True, "word": normalize_word(body.word), **verdict.to_dict()}

    @app.post("/api/submit")
    async def api_submit(request: Request, body: WordRequest):
        """Submit a word for today's puzzle; accepted words are saved to the profile."""
        s = _services(request)
        puzzle = await s.scheduler.get_todays_puzzle()
        game = s.game_for(puzzle)
        result = game.submit(body.word)
        if result.accepted:
            s.profiles.record_session(game.to_record())
        return {"ok": True, **result._asdict(), "progress": game.progress()}

    @app.post("/api/shuffle")
    async def api_shuffle(request: Request):
        s = _services(request)
        puzzle = await s.scheduler.get_todays_puzzle()
        return {"ok": True, "letters": list(s.game_for(puzzle).shuffle())}

    @app.get("/api/session")
    async def api_session(request: Request):
        """Today's saved session, if the player has played it."""
        s = _services(request)
        record = s.profiles.get_session(s.scheduler.active_puzzle_id())
        if record is None:
            return {"ok": False, "error": "No session for today's puzzle yet."}
        return {"ok": True, "session": record.model_dump(mode="json")}

    @app.get("/api/stats")
    async def api_stats(request: Request):
        s = _services(request)
        return {"ok": True, "player": s.profiles.stats_summary(), "puzzles": s.scheduler.stats()}

    @app.post("/api/stats/reset")
    async def api_stats_reset(request: Request):
        """Forget every session and start a new profile."""
        s = _services(request)
        s.profiles.reset()
        s.games.clear()
        return {"ok": True, "player": s.profiles.stats_summary()}

    @app.get("/api/preferences")
    async def api_preferences(request: Request):
        return {"ok": True, "preferences": _services(request).profiles.profile.preferences.model_dump()}

    @app.post("/api/preferences")
    async def api_update_preferences(request: Request, body: PreferencesRequest):
        """Update only the preferences present in the body."""
        prefs = _services(request).profiles.update_preferences(**body.model_dump(exclude_none=True))
        return {"ok": True, "preferences": prefs.model_dump()}

    @app.get("/api/countdown")
    async def api_countdown(request: Request):
        s = _services(request)
        return {"ok": True, "next_puzzle_in": s.scheduler.time_until_next_puzzle().total_seconds()}

    @app.get("/api/dictionary")
    async def api_dictionary(request: Request):
        return {"ok": True, **_services(request).dictionary.stats()}

    @app.get("/", response_class=HTMLResponse)
    def index():
        """Serve the game page."""
        html_path = settings.static_dir / "index.html"
        if html_path.exists():
            return FileResponse(html_path)
        return HTMLResponse(_fallback_html())

    return app


def _fallback_html() -> str:
    return """<!DOCTYPE html>
<html><head><meta charset="utf-8"><title>Daily Bee</title></head>
<body><h1>Daily Bee</h1>
<p>No page installed (add daily_bee/static/index.html). The game is playable through the API:</p>
<ul>
<li>GET <a href="/api/today">/api/today</a>: today's letters and your progress</li>
<li>POST /api/submit {"word": "..."}: submit a word</li>
<li>POST /api/validate {"word": "..."}: check a word as you type</li>
<li>GET <a href="/api/stats">/api/stats</a>: your totals and streaks</li>
<li>GET <a href="/docs">/docs</a>: every endpoint</li>
</ul></body></html>"""


app = create_app()
