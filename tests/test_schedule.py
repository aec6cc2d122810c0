from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from daily_bee import schedule as schedule_module
from daily_bee.dictionary import WordDictionary
from daily_bee.generator import LetterSet, date_key, generate_letters
from daily_bee.schedule import PuzzleCache, PuzzleScheduler

from conftest import make_puzzle, passing_words

LA = ZoneInfo("America/Los_Angeles")


def _scheduler(dictionary=None, cache=None, **kwargs) -> PuzzleScheduler:
    if dictionary is None:
        dictionary = WordDictionary.from_words(["apple"])
    return PuzzleScheduler(dictionary, cache if cache is not None else PuzzleCache(), **kwargs)


def test_active_date_rolls_over_at_ten():
    s = _scheduler()
    assert s.active_date(datetime(2024, 5, 2, 9, 59, tzinfo=LA)) == date(2024, 5, 1)
    assert s.active_date(datetime(2024, 5, 2, 10, 0, tzinfo=LA)) == date(2024, 5, 2)
    assert s.active_puzzle_id(datetime(2024, 5, 2, 23, 59, tzinfo=LA)) == "2024-05-02"


def test_active_date_uses_reference_zone():
    s = _scheduler()
    # 17:30 UTC is 10:30 in Los Angeles (PDT)
    assert s.active_date(datetime(2024, 5, 2, 17, 30, tzinfo=timezone.utc)) == date(2024, 5, 2)
    # 16:59 UTC is 09:59 PDT
    assert s.active_date(datetime(2024, 5, 2, 16, 59, tzinfo=timezone.utc)) == date(2024, 5, 1)
    # Naive datetimes are reference-zone wall time
    assert s.active_date(datetime(2024, 5, 2, 9, 59)) == date(2024, 5, 1)


def test_custom_rollover():
    s = _scheduler(rollover=time(0, 0), tz="UTC")
    assert s.active_date(datetime(2024, 5, 2, 0, 0, tzinfo=timezone.utc)) == date(2024, 5, 2)


def test_time_until_next_puzzle():
    s = _scheduler()
    assert s.time_until_next_puzzle(datetime(2024, 5, 2, 9, 0, tzinfo=LA)) == timedelta(hours=1)
    assert s.time_until_next_puzzle(datetime(2024, 5, 2, 10, 0, tzinfo=LA)) == timedelta(hours=24)
    assert s.time_until_next_puzzle(datetime(2024, 5, 2, 23, 30, tzinfo=LA)) == timedelta(hours=10, minutes=30)


def test_time_until_next_puzzle_across_dst():
    s = _scheduler()
    # Clocks spring forward overnight on 2024-03-10
    assert s.time_until_next_puzzle(datetime(2024, 3, 9, 12, 0, tzinfo=LA)) == timedelta(hours=21)


def test_clock_is_used_when_now_is_omitted():
    s = _scheduler(clock=lambda: datetime(2024, 5, 2, 9, 0, tzinfo=LA))
    assert s.active_puzzle_id() == "2024-05-01"
    assert s.time_until_next_puzzle() == timedelta(hours=1)


def test_cache_never_replaces_a_puzzle(letter_set):
    cache = PuzzleCache()
    first = make_puzzle("2024-05-01", letter_set)
    other = make_puzzle("2024-05-01", LetterSet.of("abcdefg", "a"))
    assert cache.put(first) is first
    assert cache.put(other) is first
    assert cache.get("2024-05-01") is first


def test_purge_drops_only_entries_older_than_retention(letter_set):
    cache = PuzzleCache(retention_days=7)
    start = date(2024, 1, 1)
    for i in range(10):
        cache.put(make_puzzle(date_key(start + timedelta(days=i)), letter_set))
    # Latest write is 2024-01-10: the cutoff is 2024-01-03, which stays
    assert cache.keys()[0] == "2024-01-03"
    assert len(cache) == 8


def test_cache_persists_to_json(tmp_path, letter_set):
    path = tmp_path / "puzzles.json"
    cache = PuzzleCache(path)
    p = make_puzzle("2024-05-01", letter_set)
    cache.put(p)
    assert json.loads(path.read_text())["2024-05-01"]["center_letter"] == "p"
    reloaded = PuzzleCache(path)
    assert reloaded.get("2024-05-01") == p


def test_corrupt_cache_file_is_ignored(tmp_path):
    path = tmp_path / "puzzles.json"
    path.write_text("{not json")
    assert len(PuzzleCache(path)) == 0
    path.write_text(json.dumps({"2024-05-01": {"letters": "nope"}}))
    assert len(PuzzleCache(path)) == 0


def test_get_puzzle_generates_once(monkeypatch):
    d = date(2024, 5, 1)
    dictionary = WordDictionary.from_words(passing_words(generate_letters(date_key(d))))
    calls = []
    real = schedule_module.generate_puzzle

    def counting(*args, **kwargs):
        calls.append(args[0])
        return real(*args, **kwargs)

    monkeypatch.setattr(schedule_module, "generate_puzzle", counting)
    s = _scheduler(dictionary)

    async def run():
        a, b = await asyncio.gather(s.get_puzzle_for_date(d), s.get_puzzle_for_date(d))
        c = await s.get_puzzle_for_date(d)
        return a, b, c

    a, b, c = asyncio.run(run())
    assert calls == [d]
    assert a is b is c
    assert not a.is_fallback


def test_get_todays_puzzle_uses_active_date():
    s = _scheduler(clock=lambda: datetime(2024, 5, 2, 9, 30, tzinfo=LA))
    puzzle = asyncio.run(s.get_todays_puzzle())
    assert puzzle.puzzle_id == "2024-05-01"
    assert "2024-05-01" in s.cache


def test_get_puzzle_loads_the_dictionary_first():
    dictionary = WordDictionary(search_system=False)
    s = _scheduler(dictionary, max_attempts=2)
    puzzle = asyncio.run(s.get_puzzle_for_date(date(2024, 5, 1)))
    assert dictionary.is_complete
    assert puzzle.puzzle_id == "2024-05-01"


def test_stats(letter_set):
    cache = PuzzleCache()
    cache.put(make_puzzle("2024-05-01", letter_set))
    cache.put(make_puzzle("2024-05-02", letter_set))
    stats = _scheduler(cache=cache).stats(datetime(2024, 5, 2, 9, 0, tzinfo=LA))
    assert stats == {
        "cached_puzzles": 2,
        "oldest_date": "2024-05-01",
        "newest_date": "2024-05-02",
        "next_puzzle_in": 3600.0,
    }


def test_reference_time_converts_to_zone():
    s = _scheduler()
    local = s.reference_time(datetime(2024, 1, 1, 12, tzinfo=timezone.utc))
    assert local.tzinfo == LA
    assert local.hour == 4
