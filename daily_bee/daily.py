"""
Print today's puzzle (letters + answer key). Run: python -m daily_bee.daily [--date YYYY-MM-DD] [--reveal]
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date

from .config import Settings
from .dictionary import WordDictionary
from .schedule import PuzzleScheduler
from .scoring import score


async def _get_puzzle(settings: Settings, puzzle_date: date | None):
    dictionary = WordDictionary.from_settings(settings)
    scheduler = PuzzleScheduler.from_settings(settings, dictionary)
    if puzzle_date is None:
        return await scheduler.get_todays_puzzle(), scheduler
    return await scheduler.get_puzzle_for_date(puzzle_date), scheduler


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Show the daily bee puzzle.")
    parser.add_argument("--date", type=date.fromisoformat, help="puzzle date (default: the live puzzle)")
    parser.add_argument("--reveal", action="store_true", help="print every answer")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    puzzle, scheduler = asyncio.run(_get_puzzle(Settings.from_env(), args.date))
    outer = " ".join(ch.upper() for ch in puzzle.outer_letters)
    print(f"Puzzle {puzzle.puzzle_id}")
    print(f"  Center: {puzzle.center_letter.upper()}   Outer: {outer}")
    print(f"  {puzzle.word_count} words, {puzzle.pangram_count} pangram(s), {puzzle.max_score} points")
    print(f"  (attempts={puzzle.attempts}, fallback={puzzle.is_fallback})")
    if args.date is None:
        remaining = scheduler.time_until_next_puzzle()
        hours, rest = divmod(int(remaining.total_seconds()), 3600)
        print(f"  Next puzzle in {hours}h {rest // 60:02d}m")
    if args.reveal:
        print()
        print("Answers:")
        for w in puzzle.valid_words:
            mark = " *" if w in puzzle.pangrams else ""
            print(f"  {w} ({score(w)}){mark}")


if __name__ == "__main__":
    main()
