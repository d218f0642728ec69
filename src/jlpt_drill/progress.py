"""Week/day unlock progression for daily practice."""
import json
import logging
import sqlite3
from typing import Optional

from jlpt_drill.models import CATEGORIES, DAYS_PER_WEEK, LEVELS, MAX_WEEK

logger = logging.getLogger(__name__)

LOCKED = "locked"
AVAILABLE = "available"
DONE = "done"

COMPLETED_KEY = "progress.completed"
LEVEL_KEY = "user.level"
CATEGORY_KEY = "user.pick"
DEFAULT_LEVEL = "N2"
DEFAULT_CATEGORY = "grammar"

STORE_ERRORS = (sqlite3.Error, OSError)


def unlocked_week_key(level: str, category: str) -> str:
    return f"progress.unlockedWeek.{level}.{category}"


def completion_token(level: str, category: str, week: int, day: int) -> str:
    return f"{level}|{category}|{week}|{day}"


def day_status(level: str, category: str, week: int, day: int,
               unlocked_week: int, completed_tokens) -> str:
    """Status of one day card: locked, available or done."""
    if week > unlocked_week:
        return LOCKED

    def is_done(d: int) -> bool:
        return completion_token(level, category, week, d) in completed_tokens

    if is_done(day):
        return DONE
    # Week 1 opens its first two days together.
    if week == 1 and day in (1, 2) and not is_done(1) and not is_done(2):
        return AVAILABLE
    if all(is_done(d) for d in range(1, day)):
        return AVAILABLE
    return LOCKED


def week_statuses(level: str, category: str, week: int,
                  unlocked_week: int, completed_tokens) -> list[str]:
    return [
        day_status(level, category, week, day, unlocked_week, completed_tokens)
        for day in range(1, DAYS_PER_WEEK + 1)
    ]


def week_done_count(level: str, category: str, week: int, completed_tokens) -> int:
    return sum(
        1 for day in range(1, DAYS_PER_WEEK + 1)
        if completion_token(level, category, week, day) in completed_tokens
    )


def _parse_completed(raw: Optional[str]) -> set:
    if not raw:
        return set()
    try:
        tokens = json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable completed set: %r", raw)
        return set()
    if not isinstance(tokens, list):
        return set()
    return {str(t) for t in tokens}


def _clamp_week(raw: Optional[str]) -> int:
    try:
        week = int(raw) if raw is not None else 1
    except ValueError:
        return 1
    return min(max(1, week), MAX_WEEK)


class ProgressTracker:
    """Unlocked weeks and completed days, persisted through a key-value store.

    Reads are cached as a snapshot until refresh(); other screens may have
    written progress in the meantime, so callers refresh whenever they regain focus.
    Storage failures are logged and read back as "nothing unlocked yet".
    """

    def __init__(self, store):
        self.store = store
        self._completed: Optional[set] = None
        self._unlocked: dict[tuple[str, str], int] = {}

    def refresh(self) -> None:
        self._completed = None
        self._unlocked = {}

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.store.get(key)
        except STORE_ERRORS:
            logger.exception("Failed to read %s", key)
            return None

    def _write(self, key: str, value: str) -> bool:
        try:
            self.store.set(key, value)
        except STORE_ERRORS:
            logger.exception("Failed to write %s", key)
            return False
        return True

    def _load_completed(self) -> set:
        return _parse_completed(self._read(COMPLETED_KEY))

    def _load_unlocked(self, level: str, category: str) -> int:
        return _clamp_week(self._read(unlocked_week_key(level, category)))

    def completed_tokens(self) -> frozenset:
        if self._completed is None:
            self._completed = self._load_completed()
        return frozenset(self._completed)

    def unlocked_week(self, level: str, category: str) -> int:
        pair = (level, category)
        if pair not in self._unlocked:
            self._unlocked[pair] = self._load_unlocked(level, category)
        return self._unlocked[pair]

    def day_status(self, level: str, category: str, week: int, day: int) -> str:
        return day_status(level, category, week, day,
                          self.unlocked_week(level, category), self.completed_tokens())

    def week_statuses(self, level: str, category: str, week: int) -> list[str]:
        return week_statuses(level, category, week,
                             self.unlocked_week(level, category), self.completed_tokens())

    def mark_done(self, level: str, category: str, week: int, day: int) -> int:
        """Record a finished day; unlock the next week once all seven days are done.

        Returns the unlocked week for (level, category) after the call. Nothing
        is written unless both stored values were read back first.
        """
        if not 1 <= week <= MAX_WEEK:
            raise ValueError(f"week must be 1..{MAX_WEEK}, got {week}")
        if not 1 <= day <= DAYS_PER_WEEK:
            raise ValueError(f"day must be 1..{DAYS_PER_WEEK}, got {day}")

        pair = (level, category)
        try:
            raw_completed = self.store.get(COMPLETED_KEY)
            raw_unlocked = self.store.get(unlocked_week_key(level, category))
        except STORE_ERRORS:
            logger.exception("Failed to read progress, %s %s week %d day %d not saved",
                             level, category, week, day)
            return self._unlocked.get(pair, 1)

        unlocked = _clamp_week(raw_unlocked)
        self._unlocked[pair] = unlocked
        completed = _parse_completed(raw_completed)
        completed.add(completion_token(level, category, week, day))
        if not self._write(COMPLETED_KEY, json.dumps(sorted(completed))):
            return unlocked
        self._completed = completed

        week_done = week_done_count(level, category, week, completed) == DAYS_PER_WEEK
        if week_done and week >= unlocked and week < MAX_WEEK:
            new_week = max(unlocked, week + 1)
            if self._write(unlocked_week_key(level, category), str(new_week)):
                logger.info("Unlocked week %d for %s %s", new_week, level, category)
                unlocked = new_week
                self._unlocked[pair] = unlocked
        return unlocked

    def preferred_level(self) -> str:
        level = self._read(LEVEL_KEY)
        return level if level in LEVELS else DEFAULT_LEVEL

    def set_preferred_level(self, level: str) -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown level: {level!r}")
        self._write(LEVEL_KEY, level)

    def preferred_category(self) -> str:
        category = self._read(CATEGORY_KEY)
        return category if category in CATEGORIES else DEFAULT_CATEGORY

    def set_preferred_category(self, category: str) -> None:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category!r}")
        self._write(CATEGORY_KEY, category)
