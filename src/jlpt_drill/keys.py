"""Daily and exam key encoding."""
import re
from typing import NamedTuple, Optional

from jlpt_drill.models import DAYS_PER_WEEK, MAX_WEEK, DailyRef

EXAM_KEY_RE = re.compile(r"^(N[1-5])-(\d{4})-(07|12)$")
DAILY_KEY_RE = re.compile(r"^(N[1-5])-(GRAMMAR|VOCAB)-(\d{4})$")

MONTH_LABELS = {"07": "July", "12": "December"}


class ExamKey(NamedTuple):
    level: str
    year: int
    month: str


def daily_seq(week: int, day: int) -> int:
    """1-based position of a day across the ten-week course (1..70)."""
    return (week - 1) * DAYS_PER_WEEK + day


def daily_key(level: str, category: str, week: int, day: int) -> str:
    """Build the key of one day's practice set, e.g. N3-VOCAB-0010.

    Callers clamp week into 1..10 and day into 1..7 first.
    """
    return f"{level}-{category.upper()}-{daily_seq(week, day):04d}"


def parse_daily_key(key: str) -> Optional[DailyRef]:
    match = DAILY_KEY_RE.match(key or "")
    if not match:
        return None
    level, category, seq = match.groups()
    seq = int(seq)
    if not 1 <= seq <= MAX_WEEK * DAYS_PER_WEEK:
        return None
    week, day = divmod(seq - 1, DAYS_PER_WEEK)
    return DailyRef(level=level, category=category.lower(), week=week + 1, day=day + 1)


def is_daily_key(key: str) -> bool:
    return bool(DAILY_KEY_RE.match(key or ""))


def exam_key(level: str, year: int, month: str) -> str:
    return f"{level}-{year:04d}-{month}"


def parse_exam_key(key: str) -> Optional[ExamKey]:
    """Split an exam key into level, year and month. Returns None if malformed."""
    match = EXAM_KEY_RE.match(key or "")
    if not match:
        return None
    level, year, month = match.groups()
    return ExamKey(level=level, year=int(year), month=month)


def month_label(month: str) -> str:
    return MONTH_LABELS.get(month, month)
