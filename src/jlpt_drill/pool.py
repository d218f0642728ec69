"""Question pool construction for exam and daily practice."""
import dataclasses
import logging
from typing import Optional

from jlpt_drill.keys import daily_key, exam_key
from jlpt_drill.models import (
    LEVELS, MONTHS, DailyFilter, ExamFilter, PoolFilter, PoolQuestion,
)

logger = logging.getLogger(__name__)

RANDOM_PAIR_LEVELS = ("N2", "N3")

KIND_SECTIONS = {
    "language": ("vocab", "grammar"),
    "reading": ("reading",),
    # No listening content is served yet.
    "listening": (),
}

WHOLE_PAPER_SECTIONS = ("vocab", "grammar", "reading")

ALTERNATE_MONTHS = {"07": "7", "7": "07"}


def resolve_levels(level: str) -> tuple:
    if level == "all":
        return LEVELS
    if level == "random-pair":
        return RANDOM_PAIR_LEVELS
    return (level,)


def resolve_sections(kind: str, whole_paper: bool = False) -> tuple:
    if whole_paper:
        return WHOLE_PAPER_SECTIONS
    return KIND_SECTIONS[kind]


def alternate_month(month: Optional[str]) -> Optional[str]:
    """The other encoding of the same session month, if there is one."""
    return ALTERNATE_MONTHS.get(month)


def daily_key_for(pool_filter: DailyFilter) -> str:
    if pool_filter.daily_key:
        return pool_filter.daily_key
    ref = pool_filter.ref
    return daily_key(ref.level, ref.category, ref.week, ref.day)


def dedupe_and_sort(questions) -> list[PoolQuestion]:
    """Drop repeated (group_key, item_number) pairs, first wins, and sort by identity."""
    unique = {}
    for q in questions:
        unique.setdefault(q.identity, q)
    return sorted(unique.values(), key=lambda q: q.identity)


def _build_daily_pool(store, pool_filter: DailyFilter) -> list[PoolQuestion]:
    key = daily_key_for(pool_filter)
    rows = sorted(store.fetch_daily_questions(key), key=lambda q: q.item_number)
    pool = []
    seen = set()
    for q in rows:
        if q.item_number in seen:
            continue
        seen.add(q.item_number)
        pool.append(q)
    if not pool:
        logger.info("Daily set %s has no questions", key)
    return pool


def _fetch_exam_rows(store, levels: tuple, year: Optional[int], month: Optional[str],
                     sections: tuple) -> list[PoolQuestion]:
    if len(levels) == 1 and year is not None and month in MONTHS:
        rows = store.fetch_exam_paper(exam_key(levels[0], year, month), sections)
        if rows:
            return rows
    return store.fetch_exam_questions(levels, year, month, sections)


def _build_exam_pool(store, pool_filter: ExamFilter) -> list[PoolQuestion]:
    levels = resolve_levels(pool_filter.level)
    sections = resolve_sections(pool_filter.kind, pool_filter.whole_paper)
    if not sections:
        return []
    month = pool_filter.effective_month
    rows = _fetch_exam_rows(store, levels, pool_filter.year, month, sections)
    if not rows and month is not None:
        alt = alternate_month(month)
        if alt is not None:
            logger.info("No questions for month %s, retrying as %s", month, alt)
            rows = _fetch_exam_rows(store, levels, pool_filter.year, alt, sections)
    pool = dedupe_and_sort(rows)
    if not pool:
        logger.info("No exam questions for %s", pool_filter)
    return pool


def build_pool(store, pool_filter: PoolFilter) -> list[PoolQuestion]:
    """Resolve a filter into an ordered, de-duplicated list of questions.

    An empty list means the content has nothing for this exact filter; the
    caller decides whether to relax() and try again.
    """
    if isinstance(pool_filter, DailyFilter):
        return _build_daily_pool(store, pool_filter)
    return _build_exam_pool(store, pool_filter)


def relax(pool_filter: PoolFilter) -> Optional[ExamFilter]:
    """One step of the relaxation cascade: drop year, then month. None when exhausted."""
    if not isinstance(pool_filter, ExamFilter):
        return None
    if pool_filter.year is not None:
        return dataclasses.replace(pool_filter, year=None)
    if pool_filter.month is not None or pool_filter.session is not None:
        return dataclasses.replace(pool_filter, month=None, session=None)
    return None


def find_pool(store, pool_filter: PoolFilter) -> tuple[list[PoolQuestion], PoolFilter]:
    """Build a pool, relaxing the filter one step at a time until something matches.

    Returns the pool and the filter that produced it.
    """
    current = pool_filter
    while True:
        pool = build_pool(store, current)
        if pool:
            return pool, current
        relaxed = relax(current)
        if relaxed is None:
            return pool, current
        logger.info("Relaxing filter %s -> %s", current, relaxed)
        current = relaxed
