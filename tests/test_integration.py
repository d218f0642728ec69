# tests/test_integration.py
"""End-to-end test of the core workflow."""
from functools import partial

from jlpt_drill.content import SqliteContentStore
from jlpt_drill.db import init_db
from jlpt_drill.mistakes import get_mistake_details, record_mistake
from jlpt_drill.models import DailyFilter, DailyRef, ExamFilter
from jlpt_drill.pool import find_pool
from jlpt_drill.progress import AVAILABLE, DONE, LOCKED, ProgressTracker
from jlpt_drill.seed import seed_all
from jlpt_drill.session import COMPLETED, QuizSession
from jlpt_drill.settings import SettingsStore


def answer_all(session, wrong_items=()):
    for i in range(session.total_available):
        session.jump_to(i)
        q = session.current
        if q.item_number in wrong_items:
            picked = next(c for c in q.choices if not c.is_correct)
        else:
            picked = q.correct_choice
        session.pick(picked)
        session.submit()


def test_daily_practice_workflow(tmp_db):
    """Seed, practise the first two days and watch the unlocks advance."""
    init_db(tmp_db)
    seed_all(tmp_db)
    store = SqliteContentStore(tmp_db)
    tracker = ProgressTracker(SettingsStore(tmp_db))
    level, category = tracker.preferred_level(), tracker.preferred_category()
    assert (level, category) == ("N2", "grammar")
    assert tracker.week_statuses(level, category, 1)[:3] == [AVAILABLE, AVAILABLE, LOCKED]

    # Day 1: one wrong answer
    session = QuizSession(mistake_log=partial(record_mistake, tmp_db))
    assert session.load(store, DailyFilter(ref=DailyRef(level, category, 1, 1)))
    answer_all(session, wrong_items=(2,))
    assert session.state == COMPLETED
    assert session.summary()["score"] == 1
    assert tracker.mark_done(level, category, 1, 1) == 1

    # Day 2
    session.load(store, DailyFilter(ref=DailyRef(level, category, 1, 2)))
    answer_all(session)
    tracker.mark_done(level, category, 1, 2)

    tracker.refresh()
    assert tracker.week_statuses(level, category, 1)[:4] == [DONE, DONE, AVAILABLE, LOCKED]

    # Mistakes screen shows the wrong daily answer with its question
    (mistake,) = get_mistake_details(tmp_db, store)
    assert mistake.group_key == "N2-GRAMMAR-0001"
    assert mistake.item_number == 2
    assert mistake.detail is not None
    assert mistake.detail.correct_choice.position != mistake.picked_position


def test_exam_practice_with_relaxation(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    store = SqliteContentStore(tmp_db)

    pool, used = find_pool(store, ExamFilter(level="N3", kind="language", year=2019, month="12"))
    assert used == ExamFilter(level="N3", kind="language", month="12")
    assert [q.identity for q in pool] == [("N3-2021-12", 1), ("N3-2021-12", 2)]

    session = QuizSession(mistake_log=partial(record_mistake, tmp_db))
    session.init(pool, mode="exam", meta=used)
    answer_all(session, wrong_items=(1, 2))
    assert session.score == 0
    assert len(get_mistake_details(tmp_db, store)) == 2
