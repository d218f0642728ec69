import pytest

from jlpt_drill.db import init_db
from jlpt_drill.importer import load_content
from jlpt_drill.models import Choice, PoolQuestion


def make_choices(correct: int = 1, count: int = 4) -> list[dict]:
    return [
        {"position": p, "content": f"choice {p}", "is_correct": p == correct,
         "explanation": "because" if p == correct else None}
        for p in range(1, count + 1)
    ]


CONTENT = {
    "exams": [
        {
            "exam_key": "N2-2022-07",
            "title": "N2 July 2022",
            "questions": [
                {"question_number": 3, "section": "reading", "stem": "N2 reading",
                 "passage": "A short passage.", "choices": make_choices(2)},
                {"question_number": 1, "section": "vocab", "stem": "N2 vocab", "choices": make_choices(1)},
                {"question_number": 2, "section": "grammar", "stem": "N2 grammar", "choices": make_choices(3)},
            ],
        },
        {
            "exam_key": "N2-2021-12",
            "title": "N2 December 2021",
            "questions": [
                {"question_number": 1, "section": "vocab", "stem": "N2 2021 vocab", "choices": make_choices(4)},
            ],
        },
        {
            "level": "N3", "year": 2022, "month": "07",
            "title": "N3 July 2022",
            "questions": [
                {"question_number": 1, "section": "grammar", "stem": "N3 grammar", "choices": make_choices(1)},
            ],
        },
        {
            # Source file labels July with a single digit.
            "exam_key": "N4-2019-7", "level": "N4", "year": 2019, "month": "7",
            "title": "N4 July 2019",
            "questions": [
                {"question_number": 1, "section": "vocab", "stem": "N4 vocab", "choices": make_choices(2)},
            ],
        },
    ],
    "daily": [
        {
            "level": "N2", "category": "grammar", "week": 1, "day": 1,
            "questions": [
                {"item_number": 2, "stem": "daily two", "choices": make_choices(2)},
                {"item_number": 1, "stem": "daily one", "choices": make_choices(1)},
            ],
        },
        {
            "daily_key": "N3-VOCAB-0010",
            "questions": [
                {"item_number": 1, "question_type": "vocab", "stem": "N3 day ten", "choices": make_choices(3)},
            ],
        },
    ],
}


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_drill.db")
    return db_path


@pytest.fixture
def content_db(tmp_db):
    """A temporary database with a small set of exams and daily sets loaded."""
    init_db(tmp_db)
    load_content(tmp_db, CONTENT)
    return tmp_db


def make_question(group_key: str, item_number: int, correct: int = 1,
                  section: str = "vocab") -> PoolQuestion:
    return PoolQuestion(
        group_key=group_key,
        item_number=item_number,
        section=section,
        stem=f"{group_key} #{item_number}",
        choices=tuple(
            Choice(position=p, content=f"choice {p}", is_correct=p == correct)
            for p in range(1, 5)
        ),
    )


class FakeContentStore:
    """In-memory content store that records every query it receives."""

    def __init__(self, exam_rows=None, daily_rows=None):
        self.exam_rows = exam_rows or {}
        self.daily_rows = daily_rows or {}
        self.calls = []

    def fetch_exam_questions(self, levels, year, month, sections):
        self.calls.append(("questions", tuple(levels), year, month, tuple(sections)))
        return list(self.exam_rows.get(month, []))

    def fetch_exam_paper(self, exam_key, sections):
        self.calls.append(("paper", exam_key, tuple(sections)))
        return []

    def fetch_daily_questions(self, daily_key):
        self.calls.append(("daily", daily_key))
        return list(self.daily_rows.get(daily_key, []))


class MemoryStore:
    """Dict-backed key-value store."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
