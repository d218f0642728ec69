"""Import exam papers and daily sets from JSON or YAML files."""
import json
import logging
import sqlite3
from pathlib import Path

from jlpt_drill.db import get_connection
from jlpt_drill.keys import daily_key, exam_key, parse_daily_key, parse_exam_key

logger = logging.getLogger(__name__)


def read_content_file(file_path: str) -> dict:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported content file type: {suffix or path.name}")
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: expected a mapping with 'exams' and/or 'daily'")
    return data


def _exam_identity(exam: dict) -> tuple[str, str, int, str]:
    """(exam_key, level, year, month) with month kept as the file spells it."""
    if "level" in exam and "year" in exam and "month" in exam:
        month = str(exam["month"])
        key = exam.get("exam_key") or exam_key(exam["level"], int(exam["year"]), month.zfill(2))
        return key, exam["level"], int(exam["year"]), month
    parsed = parse_exam_key(exam.get("exam_key", ""))
    if parsed is None:
        raise ValueError(f"Exam needs exam_key or level/year/month: {exam.get('exam_key')!r}")
    return exam["exam_key"], parsed.level, parsed.year, parsed.month


def _daily_identity(daily: dict) -> tuple[str, str, str, int, int]:
    if "daily_key" in daily:
        ref = parse_daily_key(daily["daily_key"])
        if ref is None:
            raise ValueError(f"Malformed daily_key: {daily['daily_key']!r}")
        return daily["daily_key"], ref.level, ref.category, ref.week, ref.day
    level, category = daily["level"], daily["category"]
    week, day = int(daily["week"]), int(daily["day"])
    return daily_key(level, category, week, day), level, category, week, day


def _item_number(question: dict, field: str, key: str) -> int:
    number = question.get(field, question.get("number"))
    if number is None:
        raise ValueError(f"{key}: question without {field}: {question.get('stem')!r}")
    return int(number)


def _insert_choices(conn: sqlite3.Connection, table: str, key_column: str,
                    number_column: str, key: str, number: int, choices: list) -> int:
    for i, choice in enumerate(choices, 1):
        conn.execute(
            f"""INSERT INTO {table} ({key_column}, {number_column}, position, content, is_correct, explanation)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT({key_column}, {number_column}, position)
            DO UPDATE SET content=excluded.content, is_correct=excluded.is_correct,
                explanation=excluded.explanation""",
            (key, number, choice.get("position", i), choice["content"],
             int(bool(choice.get("is_correct"))), choice.get("explanation")),
        )
    return len(choices)


def _load_exam(conn: sqlite3.Connection, exam: dict) -> tuple[int, int]:
    key, level, year, month = _exam_identity(exam)
    conn.execute(
        """INSERT INTO exams (exam_key, level, year, month, title) VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(exam_key) DO UPDATE SET level=excluded.level, year=excluded.year,
            month=excluded.month, title=excluded.title""",
        (key, level, year, month, exam.get("title") or key),
    )
    choice_count = 0
    questions = exam.get("questions", [])
    for q in questions:
        number = _item_number(q, "question_number", key)
        conn.execute(
            """INSERT INTO questions (exam_key, question_number, section, stem, passage)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(exam_key, question_number) DO UPDATE SET section=excluded.section,
                stem=excluded.stem, passage=excluded.passage""",
            (key, number, q["section"], q["stem"], q.get("passage")),
        )
        choice_count += _insert_choices(conn, "choices", "exam_key", "question_number",
                                        key, number, q.get("choices", []))
    return len(questions), choice_count


def _load_daily(conn: sqlite3.Connection, daily: dict) -> tuple[int, int]:
    key, level, category, week, day = _daily_identity(daily)
    conn.execute(
        """INSERT INTO daily_sets (daily_key, level, category, week, day) VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(daily_key) DO UPDATE SET level=excluded.level, category=excluded.category,
            week=excluded.week, day=excluded.day""",
        (key, level, category, week, day),
    )
    choice_count = 0
    questions = daily.get("questions", [])
    for q in questions:
        number = _item_number(q, "item_number", key)
        conn.execute(
            """INSERT INTO daily_questions (daily_key, item_number, question_type, stem, passage)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(daily_key, item_number) DO UPDATE SET question_type=excluded.question_type,
                stem=excluded.stem, passage=excluded.passage""",
            (key, number, q.get("question_type", category), q["stem"], q.get("passage")),
        )
        choice_count += _insert_choices(conn, "daily_choices", "daily_key", "item_number",
                                        key, number, q.get("choices", []))
    return len(questions), choice_count


def load_content(db_path: str, data: dict) -> dict:
    """Upsert exams and daily sets from an already-parsed content mapping."""
    counts = {"exams": 0, "daily_sets": 0, "questions": 0, "choices": 0}
    conn = get_connection(db_path)
    try:
        for exam in data.get("exams", []):
            questions, choices = _load_exam(conn, exam)
            counts["exams"] += 1
            counts["questions"] += questions
            counts["choices"] += choices
        for daily in data.get("daily", []):
            questions, choices = _load_daily(conn, daily)
            counts["daily_sets"] += 1
            counts["questions"] += questions
            counts["choices"] += choices
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    logger.info("Loaded content: %s", counts)
    return counts


def import_file(db_path: str, file_path: str) -> dict:
    """Import a content file into the database."""
    counts = load_content(db_path, read_content_file(file_path))
    return {"filename": Path(file_path).name, **counts}
