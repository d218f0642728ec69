"""Read-only access to exam and daily question content."""
import logging
import sqlite3
from typing import Optional

from jlpt_drill.db import get_connection
from jlpt_drill.keys import is_daily_key
from jlpt_drill.models import Choice, PoolQuestion

logger = logging.getLogger(__name__)


def _placeholders(values) -> str:
    return ", ".join("?" for _ in values)


def _choices(conn: sqlite3.Connection, table: str, key_column: str, number_column: str,
             key: str, number: int) -> tuple:
    rows = conn.execute(
        f"""SELECT position, content, is_correct, explanation FROM {table}
        WHERE {key_column} = ? AND {number_column} = ?
        ORDER BY position""",
        (key, number),
    ).fetchall()
    return tuple(
        Choice(
            position=r["position"],
            content=r["content"],
            is_correct=bool(r["is_correct"]),
            explanation=r["explanation"],
        )
        for r in rows
    )


def _exam_question(conn: sqlite3.Connection, row: sqlite3.Row) -> PoolQuestion:
    return PoolQuestion(
        group_key=row["exam_key"],
        item_number=row["question_number"],
        section=row["section"],
        stem=row["stem"],
        passage=row["passage"],
        choices=_choices(conn, "choices", "exam_key", "question_number",
                         row["exam_key"], row["question_number"]),
    )


def _daily_question(conn: sqlite3.Connection, row: sqlite3.Row) -> PoolQuestion:
    return PoolQuestion(
        group_key=row["daily_key"],
        item_number=row["item_number"],
        section="grammar" if row["question_type"] == "grammar" else "vocab",
        stem=row["stem"],
        passage=row["passage"],
        choices=_choices(conn, "daily_choices", "daily_key", "item_number",
                         row["daily_key"], row["item_number"]),
    )


class SqliteContentStore:
    """Content collaborator backed by the local SQLite database.

    The pool builder only relies on the fetch_* methods, so any object with the
    same methods (an in-memory fake, a remote mirror) can stand in for it.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def fetch_exam_questions(self, levels, year: Optional[int], month: Optional[str],
                             sections) -> list[PoolQuestion]:
        """Questions from every exam matching levels x year x month, limited to sections."""
        if not levels or not sections:
            return []
        conds = [f"e.level IN ({_placeholders(levels)})",
                 f"q.section IN ({_placeholders(sections)})"]
        params = [*levels, *sections]
        if year is not None:
            conds.append("e.year = ?")
            params.append(year)
        if month is not None:
            conds.append("e.month = ?")
            params.append(month)
        conn = get_connection(self.db_path)
        rows = conn.execute(
            f"""SELECT q.exam_key, q.question_number, q.section, q.stem, q.passage
            FROM questions q
            JOIN exams e ON e.exam_key = q.exam_key
            WHERE {' AND '.join(conds)}
            ORDER BY q.exam_key, q.question_number""",
            params,
        ).fetchall()
        questions = [_exam_question(conn, r) for r in rows]
        conn.close()
        logger.debug("exam query levels=%s year=%s month=%s sections=%s -> %d rows",
                     levels, year, month, sections, len(questions))
        return questions

    def fetch_exam_paper(self, exam_key: str, sections) -> list[PoolQuestion]:
        """Questions of one paper looked up by its exam key."""
        if not sections:
            return []
        conn = get_connection(self.db_path)
        rows = conn.execute(
            f"""SELECT exam_key, question_number, section, stem, passage
            FROM questions
            WHERE exam_key = ? AND section IN ({_placeholders(sections)})
            ORDER BY question_number""",
            (exam_key, *sections),
        ).fetchall()
        questions = [_exam_question(conn, r) for r in rows]
        conn.close()
        return questions

    def fetch_daily_questions(self, daily_key: str) -> list[PoolQuestion]:
        conn = get_connection(self.db_path)
        rows = conn.execute(
            """SELECT daily_key, item_number, question_type, stem, passage
            FROM daily_questions
            WHERE daily_key = ?
            ORDER BY item_number""",
            (daily_key,),
        ).fetchall()
        questions = [_daily_question(conn, r) for r in rows]
        conn.close()
        return questions

    def get_question_detail(self, group_key: str, item_number: int) -> Optional[PoolQuestion]:
        """Look up a single question by identity in the daily or exam tables."""
        conn = get_connection(self.db_path)
        if is_daily_key(group_key):
            row = conn.execute(
                """SELECT daily_key, item_number, question_type, stem, passage
                FROM daily_questions WHERE daily_key = ? AND item_number = ?""",
                (group_key, item_number),
            ).fetchone()
            question = _daily_question(conn, row) if row else None
        else:
            row = conn.execute(
                """SELECT exam_key, question_number, section, stem, passage
                FROM questions WHERE exam_key = ? AND question_number = ?""",
                (group_key, item_number),
            ).fetchone()
            question = _exam_question(conn, row) if row else None
        conn.close()
        return question

    def list_exams(self, level: Optional[str] = None) -> list[dict]:
        """Exam papers with their question counts, newest first."""
        conn = get_connection(self.db_path)
        query = """SELECT e.exam_key, e.level, e.year, e.month, e.title,
            COUNT(q.question_number) as question_count
            FROM exams e
            LEFT JOIN questions q ON q.exam_key = e.exam_key"""
        params = ()
        if level is not None:
            query += " WHERE e.level = ?"
            params = (level,)
        query += " GROUP BY e.exam_key ORDER BY e.year DESC, e.month DESC, e.level"
        rows = conn.execute(query, params).fetchall()
        conn.close()
        return [dict(r) for r in rows]
