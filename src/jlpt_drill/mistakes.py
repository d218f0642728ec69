"""Append-only log of incorrectly answered questions."""
import time

from jlpt_drill.db import get_connection
from jlpt_drill.models import MistakeRecord


def record_mistake(db_path: str, group_key: str, item_number: int, picked_position: int) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO mistakes (created_at, group_key, item_number, picked_position) VALUES (?, ?, ?, ?)",
        (int(time.time() * 1000), group_key, item_number, picked_position),
    )
    conn.commit()
    conn.close()


def get_mistakes(db_path: str) -> list[MistakeRecord]:
    """All logged mistakes, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM mistakes ORDER BY created_at DESC, id DESC"
    ).fetchall()
    conn.close()
    return [
        MistakeRecord(
            id=r["id"],
            created_at=r["created_at"],
            group_key=r["group_key"],
            item_number=r["item_number"],
            picked_position=r["picked_position"],
        )
        for r in rows
    ]


def get_mistake_details(db_path: str, store) -> list[MistakeRecord]:
    """Mistakes with the question they refer to; detail is None if it is gone."""
    mistakes = get_mistakes(db_path)
    for m in mistakes:
        m.detail = store.get_question_detail(m.group_key, m.item_number)
    return mistakes


def count_mistakes(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM mistakes").fetchone()[0]
    conn.close()
    return count


def clear_mistakes(db_path: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM mistakes")
    conn.commit()
    conn.close()
