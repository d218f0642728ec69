"""Database initialization and connection management."""
import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "JLPT_DRILL_DB", str(Path.home() / ".jlpt_drill" / "drill.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS exams (
    exam_key TEXT PRIMARY KEY,
    level TEXT NOT NULL,
    year INTEGER NOT NULL,
    month TEXT NOT NULL,
    title TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS questions (
    exam_key TEXT NOT NULL REFERENCES exams(exam_key) ON DELETE CASCADE,
    question_number INTEGER NOT NULL,
    section TEXT NOT NULL,
    stem TEXT NOT NULL,
    passage TEXT,
    UNIQUE(exam_key, question_number)
);

CREATE INDEX IF NOT EXISTS idx_questions_exam ON questions (exam_key);

CREATE TABLE IF NOT EXISTS choices (
    exam_key TEXT NOT NULL,
    question_number INTEGER NOT NULL,
    position INTEGER NOT NULL,
    content TEXT NOT NULL,
    is_correct INTEGER NOT NULL DEFAULT 0,
    explanation TEXT,
    UNIQUE(exam_key, question_number, position),
    FOREIGN KEY (exam_key, question_number)
        REFERENCES questions(exam_key, question_number) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_choices_question ON choices (exam_key, question_number);

CREATE TABLE IF NOT EXISTS daily_sets (
    daily_key TEXT PRIMARY KEY,
    level TEXT NOT NULL,
    category TEXT NOT NULL,
    week INTEGER NOT NULL,
    day INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS daily_questions (
    daily_key TEXT NOT NULL REFERENCES daily_sets(daily_key) ON DELETE CASCADE,
    item_number INTEGER NOT NULL,
    question_type TEXT,
    stem TEXT NOT NULL,
    passage TEXT,
    UNIQUE(daily_key, item_number)
);

CREATE TABLE IF NOT EXISTS daily_choices (
    daily_key TEXT NOT NULL,
    item_number INTEGER NOT NULL,
    position INTEGER NOT NULL,
    content TEXT NOT NULL,
    is_correct INTEGER NOT NULL DEFAULT 0,
    explanation TEXT,
    UNIQUE(daily_key, item_number, position),
    FOREIGN KEY (daily_key, item_number)
        REFERENCES daily_questions(daily_key, item_number) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS mistakes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at INTEGER NOT NULL,
    group_key TEXT NOT NULL,
    item_number INTEGER NOT NULL,
    picked_position INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
