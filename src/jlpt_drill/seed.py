"""Seed the database with the bundled sample content."""
from pathlib import Path

from jlpt_drill.db import get_connection
from jlpt_drill.importer import load_content, read_content_file

DATA_DIR = Path(__file__).parent / "data"
SAMPLE_CONTENT = DATA_DIR / "sample_content.json"


def is_seeded(db_path: str) -> bool:
    """Check whether any exam or daily content has been loaded."""
    conn = get_connection(db_path)
    exams = conn.execute("SELECT COUNT(*) FROM exams").fetchone()[0]
    daily = conn.execute("SELECT COUNT(*) FROM daily_sets").fetchone()[0]
    conn.close()
    return exams + daily > 0


def seed_all(db_path: str) -> dict | None:
    """Load the sample content into an empty database. Returns the counts, or None if skipped."""
    if is_seeded(db_path):
        return None
    return load_content(db_path, read_content_file(str(SAMPLE_CONTENT)))
