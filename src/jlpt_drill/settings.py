"""Key-value user settings stored in the database."""
from typing import Optional

from jlpt_drill.db import get_connection


def get_setting(db_path: str, key: str, default: Optional[str] = None) -> Optional[str]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    if row is None:
        return default
    return row["value"]


def set_setting(db_path: str, key: str, value: str) -> None:
    """Insert or overwrite one setting."""
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO user_settings (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value""",
        (key, value),
    )
    conn.commit()
    conn.close()


class SettingsStore:
    """get/set view over user_settings, the shape ProgressTracker expects."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def get(self, key: str) -> Optional[str]:
        return get_setting(self.db_path, key)

    def set(self, key: str, value: str) -> None:
        set_setting(self.db_path, key, value)
