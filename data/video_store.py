"""
SQLite-backed video catalog for SafeTube.
Holds each guardian's whitelist of YouTube videos and their watch counters.
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from youtube.data_api import safe_thumbnail

logger = logging.getLogger(__name__)


class VideoStore:
    """SQLite database for whitelisted videos, guardians and settings."""

    def __init__(self, db_path: str = "db/safetube.db"):
        """Initialize database connection and create schema."""
        db_file = Path(db_path)
        db_file.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self.conn = sqlite3.connect(db_file, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

    def _create_tables(self) -> None:
        """Create all tables if they don't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS guardians (
                id TEXT PRIMARY KEY,
                display_name TEXT NOT NULL,
                pin TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS videos (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guardian_id TEXT NOT NULL,
                video_id TEXT NOT NULL,
                title TEXT NOT NULL,
                thumbnail_url TEXT,
                duration INTEGER,
                made_for_kids INTEGER NOT NULL DEFAULT 0,
                watch_count INTEGER NOT NULL DEFAULT 0,
                added_at TEXT NOT NULL DEFAULT (datetime('now')),
                last_watched_at TEXT,
                UNIQUE(video_id, guardian_id)
            )
        """)
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_videos_guardian ON videos(guardian_id)
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        self.conn.commit()

    @staticmethod
    def _row_to_video(row) -> Optional[dict]:
        if row is None:
            return None
        video = dict(row)
        video["made_for_kids"] = bool(video["made_for_kids"])
        return video

    # --- Guardian CRUD ---

    def get_guardians(self) -> list[dict]:
        """Get all guardians."""
        with self._lock:
            cursor = self.conn.execute(
                "SELECT id, display_name, pin, created_at FROM guardians ORDER BY created_at"
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_guardian(self, guardian_id: str) -> Optional[dict]:
        """Get a guardian by ID."""
        with self._lock:
            cursor = self.conn.execute(
                "SELECT id, display_name, pin, created_at FROM guardians WHERE id = ?",
                (guardian_id,),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def create_guardian(self, guardian_id: str, display_name: str, pin: str = "") -> bool:
        """Create a new guardian. Returns True if created."""
        with self._lock:
            try:
                self.conn.execute(
                    "INSERT INTO guardians (id, display_name, pin) VALUES (?, ?, ?)",
                    (guardian_id, display_name, pin),
                )
                self.conn.commit()
                return True
            except sqlite3.IntegrityError:
                return False

    def delete_guardian(self, guardian_id: str) -> bool:
        """Hard delete a guardian and their whitelist. Returns True if deleted."""
        with self._lock:
            cursor = self.conn.execute("DELETE FROM guardians WHERE id = ?", (guardian_id,))
            if cursor.rowcount == 0:
                self.conn.commit()
                return False
            self.conn.execute("DELETE FROM videos WHERE guardian_id = ?", (guardian_id,))
            self.conn.commit()
            return True

    # --- Video CRUD ---

    def add_video(
        self,
        video_id: str,
        title: str,
        guardian_id: str = "default",
        thumbnail_url: Optional[str] = None,
        duration: Optional[int] = None,
        made_for_kids: bool = False,
    ) -> dict:
        """
        Add a video to a guardian's whitelist. If already present, return existing.
        Returns the video row as a dict.
        """
        thumbnail_url = safe_thumbnail(thumbnail_url)
        with self._lock:
            self.conn.execute(
                """
                INSERT OR IGNORE INTO videos
                (video_id, title, guardian_id, thumbnail_url, duration, made_for_kids)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (video_id, title, guardian_id, thumbnail_url, duration, int(made_for_kids))
            )
            self.conn.commit()
            cursor = self.conn.execute(
                "SELECT * FROM videos WHERE video_id = ? AND guardian_id = ?",
                (video_id, guardian_id),
            )
            return self._row_to_video(cursor.fetchone())

    def get_video(self, record_id: int, guardian_id: str = "default") -> Optional[dict]:
        """Get a video by record id, scoped to its guardian."""
        with self._lock:
            cursor = self.conn.execute(
                "SELECT * FROM videos WHERE id = ? AND guardian_id = ?",
                (record_id, guardian_id),
            )
            return self._row_to_video(cursor.fetchone())

    def get_video_by_youtube_id(self, video_id: str, guardian_id: str = "default") -> Optional[dict]:
        """Get a video by its YouTube id, scoped to its guardian."""
        with self._lock:
            cursor = self.conn.execute(
                "SELECT * FROM videos WHERE video_id = ? AND guardian_id = ?",
                (video_id, guardian_id),
            )
            return self._row_to_video(cursor.fetchone())

    def list_videos(self, guardian_id: str = "default") -> list[dict]:
        """All whitelisted videos for a guardian, newest first."""
        with self._lock:
            cursor = self.conn.execute(
                "SELECT * FROM videos WHERE guardian_id = ? ORDER BY added_at DESC, id DESC",
                (guardian_id,),
            )
            return [self._row_to_video(row) for row in cursor.fetchall()]

    def count_videos(self, guardian_id: str = "default") -> int:
        with self._lock:
            return self.conn.execute(
                "SELECT COUNT(*) FROM videos WHERE guardian_id = ?", (guardian_id,)
            ).fetchone()[0]

    def delete_video(self, record_id: int, guardian_id: str = "default") -> bool:
        """Remove a video from the whitelist. Returns True if a row was deleted."""
        with self._lock:
            cursor = self.conn.execute(
                "DELETE FROM videos WHERE id = ? AND guardian_id = ?",
                (record_id, guardian_id),
            )
            self.conn.commit()
            return cursor.rowcount > 0

    def record_watch(self, record_id: int, guardian_id: str = "default") -> bool:
        """Increment watch_count by one. Returns True if the video exists."""
        with self._lock:
            cursor = self.conn.execute(
                """
                UPDATE videos
                SET watch_count = watch_count + 1, last_watched_at = datetime('now')
                WHERE id = ? AND guardian_id = ?
                """,
                (record_id, guardian_id),
            )
            self.conn.commit()
            return cursor.rowcount > 0

    # --- Settings ---

    def get_setting(self, key: str, default: str = "") -> str:
        """Read a setting value."""
        with self._lock:
            cursor = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else default

    def set_setting(self, key: str, value: str) -> None:
        """Write a setting value."""
        with self._lock:
            self.conn.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value),
            )
            self.conn.commit()

    def get_stats(self) -> dict:
        """Totals across all guardians, logged at startup."""
        with self._lock:
            row = self.conn.execute(
                "SELECT COUNT(*), COALESCE(SUM(watch_count), 0) FROM videos"
            ).fetchone()
            guardians = self.conn.execute("SELECT COUNT(*) FROM guardians").fetchone()[0]
        return {"videos": row[0], "watches": row[1], "guardians": guardians}

    def close(self) -> None:
        """Close database connection."""
        self.conn.close()
