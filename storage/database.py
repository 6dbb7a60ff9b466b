"""SQLite database operations for the workshop."""
import sqlite3
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any
from contextlib import contextmanager

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)


class Database:
    """Manages SQLite database operations."""

    def __init__(self, db_path: Path = config.DB_PATH):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._initialize_schema()

    def _initialize_schema(self):
        """Create tables if they don't exist."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, 'r') as f:
            schema_sql = f.read()

        with self._get_connection() as conn:
            conn.executescript(schema_sql)
            conn.commit()

        logger.debug(f"Database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    # ==================== Key-value records ====================

    def put_value(self, key: str, value: str) -> None:
        """Insert or replace a key-value record.

        Args:
            key: Record key
            value: Serialized record
        """
        updated_at = datetime.now(timezone.utc).isoformat()

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, updated_at)
            )
            conn.commit()

    def get_value(self, key: str) -> Optional[str]:
        """Retrieve a key-value record.

        Args:
            key: Record key

        Returns:
            Serialized record or None
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?",
                (key,)
            ).fetchone()

            return row['value'] if row else None

    def delete_value(self, key: str) -> None:
        """Remove a key-value record if present."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    # ==================== Stories ====================

    def save_story(self, story_dict: Dict[str, Any]) -> str:
        """Insert or update a story.

        Args:
            story_dict: Story as dictionary (must carry 'id' and 'ten_truyen')

        Returns:
            Story ID
        """
        story_id = story_dict['id']
        now = datetime.now(timezone.utc).isoformat()
        story_json = json.dumps(story_dict, ensure_ascii=False)

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO stories (id, title, story_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    story_json = excluded.story_json,
                    updated_at = excluded.updated_at
                """,
                (story_id, story_dict.get('ten_truyen') or 'Untitled', story_json, now, now)
            )
            conn.commit()

        logger.debug(f"Saved story {story_id}")
        return story_id

    def get_story(self, story_id: str) -> Optional[Dict[str, Any]]:
        """Retrieve a story.

        Args:
            story_id: Story UUID

        Returns:
            Story dictionary or None
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT story_json FROM stories WHERE id = ?",
                (story_id,)
            ).fetchone()

        if not row:
            return None

        try:
            return json.loads(row['story_json'])
        except json.JSONDecodeError as e:
            logger.error(f"Failed to decode story_json for story {story_id}: {e}")
            raise

    def list_stories(self) -> List[Dict[str, Any]]:
        """Get id, title and timestamps of all stories, most recently updated first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT id, title, created_at, updated_at FROM stories ORDER BY updated_at DESC"
            ).fetchall()
            return [dict(row) for row in rows]

    def delete_story(self, story_id: str) -> bool:
        """Delete a story.

        Returns:
            True if a story was deleted
        """
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM stories WHERE id = ?", (story_id,))
            conn.commit()
            return cursor.rowcount > 0
