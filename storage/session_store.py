"""Key-value persistence for the processing session record."""
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict, Any

from utils.logger import setup_logger
from storage.database import Database
import config

logger = setup_logger(__name__)


class SessionStore(ABC):
    """Stores one serialized session record under a fixed key.

    ``load`` never raises for unreadable data: a corrupt record is removed
    and reported as absent.
    """

    def __init__(self, key: str = config.SESSION_KEY):
        self.key = key

    @abstractmethod
    def save(self, record: Dict[str, Any]) -> None:
        """Persist the record, replacing any previous one."""
        pass

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored record, or None if there is none."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored record."""
        pass

    def exists(self) -> bool:
        """Check if a record is stored."""
        return self.load() is not None


class InMemorySessionStore(SessionStore):
    """Process-local store, records are kept as JSON text like the durable stores."""

    def __init__(self, key: str = config.SESSION_KEY):
        super().__init__(key)
        self._data: Dict[str, str] = {}

    def save(self, record: Dict[str, Any]) -> None:
        self._data[self.key] = json.dumps(record, ensure_ascii=False)

    def load(self) -> Optional[Dict[str, Any]]:
        raw = self._data.get(self.key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable session record: {e}")
            self.clear()
            return None

    def clear(self) -> None:
        self._data.pop(self.key, None)


class JsonFileSessionStore(SessionStore):
    """Stores the session record as a JSON file in a directory."""

    def __init__(self, directory: Path = config.SESSIONS_DIR, key: str = config.SESSION_KEY):
        """Initialize file store.

        Args:
            directory: Directory holding session files
            key: Session key, used as the file name
        """
        super().__init__(key)
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.session_file = self.directory / f"{key}.json"

    def save(self, record: Dict[str, Any]) -> None:
        # Atomic replace via a temp file
        tmp_file = self.session_file.with_suffix(".json.tmp")
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(record, f, indent=2, ensure_ascii=False)
        tmp_file.replace(self.session_file)
        logger.debug(f"Session saved: {record.get('status', 'unknown')}")

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.session_file.exists():
            return None

        try:
            with open(self.session_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Discarding unreadable session file {self.session_file}: {e}")
            self.clear()
            return None

    def clear(self) -> None:
        if self.session_file.exists():
            self.session_file.unlink()
            logger.info("Session file cleared")


class SqliteSessionStore(SessionStore):
    """Stores the session record in the workshop database's key-value table."""

    def __init__(self, db: Database, key: str = config.SESSION_KEY):
        super().__init__(key)
        self.db = db

    def save(self, record: Dict[str, Any]) -> None:
        self.db.put_value(self.key, json.dumps(record, ensure_ascii=False))

    def load(self) -> Optional[Dict[str, Any]]:
        raw = self.db.get_value(self.key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable session record '{self.key}': {e}")
            self.clear()
            return None

    def clear(self) -> None:
        self.db.delete_value(self.key)


def create_session_store(backend: str = config.SESSION_BACKEND, db: Optional[Database] = None) -> SessionStore:
    """Build the configured session store.

    Args:
        backend: "sqlite" or "file"
        db: Database to use for the sqlite backend

    Returns:
        SessionStore instance
    """
    if backend == "file":
        return JsonFileSessionStore()
    if backend == "sqlite":
        return SqliteSessionStore(db or Database())
    raise ValueError(f"Unknown session backend: {backend}")
