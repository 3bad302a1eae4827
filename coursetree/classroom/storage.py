"""
Key-value storage backends for the persisted snapshot.

Every backend exposes the same synchronous interface:
- get(key) -> Optional[str]
- set(key, value) -> None, raising StorageError on failure

Backends:
- MemoryStore: in-process dict, with an optional byte quota
- FileStore: one file per key in a directory
- SQLiteStore: key/value table in ~/.coursetree/storage.db
"""

import os
import sqlite3
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from coursetree.config import Settings
from coursetree.errors import StorageError, StorageQuotaExceededError


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """
    In-process store. With `quota_bytes` set, writes whose UTF-8 size exceeds
    the quota fail like a full browser localStorage would.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None, quota_bytes: Optional[int] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if others + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Writing {key!r} would exceed the {self.quota_bytes} byte quota"
                )
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileStore:
    """Store each key as `<directory>/<key>.json`, replaced atomically."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e


class SQLiteStore:
    """
    Store keys in a SQLite database.

    Each call opens its own connection, so the store holds no open handles
    between reads and writes.
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite file (created on first use)
        """
        self.db_path = Path(db_path)
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                    );
                """)
                conn.commit()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Could not open storage database {self.db_path}: {e}") from e

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[str]:
        try:
            conn = self._get_connection()
            try:
                cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row["value"] if row else None
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Could not read {key!r}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            conn = self._get_connection()
            try:
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at)
                       VALUES (?, ?, CURRENT_TIMESTAMP)
                       ON CONFLICT(key) DO UPDATE SET
                         value = excluded.value,
                         updated_at = excluded.updated_at""",
                    (key, value)
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Could not write {key!r}: {e}") from e


def build_store(settings: Settings) -> KeyValueStore:
    """Create the storage backend selected in settings."""
    if settings.storage == "memory":
        return MemoryStore()
    if settings.storage == "file":
        return FileStore(settings.data_dir)
    return SQLiteStore(settings.data_dir / "storage.db")
