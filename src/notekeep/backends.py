"""
Blob storage backends for Notekeep.

Each backend is a tiny key-value store of opaque bytes:
get(key) returns the bytes or None, set(key, data) replaces them atomically.
lock(key) keeps other writers of the same key out for a whole
read-modify-write cycle.
"""

import fcntl
import os
import re
import sqlite3
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, ContextManager, Iterator, Protocol

from notekeep.config import get_data_dir, get_db_path, get_notekeep_home
from notekeep.errors import StorageError

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- One row per key, value is the raw blob
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def validate_key(key: str) -> str:
    """Reject keys that are empty or could escape a backend's namespace."""
    if not key or not _KEY_PATTERN.match(key) or key.startswith("."):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class BlobBackend(Protocol):
    """Key-value store of byte blobs."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, data: bytes) -> None: ...

    def lock(self, key: str) -> ContextManager[None]: ...


class FileLock:
    """
    Exclusive fcntl lock on a lock file, re-entrant within one owner.

    Threads sharing the owner are serialized by an RLock; separate owners
    (other processes, other backend instances) by the flock itself.
    """

    def __init__(self, path: Path):
        self.path = path
        self._thread_lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def hold(self) -> Iterator[None]:
        with self._thread_lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                handle = open(self.path, "a")
            except OSError as e:
                raise StorageError(f"Failed to open lock {self.path}: {e}") from e

            with handle:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                self._depth = 1
                try:
                    yield
                finally:
                    self._depth = 0
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


class MemoryBackend:
    """In-process backend. Nothing survives the process."""

    def __init__(self, initial: dict[str, bytes] | None = None):
        self._data: dict[str, bytes] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> bytes | None:
        return self._data.get(validate_key(key))

    def set(self, key: str, data: bytes) -> None:
        with self.lock(key):
            self._data[key] = bytes(data)

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        validate_key(key)
        with self._lock:
            yield


class FileBackend:
    """One JSON file per key under a root directory."""

    def __init__(self, root: Path | None = None):
        self.root = root or get_notekeep_home()
        self._locks: dict[str, FileLock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, key: str) -> Path:
        return self.root / f"{validate_key(key)}.json"

    def get(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def lock(self, key: str) -> ContextManager[None]:
        """Exclusive lock on `.<key>.lock`, shared with set()."""
        validate_key(key)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = FileLock(self.root / f".{key}.lock")
            return self._locks[key].hold()

    def set(self, key: str, data: bytes) -> None:
        """
        Replace the blob for key.

        Writes a temp file in the same directory, fsyncs it and renames it
        over the target, so readers see either the old or the new blob.
        """
        path = self.path_for(key)

        with self.lock(key):
            try:
                self._write_atomic(path, data)
            except OSError as e:
                raise StorageError(f"Failed to write {path}: {e}") from e

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SqliteBackend:
    """SQLite-backed blob store (a single kv table)."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self._file_lock = FileLock(self.db_path.with_name(self.db_path.name + ".lock"))
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database exists and schema is current."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.executescript(SCHEMA)
                # Set schema version
                conn.execute(
                    "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                    (SCHEMA_VERSION,)
                )
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Failed to open {self.db_path}: {e}") from e

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> bytes | None:
        validate_key(key)
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read key {key!r}: {e}") from e

        if row is None:
            return None
        return bytes(row[0])

    def lock(self, key: str) -> ContextManager[None]:
        """Exclusive lock on `<db>.lock`. One lock covers every key."""
        validate_key(key)
        return self._file_lock.hold()

    def set(self, key: str, data: bytes) -> None:
        validate_key(key)
        try:
            with self.lock(key), self._connect() as conn:
                conn.execute("""
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (key, sqlite3.Binary(data)))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write key {key!r}: {e}") from e


def open_backend(config: dict[str, Any]) -> BlobBackend:
    """Build the backend named in config["storage"]["backend"]."""
    storage = config.get("storage", {})
    backend = storage.get("backend", "file")
    home = get_data_dir(config)

    if backend == "memory":
        return MemoryBackend()
    if backend == "file":
        return FileBackend(home)
    if backend == "sqlite":
        return SqliteBackend(home / "notekeep.db")

    raise ValueError(f"Unknown storage backend: {backend}")
