"""Key-value storage backends for persisted filter data.

The catalog only needs a string-keyed, string-valued get/set/remove
primitive. Two backends are provided:

- ``InMemoryStorage`` for tests and throwaway sessions.
- ``JsonFileStorage`` which keeps all keys in one JSON object on disk.
  Writes hold an advisory ``flock`` on a sibling ``.lock`` file and go
  through a temporary file plus ``os.replace``, so readers never observe a
  partially written file.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from category_filter.exceptions import StorageError, StorageLockTimeoutError
from category_filter.logging import get_logger

logger = get_logger(__name__)

# Default timeout for file lock acquisition (in seconds)
DEFAULT_LOCK_TIMEOUT_SECONDS: float = 5.0

# Default retry interval for lock acquisition (in seconds)
DEFAULT_LOCK_RETRY_INTERVAL: float = 0.05


@runtime_checkable
class KeyValueStorage(Protocol):
    """String-keyed, string-valued storage primitive."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete ``key``. Absent keys are ignored."""
        ...


class InMemoryStorage:
    """Dict-backed storage. Contents are lost when the object is dropped."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


@contextmanager
def _file_lock(
    file_path: Path,
    max_wait_seconds: float | None = None,
    retry_interval_seconds: float | None = None,
) -> Iterator[None]:
    """Context manager holding an exclusive advisory lock for ``file_path``.

    Args:
        file_path: Path of the file being protected. The lock itself is taken
            on ``<file_path>.lock``.
        max_wait_seconds: Maximum time to wait for the lock. ``None`` uses
            DEFAULT_LOCK_TIMEOUT_SECONDS; ``0`` blocks indefinitely.
        retry_interval_seconds: Time between acquisition attempts.

    Yields:
        None

    Raises:
        StorageLockTimeoutError: If the lock cannot be acquired in time.
        StorageError: If the lock file cannot be opened or locked.
    """
    if max_wait_seconds is None:
        max_wait_seconds = DEFAULT_LOCK_TIMEOUT_SECONDS
    if retry_interval_seconds is None:
        retry_interval_seconds = DEFAULT_LOCK_RETRY_INTERVAL

    lock_path = file_path.with_suffix(file_path.suffix + ".lock")
    lock_file = None
    start_time = time.monotonic()

    try:
        lock_file = open(lock_path, "w")  # noqa: SIM115

        if max_wait_seconds == 0:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        else:
            while True:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    if time.monotonic() - start_time >= max_wait_seconds:
                        lock_file.close()
                        lock_file = None
                        raise StorageLockTimeoutError(
                            f"Timed out waiting for lock on {file_path} "
                            f"after {max_wait_seconds:.1f} seconds"
                        ) from None
                    time.sleep(retry_interval_seconds)
        yield
    except StorageError:
        raise
    except OSError as e:
        if lock_file is not None:
            lock_file.close()
            lock_file = None
        raise StorageError(f"Failed to acquire lock for {file_path}: {e}") from e
    finally:
        if lock_file is not None:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            lock_file.close()


class JsonFileStorage:
    """Storage backed by a single JSON object file.

    Args:
        path: Location of the JSON file. Parent directories are created on
            first write.
        lock_timeout_seconds: Maximum time to wait for the write lock.

    Example usage:
        storage = JsonFileStorage(Path("~/.category-filter/storage.json").expanduser())
        storage.set("category-filter.categories", '["DbApi", "Smoke"]')
        storage.get("category-filter.categories")
    """

    def __init__(self, path: Path, lock_timeout_seconds: float | None = None) -> None:
        self._path = path
        self._lock_timeout_seconds = lock_timeout_seconds

    @property
    def path(self) -> Path:
        """Location of the backing JSON file."""
        return self._path

    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``.

        Raises:
            StorageError: If the file exists but cannot be read or parsed.
        """
        value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(
                f"Value for {key!r} in {self._path} is {type(value).__name__}, expected str"
            )
        return value

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StorageError: If the file cannot be locked, read or written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with _file_lock(self._path, max_wait_seconds=self._lock_timeout_seconds):
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        """Delete ``key`` from the file if present.

        Raises:
            StorageError: If the file cannot be locked, read or written.
        """
        if not self._path.exists():
            return
        with _file_lock(self._path, max_wait_seconds=self._lock_timeout_seconds):
            data = self._read()
            if key not in data:
                return
            del data[key]
            self._write(data)

    def _read(self) -> dict[str, object]:
        """Load the whole JSON object, treating a missing file as empty."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Failed to parse JSON in {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Expected a JSON object in {self._path}, got {type(data).__name__}")
        return data

    def _write(self, data: dict[str, object]) -> None:
        """Replace the file contents in one step."""
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Could not remove temporary file: %s", tmp_name)
            raise StorageError(f"Failed to write {self._path}: {e}") from e


__all__ = [
    "DEFAULT_LOCK_TIMEOUT_SECONDS",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
]
