"""Shared pytest fixtures for category filter tests.

Storage doubles live here so catalog, session and API tests can share them:

- ``InMemoryStorage`` (from the package) for the normal path.
- ``FailingStorage`` raising ``StorageError`` on every call, for the
  degradation paths.
- ``SlowStorage`` with delayed, counted reads, for concurrency tests.
- ``RecordingFilterTarget`` capturing committed expressions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator

import pytest

from category_filter.catalog import CategoryCatalog
from category_filter.exceptions import CommitError, StorageError
from category_filter.storage import InMemoryStorage


class FailingStorage:
    """Storage whose every operation fails."""

    def __init__(self, message: str = "storage unavailable") -> None:
        self.message = message
        self.calls: list[str] = []

    def get(self, key: str) -> str | None:
        self.calls.append("get")
        raise StorageError(self.message)

    def set(self, key: str, value: str) -> None:
        self.calls.append("set")
        raise StorageError(self.message)

    def remove(self, key: str) -> None:
        self.calls.append("remove")
        raise StorageError(self.message)


class SlowStorage(InMemoryStorage):
    """In-memory storage whose reads take ``delay`` seconds and are counted."""

    def __init__(self, initial: dict[str, str] | None = None, delay: float = 0.05) -> None:
        super().__init__(initial)
        self.delay = delay
        self.gets = 0

    def get(self, key: str) -> str | None:
        self.gets += 1
        time.sleep(self.delay)
        return super().get(key)


class RecordingFilterTarget:
    """FilterTarget that records what was committed."""

    def __init__(self, fail: bool = False) -> None:
        self.expressions: list[str] = []
        self.fail = fail

    def set_expression(self, expression: str) -> None:
        if self.fail:
            raise CommitError("filter field not found")
        self.expressions.append(expression)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def catalog(storage: InMemoryStorage) -> CategoryCatalog:
    return CategoryCatalog(storage)


@pytest.fixture
def target() -> RecordingFilterTarget:
    return RecordingFilterTarget()


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo setup_logging side effects on the root and package loggers."""
    root = logging.getLogger()
    package = logging.getLogger("category_filter")
    handlers = root.handlers[:]
    root_level = root.level
    package_level = package.level
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    package.setLevel(package_level)
