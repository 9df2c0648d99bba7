"""Exceptions raised by the category filter.

Only the storage backends and the commit step raise. Catalog operations
translate storage failures into logged degradations, and the parser and
serializer never fail.
"""

from __future__ import annotations


class CategoryFilterError(Exception):
    """Base class for all category filter errors."""

    pass


class StorageError(CategoryFilterError):
    """Raised when the key-value storage cannot be read or written.

    Example:
        >>> raise StorageError("Failed to write /tmp/storage.json: disk full")
    """

    pass


class StorageLockTimeoutError(StorageError):
    """Raised when the storage file lock cannot be acquired in time."""

    pass


class CommitError(CategoryFilterError):
    """Raised when the host rejects or cannot receive a committed expression."""

    pass


__all__ = [
    "CategoryFilterError",
    "CommitError",
    "StorageError",
    "StorageLockTimeoutError",
]
