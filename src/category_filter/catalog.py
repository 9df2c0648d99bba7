"""Persisted catalog of known category names.

The catalog is stored as a JSON array of strings under a single storage
key. When the key is absent the catalog is seeded with DEFAULT_CATEGORIES.
Persistence is best-effort: storage failures are logged and the catalog
keeps working from defaults or from the caller's in-memory list.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Sequence

from category_filter.config import DEFAULT_STORAGE_KEY
from category_filter.exceptions import StorageError
from category_filter.expression import is_valid_category_name
from category_filter.logging import get_logger
from category_filter.storage import KeyValueStorage

logger = get_logger(__name__)

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "TrackAccreditation",
    "ProductionOnly",
    "Smoke",
    "PostLayoffReport",
    "Registration",
    "Production",
    "DbApi",
    "PublicApi",
    "VetsList",
)

CATALOG_STORAGE_KEY = DEFAULT_STORAGE_KEY


def _normalize(names: Iterable[str]) -> list[str]:
    """Deduplicate and sort category names."""
    return sorted(set(names))


class CategoryCatalog:
    """User-editable set of category names offered in the filter checklist.

    Read-modify-write sequences (seeding, add, delete, restore) run under a
    reentrant lock, so concurrent API requests sharing one catalog cannot
    overwrite each other's changes.

    Args:
        storage: Backend the catalog is persisted to.
        key: Storage key holding the JSON array.
        defaults: Seed list used on first use and after a restore. Names
            that are not ``[A-Za-z0-9]+`` tokens are dropped with a warning.

    Example usage:
        catalog = CategoryCatalog(InMemoryStorage())
        catalog.load()              # seeded, sorted defaults
        catalog.try_add("Nightly")  # None, added
        catalog.try_add("Nightly")  # "Category 'Nightly' already exists"
        catalog.restore_defaults()
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = CATALOG_STORAGE_KEY,
        defaults: Sequence[str] = DEFAULT_CATEGORIES,
    ) -> None:
        self._storage = storage
        self._key = key
        self._logger = logger.with_context(storage_key=key)
        self._lock = threading.RLock()

        invalid = [name for name in defaults if not is_valid_category_name(name)]
        if invalid:
            self._logger.warning("Ignoring invalid default category names: %s", invalid)
        self._defaults = tuple(name for name in defaults if is_valid_category_name(name))

    @property
    def key(self) -> str:
        """Storage key the catalog lives under."""
        return self._key

    @property
    def defaults(self) -> list[str]:
        """The seed list, sorted."""
        return _normalize(self._defaults)

    def load(self) -> list[str]:
        """Return the persisted catalog, seeding storage on first use.

        Returns:
            Sorted, deduplicated category names. Falls back to the default
            list when storage is unavailable or holds unusable data.
        """
        with self._lock:
            try:
                raw = self._storage.get(self._key)
            except (StorageError, OSError) as e:
                self._logger.warning("Category storage unavailable, using defaults: %s", e)
                return self.defaults

            if raw is None:
                self._logger.info("No saved categories, seeding %d defaults", len(self._defaults))
                self.save(self._defaults)
                return self.defaults

            names = self._decode(raw)
            if names is None:
                return self.defaults
            return names

    def _decode(self, raw: str) -> list[str] | None:
        """Decode the persisted JSON array, or return None if it is unusable."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._logger.warning("Saved categories are not valid JSON, using defaults: %s", e)
            return None

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            self._logger.warning(
                "Saved categories are not a list of strings, using defaults (got %s)",
                type(data).__name__,
            )
            return None

        invalid = [item for item in data if not is_valid_category_name(item)]
        if invalid:
            self._logger.warning("Skipping invalid saved category names: %s", invalid)
        return _normalize(item for item in data if is_valid_category_name(item))

    def save(self, names: Iterable[str]) -> None:
        """Overwrite the persisted catalog.

        Failures are logged and otherwise ignored.
        """
        payload = json.dumps(_normalize(names))
        try:
            self._storage.set(self._key, payload)
        except (StorageError, OSError):
            self._logger.exception("Failed to persist categories")

    def contains(self, name: str) -> bool:
        """Return True if ``name`` (case-sensitive) is in the catalog."""
        return name in self.load()

    @staticmethod
    def _rejection(name: str, names: list[str]) -> str | None:
        """Notice for a trimmed ``name`` checked against the loaded ``names``."""
        if not name:
            return "Category name cannot be empty"
        if not is_valid_category_name(name):
            return f"Category name '{name}' must contain only letters and digits"
        if name in names:
            return f"Category '{name}' already exists"
        return None

    def rejection_reason(self, name: str) -> str | None:
        """Explain why ``name`` cannot be added, or return None if it can.

        Args:
            name: Proposed category name; surrounding whitespace is ignored.

        Returns:
            A user-facing notice, or None when the name is acceptable.
        """
        return self._rejection(name.strip(), self.load())

    def try_add(self, name: str) -> str | None:
        """Add a category, reporting why it was rejected.

        The catalog is loaded once; the check and the write happen under
        the catalog lock.

        Args:
            name: Category name; surrounding whitespace is trimmed.

        Returns:
            None if the name was added, otherwise the user-facing notice
            (also logged as a warning).
        """
        name = name.strip()
        with self._lock:
            names = self.load()
            reason = self._rejection(name, names)
            if reason is not None:
                self._logger.warning("%s", reason, extra={"category": name})
                return reason
            names.append(name)
            self.save(names)
        self._logger.info("Added category %s", name, extra={"category": name})
        return None

    def add(self, name: str) -> bool:
        """Add a category to the catalog.

        Returns:
            True if added, False if the name was empty, invalid or already
            present.
        """
        return self.try_add(name) is None

    def delete(self, name: str) -> None:
        """Remove a category. Absent names are ignored."""
        with self._lock:
            names = self.load()
            if name not in names:
                return
            names.remove(name)
            self.save(names)
        self._logger.info("Deleted category %s", name, extra={"category": name})

    def restore_defaults(self) -> None:
        """Forget the persisted catalog so the next load reseeds the defaults."""
        with self._lock:
            try:
                self._storage.remove(self._key)
            except (StorageError, OSError):
                self._logger.exception("Failed to clear saved categories")
                return
        self._logger.info("Category catalog restored to defaults")


__all__ = [
    "CATALOG_STORAGE_KEY",
    "DEFAULT_CATEGORIES",
    "CategoryCatalog",
]
