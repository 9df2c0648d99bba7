"""Tests for the persisted category catalog."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from category_filter.catalog import DEFAULT_CATEGORIES, CategoryCatalog
from category_filter.storage import InMemoryStorage, JsonFileStorage
from tests.conftest import FailingStorage, SlowStorage

SORTED_DEFAULTS = sorted(DEFAULT_CATEGORIES)


class TestLoad:
    """Tests for CategoryCatalog.load."""

    def test_first_load_seeds_defaults(self, storage: InMemoryStorage) -> None:
        catalog = CategoryCatalog(storage)
        assert catalog.load() == SORTED_DEFAULTS
        assert json.loads(storage.get(catalog.key) or "") == SORTED_DEFAULTS

    def test_default_list(self) -> None:
        assert DEFAULT_CATEGORIES == (
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

    def test_loads_saved_list_sorted(self) -> None:
        storage = InMemoryStorage({"category-filter.categories": '["Smoke", "Alpha", "Smoke"]'})
        assert CategoryCatalog(storage).load() == ["Alpha", "Smoke"]

    def test_saved_empty_list_is_respected(self) -> None:
        storage = InMemoryStorage({"category-filter.categories": "[]"})
        assert CategoryCatalog(storage).load() == []

    def test_custom_key_and_defaults(self, storage: InMemoryStorage) -> None:
        catalog = CategoryCatalog(storage, key="custom", defaults=["Smoke", "Alpha"])
        assert catalog.load() == ["Alpha", "Smoke"]
        assert storage.get("custom") == '["Alpha", "Smoke"]'

    def test_corrupt_json_falls_back_without_reseeding(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        storage = InMemoryStorage({"category-filter.categories": "{oops"})
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            names = CategoryCatalog(storage).load()
        assert names == SORTED_DEFAULTS
        assert storage.get("category-filter.categories") == "{oops"
        assert "not valid JSON" in caplog.text

    def test_wrong_shape_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        storage = InMemoryStorage({"category-filter.categories": '{"Smoke": true}'})
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            names = CategoryCatalog(storage).load()
        assert names == SORTED_DEFAULTS
        assert "not a list of strings" in caplog.text

    def test_non_string_items_fall_back(self) -> None:
        storage = InMemoryStorage({"category-filter.categories": '["Smoke", 3]'})
        assert CategoryCatalog(storage).load() == SORTED_DEFAULTS

    def test_invalid_names_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        storage = InMemoryStorage({"category-filter.categories": '["Smoke", "Db Api", ""]'})
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            names = CategoryCatalog(storage).load()
        assert names == ["Smoke"]
        assert "Skipping invalid saved category names" in caplog.text

    def test_unavailable_storage_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            names = CategoryCatalog(FailingStorage()).load()
        assert names == SORTED_DEFAULTS
        assert "Category storage unavailable" in caplog.text

    def test_log_records_carry_storage_key(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            CategoryCatalog(FailingStorage(), key="custom").load()
        assert caplog.records[0].storage_key == "custom"

    def test_invalid_defaults_dropped(
        self, storage: InMemoryStorage, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            catalog = CategoryCatalog(storage, defaults=["Smoke", "Db Api", ""])
        assert "Ignoring invalid default category names" in caplog.text
        assert catalog.defaults == ["Smoke"]
        assert catalog.load() == ["Smoke"]
        assert storage.get(catalog.key) == '["Smoke"]'


class TestAdd:
    """Tests for CategoryCatalog.add, try_add and rejection_reason."""

    def test_add_new(self, catalog: CategoryCatalog) -> None:
        assert catalog.add("Nightly") is True
        names = catalog.load()
        assert "Nightly" in names
        assert names == sorted(names)

    def test_add_trims_whitespace(self, catalog: CategoryCatalog) -> None:
        assert catalog.add("  Nightly  ") is True
        assert catalog.contains("Nightly")

    def test_duplicate_rejected(
        self, catalog: CategoryCatalog, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="category_filter.catalog"):
            assert catalog.add("Smoke") is False
        assert "Category 'Smoke' already exists" in caplog.text
        assert catalog.load().count("Smoke") == 1

    def test_duplicate_check_is_case_sensitive(self, catalog: CategoryCatalog) -> None:
        assert catalog.add("smoke") is True
        assert catalog.contains("smoke")
        assert catalog.contains("Smoke")

    def test_empty_rejected(self, catalog: CategoryCatalog) -> None:
        assert catalog.rejection_reason("   ") == "Category name cannot be empty"
        assert catalog.add("") is False

    def test_invalid_name_rejected(self, catalog: CategoryCatalog) -> None:
        assert catalog.rejection_reason("Db Api") == (
            "Category name 'Db Api' must contain only letters and digits"
        )
        assert catalog.add("Db Api") is False
        assert "Db Api" not in catalog.load()

    def test_acceptable_name_has_no_reason(self, catalog: CategoryCatalog) -> None:
        assert catalog.rejection_reason("Nightly") is None

    def test_add_on_failing_storage_does_not_raise(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        catalog = CategoryCatalog(FailingStorage())
        with caplog.at_level(logging.ERROR, logger="category_filter.catalog"):
            assert catalog.add("Nightly") is True
        assert "Failed to persist categories" in caplog.text

    def test_try_add_returns_reason(self, catalog: CategoryCatalog) -> None:
        assert catalog.try_add("Nightly") is None
        assert catalog.try_add("Nightly") == "Category 'Nightly' already exists"
        assert catalog.try_add("Db Api") == (
            "Category name 'Db Api' must contain only letters and digits"
        )

    def test_try_add_reads_storage_once(self) -> None:
        storage = SlowStorage({"category-filter.categories": '["Smoke"]'}, delay=0)
        catalog = CategoryCatalog(storage)
        assert catalog.try_add("Nightly") is None
        assert storage.gets == 1
        assert catalog.try_add("Nightly") is not None
        assert storage.gets == 2


class TestConcurrentChanges:
    """Catalog changes made from several threads at once."""

    def test_concurrent_adds_are_all_kept(self) -> None:
        catalog = CategoryCatalog(SlowStorage())
        catalog.load()
        names = [f"New{i}" for i in range(8)]

        with ThreadPoolExecutor(max_workers=len(names)) as pool:
            results = list(pool.map(catalog.add, names))

        assert results == [True] * len(names)
        assert set(names) <= set(catalog.load())

    def test_concurrent_add_and_delete(self) -> None:
        catalog = CategoryCatalog(SlowStorage())
        catalog.load()

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [
                pool.submit(catalog.add, "Nightly"),
                pool.submit(catalog.delete, "Smoke"),
                pool.submit(catalog.add, "Weekly"),
                pool.submit(catalog.delete, "DbApi"),
            ]
            for future in futures:
                future.result()

        names = catalog.load()
        assert "Nightly" in names
        assert "Weekly" in names
        assert "Smoke" not in names
        assert "DbApi" not in names

    def test_concurrent_duplicate_added_once(self) -> None:
        catalog = CategoryCatalog(SlowStorage())
        catalog.load()

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(catalog.try_add, ["Nightly"] * 4))

        assert results.count(None) == 1
        assert catalog.load().count("Nightly") == 1


class TestDelete:
    """Tests for CategoryCatalog.delete."""

    def test_delete_existing(self, catalog: CategoryCatalog) -> None:
        catalog.delete("Smoke")
        assert "Smoke" not in catalog.load()

    def test_delete_absent_is_noop(self, catalog: CategoryCatalog) -> None:
        before = catalog.load()
        catalog.delete("Nightly")
        assert catalog.load() == before

    def test_delete_all_leaves_empty_catalog(self, catalog: CategoryCatalog) -> None:
        for name in catalog.load():
            catalog.delete(name)
        assert catalog.load() == []


class TestRestoreDefaults:
    """Tests for CategoryCatalog.restore_defaults."""

    def test_restore_reseeds(self, catalog: CategoryCatalog, storage: InMemoryStorage) -> None:
        catalog.add("Nightly")
        catalog.delete("Smoke")
        catalog.restore_defaults()
        assert storage.get(catalog.key) is None
        assert catalog.load() == SORTED_DEFAULTS

    def test_restore_on_failing_storage_is_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="category_filter.catalog"):
            CategoryCatalog(FailingStorage()).restore_defaults()
        assert "Failed to clear saved categories" in caplog.text


class TestFileBackedCatalog:
    """Catalog persistence through JsonFileStorage."""

    def test_changes_survive_new_instance(self, tmp_path: Path) -> None:
        path = tmp_path / "storage.json"
        CategoryCatalog(JsonFileStorage(path)).add("Nightly")
        assert "Nightly" in CategoryCatalog(JsonFileStorage(path)).load()

    def test_corrupt_file_falls_back_and_keeps_file(self, tmp_path: Path) -> None:
        path = tmp_path / "storage.json"
        path.write_text("not json")
        assert CategoryCatalog(JsonFileStorage(path)).load() == SORTED_DEFAULTS
        assert path.read_text() == "not json"
