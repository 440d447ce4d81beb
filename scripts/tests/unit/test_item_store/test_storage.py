"""Tests for Storage – ID/name indices, renaming, deletion and enumeration."""

import pytest

from item_store import DuplicateItemError, Storage, StorageItem, UnknownTypeError
from tests.test_utils import Dept, Worker


class TestCreate:
    def test_create_and_lookup(self, storage):
        worker = storage.create_item("Worker", "HasK")
        assert isinstance(worker, Worker)
        assert worker.id == 1
        assert worker.name == "HasK"
        assert worker.type_name == "Worker"
        assert worker.storage is storage
        assert worker.get_item_type() is Worker
        assert storage.get_item_by_id(1) is worker
        assert storage.get_item_by_name("Worker", "HasK") is worker
        assert storage.items_count == 1
        assert len(storage) == 1

    def test_ids_strictly_increase(self, storage):
        ids = [storage.create_item("Worker", f"w{i}").id for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]
        assert storage.last_id == 5

    def test_unknown_type(self, storage):
        with pytest.raises(UnknownTypeError, match="'Robot'") as info:
            storage.create_item("Robot", "r2")
        assert info.value.type_name == "Robot"
        assert info.value.storage is storage
        assert storage.last_id == 0

    def test_duplicate_name_same_type(self, storage):
        storage.create_item("Worker", "HasK")
        with pytest.raises(DuplicateItemError, match="already exists"):
            storage.create_item("Worker", "HasK")
        assert storage.items_count == 1
        assert storage.last_id == 1

    def test_same_name_other_type(self, storage):
        worker = storage.create_item("Worker", "HasK")
        dept = storage.create_item("Dept", "HasK")
        assert storage.get_item_by_name("Worker", "HasK") is worker
        assert storage.get_item_by_name("Dept", "HasK") is dept

    def test_name_must_be_text(self, storage):
        with pytest.raises(TypeError):
            storage.create_item("Worker", 7)

    def test_get_next_id(self):
        store = Storage()
        assert store.get_next_id() == 1
        assert store.get_next_id() == 2

    def test_lookups_never_raise(self, storage):
        assert storage.get_item_by_id(99) is None
        assert storage.get_item_by_name("Worker", "nobody") is None
        assert storage.get_item_by_name("Robot", "r2") is None


class TestRename:
    def test_rename_moves_index_entry(self, storage):
        worker = storage.create_item("Worker", "old")
        worker.name = "new"
        assert worker.name == "new"
        assert storage.get_item_by_name("Worker", "old") is None
        assert storage.get_item_by_name("Worker", "new") is worker
        assert storage.get_item_by_id(worker.id) is worker

    def test_rename_to_taken_name_fails(self, storage):
        first = storage.create_item("Worker", "first")
        storage.create_item("Worker", "second")
        with pytest.raises(DuplicateItemError):
            first.name = "second"
        assert first.name == "first"
        assert storage.get_item_by_name("Worker", "first") is first
        assert storage.get_item_by_name("Worker", "second") is not first

    def test_try_change_item_name(self, storage):
        first = storage.create_item("Worker", "first")
        storage.create_item("Worker", "second")
        assert storage.try_change_item_name(first, "second") is False
        assert first.name == "first"
        assert storage.try_change_item_name(first, "third") is True
        assert first.name == "third"
        assert storage.get_item_by_name("Worker", "third") is first

    def test_rename_to_same_name(self, storage):
        worker = storage.create_item("Worker", "same")
        worker.name = "same"
        assert storage.get_item_by_name("Worker", "same") is worker

    def test_name_taken_in_other_type_is_free(self, storage):
        storage.create_item("Dept", "shared")
        worker = storage.create_item("Worker", "w")
        worker.name = "shared"
        assert storage.get_item_by_name("Worker", "shared") is worker

    def test_empty_name_is_noop(self, storage):
        worker = storage.create_item("Worker", "keep")
        worker.name = ""
        assert worker.name == "keep"
        assert storage.get_item_by_name("Worker", "keep") is worker

    def test_foreign_item_not_renamed(self, storage):
        other = Storage()
        other.register_type("Worker", Worker)
        foreign = other.create_item("Worker", "x")
        assert storage.try_change_item_name(foreign, "y") is False
        assert foreign.name == "x"

    def test_rename_to_non_text_fails(self, storage):
        worker = storage.create_item("Worker", "w")
        with pytest.raises(TypeError, match="must be str"):
            worker.name = 5
        with pytest.raises(TypeError, match="must be str"):
            storage.try_change_item_name(worker, 5)
        assert worker.name == "w"
        assert storage.get_item_by_name("Worker", "w") is worker
        assert 'Name="w"' in storage.to_xml()


class TestDelete:
    def test_delete_removes_both_entries(self, storage):
        worker = storage.create_item("Worker", "gone")
        storage.create_item("Worker", "stays")
        storage.delete_item(worker)
        assert storage.get_item_by_id(worker.id) is None
        assert storage.get_item_by_name("Worker", "gone") is None
        assert storage.items_count == 1
        assert worker.storage is None
        assert worker.get_item_type() is None

    def test_second_delete_is_noop(self, storage):
        worker = storage.create_item("Worker", "gone")
        storage.create_item("Worker", "stays")
        storage.delete_item(worker)
        storage.delete_item(worker)
        worker.delete_item()
        assert storage.items_count == 1

    def test_item_delete_delegates(self, storage):
        worker = storage.create_item("Worker", "gone")
        worker.delete_item()
        assert storage.get_item_by_name("Worker", "gone") is None
        assert storage.items_count == 0

    def test_ids_not_reused(self, storage):
        storage.create_item("Worker", "a")
        b = storage.create_item("Worker", "b")
        b.delete_item()
        c = storage.create_item("Worker", "c")
        assert c.id == 3
        assert storage.last_id == 3

    def test_name_free_after_delete(self, storage):
        storage.create_item("Worker", "again").delete_item()
        again = storage.create_item("Worker", "again")
        assert again.id == 2

    def test_foreign_item_ignored(self, storage):
        other = Storage()
        other.register_type("Worker", Worker)
        storage.create_item("Worker", "x")
        foreign = other.create_item("Worker", "x")
        storage.delete_item(foreign)
        assert storage.items_count == 1
        assert foreign.storage is other

    def test_clear_items(self, storage):
        worker = storage.create_item("Worker", "a")
        storage.create_item("Dept", "b")
        storage.clear_items()
        assert storage.items_count == 0
        assert storage.last_id == 0
        assert list(storage) == []
        assert worker.storage is None
        assert storage.get_type_by_name("Worker") is Worker
        assert storage.create_item("Worker", "a").id == 1


class TestEnumeration:
    def test_all_items_in_id_order(self, storage):
        created = [
            storage.create_item("Worker", "w1"),
            storage.create_item("Dept", "d1"),
            storage.create_item("Worker", "w2"),
        ]
        assert list(storage.get_items()) == created
        assert list(storage) == created
        assert len(storage.get_items()) == 3

    def test_items_of_one_type(self, storage):
        w1 = storage.create_item("Worker", "w1")
        storage.create_item("Dept", "d1")
        w2 = storage.create_item("Worker", "w2")
        assert list(storage.get_items("Worker")) == [w1, w2]
        assert len(storage.get_items("Dept")) == 1

    def test_unknown_type_is_empty(self, storage):
        view = storage.get_items("Robot")
        assert list(view) == []
        assert len(view) == 0

    def test_view_is_restartable_and_lazy(self, storage):
        view = storage.get_items("Worker")
        storage.create_item("Worker", "w1")
        assert [w.name for w in view] == ["w1"]
        storage.create_item("Worker", "w2")
        assert [w.name for w in view] == ["w1", "w2"]
        assert [w.name for w in view] == ["w1", "w2"]

    def test_view_taken_before_type_registered(self):
        store = Storage()
        view = store.get_items("Worker")
        assert len(view) == 0
        store.register_type("Worker", Worker)
        worker = store.create_item("Worker", "late")
        assert list(view) == [worker]
        assert len(view) == 1

    def test_view_survives_clear(self, storage):
        view = storage.get_items("Worker")
        storage.create_item("Worker", "w1")
        storage.clear_items()
        storage.create_item("Worker", "w2")
        assert [w.name for w in view] == ["w2"]

    def test_mutation_during_iteration_is_safe(self, storage):
        for i in range(3):
            storage.create_item("Worker", f"w{i}")
        for item in storage.get_items():
            item.delete_item()
        assert storage.items_count == 0


class TestLock:
    def test_lock_is_reentrant(self, storage):
        with storage.lock:
            with storage.lock:
                if storage.get_item_by_name("Worker", "once") is None:
                    storage.create_item("Worker", "once")
        assert storage.get_item_by_name("Worker", "once") is not None


def test_storage_item_base_defaults():
    item = StorageItem()
    assert item.id == 0
    assert item.name == ""
    assert item.storage is None
    item.name = "loose"
    assert item.name == "loose"
    assert item.get_item_type() is None
    item.delete_item()


def test_dept_created_with_defaults(storage):
    dept = storage.create_item("Dept", "R&D")
    assert isinstance(dept, Dept)
    assert dept.Active is True
    assert dept.Title == ""
