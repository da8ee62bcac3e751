"""Tests for backups, restore and the maintenance operations."""
from __future__ import annotations

import threading
import time

import pytest

from contact_manager.contacts import AutoBackup, ContactStore
from contact_manager.storage import InMemoryStorage, JsonFileStorage


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    store = ContactStore(storage, slot="contacts")
    store.create({"firstName": "Ada", "lastName": "Lovelace", "tags": ["math"]})
    store.create({"firstName": "Alan", "lastName": "Turing"})
    return store


class TestBackup:
    """Tests for creating and listing backups."""

    def test_backup_writes_sibling_slot(self, store, storage):
        reference = store.backup()
        assert reference.startswith("contacts.backup.")
        records = storage.read(reference)
        assert sorted(r["firstName"] for r in records) == ["Ada", "Alan"]

    def test_list_backups_newest_first(self, store):
        first = store.backup()
        second = store.backup()
        assert first != second
        assert store.list_backups() == [second, first]

    def test_retention_prunes_old_backups(self, storage):
        store = ContactStore(storage, slot="contacts", backup_retain=2)
        references = [store.backup() for _ in range(4)]
        assert store.list_backups() == [references[3], references[2]]

    def test_backup_files_on_disk(self, tmp_path):
        store = ContactStore(JsonFileStorage(tmp_path), slot="contacts")
        store.create({"firstName": "Grace", "lastName": "Hopper"})
        reference = store.backup()
        assert (tmp_path / f"{reference}.json").exists()
        assert store.list_backups() == [reference]


class TestRestore:
    """Tests for restoring backups."""

    def test_restore_after_clear(self, store):
        before = {c.id: c.to_dict() for c in store.list()}
        reference = store.backup()
        store.clear_all()

        assert store.restore(reference) == 2
        assert {c.id: c.to_dict() for c in store.list()} == before

    def test_restore_merges_with_existing(self, store):
        reference = store.backup()
        ada = store.search({"search": "ada"})[0]
        store.delete(ada.id)
        store.update(store.list()[0].id, {"notes": "kept"})

        assert store.restore(reference) == 1
        assert len(store) == 2
        assert store.search({"search": "alan"})[0].notes == "kept"

    def test_restore_missing_backup_restores_nothing(self, store):
        assert store.restore("contacts.backup.0") == 0
        assert len(store) == 2


class TestMaintenance:
    """Tests for vacuum/analyze."""

    def test_vacuum_changes_nothing(self, store, storage):
        writes = storage.write_count
        store.vacuum()
        assert storage.write_count == writes
        assert len(store) == 2

    def test_analyze_reports_collection(self, store):
        store.backup()
        report = store.analyze()
        assert report["contactCount"] == 2
        assert report["slot"] == "contacts"
        assert report["backend"] == "memory"
        assert report["backupCount"] == 1
        assert report["sizeBytes"] > 0


class TestAutoBackup:
    """Tests for the scheduled backup thread."""

    def test_runs_on_interval_and_stops(self):
        ran = threading.Event()
        scheduler = AutoBackup(ran.set, interval=0.01)
        scheduler.start()
        try:
            assert ran.wait(2.0)
            assert scheduler.running
        finally:
            scheduler.stop()
        assert not scheduler.running

    def test_failures_do_not_stop_schedule(self):
        calls = []
        second_call = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            second_call.set()

        scheduler = AutoBackup(flaky, interval=0.01)
        scheduler.start()
        try:
            assert second_call.wait(2.0)
        finally:
            scheduler.stop()

    def test_store_schedules_and_close_stops(self, storage):
        store = ContactStore(storage, slot="auto", auto_backup=True, backup_interval=0.01)
        store.create({"firstName": "Auto", "lastName": "Backup"})
        assert store.auto_backup_running
        for _ in range(200):
            if store.list_backups():
                break
            time.sleep(0.01)
        store.close()
        assert not store.auto_backup_running
        assert store.list_backups()
