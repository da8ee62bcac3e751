"""Point-in-time backups of the contact slot.

A backup is a copy of the exported contact array written to a sibling slot
named ``<slot>.backup.<epoch-ms>``. Restoring merges a backup back in with
import semantics: contacts whose id already exists are left alone.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from ..storage import StorageError

if TYPE_CHECKING:
    from .store import ContactStore

logger = logging.getLogger(__name__)

BACKUP_MARKER = ".backup."


def _backup_stamp(reference: str) -> int:
    try:
        return int(reference.rsplit(".", 1)[-1])
    except ValueError:
        return 0


class BackupManager:
    """Create, list, prune and restore backups for one store."""

    def __init__(self, store: "ContactStore", retain: int = 0) -> None:
        self.store = store
        self.retain = retain

    @property
    def prefix(self) -> str:
        return f"{self.store.slot}{BACKUP_MARKER}"

    def list_backups(self) -> List[str]:
        """Backup references, newest first."""
        keys = self.store.storage.keys(self.prefix)
        return sorted(keys, key=_backup_stamp, reverse=True)

    def backup(self) -> str:
        """Write the current collection to a new backup slot and return its name."""
        stamp = time.time_ns() // 1_000_000
        existing = self.store.storage.keys(self.prefix)
        if existing:
            # Stamps must keep increasing so newest-first ordering holds.
            stamp = max(stamp, max(_backup_stamp(key) for key in existing) + 1)
        reference = f"{self.prefix}{stamp}"

        records = self.store.snapshot()
        self.store.storage.write(reference, records)
        logger.info(f"[Backup] Created backup {reference} ({len(records)} contacts)")

        if self.retain:
            self._prune()
        return reference

    def _prune(self) -> None:
        for reference in self.list_backups()[self.retain:]:
            self.store.storage.delete(reference)
            logger.debug(f"[Backup] Removed old backup {reference}")

    def restore(self, reference: str) -> int:
        """Merge a backup into the store; returns how many contacts were added."""
        try:
            records = self.store.storage.read(reference)
        except StorageError as exc:
            logger.error(f"[Backup] Failed to restore from backup {reference}: {exc}")
            raise
        if records is None:
            logger.warning(f"[Backup] Backup {reference} not found; nothing restored")
            return 0
        imported = self.store.import_records(records)
        logger.info(f"[Backup] Restored {imported} contacts from {reference}")
        return imported


class AutoBackup:
    """Daemon thread that runs ``run_backup`` every ``interval`` seconds.

    Failures are logged and the schedule carries on.
    """

    def __init__(self, run_backup: Callable[[], Any], interval: float) -> None:
        self._run_backup = run_backup
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, name="ContactAutoBackup", daemon=True
        )
        self._thread.start()
        logger.info(f"[Backup] Auto-backup scheduled every {self.interval}s")

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._run_backup()
            except Exception as exc:
                logger.exception(f"[Backup] Scheduled backup failed: {exc}")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
