"""Contact store: the authoritative contact collection and its persistence.

The whole collection lives in memory as a dict keyed by contact id and is
written to a single storage slot (a mapping of id -> contact) after every
mutation. The slot is read once, when the store is constructed; a missing
or unreadable slot starts an empty collection.

Instances do not coordinate with each other. Two stores bound to the same
slot overwrite each other's writes (last writer wins).
"""
from __future__ import annotations

import copy
import json
import logging
import secrets
import string
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import DEFAULT_BACKUP_INTERVAL, DEFAULT_SLOT, Settings
from ..storage import SlotStorage, StorageError, get_storage
from .backup import AutoBackup, BackupManager
from .models import (
    Address,
    CONTACT_FORM_FIELDS,
    MANAGED_FIELDS,
    Contact,
    ContactStats,
    coerce_optional_text,
    coerce_tags,
    coerce_text,
)
from .search import ContactFilters, apply_filters

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
_TEXT_FIELDS = {"firstName", "lastName", "email", "phone"}

SAMPLE_CONTACTS: List[Dict[str, Any]] = [
    {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@example.com",
        "phone": "(555) 123-4567",
        "company": "Example Corp",
        "jobTitle": "Software Engineer",
        "address": {
            "street": "123 Main St",
            "city": "Anytown",
            "state": "CA",
            "zipCode": "12345",
            "country": "USA",
        },
        "tags": ["work", "developer"],
        "notes": "Lead developer on the main project",
        "isFavorite": True,
    },
    {
        "firstName": "Jane",
        "lastName": "Smith",
        "email": "jane.smith@example.com",
        "phone": "(555) 987-6543",
        "company": "Tech Solutions",
        "jobTitle": "Product Manager",
        "address": {
            "street": "456 Oak Ave",
            "city": "Somewhere",
            "state": "NY",
            "zipCode": "67890",
            "country": "USA",
        },
        "tags": ["work", "manager"],
        "notes": "Great collaborator on projects",
        "isFavorite": False,
    },
]


class ContactStoreError(RuntimeError):
    """Base class for contact store failures."""


class ContactImportError(ContactStoreError):
    """Raised when an import payload is not a JSON array."""


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_contact_id() -> str:
    """Millisecond clock in base 36 followed by 11 random base-36 characters."""
    stamp = _to_base36(time.time_ns() // 1_000_000)
    return stamp + "".join(secrets.choice(_BASE36) for _ in range(11))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _next_timestamp(previous: str) -> str:
    """Current time, nudged past ``previous`` when the clock has not moved on."""
    now = datetime.now(timezone.utc)
    try:
        prior = datetime.fromisoformat(previous)
    except (TypeError, ValueError):
        return now.isoformat(timespec="microseconds")
    if prior.tzinfo is None:
        prior = prior.replace(tzinfo=timezone.utc)
    if now <= prior:
        now = prior + timedelta(microseconds=1)
    return now.isoformat(timespec="microseconds")


def merge_contact(existing: Contact, changes: Mapping[str, Any]) -> Contact:
    """Return a copy of ``existing`` with the fields named in ``changes`` replaced.

    Fields not named are kept. ``tags`` given as None keeps the current tags.
    ``address`` is replaced as a whole. Store-managed keys are ignored and
    unrecognised keys are kept in ``extra``. Text fields are stored as
    strings and a single string tag becomes a one-tag list.
    """
    merged = copy.deepcopy(existing)
    for key, value in changes.items():
        if key in MANAGED_FIELDS:
            continue
        if key == "tags":
            if value is not None:
                merged.tags = coerce_tags(value)
        elif key == "address":
            merged.address = Address.from_dict(value) if isinstance(value, dict) else None
        elif key in _TEXT_FIELDS:
            setattr(merged, CONTACT_FORM_FIELDS[key], coerce_text(value))
        elif key in CONTACT_FORM_FIELDS:
            setattr(merged, CONTACT_FORM_FIELDS[key], coerce_optional_text(value))
        else:
            merged.extra[key] = copy.deepcopy(value)
    return merged


class ContactStore:
    """CRUD, search, statistics and bulk transfer over one contact slot."""

    def __init__(
        self,
        storage: SlotStorage,
        slot: str = DEFAULT_SLOT,
        *,
        auto_backup: bool = False,
        backup_interval: float = DEFAULT_BACKUP_INTERVAL,
        backup_retain: int = 0,
    ) -> None:
        self.storage = storage
        self.slot = slot
        self._contacts: Dict[str, Contact] = {}
        self._lock = threading.RLock()
        self.backups = BackupManager(self, retain=backup_retain)
        self._load()

        self._auto_backup: Optional[AutoBackup] = None
        if auto_backup:
            self._auto_backup = AutoBackup(self.backups.backup, backup_interval)
            self._auto_backup.start()

    @classmethod
    def from_settings(cls, settings: Settings) -> ContactStore:
        return cls(
            get_storage(settings),
            settings.slot,
            auto_backup=settings.auto_backup,
            backup_interval=settings.backup_interval,
            backup_retain=settings.backup_retain,
        )

    # --- persistence ---

    def _load(self) -> None:
        try:
            data = self.storage.read(self.slot)
        except StorageError as exc:
            logger.warning(f"[Contacts] Failed to load contacts, starting empty: {exc}")
            return
        if data is None:
            return
        if not isinstance(data, dict):
            logger.warning(
                f"[Contacts] Slot {self.slot} does not hold an id mapping, starting empty"
            )
            return
        for contact_id, record in data.items():
            if not isinstance(record, dict):
                continue
            contact = Contact.from_dict(record)
            if not contact.id:
                contact.id = contact_id
            elif contact.id != contact_id:
                logger.warning(
                    f"[Contacts] Record stored under {contact_id} carries id {contact.id}; "
                    f"keeping it under {contact.id}"
                )
            self._contacts[contact.id] = contact
        logger.debug(f"[Contacts] Loaded {len(self._contacts)} contacts from {self.slot}")

    def _save(self) -> None:
        data = {cid: contact.to_dict() for cid, contact in self._contacts.items()}
        try:
            self.storage.write(self.slot, data)
        except StorageError as exc:
            logger.error(f"[Contacts] Failed to save contacts to {self.slot}: {exc}")
            raise

    # --- CRUD ---

    def create(self, data: Mapping[str, Any]) -> Contact:
        """Add a new contact built from ``data`` (camelCase contact fields).

        The store assigns ``id``, ``createdAt``/``updatedAt`` and sets
        ``isFavorite`` to False. Field contents are not validated here.
        """
        with self._lock:
            now = _now()
            contact = merge_contact(Contact(id="", first_name="", last_name=""), data)
            contact.id = generate_contact_id()
            contact.created_at = now
            contact.updated_at = now
            contact.is_favorite = False
            self._contacts[contact.id] = contact
            self._save()
            logger.debug(f"[Contacts] Created contact {contact.id}")
            return copy.deepcopy(contact)

    def get(self, contact_id: str) -> Optional[Contact]:
        with self._lock:
            contact = self._contacts.get(contact_id)
            return copy.deepcopy(contact) if contact else None

    def list(self) -> List[Contact]:
        """Every contact, in insertion order."""
        with self._lock:
            return [copy.deepcopy(c) for c in self._contacts.values()]

    def update(self, contact_id: str, changes: Mapping[str, Any]) -> Optional[Contact]:
        """Merge ``changes`` onto a contact. Returns None when the id is unknown."""
        with self._lock:
            existing = self._contacts.get(contact_id)
            if existing is None:
                return None
            updated = merge_contact(existing, changes or {})
            updated.updated_at = _next_timestamp(existing.updated_at)
            self._contacts[contact_id] = updated
            self._save()
            logger.debug(f"[Contacts] Updated contact {contact_id}")
            return copy.deepcopy(updated)

    def delete(self, contact_id: str) -> bool:
        """Remove a contact. The slot is only rewritten when something was removed."""
        with self._lock:
            if self._contacts.pop(contact_id, None) is None:
                return False
            self._save()
            logger.debug(f"[Contacts] Deleted contact {contact_id}")
            return True

    def toggle_favorite(self, contact_id: str) -> Optional[Contact]:
        with self._lock:
            existing = self._contacts.get(contact_id)
            if existing is None:
                return None
            updated = copy.deepcopy(existing)
            updated.is_favorite = not existing.is_favorite
            updated.updated_at = _next_timestamp(existing.updated_at)
            self._contacts[contact_id] = updated
            self._save()
            return copy.deepcopy(updated)

    def clear_all(self) -> None:
        with self._lock:
            self._contacts.clear()
            self._save()
            logger.info(f"[Contacts] Cleared all contacts in {self.slot}")

    # --- queries ---

    def search(
        self, filters: Union[ContactFilters, Mapping[str, Any], None] = None
    ) -> List[Contact]:
        """Filter and optionally sort contacts.

        ``filters`` may be a ContactFilters or its camelCase dict form
        (``search``, ``tags``, ``isFavorite``, ``sortBy``, ``sortOrder``).
        """
        if not isinstance(filters, ContactFilters):
            filters = ContactFilters.from_dict(dict(filters or {}))
        return apply_filters(self.list(), filters)

    def stats(self) -> ContactStats:
        stats = ContactStats()
        with self._lock:
            for contact in self._contacts.values():
                stats.total += 1
                if contact.is_favorite:
                    stats.favorites += 1
                if contact.email:
                    stats.with_email += 1
                if contact.phone:
                    stats.with_phone += 1
                for tag in contact.tags:
                    stats.by_tag[tag] = stats.by_tag.get(tag, 0) + 1
        return stats

    def __len__(self) -> int:
        return len(self._contacts)

    # --- bulk transfer ---

    def snapshot(self) -> List[Dict[str, Any]]:
        """Wire dicts of every contact, in list() order."""
        with self._lock:
            return [contact.to_dict() for contact in self._contacts.values()]

    def export_all(self) -> str:
        """The whole collection as a pretty-printed JSON array."""
        return json.dumps(self.snapshot(), indent=2, ensure_ascii=False)

    def import_batch(self, payload: str) -> int:
        """Import contacts from a JSON array; returns how many were added.

        Raises:
            ContactImportError: if ``payload`` is not a JSON array.
        """
        try:
            records = json.loads(payload)
        except (TypeError, ValueError) as exc:
            logger.error(f"[Contacts] Failed to import contacts: {exc}")
            raise ContactImportError("Invalid import data format") from exc
        return self.import_records(records)

    def import_records(self, records: Any) -> int:
        """Insert records whose id is not already present, as given.

        Records without an id or with a colliding id are skipped silently.
        """
        if not isinstance(records, list):
            logger.error("[Contacts] Failed to import contacts: payload is not an array")
            raise ContactImportError("Invalid import data format")

        with self._lock:
            imported = 0
            for record in records:
                if not isinstance(record, dict):
                    continue
                contact_id = record.get("id")
                if not contact_id or str(contact_id) in self._contacts:
                    continue
                contact = Contact.from_dict(record)
                contact.id = str(contact_id)
                self._contacts[contact.id] = contact
                imported += 1
            self._save()
        logger.info(f"[Contacts] Imported {imported} contacts")
        return imported

    def seed_samples(self) -> int:
        """Insert the sample contacts when the collection is empty."""
        with self._lock:
            if self._contacts:
                return 0
            for sample in SAMPLE_CONTACTS:
                now = _now()
                contact = merge_contact(Contact(id="", first_name="", last_name=""), sample)
                contact.id = generate_contact_id()
                contact.created_at = now
                contact.updated_at = now
                contact.is_favorite = bool(sample.get("isFavorite"))
                self._contacts[contact.id] = contact
            self._save()
            logger.info(f"[Contacts] Seeded {len(SAMPLE_CONTACTS)} sample contacts")
            return len(SAMPLE_CONTACTS)

    # --- backups and maintenance ---

    def backup(self) -> str:
        return self.backups.backup()

    def restore(self, reference: str) -> int:
        return self.backups.restore(reference)

    def list_backups(self) -> List[str]:
        return self.backups.list_backups()

    def vacuum(self) -> None:
        """Kept for parity with embedded databases; there is nothing to compact."""
        logger.info(f"[Contacts] VACUUM requested for {self.slot}; nothing to do")

    def analyze(self) -> Dict[str, Any]:
        """Report collection size; no statistics are rebuilt."""
        with self._lock:
            data = {cid: contact.to_dict() for cid, contact in self._contacts.items()}
            return {
                "contactCount": len(data),
                "slot": self.slot,
                "backend": self.storage.name,
                "sizeBytes": len(json.dumps(data).encode("utf-8")),
                "backupCount": len(self.list_backups()),
            }

    @property
    def auto_backup_running(self) -> bool:
        return self._auto_backup is not None and self._auto_backup.running

    def close(self) -> None:
        """Stop the auto-backup thread and flush the slot."""
        if self._auto_backup is not None:
            self._auto_backup.stop()
            self._auto_backup = None
        with self._lock:
            self._save()
