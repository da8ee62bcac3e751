"""Slot storage: whole-value persistence keyed by slot name.

A slot holds one JSON-compatible value and is always rewritten in full.
The contact store keeps its entire collection in one slot; backups live in
sibling slots of the same storage.

Backends:
    JsonFileStorage: one pretty-printed JSON file per slot (default, dev mode)
    FirestoreStorage: one Firestore document per slot
    InMemoryStorage: process-local dict, nothing survives the process

Environment Variables:
    CM_STORAGE_BACKEND: "file", "firestore" or "memory"
    CM_FORCE_FILE: Set to "1" to force the file backend
    CM_DATA_DIR: Directory for file-based storage (default: contact_data/)
    CM_FIRESTORE_COLLECTION: Firestore collection holding slots
    CM_FIRESTORE_PROJECT: Google Cloud project (default: ambient project)
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Settings
from .firestore import get_firestore_client

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a slot cannot be read or written."""


class SlotStorage:
    """Interface shared by every storage backend."""

    name = "abstract"

    def read(self, key: str) -> Optional[Any]:
        """Return the value held in ``key``, or None when the slot is absent."""
        raise NotImplementedError

    def write(self, key: str, value: Any) -> None:
        """Replace the value held in ``key``."""
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it existed."""
        raise NotImplementedError

    def keys(self, prefix: str = "") -> List[str]:
        """Return the sorted slot names starting with ``prefix``."""
        raise NotImplementedError


class InMemoryStorage(SlotStorage):
    """Slots kept in a dict. Values are copied through JSON on the way in and out."""

    name = "memory"

    def __init__(self) -> None:
        self._slots: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.write_count = 0

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._slots.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def write(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Value for slot {key!r} is not JSON serializable: {exc}") from exc
        with self._lock:
            self._slots[key] = raw
            self.write_count += 1

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._slots.pop(key, None) is not None

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(k for k in self._slots if k.startswith(prefix))


class JsonFileStorage(SlotStorage):
    """One ``<slot>.json`` file per slot inside ``directory``."""

    name = "file"

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _slot_file(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.json"

    def read(self, key: str) -> Optional[Any]:
        filepath = self._slot_file(key)
        if not filepath.exists():
            return None
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            raise StorageError(f"Could not read slot {key!r} from {filepath}: {exc}") from exc

    def write(self, key: str, value: Any) -> None:
        filepath = self._slot_file(key)
        # Swap in a complete file; readers never see a partial slot.
        temp_path = filepath.with_name(filepath.name + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            temp_path.replace(filepath)
        except (TypeError, ValueError, OSError) as exc:
            temp_path.unlink(missing_ok=True)
            raise StorageError(f"Could not write slot {key!r} to {filepath}: {exc}") from exc

    def delete(self, key: str) -> bool:
        filepath = self._slot_file(key)
        if filepath.exists():
            filepath.unlink()
            return True
        return False

    def keys(self, prefix: str = "") -> List[str]:
        if not self.directory.exists():
            return []
        names = (path.stem for path in self.directory.glob("*.json"))
        return sorted(name for name in names if name.startswith(prefix))


class FirestoreStorage(SlotStorage):
    """Slots stored as documents of one Firestore collection.

    Firestore documents must be maps, so each value is wrapped as
    ``{"value": <value>, "updatedAt": <iso timestamp>}``.
    """

    name = "firestore"

    def __init__(
        self, collection: str, client: Any = None, project: Optional[str] = None
    ) -> None:
        self.collection = collection
        self.project = project
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_firestore_client(self.project)
        return self._client

    def _doc(self, key: str) -> Any:
        return self.client.collection(self.collection).document(key)

    def read(self, key: str) -> Optional[Any]:
        try:
            doc = self._doc(key).get()
        except Exception as exc:  # pragma: no cover - network/auth path
            raise StorageError(f"Firestore read of slot {key!r} failed: {exc}") from exc
        if not doc.exists:
            return None
        return (doc.to_dict() or {}).get("value")

    def write(self, key: str, value: Any) -> None:
        payload = {
            "value": value,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self._doc(key).set(payload)
        except Exception as exc:  # pragma: no cover - network/auth path
            raise StorageError(f"Firestore write of slot {key!r} failed: {exc}") from exc

    def delete(self, key: str) -> bool:
        doc_ref = self._doc(key)
        if doc_ref.get().exists:
            doc_ref.delete()
            return True
        return False

    def keys(self, prefix: str = "") -> List[str]:
        docs = self.client.collection(self.collection).stream()
        return sorted(doc.id for doc in docs if doc.id.startswith(prefix))


def get_storage(settings: Settings) -> SlotStorage:
    """Build the storage backend selected by ``settings``."""
    if settings.storage_backend == "memory":
        logger.info("[Storage] Using in-memory storage; data will not persist")
        return InMemoryStorage()
    if settings.storage_backend == "firestore":
        logger.info(f"[Storage] Using Firestore collection {settings.firestore_collection}")
        return FirestoreStorage(settings.firestore_collection, project=settings.firestore_project)
    logger.info(f"[Storage] Using JSON files in {settings.data_dir}")
    return JsonFileStorage(settings.data_dir)
