"""Messages Router - action-style requests from the browser extension.

The popup, background worker and content script all send
``{action, id?, data?, query?}`` and expect ``{success, data?, error?}``.
Failures are reported in the body with HTTP 200, the way the extension
runtime messaging does it.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_store, serialize_contacts
from api.models import MessageRequest
from contact_manager.contacts import ContactImportError, ContactStore
from contact_manager.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = "Contact not found"


class MessageError(Exception):
    """Failure reported back to the extension as ``success: false``."""


def _require_id(request: MessageRequest) -> str:
    if not request.id:
        raise MessageError("Missing contact id")
    return request.id


def _require_mapping(request: MessageRequest) -> Dict[str, Any]:
    if not isinstance(request.data, dict):
        raise MessageError("Missing contact data")
    return request.data


def _get_contacts(store: ContactStore, request: MessageRequest) -> Any:
    return serialize_contacts(store.list())


def _save_contact(store: ContactStore, request: MessageRequest) -> Any:
    return store.create(_require_mapping(request)).to_dict()


def _update_contact(store: ContactStore, request: MessageRequest) -> Any:
    contact = store.update(_require_id(request), _require_mapping(request))
    if contact is None:
        raise MessageError(NOT_FOUND)
    return contact.to_dict()


def _delete_contact(store: ContactStore, request: MessageRequest) -> Any:
    return store.delete(_require_id(request))


def _search_contacts(store: ContactStore, request: MessageRequest) -> Any:
    query = request.query
    if isinstance(query, str):
        query = {"search": query}
    return serialize_contacts(store.search(query or {}))


def _get_stats(store: ContactStore, request: MessageRequest) -> Any:
    return store.stats().to_dict()


def _export_contacts(store: ContactStore, request: MessageRequest) -> Any:
    return store.export_all()


def _import_contacts(store: ContactStore, request: MessageRequest) -> Any:
    if isinstance(request.data, str):
        imported = store.import_batch(request.data)
    else:
        imported = store.import_records(request.data)
    return {"imported": imported, "total": len(store)}


def _toggle_favorite(store: ContactStore, request: MessageRequest) -> Any:
    contact = store.toggle_favorite(_require_id(request))
    if contact is None:
        raise MessageError(NOT_FOUND)
    return contact.to_dict()


def _clear_all(store: ContactStore, request: MessageRequest) -> Any:
    store.clear_all()
    return True


ACTIONS: Dict[str, Callable[[ContactStore, MessageRequest], Any]] = {
    "getContacts": _get_contacts,
    "saveContact": _save_contact,
    "updateContact": _update_contact,
    "deleteContact": _delete_contact,
    "searchContacts": _search_contacts,
    "getStats": _get_stats,
    "exportContacts": _export_contacts,
    "importContacts": _import_contacts,
    "toggleFavorite": _toggle_favorite,
    "clearAll": _clear_all,
}


def handle_message(store: ContactStore, request: MessageRequest) -> Dict[str, Any]:
    """Run one extension request against ``store`` and wrap the result."""
    handler = ACTIONS.get(request.action)
    if handler is None:
        return {"success": False, "error": "Unknown action"}
    try:
        return {"success": True, "data": handler(store, request)}
    except (MessageError, ContactImportError, ValueError) as exc:
        return {"success": False, "error": str(exc)}
    except StorageError as exc:
        logger.error(f"[Messages] {request.action} failed to persist: {exc}")
        return {"success": False, "error": str(exc)}


@router.post("")
def post_message(
    request: MessageRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    return handle_message(store, request)
