"""Contacts Router - REST endpoints used by the desktop app.

Handles:
- Contact CRUD with form validation
- Search with tag/favorite filters and sorting
- Statistics
- JSON export/import and clearing the collection
"""
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import (
    ensure_valid,
    get_contact_or_404,
    get_store,
    serialize_contacts,
)
from api.models import (
    ContactCreateRequest,
    ContactUpdateRequest,
    ImportRequest,
    ImportResponse,
)
from contact_manager.contacts import ContactFilters, ContactImportError, ContactStore

logger = logging.getLogger(__name__)

router = APIRouter()

SortField = Literal["firstName", "lastName", "email", "createdAt", "updatedAt"]


@router.get("")
def list_contacts(
    search: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    is_favorite: Optional[bool] = Query(None, alias="isFavorite"),
    sort_by: Optional[SortField] = Query(None, alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    store: ContactStore = Depends(get_store),
) -> dict:
    filters = ContactFilters(
        search=search,
        tags=tags or [],
        is_favorite=is_favorite,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    contacts = store.search(filters)
    return {"contacts": serialize_contacts(contacts), "count": len(contacts)}


@router.post("", status_code=201)
def create_contact(
    request: ContactCreateRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    data = request.to_contact_data()
    ensure_valid(data)
    contact = store.create(data)
    return contact.to_dict()


@router.get("/stats")
def contact_stats(store: ContactStore = Depends(get_store)) -> dict:
    return store.stats().to_dict()


@router.get("/export")
def export_contacts(store: ContactStore = Depends(get_store)) -> Response:
    return Response(
        content=store.export_all(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="contacts.json"'},
    )


@router.post("/import", response_model=ImportResponse)
def import_contacts(
    request: ImportRequest,
    store: ContactStore = Depends(get_store),
) -> ImportResponse:
    try:
        if isinstance(request.data, str):
            imported = store.import_batch(request.data)
        else:
            imported = store.import_records(request.data)
    except ContactImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ImportResponse(imported=imported, total=len(store))


@router.delete("")
def clear_contacts(
    confirm: bool = Query(False),
    store: ContactStore = Depends(get_store),
) -> dict:
    if not confirm:
        raise HTTPException(status_code=400, detail="Pass confirm=true to delete every contact.")
    store.clear_all()
    logger.warning("[Contacts] Collection cleared through the API")
    return {"cleared": True}


@router.get("/{contact_id}")
def get_contact(contact_id: str, store: ContactStore = Depends(get_store)) -> dict:
    return get_contact_or_404(store, contact_id).to_dict()


@router.patch("/{contact_id}")
def update_contact(
    contact_id: str,
    request: ContactUpdateRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    changes = request.to_changes()
    ensure_valid(changes, partial=True)
    contact = store.update(contact_id, changes)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found.")
    return contact.to_dict()


@router.delete("/{contact_id}")
def delete_contact(contact_id: str, store: ContactStore = Depends(get_store)) -> dict:
    if not store.delete(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found.")
    return {"deleted": True, "id": contact_id}


@router.post("/{contact_id}/favorite")
def toggle_favorite(contact_id: str, store: ContactStore = Depends(get_store)) -> dict:
    contact = store.toggle_favorite(contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found.")
    return contact.to_dict()
