"""Backups Router - snapshot, restore and maintenance endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_store
from api.models import RestoreRequest
from contact_manager.contacts import ContactImportError, ContactStore

logger = logging.getLogger(__name__)

# Mounted at /backups
router = APIRouter()

# Mounted at /maintenance
maintenance_router = APIRouter()


@router.post("", status_code=201)
def create_backup(store: ContactStore = Depends(get_store)) -> dict:
    reference = store.backup()
    return {"reference": reference}


@router.get("")
def list_backups(store: ContactStore = Depends(get_store)) -> dict:
    return {"backups": store.list_backups()}


@router.post("/restore")
def restore_backup(
    request: RestoreRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    try:
        restored = store.restore(request.reference)
    except ContactImportError as exc:
        raise HTTPException(status_code=400, detail=f"Backup is not a contact array: {exc}") from exc
    return {"reference": request.reference, "restored": restored, "total": len(store)}


@maintenance_router.post("/vacuum")
def vacuum(store: ContactStore = Depends(get_store)) -> dict:
    store.vacuum()
    return {"status": "ok"}


@maintenance_router.get("/analyze")
def analyze(store: ContactStore = Depends(get_store)) -> dict:
    return store.analyze()
