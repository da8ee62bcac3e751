"""Shared dependencies and helper functions for API routers.

Usage in routers:
    from api.dependencies import get_store, get_contact_or_404
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Mapping

from fastapi import HTTPException

from contact_manager.config import Settings, load_settings
from contact_manager.contacts import Contact, ContactStore, validate_contact


# =============================================================================
# Configuration Constants
# =============================================================================

ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Extension pages call the API from their own origin scheme.
EXTENSION_ORIGIN_REGEX = r"^(chrome|moz)-extension://[a-zA-Z0-9\-]+$"


# =============================================================================
# Cached Functions
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return load_settings()


@lru_cache
def get_store() -> ContactStore:
    """One store per API process, bound to the configured slot."""
    return ContactStore.from_settings(get_settings())


# =============================================================================
# Helpers
# =============================================================================

def serialize_contacts(contacts: List[Contact]) -> List[Dict[str, Any]]:
    return [contact.to_dict() for contact in contacts]


def get_contact_or_404(store: ContactStore, contact_id: str) -> Contact:
    contact = store.get(contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found.")
    return contact


def ensure_valid(data: Mapping[str, Any], *, partial: bool = False) -> None:
    """Reject form data that fails validation with HTTP 422."""
    errors = validate_contact(data, partial=partial)
    if errors:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Contact data is invalid.",
                "errors": [error.to_dict() for error in errors],
            },
        )
