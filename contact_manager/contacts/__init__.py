"""Contact model, search and storage module."""
from .backup import AutoBackup, BackupManager
from .models import Address, Contact, ContactStats
from .search import ContactFilters, apply_filters
from .store import (
    ContactImportError,
    ContactStore,
    ContactStoreError,
    generate_contact_id,
    merge_contact,
)
from .validation import ValidationError, validate_contact

__all__ = [
    # Model
    "Address",
    "Contact",
    "ContactStats",
    # Search
    "ContactFilters",
    "apply_filters",
    # Storage
    "ContactStore",
    "ContactStoreError",
    "ContactImportError",
    "generate_contact_id",
    "merge_contact",
    # Backups
    "AutoBackup",
    "BackupManager",
    # Validation
    "ValidationError",
    "validate_contact",
]
