"""Filtering and ordering of contacts.

Stages run in a fixed order: free text, tags, favorite flag, then sort.
Every stage is optional.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional

from .models import Contact, coerce_tags


SortOrder = Literal["asc", "desc"]

SORT_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

# Compared case-insensitively when sorting.
_CASEFOLD_SORT_FIELDS = {"firstName", "lastName"}


@dataclass
class ContactFilters:
    """Search request. Leaving every field unset returns all contacts unsorted."""
    search: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    is_favorite: Optional[bool] = None
    sort_by: Optional[str] = None
    sort_order: SortOrder = "asc"

    def __post_init__(self):
        if self.search is not None and not isinstance(self.search, str):
            self.search = str(self.search)
        self.tags = coerce_tags(self.tags)
        if self.sort_by is not None and (
            not isinstance(self.sort_by, str) or self.sort_by not in SORT_FIELDS
        ):
            raise ValueError(
                f"Unsupported sort field {self.sort_by!r}; "
                f"expected one of {', '.join(SORT_FIELDS)}"
            )
        if self.sort_order not in ("asc", "desc"):
            raise ValueError(f"Unsupported sort order {self.sort_order!r}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> ContactFilters:
        """Build filters from the camelCase request shape."""
        data = data or {}
        return cls(
            search=data.get("search") or None,
            tags=data.get("tags"),
            is_favorite=data.get("isFavorite"),
            sort_by=data.get("sortBy") or None,
            sort_order=data.get("sortOrder") or "asc",
        )


def matches_text(contact: Contact, term: str) -> bool:
    """Case-insensitive substring match on names, email and company.

    The phone number is matched as typed, against the lower-cased term.
    """
    needle = term.lower()
    return (
        needle in contact.first_name.lower()
        or needle in contact.last_name.lower()
        or needle in contact.email.lower()
        or needle in contact.phone
        or bool(contact.company and needle in contact.company.lower())
    )


def has_any_tag(contact: Contact, tags: Iterable[str]) -> bool:
    return any(tag in contact.tags for tag in tags)


def _sort_key(sort_by: str):
    attr = SORT_FIELDS[sort_by]
    if sort_by in _CASEFOLD_SORT_FIELDS:
        return lambda contact: getattr(contact, attr).lower()
    return lambda contact: getattr(contact, attr)


def apply_filters(contacts: Iterable[Contact], filters: ContactFilters) -> List[Contact]:
    """Return the contacts that pass ``filters``, ordered if a sort field is set."""
    results = list(contacts)

    if filters.search:
        results = [c for c in results if matches_text(c, filters.search)]

    if filters.tags:
        results = [c for c in results if has_any_tag(c, filters.tags)]

    if filters.is_favorite is not None:
        results = [c for c in results if c.is_favorite == filters.is_favorite]

    if filters.sort_by:
        # list.sort is stable in both directions, so ties keep their prior order.
        results.sort(key=_sort_key(filters.sort_by), reverse=filters.sort_order == "desc")

    return results
