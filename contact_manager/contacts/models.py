"""Contact records and their camelCase wire format."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


ADDRESS_FIELDS = {
    "street": "street",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "country": "country",
}

# Wire key -> attribute for the fields a caller may set on create/update.
CONTACT_FORM_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "company": "company",
    "jobTitle": "job_title",
    "address": "address",
    "notes": "notes",
    "tags": "tags",
    "avatar": "avatar",
}

# Keys owned by the store; callers cannot set them through create/update.
MANAGED_FIELDS = ("id", "createdAt", "updatedAt", "isFavorite")


def coerce_text(value: Any) -> str:
    """Required text fields: None becomes "", anything else its str()."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def coerce_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def coerce_tags(value: Any) -> List[str]:
    """A lone string is one tag; non-list values carry no tags."""
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, (list, tuple)):
        return []
    return [tag if isinstance(tag, str) else str(tag) for tag in value if tag is not None]


@dataclass
class Address:
    """Postal address. Every part is optional."""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            wire: getattr(self, attr)
            for wire, attr in ADDRESS_FIELDS.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Address:
        return cls(**{
            attr: coerce_optional_text(data.get(wire)) for wire, attr in ADDRESS_FIELDS.items()
        })


@dataclass
class Contact:
    """A person in the user's address book.

    ``extra`` carries keys this version does not model so that imported
    records survive an export untouched.
    """
    id: str
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    company: Optional[str] = None
    job_title: Optional[str] = None
    address: Optional[Address] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    is_favorite: bool = False
    avatar: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dict used for storage, export and the API."""
        data: Dict[str, Any] = {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
        }
        if self.company is not None:
            data["company"] = self.company
        if self.job_title is not None:
            data["jobTitle"] = self.job_title
        if self.address is not None:
            data["address"] = self.address.to_dict()
        if self.notes is not None:
            data["notes"] = self.notes
        data["tags"] = list(self.tags)
        data["createdAt"] = self.created_at
        data["updatedAt"] = self.updated_at
        data["isFavorite"] = self.is_favorite
        if self.avatar is not None:
            data["avatar"] = self.avatar
        for key, value in self.extra.items():
            data.setdefault(key, copy.deepcopy(value))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Contact:
        """Create a contact from its wire dict. Missing tags become an empty list."""
        known = set(CONTACT_FORM_FIELDS) | set(MANAGED_FIELDS)
        address = data.get("address")
        return cls(
            id=coerce_text(data.get("id")),
            first_name=coerce_text(data.get("firstName")),
            last_name=coerce_text(data.get("lastName")),
            email=coerce_text(data.get("email")),
            phone=coerce_text(data.get("phone")),
            company=coerce_optional_text(data.get("company")),
            job_title=coerce_optional_text(data.get("jobTitle")),
            address=Address.from_dict(address) if isinstance(address, dict) else None,
            notes=coerce_optional_text(data.get("notes")),
            tags=coerce_tags(data.get("tags")),
            created_at=coerce_text(data.get("createdAt")),
            updated_at=coerce_text(data.get("updatedAt")),
            # Only a real boolean counts; "false" must not turn into a favorite.
            is_favorite=data.get("isFavorite") is True,
            avatar=coerce_optional_text(data.get("avatar")),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_markdown(self) -> str:
        """Format contact as markdown."""
        star = " ★" if self.is_favorite else ""
        lines = [f"**{self.full_name}**{star}"]
        if self.email:
            lines.append(f"Email: {self.email}")
        if self.phone:
            lines.append(f"Phone: {self.phone}")
        if self.job_title and self.company:
            lines.append(f"Work: {self.job_title} at {self.company}")
        elif self.company:
            lines.append(f"Work: {self.company}")
        elif self.job_title:
            lines.append(f"Work: {self.job_title}")
        if self.address:
            parts = [
                self.address.street,
                self.address.city,
                self.address.state,
                self.address.zip_code,
                self.address.country,
            ]
            lines.append("Address: " + ", ".join(p for p in parts if p))
        if self.tags:
            lines.append("Tags: " + ", ".join(self.tags))
        if self.notes:
            lines.append(f"Notes: {self.notes}")
        return "\n".join(lines)


@dataclass
class ContactStats:
    """Aggregate counts over the whole collection."""
    total: int = 0
    favorites: int = 0
    with_email: int = 0
    with_phone: int = 0
    by_tag: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "favorites": self.favorites,
            "withEmail": self.with_email,
            "withPhone": self.with_phone,
            "byTag": dict(self.by_tag),
        }
