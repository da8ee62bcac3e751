"""Shared Pydantic models for API routers.

Bodies use the camelCase field names of the contact wire format; the
Python attributes are snake_case with aliases.

Usage in routers:
    from api.models import ContactCreateRequest, MessageRequest
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Contact Models
# =============================================================================

class AddressModel(BaseModel):
    """Postal address; every part optional."""
    model_config = ConfigDict(populate_by_name=True)

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    country: Optional[str] = None


class ContactCreateRequest(BaseModel):
    """Request body for creating a contact from the desktop form."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str = ""
    phone: str = ""
    company: Optional[str] = None
    job_title: Optional[str] = Field(None, alias="jobTitle")
    address: Optional[AddressModel] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    avatar: Optional[str] = None

    def to_contact_data(self) -> Dict[str, Any]:
        """camelCase dict holding only the fields the caller sent."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class ContactUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their current values."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = Field(None, alias="jobTitle")
    address: Optional[AddressModel] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    avatar: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class ImportRequest(BaseModel):
    """Import payload: exported JSON text, or the already-parsed array."""
    data: Union[str, List[Any]]


class ImportResponse(BaseModel):
    imported: int
    total: int


# =============================================================================
# Backup Models
# =============================================================================

class RestoreRequest(BaseModel):
    reference: str = Field(..., description="Backup reference returned by POST /backups.")


# =============================================================================
# Extension Messaging Models
# =============================================================================

class MessageRequest(BaseModel):
    """Request sent by the extension popup, background worker or content script."""
    action: str
    id: Optional[str] = None
    data: Optional[Any] = None
    query: Optional[Union[str, Dict[str, Any]]] = None


class MessageResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
