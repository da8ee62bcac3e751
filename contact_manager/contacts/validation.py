"""Form validation and normalisation for contact input.

The store accepts whatever it is given; these checks run in front of it on
the desktop form path.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")
MAX_TAGS = 10
MAX_TAG_LENGTH = 20


@dataclass
class ValidationError:
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def validate_phone(phone: str) -> bool:
    """Between 10 and 15 digits once formatting characters are removed."""
    digits = re.sub(r"\D", "", phone)
    return 10 <= len(digits) <= 15


def _text(data: Mapping[str, Any], key: str) -> str:
    return (data.get(key) or "").strip()


def _check_name(errors: List[ValidationError], field: str, label: str, value: str) -> None:
    if not value:
        errors.append(ValidationError(field, f"{label} is required"))
    elif len(value) < 2:
        errors.append(ValidationError(field, f"{label} must be at least 2 characters"))


def validate_contact(data: Mapping[str, Any], *, partial: bool = False) -> List[ValidationError]:
    """Check camelCase contact form data.

    With ``partial`` set only the fields present in ``data`` are checked,
    which is what an update needs.
    """
    errors: List[ValidationError] = []

    def wanted(key: str) -> bool:
        return not partial or key in data

    if wanted("firstName"):
        _check_name(errors, "firstName", "First name", _text(data, "firstName"))
    if wanted("lastName"):
        _check_name(errors, "lastName", "Last name", _text(data, "lastName"))

    if wanted("email"):
        email = _text(data, "email")
        if not email:
            errors.append(ValidationError("email", "Email is required"))
        elif not validate_email(email):
            errors.append(ValidationError("email", "Please enter a valid email address"))

    if wanted("phone"):
        phone = _text(data, "phone")
        if not phone:
            errors.append(ValidationError("phone", "Phone number is required"))
        elif not validate_phone(phone):
            errors.append(ValidationError("phone", "Please enter a valid phone number"))

    company = data.get("company")
    if company and len(company.strip()) < 2:
        errors.append(ValidationError("company", "Company name must be at least 2 characters"))

    job_title = data.get("jobTitle")
    if job_title and len(job_title.strip()) < 2:
        errors.append(ValidationError("jobTitle", "Job title must be at least 2 characters"))

    address = data.get("address")
    if isinstance(address, Mapping):
        street = address.get("street")
        if street and len(street.strip()) < 5:
            errors.append(
                ValidationError("address.street", "Street address must be at least 5 characters")
            )
        city = address.get("city")
        if city and len(city.strip()) < 2:
            errors.append(ValidationError("address.city", "City must be at least 2 characters"))
        state = address.get("state")
        if state and len(state.strip()) < 2:
            errors.append(ValidationError("address.state", "State must be at least 2 characters"))
        zip_code = address.get("zipCode")
        if zip_code and not ZIP_RE.match(zip_code):
            errors.append(ValidationError("address.zipCode", "Please enter a valid ZIP code"))

    tags = data.get("tags")
    if tags and len(tags) > MAX_TAGS:
        errors.append(ValidationError("tags", f"Maximum {MAX_TAGS} tags allowed"))

    return errors


def format_phone_number(phone: str) -> str:
    """US-style formatting for 7, 10 and 11 digit numbers; anything else is returned as is."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == "1":
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    if len(digits) == 7:
        return f"{digits[:3]}-{digits[3:]}"
    return phone


def normalize_email(email: str) -> str:
    return email.strip().lower()


def sanitize_input(value: str) -> str:
    return re.sub(r"[<>]", "", value.strip())


def validate_tag(tag: str) -> bool:
    return 1 <= len(tag.strip()) <= MAX_TAG_LENGTH


def normalize_tags(tags: List[str]) -> List[str]:
    cleaned = [tag.strip() for tag in tags]
    return [tag for tag in cleaned if tag][:MAX_TAGS]
