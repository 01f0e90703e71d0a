from __future__ import annotations

from typing import Optional

from taskdeck.domain.common.errors import ValidationError

MIN_PASSWORD_LENGTH = 6
MAX_DISPLAY_NAME_LENGTH = 80


def normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("Please enter a valid email address.")
    return email


def validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    return password


def validate_display_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Display name is required.")
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise ValidationError(f"Display name is too long (max {MAX_DISPLAY_NAME_LENGTH} chars).")
    return name
