from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    # `id` is the owner_id for every store query
    id: str
    email: str
    display_name: str
    created_at: datetime


@dataclass(frozen=True)
class AuthResult:
    success: bool
    error: Optional[str] = None
    user: Optional[User] = None
    # one-time token from a reset request, delivered out of band
    reset_token: Optional[str] = None

    @classmethod
    def fail(cls, error: str) -> "AuthResult":
        return cls(success=False, error=error)
