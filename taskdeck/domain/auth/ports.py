from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from taskdeck.domain.auth.models import User


class AuthProvider(ABC):
    """
    Identity provider. Credential problems raise ValidationError / ConflictError,
    infrastructure problems raise RemoteError.
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str, display_name: str) -> User: ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> User: ...

    @abstractmethod
    async def request_reset(self, email: str) -> str: ...

    @abstractmethod
    async def confirm_reset(self, token: str, new_password: str) -> User: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...
