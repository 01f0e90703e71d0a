from __future__ import annotations

import logging
from typing import Dict, Optional

from taskdeck.domain.auth.models import AuthResult, User
from taskdeck.domain.auth.ports import AuthProvider
from taskdeck.domain.auth.rules import normalize_email, validate_display_name, validate_password
from taskdeck.domain.common.errors import DomainError, RemoteError

logger = logging.getLogger(__name__)

UNAVAILABLE = "Authentication is unavailable right now. Please try again later."


class AuthService:
    """
    Sign-up / sign-in over an AuthProvider, plus who is signed in on which
    Telegram chat. Every call returns an AuthResult.
    """

    def __init__(self, provider: AuthProvider) -> None:
        self._provider = provider
        self._sessions: Dict[int, User] = {}

    def current_user(self, chat_user_id: int) -> Optional[User]:
        return self._sessions.get(chat_user_id)

    async def sign_up(self, chat_user_id: int, email: str, password: str, display_name: str) -> AuthResult:
        try:
            email = normalize_email(email)
            validate_password(password)
            display_name = validate_display_name(display_name)
            user = await self._provider.sign_up(email, password, display_name)
        except RemoteError as e:
            logger.warning("Sign-up failed: %s", e, exc_info=True)
            return AuthResult.fail(UNAVAILABLE)
        except DomainError as e:
            return AuthResult.fail(str(e))
        self._sessions[chat_user_id] = user
        logger.info("User signed up user_id=%s chat=%s", user.id, chat_user_id)
        return AuthResult(success=True, user=user)

    async def sign_in(self, chat_user_id: int, email: str, password: str) -> AuthResult:
        try:
            email = normalize_email(email)
            user = await self._provider.sign_in(email, password or "")
        except RemoteError as e:
            logger.warning("Sign-in failed: %s", e, exc_info=True)
            return AuthResult.fail(UNAVAILABLE)
        except DomainError as e:
            return AuthResult.fail(str(e))
        self._sessions[chat_user_id] = user
        logger.info("User signed in user_id=%s chat=%s", user.id, chat_user_id)
        return AuthResult(success=True, user=user)

    def sign_out(self, chat_user_id: int) -> AuthResult:
        user = self._sessions.pop(chat_user_id, None)
        if user is None:
            return AuthResult.fail("You are not signed in.")
        return AuthResult(success=True, user=user)

    async def reset_password(self, email: str) -> AuthResult:
        try:
            email = normalize_email(email)
            token = await self._provider.request_reset(email)
        except RemoteError as e:
            logger.warning("Password reset request failed: %s", e, exc_info=True)
            return AuthResult.fail(UNAVAILABLE)
        except DomainError as e:
            return AuthResult.fail(str(e))
        return AuthResult(success=True, reset_token=token)

    async def confirm_reset(self, token: str, new_password: str) -> AuthResult:
        try:
            validate_password(new_password)
            user = await self._provider.confirm_reset((token or "").strip(), new_password)
        except RemoteError as e:
            logger.warning("Password reset failed: %s", e, exc_info=True)
            return AuthResult.fail(UNAVAILABLE)
        except DomainError as e:
            return AuthResult.fail(str(e))
        return AuthResult(success=True, user=user)
