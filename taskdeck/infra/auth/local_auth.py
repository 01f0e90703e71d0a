"""
Local identity provider backed by the bot's SQLite database.

- PBKDF2-SHA256 password hashing (cryptography), random salt per account
- password reset via one-time tokens; only the SHA-256 of a token is stored
"""
from __future__ import annotations

import asyncio
import base64
import logging
import os
import secrets
from datetime import timedelta
from typing import Optional

import aiosqlite
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from taskdeck.domain.auth.models import User
from taskdeck.domain.auth.ports import AuthProvider
from taskdeck.domain.common.errors import ConflictError, NotFoundError, ValidationError
from taskdeck.domain.common.ports import Clock, IdGenerator
from taskdeck.domain.common.time import from_iso, to_iso
from taskdeck.infra.db.connection import Database, remote_errors

logger = logging.getLogger(__name__)

KDF_ITERATIONS = 100_000
SALT_BYTES = 16
RESET_TOKEN_TTL = timedelta(hours=1)
INVALID_CREDENTIALS = "Invalid email or password."


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)


def hash_password(password: str, salt: bytes, iterations: int = KDF_ITERATIONS) -> str:
    return _b64(_kdf(salt, iterations).derive(password.encode("utf-8")))


def verify_password(password: str, salt: bytes, expected_b64: str, iterations: int = KDF_ITERATIONS) -> bool:
    try:
        _kdf(salt, iterations).verify(password.encode("utf-8"), base64.b64decode(expected_b64))
    except InvalidKey:
        return False
    return True


def hash_token(token: str) -> str:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(token.encode("utf-8"))
    return digest.finalize().hex()


class LocalAuthProvider(AuthProvider):
    def __init__(self, db: Database, clock: Clock, ids: IdGenerator, iterations: int = KDF_ITERATIONS) -> None:
        self._db = db
        self._clock = clock
        self._ids = ids
        self._iterations = iterations

    async def sign_up(self, email: str, password: str, display_name: str) -> User:
        with remote_errors("sign_up"):
            existing = await self._db.fetchone("SELECT user_id FROM accounts WHERE email = ?;", (email,))
        if existing:
            raise ConflictError("An account with this email already exists.")

        salt = os.urandom(SALT_BYTES)
        # key derivation is CPU bound; keep it off the event loop
        pw_hash = await asyncio.to_thread(hash_password, password, salt, self._iterations)
        now = self._clock.now()
        user = User(id=self._ids.new_id(), email=email, display_name=display_name, created_at=now)
        with remote_errors("sign_up"):
            try:
                await self._db.execute(
                    """
                    INSERT INTO accounts(user_id, email, display_name, password_hash, password_salt, created_at, last_login_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?);
                    """,
                    (user.id, email, display_name, pw_hash, _b64(salt), to_iso(now), to_iso(now)),
                )
            except aiosqlite.IntegrityError:
                # lost a race with a concurrent sign-up for the same email
                raise ConflictError("An account with this email already exists.") from None
        return user

    async def sign_in(self, email: str, password: str) -> User:
        with remote_errors("sign_in"):
            row = await self._db.fetchone("SELECT * FROM accounts WHERE email = ?;", (email,))
        if row is None:
            raise ValidationError(INVALID_CREDENTIALS)

        ok = await asyncio.to_thread(
            verify_password, password, base64.b64decode(row["password_salt"]), row["password_hash"], self._iterations
        )
        if not ok:
            raise ValidationError(INVALID_CREDENTIALS)

        with remote_errors("sign_in"):
            await self._db.execute(
                "UPDATE accounts SET last_login_at = ? WHERE user_id = ?;",
                (to_iso(self._clock.now()), row["user_id"]),
            )
        return self._row_to_user(row)

    async def request_reset(self, email: str) -> str:
        with remote_errors("request_reset"):
            row = await self._db.fetchone("SELECT user_id FROM accounts WHERE email = ?;", (email,))
        if row is None:
            raise NotFoundError("No account found for that email.")

        token = secrets.token_urlsafe(24)
        now = self._clock.now()
        with remote_errors("request_reset"):
            await self._db.execute(
                "INSERT INTO password_resets(token_hash, user_id, created_at, expires_at) VALUES (?, ?, ?, ?);",
                (hash_token(token), row["user_id"], to_iso(now), to_iso(now + RESET_TOKEN_TTL)),
            )
        logger.info("Password reset requested user_id=%s", row["user_id"])
        return token

    async def confirm_reset(self, token: str, new_password: str) -> User:
        with remote_errors("confirm_reset"):
            reset = await self._db.fetchone(
                "SELECT * FROM password_resets WHERE token_hash = ? AND used_at IS NULL;",
                (hash_token(token),),
            )
        now = self._clock.now()
        if reset is None or from_iso(reset["expires_at"]) < now:
            raise ValidationError("Reset token is invalid or has expired.")

        salt = os.urandom(SALT_BYTES)
        pw_hash = await asyncio.to_thread(hash_password, new_password, salt, self._iterations)
        with remote_errors("confirm_reset"):
            await self._db.execute(
                "UPDATE accounts SET password_hash = ?, password_salt = ? WHERE user_id = ?;",
                (pw_hash, _b64(salt), reset["user_id"]),
            )
            await self._db.execute(
                "UPDATE password_resets SET used_at = ? WHERE token_hash = ?;",
                (to_iso(now), reset["token_hash"]),
            )
        user = await self.get_user(reset["user_id"])
        if user is None:
            raise NotFoundError("Account no longer exists.")
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        with remote_errors("get_user"):
            row = await self._db.fetchone("SELECT * FROM accounts WHERE user_id = ?;", (user_id,))
        return self._row_to_user(row) if row else None

    def _row_to_user(self, r: aiosqlite.Row) -> User:
        return User(
            id=r["user_id"],
            email=r["email"],
            display_name=r["display_name"],
            created_at=from_iso(r["created_at"]),
        )
