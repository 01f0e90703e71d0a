"""
Local identity provider on a temporary SQLite file. A low KDF iteration count
keeps the tests fast.
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from datetime import timedelta

import pytest

from taskdeck.domain.common.errors import ConflictError, NotFoundError, ValidationError
from taskdeck.domain.common.time import to_iso
from taskdeck.infra.auth.local_auth import LocalAuthProvider, hash_password, hash_token, verify_password
from taskdeck.infra.db.connection import Database
from taskdeck.infra.db.schema_version import apply_migrations

from tests.fakes import T0, FixedClock, SeqIds


def _run_with_provider(test_fn):
    async def runner():
        fd, path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        try:
            db = Database(path)
            await apply_migrations(db, now_iso=to_iso(T0))
            clock = FixedClock()
            await test_fn(LocalAuthProvider(db, clock, SeqIds("user"), iterations=1_000), clock, db)
        finally:
            for suffix in ("", "-wal", "-shm"):
                if os.path.exists(path + suffix):
                    os.unlink(path + suffix)

    asyncio.run(runner())


def test_password_hash_helpers():
    salt = b"0" * 16
    stored = hash_password("secret1", salt, iterations=1_000)
    assert verify_password("secret1", salt, stored, iterations=1_000)
    assert not verify_password("secret2", salt, stored, iterations=1_000)
    assert hash_token("abc") == hash_token("abc") != hash_token("abd")


def test_sign_up_then_sign_in():
    async def check(provider, clock, db):
        user = await provider.sign_up("ann@example.com", "secret1", "Ann")
        assert user.id == "user1"
        signed_in = await provider.sign_in("ann@example.com", "secret1")
        assert signed_in.id == user.id
        assert await provider.get_user(user.id) == signed_in

        row = await db.fetchone("SELECT password_hash FROM accounts WHERE user_id = ?;", (user.id,))
        assert row["password_hash"] != "secret1"

    _run_with_provider(check)


def test_duplicate_email_and_bad_credentials():
    async def check(provider, clock, db):
        await provider.sign_up("ann@example.com", "secret1", "Ann")
        with pytest.raises(ConflictError):
            await provider.sign_up("ann@example.com", "other12", "Imposter")
        with pytest.raises(ValidationError):
            await provider.sign_in("ann@example.com", "wrong!!")
        with pytest.raises(ValidationError):
            await provider.sign_in("nobody@example.com", "secret1")

    _run_with_provider(check)


def test_reset_token_is_single_use_and_expires():
    async def check(provider, clock, db):
        await provider.sign_up("ann@example.com", "secret1", "Ann")
        with pytest.raises(NotFoundError):
            await provider.request_reset("nobody@example.com")

        token = await provider.request_reset("ann@example.com")
        await provider.confirm_reset(token, "newpass1")
        assert (await provider.sign_in("ann@example.com", "newpass1")).email == "ann@example.com"
        with pytest.raises(ValidationError):
            await provider.confirm_reset(token, "again123")

        late = await provider.request_reset("ann@example.com")
        clock.advance(hours=1, minutes=1)
        with pytest.raises(ValidationError):
            await provider.confirm_reset(late, "again123")

    _run_with_provider(check)
