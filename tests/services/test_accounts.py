"""Account service — registration, login bookkeeping and password hashing."""

import pytest
from sqlalchemy import select

from idea_tracker.errors import DuplicateUsername, InvalidCredentials
from idea_tracker.models.user import User
from idea_tracker.services.accounts import authenticate, hash_password, verify_password
from tests.factories import create_user


async def test_register_creates_user_with_clean_login_state(test_db):
    user = await create_user(test_db, "alice", "pw1")

    assert user.id is not None
    assert user.failed_attempts == 0
    assert user.last_login is None
    assert user.email == "alice@example.com"


async def test_register_never_stores_plaintext(test_db):
    user = await create_user(test_db, "alice", "pw1")

    assert user.password_hash != "pw1"
    assert verify_password("pw1", user.password_hash)


async def test_register_duplicate_username_fails(test_db):
    await create_user(test_db, "alice", "pw1")
    with pytest.raises(DuplicateUsername):
        await create_user(test_db, "alice", "other")

    result = await test_db.execute(select(User).where(User.username == "alice"))
    assert len(result.scalars().all()) == 1


async def test_login_refreshes_last_login(test_db, alice):
    user = await authenticate(test_db, "alice", "pw1")

    assert user.id == alice.id
    assert user.last_login is not None


async def test_login_wrong_password_counts_failed_attempt(test_db, alice):
    with pytest.raises(InvalidCredentials):
        await authenticate(test_db, "alice", "nope")
    with pytest.raises(InvalidCredentials):
        await authenticate(test_db, "alice", "still-nope")

    await test_db.refresh(alice)
    assert alice.failed_attempts == 2


async def test_successful_login_resets_failed_attempts(test_db, alice):
    with pytest.raises(InvalidCredentials):
        await authenticate(test_db, "alice", "nope")

    user = await authenticate(test_db, "alice", "pw1")
    assert user.failed_attempts == 0


async def test_login_unknown_username_fails(test_db):
    with pytest.raises(InvalidCredentials):
        await authenticate(test_db, "nobody", "pw")


def test_hashes_are_salted():
    assert hash_password("same") != hash_password("same")
