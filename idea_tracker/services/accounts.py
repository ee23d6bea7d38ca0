"""Account service — registration, credential checks and password hashing."""

import logging
from datetime import datetime, timezone

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.errors import DuplicateUsername, InvalidCredentials, StorageError
from idea_tracker.models.user import User
from idea_tracker.schemas.user import UserCreate

logger = logging.getLogger(__name__)

# Salted one-way hash; verify() compares digests in constant time.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Verified against when the username is unknown so both paths cost the same.
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


async def get_user_by_username(db: AsyncSession, username: str):
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def register(db: AsyncSession, data: UserCreate) -> User:
    """Create a new account, failing with ``DuplicateUsername`` on a taken name."""
    if await get_user_by_username(db, data.username):
        raise DuplicateUsername()

    user = User(
        username=data.username,
        password_hash=hash_password(data.password),
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        failed_attempts=0,
        last_login=None,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same username
        await db.rollback()
        raise DuplicateUsername() from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Create account failed for {data.username!r}: {exc}", exc_info=True)
        raise StorageError() from exc

    await db.refresh(user)
    logger.info(f"Registered user {user.username!r} (id={user.id})")
    return user


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """
    Check a username/password pair.

    On success refreshes ``last_login`` and resets the failed-attempt counter.
    A wrong password for a known username increments the counter; nothing
    locks the account.
    """
    user = await get_user_by_username(db, username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        logger.info(f"Login failed: unknown username {username!r}")
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        user.failed_attempts = (user.failed_attempts or 0) + 1
        await _commit(db, f"record failed login for {username!r}")
        logger.info(f"Login failed for {username!r} ({user.failed_attempts} failed attempts)")
        raise InvalidCredentials()

    user.last_login = datetime.now(timezone.utc)
    user.failed_attempts = 0
    await _commit(db, f"update last login for {username!r}")
    logger.info(f"User {username!r} logged in")
    return user


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Failed to {action}: {exc}", exc_info=True)
        raise StorageError() from exc
