"""Server-side session store.

A session is a row in ``user_sessions`` keyed by an opaque random token; the
browser only ever holds the token. Every request resolves the token into a
``SessionContext`` that handlers receive explicitly.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.config import settings
from idea_tracker.models.user import User
from idea_tracker.models.user_session import UserSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """The authenticated identity behind one request."""

    user_id: int
    username: str
    first_name: Optional[str]
    token: str

    @property
    def display_name(self) -> str:
        return self.first_name or self.username


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def open_session(db: AsyncSession, user: User) -> str:
    """Create a session for ``user`` and return its token."""
    token = secrets.token_urlsafe(32)
    db.add(
        UserSession(
            token=token,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc)
            + timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS),
        )
    )
    await db.commit()
    logger.debug(f"Opened session for user id={user.id}")
    return token


async def resolve_session(db: AsyncSession, token: Optional[str]) -> Optional[SessionContext]:
    """Return the context bound to ``token``, or None if absent or expired."""
    if not token:
        return None

    result = await db.execute(
        select(UserSession, User)
        .join(User, UserSession.user_id == User.id)
        .where(UserSession.token == token)
    )
    row = result.first()
    if row is None:
        return None

    session, user = row
    if _as_utc(session.expires_at) <= datetime.now(timezone.utc):
        await db.execute(delete(UserSession).where(UserSession.token == token))
        await db.commit()
        return None

    return SessionContext(
        user_id=user.id,
        username=user.username,
        first_name=user.first_name,
        token=token,
    )


async def close_session(db: AsyncSession, token: Optional[str]) -> None:
    """Destroy the session unconditionally."""
    if not token:
        return
    await db.execute(delete(UserSession).where(UserSession.token == token))
    await db.commit()
    logger.debug("Closed session")
