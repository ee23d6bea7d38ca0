"""Access control policy for ideas.

Invariants:
    - The owner is the only user who may delete an idea or manage its
      collaborators
    - Owner and collaborators may view and edit idea fields
    - A collaborator (never the owner) may leave an idea on their own
    - The predicates are pure; only ``load_access`` touches the database
"""

import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.errors import Forbidden, NotFound
from idea_tracker.models.collaboration import Collaboration
from idea_tracker.models.idea import Idea

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdeaAccess:
    """What one user is to one idea."""

    idea: Idea
    user_id: int
    is_collaborator: bool

    @property
    def is_owner(self) -> bool:
        return is_owner(self.idea, self.user_id)


def is_owner(idea: Idea, user_id: int) -> bool:
    return idea.user_id == user_id


def can_view(access: IdeaAccess) -> bool:
    return access.is_owner or access.is_collaborator


def can_edit(access: IdeaAccess) -> bool:
    return can_view(access)


def can_manage_collaborators(access: IdeaAccess) -> bool:
    return access.is_owner


def can_delete(access: IdeaAccess) -> bool:
    return access.is_owner


def can_leave(access: IdeaAccess) -> bool:
    return access.is_collaborator and not access.is_owner


async def collaboration_exists(db: AsyncSession, idea_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(Collaboration.id).where(
            Collaboration.idea_id == idea_id,
            Collaboration.user_id == user_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def load_access(db: AsyncSession, idea_id: int, user_id: int) -> IdeaAccess:
    """Fetch the idea, then the caller's collaboration flag."""
    result = await db.execute(select(Idea).where(Idea.id == idea_id))
    idea = result.scalar_one_or_none()
    if idea is None:
        raise NotFound()

    return IdeaAccess(
        idea=idea,
        user_id=user_id,
        is_collaborator=await collaboration_exists(db, idea_id, user_id),
    )


def require(access: IdeaAccess, predicate: Callable[[IdeaAccess], bool]) -> None:
    """Raise ``Forbidden`` unless ``predicate`` allows the access."""
    if not predicate(access):
        logger.warning(
            f"Denied {predicate.__name__} on idea {access.idea.id} for user {access.user_id}"
        )
        raise Forbidden()
