"""Idea query & filter engine — the "visible ideas" listing.

Invariants:
    - Visible = owned ∪ collaborated, one entry per idea
    - Filters are conjunctive; an idea with a NULL field never passes a filter
      on that field
    - Ordered newest first by ``created_at``, ties broken by descending id
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.errors import StorageError
from idea_tracker.models.collaboration import Collaboration
from idea_tracker.models.idea import Idea
from idea_tracker.models.user import User
from idea_tracker.schemas.idea import IdeaFilters
from idea_tracker.schemas.user import UserOut

logger = logging.getLogger(__name__)


@dataclass
class IdeaListing:
    """An idea decorated with the display data the listing page needs."""

    idea: Idea
    is_owner: bool
    owner: UserOut
    collaborators: List[UserOut] = field(default_factory=list)


def _visible_to(user_id: int):
    shared_ids = select(Collaboration.idea_id).where(Collaboration.user_id == user_id)
    return or_(Idea.user_id == user_id, Idea.id.in_(shared_ids))


def _apply_filters(stmt: Select, filters: IdeaFilters) -> Select:
    if filters.name:
        stmt = stmt.where(Idea.name.icontains(filters.name, autoescape=True))
    if filters.target_customer:
        stmt = stmt.where(
            Idea.target_customer.icontains(filters.target_customer, autoescape=True)
        )
    if filters.min_cost is not None:
        stmt = stmt.where(Idea.estimated_cost >= filters.min_cost)
    if filters.max_cost is not None:
        stmt = stmt.where(Idea.estimated_cost <= filters.max_cost)
    if filters.min_potential is not None:
        stmt = stmt.where(Idea.potential >= filters.min_potential)
    return stmt


def has_marketing_tag(idea: Idea, tag: Optional[str]) -> bool:
    """Case-insensitive membership test on the idea's marketing tags."""
    if not tag:
        return True
    wanted = tag.strip().lower()
    return any(existing.lower() == wanted for existing in idea.marketing_strategy)


async def collaborators_by_idea(
    db: AsyncSession, idea_ids: Sequence[int]
) -> Dict[int, List[UserOut]]:
    """Collaborator display records for each idea id, sorted by username."""
    if not idea_ids:
        return {}
    result = await db.execute(
        select(Collaboration.idea_id, User)
        .join(User, Collaboration.user_id == User.id)
        .where(Collaboration.idea_id.in_(idea_ids))
        .order_by(User.username)
    )
    grouped: Dict[int, List[UserOut]] = {}
    for idea_id, user in result.all():
        grouped.setdefault(idea_id, []).append(UserOut.model_validate(user))
    return grouped


async def list_visible_ideas(
    db: AsyncSession,
    user_id: int,
    filters: Optional[IdeaFilters] = None,
) -> List[IdeaListing]:
    """Return every idea ``user_id`` owns or collaborates on that passes ``filters``."""
    filters = filters or IdeaFilters()

    stmt = (
        select(Idea, User)
        .join(User, Idea.user_id == User.id)
        .where(_visible_to(user_id))
    )
    stmt = _apply_filters(stmt, filters)
    stmt = stmt.order_by(Idea.created_at.desc(), Idea.id.desc())

    try:
        rows = (await db.execute(stmt)).all()
        # The tag set lives in a JSON text column, so membership is checked here
        rows = [
            (idea, owner)
            for idea, owner in rows
            if has_marketing_tag(idea, filters.marketing_strategy)
        ]
        collaborators = await collaborators_by_idea(db, [idea.id for idea, _ in rows])
    except SQLAlchemyError as exc:
        logger.error(f"Loading ideas for user {user_id} failed: {exc}", exc_info=True)
        raise StorageError("Error loading ideas") from exc

    return [
        IdeaListing(
            idea=idea,
            is_owner=idea.user_id == user_id,
            owner=UserOut.model_validate(owner),
            collaborators=collaborators.get(idea.id, []),
        )
        for idea, owner in rows
    ]


async def count_visible_ideas(db: AsyncSession, user_id: int) -> Tuple[int, int]:
    """Return ``(owned, shared_with_me)`` counts for the home page."""
    owned = (
        await db.execute(select(func.count(Idea.id)).where(Idea.user_id == user_id))
    ).scalar() or 0
    shared = (
        await db.execute(
            select(func.count(Collaboration.id))
            .join(Idea, Collaboration.idea_id == Idea.id)
            .where(Collaboration.user_id == user_id, Idea.user_id != user_id)
        )
    ).scalar() or 0
    return owned, shared
