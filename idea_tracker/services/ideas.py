"""Idea and collaboration mutations, each gated by the access policy."""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.errors import NotFound, StorageError, ValidationError
from idea_tracker.models.collaboration import Collaboration
from idea_tracker.models.idea import Idea
from idea_tracker.models.user import User
from idea_tracker.schemas.idea import IdeaForm
from idea_tracker.schemas.user import UserOut
from idea_tracker.services.access import (
    IdeaAccess,
    can_delete,
    can_edit,
    can_leave,
    can_manage_collaborators,
    collaboration_exists,
    load_access,
    require,
)
from idea_tracker.services.idea_listing import collaborators_by_idea

logger = logging.getLogger(__name__)


@dataclass
class EditPage:
    """Everything the edit form renders for one idea."""

    access: IdeaAccess
    collaborators: List[UserOut] = field(default_factory=list)
    available_users: List[UserOut] = field(default_factory=list)


def _require_fields(form: IdeaForm) -> None:
    if not (form.name or "").strip():
        raise ValidationError("Idea name: is required")
    if not (form.description or "").strip():
        raise ValidationError("Description: is required")


def _apply_form(idea: Idea, form: IdeaForm) -> None:
    idea.name = form.name
    idea.description = form.description
    idea.marketing_strategy = form.marketing_strategy
    idea.target_customer = form.target_customer
    idea.estimated_cost = form.estimated_cost
    idea.timeline = form.timeline
    idea.potential = form.potential


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"{action} failed: {exc}", exc_info=True)
        raise StorageError() from exc


# ═══════════════════════════════════════════════════════════════
#  Ideas
# ═══════════════════════════════════════════════════════════════

async def create_idea(db: AsyncSession, owner_id: int, form: IdeaForm) -> Idea:
    _require_fields(form)
    idea = Idea(user_id=owner_id)
    _apply_form(idea, form)
    db.add(idea)
    await _commit(db, f"Add idea for user {owner_id}")
    await db.refresh(idea)
    logger.info(f"User {owner_id} created idea {idea.id} ({idea.name!r})")
    return idea


async def update_idea(db: AsyncSession, idea_id: int, user_id: int, form: IdeaForm) -> Idea:
    access = await load_access(db, idea_id, user_id)
    require(access, can_edit)
    _require_fields(form)

    _apply_form(access.idea, form)
    await _commit(db, f"Update idea {idea_id}")
    await db.refresh(access.idea)
    logger.info(f"User {user_id} updated idea {idea_id}")
    return access.idea


async def delete_idea(db: AsyncSession, idea_id: int, user_id: int) -> None:
    """Delete an idea and its collaborations in a single transaction."""
    access = await load_access(db, idea_id, user_id)
    require(access, can_delete)

    try:
        await db.execute(delete(Collaboration).where(Collaboration.idea_id == idea_id))
        await db.execute(delete(Idea).where(Idea.id == idea_id))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Delete idea {idea_id} failed: {exc}", exc_info=True)
        raise StorageError() from exc
    logger.info(f"User {user_id} deleted idea {idea_id}")


# ═══════════════════════════════════════════════════════════════
#  Collaborations
# ═══════════════════════════════════════════════════════════════

async def add_collaborator(
    db: AsyncSession, idea_id: int, owner_id: int, target_user_id: int
) -> bool:
    """Share an idea. Returns False when nothing changed (already shared, or the owner)."""
    access = await load_access(db, idea_id, owner_id)
    require(access, can_manage_collaborators)

    target = (
        await db.execute(select(User.id).where(User.id == target_user_id))
    ).scalar_one_or_none()
    if target is None:
        raise NotFound("That user does not exist.")

    if target_user_id == access.idea.user_id:
        return False
    if await collaboration_exists(db, idea_id, target_user_id):
        return False

    db.add(Collaboration(idea_id=idea_id, user_id=target_user_id))
    try:
        await db.commit()
    except IntegrityError:
        # Inserted concurrently by another request; the row exists either way
        await db.rollback()
        return False
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Add collaborator to idea {idea_id} failed: {exc}", exc_info=True)
        raise StorageError() from exc

    logger.info(f"User {owner_id} shared idea {idea_id} with user {target_user_id}")
    return True


async def _delete_collaboration(db: AsyncSession, idea_id: int, user_id: int) -> bool:
    try:
        result = await db.execute(
            delete(Collaboration).where(
                Collaboration.idea_id == idea_id,
                Collaboration.user_id == user_id,
            )
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Remove collaborator from idea {idea_id} failed: {exc}", exc_info=True)
        raise StorageError() from exc
    return result.rowcount > 0


async def remove_collaborator(
    db: AsyncSession, idea_id: int, acting_user_id: int, target_user_id: int
) -> bool:
    """
    Remove a collaboration. The owner may remove anyone; a collaborator may
    only remove themself. Returns False if the target was not a collaborator.
    """
    access = await load_access(db, idea_id, acting_user_id)
    if target_user_id == acting_user_id and not access.is_owner:
        require(access, can_leave)
    else:
        require(access, can_manage_collaborators)

    removed = await _delete_collaboration(db, idea_id, target_user_id)
    if removed:
        logger.info(f"User {acting_user_id} removed user {target_user_id} from idea {idea_id}")
    return removed


async def leave_collaboration(db: AsyncSession, idea_id: int, user_id: int) -> None:
    """A collaborator removes themself from an idea."""
    await remove_collaborator(db, idea_id, user_id, user_id)


# ═══════════════════════════════════════════════════════════════
#  Edit page
# ═══════════════════════════════════════════════════════════════

async def load_edit_page(db: AsyncSession, idea_id: int, user_id: int) -> EditPage:
    """Idea → access check → collaborator list → users available to add."""
    access = await load_access(db, idea_id, user_id)
    require(access, can_edit)

    collaborators = (await collaborators_by_idea(db, [idea_id])).get(idea_id, [])

    excluded = {access.idea.user_id} | {c.id for c in collaborators}
    result = await db.execute(
        select(User).where(User.id.not_in(excluded)).order_by(User.username)
    )
    available = [UserOut.model_validate(u) for u in result.scalars().all()]

    return EditPage(access=access, collaborators=collaborators, available_users=available)
