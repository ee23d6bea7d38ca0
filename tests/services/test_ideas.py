"""Idea & collaboration mutations.

Tests cover:
    - create: required fields, NULL numerics, owner recorded
    - update: owner and collaborator allowed, stranger forbidden, owner unchanged
    - delete: owner only, collaborations removed with the idea
    - add collaborator: owner only, idempotent, owner/unknown target handling
    - remove / leave: owner removes anyone, collaborator only themself
    - edit page: collaborator list and available users
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from idea_tracker.errors import Forbidden, NotFound, ValidationError
from idea_tracker.models.collaboration import Collaboration
from idea_tracker.models.idea import Idea
from idea_tracker.schemas.idea import IdeaForm
from idea_tracker.services import ideas
from tests.factories import create_idea


async def _collaboration_count(db, idea_id):
    result = await db.execute(
        select(func.count(Collaboration.id)).where(Collaboration.idea_id == idea_id)
    )
    return result.scalar()


# ─── create ──────────────────────────────────────────────────────

async def test_create_idea_records_owner_and_fields(test_db, alice):
    idea = await create_idea(
        test_db, alice, "Laundromat",
        estimated_cost=Decimal("5000"), potential=7, marketing_strategy=["Email", "SEO"],
    )

    assert idea.user_id == alice.id
    assert idea.estimated_cost == Decimal("5000")
    assert idea.potential == 7
    assert idea.marketing_strategy == ["Email", "SEO"]
    assert idea.created_at is not None


async def test_create_idea_keeps_blank_numerics_null(test_db, alice):
    form = IdeaForm.parse(name="Kiosk", description="Coffee", estimated_cost="", potential="")

    idea = await ideas.create_idea(test_db, alice.id, form)

    assert idea.estimated_cost is None
    assert idea.potential is None


async def test_create_idea_rejects_blank_required_fields(test_db, alice):
    form = IdeaForm.model_construct(name="Kiosk", description="   ", marketing_strategy=[])

    with pytest.raises(ValidationError):
        await ideas.create_idea(test_db, alice.id, form)

    assert (await test_db.execute(select(func.count(Idea.id)))).scalar() == 0


# ─── update ──────────────────────────────────────────────────────

async def test_collaborator_can_update_but_owner_stays(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)

    updated = await ideas.update_idea(
        test_db, idea.id, bob.id, IdeaForm(name="Laundromat 2", description="Bigger"),
    )

    assert updated.name == "Laundromat 2"
    assert updated.user_id == alice.id


async def test_stranger_cannot_update(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")

    with pytest.raises(Forbidden):
        await ideas.update_idea(test_db, idea.id, bob.id, IdeaForm(name="Mine now", description="x"))


async def test_update_missing_idea_is_not_found(test_db, alice):
    with pytest.raises(NotFound):
        await ideas.update_idea(test_db, 404, alice.id, IdeaForm(name="x", description="y"))


# ─── delete ──────────────────────────────────────────────────────

async def test_delete_removes_idea_and_collaborations(test_db, alice, bob, carol):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)
    await ideas.add_collaborator(test_db, idea.id, alice.id, carol.id)

    await ideas.delete_idea(test_db, idea.id, alice.id)

    assert (await test_db.execute(select(Idea).where(Idea.id == idea.id))).scalar_one_or_none() is None
    assert await _collaboration_count(test_db, idea.id) == 0


async def test_collaborator_cannot_delete(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)

    with pytest.raises(Forbidden):
        await ideas.delete_idea(test_db, idea.id, bob.id)

    assert (await test_db.execute(select(Idea).where(Idea.id == idea.id))).scalar_one_or_none()


# ─── add collaborator ────────────────────────────────────────────

async def test_adding_collaborator_twice_keeps_one_row(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")

    assert await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id) is True
    assert await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id) is False

    assert await _collaboration_count(test_db, idea.id) == 1


async def test_adding_owner_as_collaborator_is_a_no_op(test_db, alice):
    idea = await create_idea(test_db, alice, "Laundromat")

    assert await ideas.add_collaborator(test_db, idea.id, alice.id, alice.id) is False
    assert await _collaboration_count(test_db, idea.id) == 0


async def test_adding_unknown_user_is_not_found(test_db, alice):
    idea = await create_idea(test_db, alice, "Laundromat")

    with pytest.raises(NotFound):
        await ideas.add_collaborator(test_db, idea.id, alice.id, 999)


async def test_collaborator_cannot_add_others(test_db, alice, bob, carol):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)

    with pytest.raises(Forbidden):
        await ideas.add_collaborator(test_db, idea.id, bob.id, carol.id)


# ─── remove / leave ──────────────────────────────────────────────

async def test_owner_removes_collaborator(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)

    assert await ideas.remove_collaborator(test_db, idea.id, alice.id, bob.id) is True
    assert await _collaboration_count(test_db, idea.id) == 0


async def test_collaborator_cannot_remove_someone_else(test_db, alice, bob, carol):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)
    await ideas.add_collaborator(test_db, idea.id, alice.id, carol.id)

    with pytest.raises(Forbidden):
        await ideas.remove_collaborator(test_db, idea.id, bob.id, carol.id)

    assert await _collaboration_count(test_db, idea.id) == 2


async def test_collaborator_can_leave(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)

    await ideas.leave_collaboration(test_db, idea.id, bob.id)

    assert await _collaboration_count(test_db, idea.id) == 0


async def test_stranger_cannot_leave(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")

    with pytest.raises(Forbidden):
        await ideas.leave_collaboration(test_db, idea.id, bob.id)


# ─── edit page ───────────────────────────────────────────────────

async def test_edit_page_lists_collaborators_and_candidates(test_db, alice, bob, carol):
    idea = await create_idea(test_db, alice, "Laundromat")
    await ideas.add_collaborator(test_db, idea.id, alice.id, bob.id)

    page = await ideas.load_edit_page(test_db, idea.id, alice.id)

    assert page.access.is_owner
    assert [u.username for u in page.collaborators] == ["bob"]
    assert [u.username for u in page.available_users] == ["carol"]


async def test_edit_page_forbidden_for_stranger(test_db, alice, bob):
    idea = await create_idea(test_db, alice, "Laundromat")

    with pytest.raises(Forbidden):
        await ideas.load_edit_page(test_db, idea.id, bob.id)
