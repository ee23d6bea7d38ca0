"""Data helpers shared by the service and route tests."""

from idea_tracker.schemas.idea import IdeaForm
from idea_tracker.schemas.user import UserCreate
from idea_tracker.services import accounts, ideas


async def create_user(db, username, password="pw", first_name=None):
    return await accounts.register(
        db,
        UserCreate(
            username=username,
            password=password,
            email=f"{username}@example.com",
            first_name=first_name or username.capitalize(),
            last_name="Tester",
        ),
    )


async def create_idea(db, owner, name="Idea", **fields):
    fields.setdefault("description", f"{name} description")
    return await ideas.create_idea(db, owner.id, IdeaForm(name=name, **fields))
