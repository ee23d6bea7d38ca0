"""
Ideas router — listing, add / edit / delete, and collaborator management.

Every route needs a session; anonymous users are sent to /login. Policy
failures (NotFound / Forbidden) are not rendered here: they propagate to the
global handler, which redirects to the listing page.

The camelCase paths are canonical; the dashed paths are kept as aliases.
"""

from typing import List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.config import settings
from idea_tracker.database import get_db
from idea_tracker.errors import Forbidden, StorageError, ValidationError
from idea_tracker.routers.auth import get_session_context, login_redirect
from idea_tracker.schemas.idea import MARKETING_CHANNELS, IdeaFilters, IdeaForm
from idea_tracker.services import ideas as idea_service
from idea_tracker.services.idea_listing import list_visible_ideas
from idea_tracker.services.sessions import SessionContext

router = APIRouter(tags=["ideas"])
templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)


def _redirect(url: str, **messages: str) -> RedirectResponse:
    if messages:
        url = f"{url}?{urlencode(messages)}"
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _idea_form_values(idea) -> dict:
    """Current idea fields in the shape the form template expects."""
    return {
        "name": idea.name,
        "description": idea.description,
        "marketing_strategy": idea.marketing_strategy,
        "target_customer": idea.target_customer or "",
        "estimated_cost": "" if idea.estimated_cost is None else str(idea.estimated_cost),
        "timeline": idea.timeline or "",
        "potential": "" if idea.potential is None else str(idea.potential),
    }


def _parse_user_id(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


# ═══════════════════════════════════════════════════════════════
#  GET /ideas → filtered listing
# ═══════════════════════════════════════════════════════════════

@router.get("/ideas", response_class=HTMLResponse)
@router.get("/view-ideas", response_class=HTMLResponse, include_in_schema=False)
async def view_ideas(
    request: Request,
    name: Optional[str] = None,
    marketing_strategy: Optional[str] = None,
    target_customer: Optional[str] = None,
    min_cost: Optional[str] = None,
    max_cost: Optional[str] = None,
    min_potential: Optional[str] = None,
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()

    error = request.query_params.get("error", "")
    try:
        filters = IdeaFilters.parse(
            name=name,
            marketing_strategy=marketing_strategy,
            target_customer=target_customer,
            min_cost=min_cost,
            max_cost=max_cost,
            min_potential=min_potential,
        )
    except ValidationError as exc:
        filters = IdeaFilters()
        error = exc.message

    try:
        ideas = await list_visible_ideas(db, ctx.user_id, filters)
    except StorageError as exc:
        return templates.TemplateResponse(
            request,
            "error.html",
            {"ctx": ctx, "message": exc.message},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return templates.TemplateResponse(
        request,
        "ideas.html",
        {
            "ctx": ctx,
            "ideas": ideas,
            "filters": filters.as_query(),
            "has_filters": not filters.is_empty(),
            "marketing_channels": MARKETING_CHANNELS,
            "error": error,
            "success": request.query_params.get("success", ""),
        },
    )


# ═══════════════════════════════════════════════════════════════
#  Add idea
# ═══════════════════════════════════════════════════════════════

@router.get("/addIdea", response_class=HTMLResponse)
@router.get("/add-idea", response_class=HTMLResponse, include_in_schema=False)
async def add_idea_page(
    request: Request,
    ctx: Optional[SessionContext] = Depends(get_session_context),
):
    if not ctx:
        return login_redirect()
    return templates.TemplateResponse(
        request,
        "add_idea.html",
        {"ctx": ctx, "form": {}, "marketing_channels": MARKETING_CHANNELS, "error": None},
    )


@router.post("/addIdea")
@router.post("/add-idea", include_in_schema=False)
async def add_idea(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    marketing_strategy: List[str] = Form([]),
    target_customer: Optional[str] = Form(None),
    estimated_cost: Optional[str] = Form(None),
    timeline: Optional[str] = Form(None),
    potential: Optional[str] = Form(None),
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()

    raw = {
        "name": name,
        "description": description,
        "marketing_strategy": marketing_strategy,
        "target_customer": target_customer,
        "estimated_cost": estimated_cost,
        "timeline": timeline,
        "potential": potential,
    }
    try:
        form = IdeaForm.parse(**raw)
        await idea_service.create_idea(db, ctx.user_id, form)
    except (ValidationError, StorageError) as exc:
        return templates.TemplateResponse(
            request,
            "add_idea.html",
            {
                "ctx": ctx,
                "form": raw,
                "marketing_channels": MARKETING_CHANNELS,
                "error": exc.message,
            },
        )
    return _redirect("/ideas", success="Idea added")


# ═══════════════════════════════════════════════════════════════
#  Edit idea
# ═══════════════════════════════════════════════════════════════

@router.get("/editIdea/{idea_id}", response_class=HTMLResponse)
@router.get("/edit-idea/{idea_id}", response_class=HTMLResponse, include_in_schema=False)
async def edit_idea_page(
    idea_id: int,
    request: Request,
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()

    page = await idea_service.load_edit_page(db, idea_id, ctx.user_id)
    return templates.TemplateResponse(
        request,
        "edit_idea.html",
        {
            "ctx": ctx,
            "idea": page.access.idea,
            "is_owner": page.access.is_owner,
            "form": _idea_form_values(page.access.idea),
            "collaborators": page.collaborators,
            "available_users": page.available_users,
            "marketing_channels": MARKETING_CHANNELS,
            "error": request.query_params.get("error", ""),
            "success": request.query_params.get("success", ""),
        },
    )


@router.post("/editIdea/{idea_id}")
@router.post("/edit-idea/{idea_id}", include_in_schema=False)
async def update_idea(
    idea_id: int,
    name: str = Form(""),
    description: str = Form(""),
    marketing_strategy: List[str] = Form([]),
    target_customer: Optional[str] = Form(None),
    estimated_cost: Optional[str] = Form(None),
    timeline: Optional[str] = Form(None),
    potential: Optional[str] = Form(None),
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()

    try:
        form = IdeaForm.parse(
            name=name,
            description=description,
            marketing_strategy=marketing_strategy,
            target_customer=target_customer,
            estimated_cost=estimated_cost,
            timeline=timeline,
            potential=potential,
        )
        await idea_service.update_idea(db, idea_id, ctx.user_id, form)
    except (ValidationError, Forbidden, StorageError) as exc:
        # Soft-fail: back to the same form; the GET handler re-checks access
        return _redirect(f"/editIdea/{idea_id}", error=exc.message)
    return _redirect("/ideas", success="Idea updated")


# ═══════════════════════════════════════════════════════════════
#  Delete idea
# ═══════════════════════════════════════════════════════════════

@router.post("/deleteIdea/{idea_id}")
@router.post("/delete-idea/{idea_id}", include_in_schema=False)
async def delete_idea(
    idea_id: int,
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()
    await idea_service.delete_idea(db, idea_id, ctx.user_id)
    return _redirect("/ideas", success="Idea deleted")


# ═══════════════════════════════════════════════════════════════
#  Collaborators
# ═══════════════════════════════════════════════════════════════

@router.post("/addCollaborator/{idea_id}")
@router.post("/add-collaborator/{idea_id}", include_in_schema=False)
async def add_collaborator(
    idea_id: int,
    user_id: Optional[str] = Form(None),
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()

    target_id = _parse_user_id(user_id)
    if target_id is None:
        return _redirect(f"/editIdea/{idea_id}", error="Choose a user to add")

    added = await idea_service.add_collaborator(db, idea_id, ctx.user_id, target_id)
    message = "Collaborator added" if added else "That user already has access"
    return _redirect(f"/editIdea/{idea_id}", success=message)


async def _remove(idea_id: int, target_id: Optional[int], ctx: SessionContext, db: AsyncSession):
    if target_id is None:
        return _redirect(f"/editIdea/{idea_id}", error="Choose a collaborator to remove")

    await idea_service.remove_collaborator(db, idea_id, ctx.user_id, target_id)
    if target_id == ctx.user_id:
        return _redirect("/ideas", success="You left the idea")
    return _redirect(f"/editIdea/{idea_id}", success="Collaborator removed")


@router.post("/removeCollaborator/{idea_id}")
async def remove_collaborator(
    idea_id: int,
    user_id: Optional[str] = Form(None),
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()
    return await _remove(idea_id, _parse_user_id(user_id), ctx, db)


@router.post("/remove-collaborator/{idea_id}/{user_id}", include_in_schema=False)
async def remove_collaborator_by_path(
    idea_id: int,
    user_id: int,
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()
    return await _remove(idea_id, user_id, ctx, db)


@router.post("/leaveCollaboration/{idea_id}")
@router.post("/leave-collaboration/{idea_id}", include_in_schema=False)
async def leave_collaboration(
    idea_id: int,
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return login_redirect()
    await idea_service.leave_collaboration(db, idea_id, ctx.user_id)
    return _redirect("/ideas", success="You left the idea")
