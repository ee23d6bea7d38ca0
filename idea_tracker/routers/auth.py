"""
Authentication router — username/password accounts + server-side sessions.

Endpoints:
    GET  /login                     → login page
    POST /login                     → check credentials, open a session
    GET  /register, /create-account → sign-up page
    POST /register, /create-account → create the account (optionally log in)
    GET  /logout                    → destroy the session
"""

from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from idea_tracker.config import settings
from idea_tracker.database import get_db
from idea_tracker.errors import DuplicateUsername, InvalidCredentials, StorageError, ValidationError
from idea_tracker.schemas.user import UserCreate, UserLogin
from idea_tracker.services import accounts, sessions
from idea_tracker.services.sessions import SessionContext

router = APIRouter(tags=["auth"])
templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

def _set_session_cookie(response: RedirectResponse, token: str) -> RedirectResponse:
    """Attach the session token cookie to a response."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return response


def login_redirect() -> RedirectResponse:
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


async def get_session_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[SessionContext]:
    """
    Resolve the session cookie into the request's identity.
    Returns None when no valid session is present (allows public pages).
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return await sessions.resolve_session(db, token)


async def _logged_in_redirect(db: AsyncSession, user) -> RedirectResponse:
    token = await sessions.open_session(db, user)
    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return _set_session_cookie(response, token)


# ═══════════════════════════════════════════════════════════════
#  Login
# ═══════════════════════════════════════════════════════════════

@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    ctx: Optional[SessionContext] = Depends(get_session_context),
):
    """Render the login form."""
    if ctx:
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error": None, "success": request.query_params.get("success", ""), "username": ""},
    )


@router.post("/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    """Check credentials and open a session."""
    form = UserLogin(username=username.strip(), password=password)
    try:
        user = await accounts.authenticate(db, form.username, form.password)
    except (InvalidCredentials, StorageError) as exc:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": exc.message, "success": "", "username": form.username},
        )
    return await _logged_in_redirect(db, user)


# ═══════════════════════════════════════════════════════════════
#  Registration
# ═══════════════════════════════════════════════════════════════

@router.get("/register", response_class=HTMLResponse)
@router.get("/create-account", response_class=HTMLResponse, include_in_schema=False)
async def register_page(
    request: Request,
    ctx: Optional[SessionContext] = Depends(get_session_context),
):
    """Render the sign-up form."""
    if ctx:
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    return templates.TemplateResponse(request, "register.html", {"error": None, "form": {}})


@router.post("/register")
@router.post("/create-account", include_in_schema=False)
async def register(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    email: str = Form(""),
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
):
    """Create the account, then log in or send the user to the login page."""
    submitted = {
        "username": username,
        "email": email,
        "first_name": first_name or "",
        "last_name": last_name or "",
    }
    try:
        data = UserCreate.parse(
            username=username,
            password=password,
            email=email,
            first_name=first_name or None,
            last_name=last_name or None,
        )
        user = await accounts.register(db, data)
    except (ValidationError, DuplicateUsername, StorageError) as exc:
        return templates.TemplateResponse(
            request, "register.html", {"error": exc.message, "form": submitted}
        )

    if settings.AUTO_LOGIN_AFTER_REGISTER:
        return await _logged_in_redirect(db, user)

    query = urlencode({"success": "Account created. Please log in."})
    return RedirectResponse(url=f"/login?{query}", status_code=status.HTTP_303_SEE_OTHER)


# ═══════════════════════════════════════════════════════════════
#  Logout
# ═══════════════════════════════════════════════════════════════

@router.get("/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    """Destroy the session, clear the cookie and go back to the login page."""
    await sessions.close_session(db, request.cookies.get(settings.SESSION_COOKIE_NAME))
    response = login_redirect()
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)
    return response
