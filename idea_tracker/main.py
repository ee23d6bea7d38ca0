"""
Business Ideas Tracker — FastAPI application entry-point.

Run with:
    uvicorn idea_tracker.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

import idea_tracker.models  # noqa: F401  (register tables on Base.metadata)
from idea_tracker.config import settings
from idea_tracker.database import Base, engine, get_db
from idea_tracker.error_handlers import register_error_handlers
from idea_tracker.routers import auth, ideas
from idea_tracker.routers.auth import get_session_context
from idea_tracker.services.idea_listing import count_visible_ideas
from idea_tracker.services.sessions import SessionContext

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{settings.APP_NAME} started")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Track business ideas and share them with collaborators.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))
register_error_handlers(app)

# ── Static files & templates ──
app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")
templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)

# ── Register routers ──
app.include_router(auth.router)
app.include_router(ideas.router)


# ── Landing / home page ──
@app.get("/")
async def homepage(
    request: Request,
    ctx: Optional[SessionContext] = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    if not ctx:
        return templates.TemplateResponse(request, "landing.html", {"ctx": None})

    owned, shared = await count_visible_ideas(db, ctx.user_id)
    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "ctx": ctx,
            "stats": {"owned": owned, "shared": shared},
            "success": request.query_params.get("success", ""),
        },
    )
