"""Error Handlers — global exception handlers for the ideas tracker.

Invariants:
    - IdeaTrackerError → 303 redirect to the listing page with a flash message
    - RequestValidationError (bad path / query types) → same redirect
    - Exception (catch-all) → generic HTML page, never leaks internal details

Design Decisions:
    - Form handlers deal with the errors they can explain (re-render or redirect
      to the same form); everything else lands here
"""

import logging
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse

from idea_tracker.errors import IdeaTrackerError

logger = logging.getLogger(__name__)

LISTING_URL = "/ideas"


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_tracker_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _redirect_to_listing(message: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{LISTING_URL}?{urlencode({'error': message})}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


def _register_tracker_error_handler(app: FastAPI) -> None:
    """Register the domain error handler."""

    @app.exception_handler(IdeaTrackerError)
    async def tracker_error_handler(request: Request, exc: IdeaTrackerError):
        logger.warning(
            f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        )
        return _redirect_to_listing(exc.message)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register the request validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return _redirect_to_listing("That request was not valid.")


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all; never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return HTMLResponse(
            "<h3>Something went wrong. Please try again.</h3><a href='/'>Back</a>",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
