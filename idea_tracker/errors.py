"""Error hierarchy — typed exceptions for every failure the tracker reports.

Invariants:
    - Every error carries a code, a user-facing message and an HTTP status
    - User-facing messages never include internal details
    - Form handlers catch what they can explain; the global handler in
      ``idea_tracker.error_handlers`` turns the rest into a redirect
"""

from typing import Optional


class IdeaTrackerError(Exception):
    """Base exception for all tracker errors."""

    code = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred. Please try again."
    http_status = 500

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateUsername(IdeaTrackerError):
    code = "DUPLICATE_USERNAME"
    default_message = "Username already exists. Please choose a different username."
    http_status = 409


class InvalidCredentials(IdeaTrackerError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid username or password"
    http_status = 401


class ValidationError(IdeaTrackerError):
    """Missing or malformed idea / account fields."""

    code = "VALIDATION_ERROR"
    default_message = "Please check the highlighted fields."
    http_status = 400


class NotFound(IdeaTrackerError):
    code = "NOT_FOUND"
    default_message = "That idea no longer exists."
    http_status = 404


class Forbidden(IdeaTrackerError):
    code = "FORBIDDEN"
    default_message = "You don't have access to that idea."
    http_status = 403


class StorageError(IdeaTrackerError):
    code = "STORAGE_ERROR"
    default_message = "An error occurred. Please try again."
    http_status = 500
