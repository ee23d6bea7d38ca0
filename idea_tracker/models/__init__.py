"""
Business Ideas Tracker – SQLAlchemy ORM models package.

Imports all model classes so the app and the test fixtures can discover them
through a single ``import idea_tracker.models`` before ``create_all``.
"""

from idea_tracker.models.user import User                    # noqa: F401
from idea_tracker.models.idea import Idea                    # noqa: F401
from idea_tracker.models.collaboration import Collaboration  # noqa: F401
from idea_tracker.models.user_session import UserSession     # noqa: F401
