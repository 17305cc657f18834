"""Initial data for an empty database."""
from typing import Optional
from sqlalchemy.orm import Session

from app.models import User, Project
from app.middleware.auth import create_user_with_api_key, create_project

DEFAULT_PROJECT_NAME = "Default Project"


def seed_initial_data(db: Session, api_key: str) -> Optional[Project]:
    """
    Create a user for ``api_key`` and a default project if no user exists yet.

    Returns:
        The created Project, or None if the database already had users
        or no key was given
    """
    if not api_key:
        return None

    if db.query(User).first():
        return None

    user = create_user_with_api_key(db, api_key)
    return create_project(db, user, DEFAULT_PROJECT_NAME)
