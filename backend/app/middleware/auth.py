"""API key authentication for administrative endpoints.

API keys are stored as SHA256 hashes and looked up directly on the indexed
column. Visitor-facing endpoints (allocation, result recording) do not use
this dependency.
"""
import hashlib
from fastapi import HTTPException, Security, Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.user import User
from app.models.project import Project

# API key header
api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)


def hash_api_key(api_key: str) -> str:
    """
    Hash an API key for storage using SHA256.

    Args:
        api_key: Plain text API key

    Returns:
        SHA256 hex digest of the API key
    """
    return hashlib.sha256(api_key.encode()).hexdigest()


async def get_current_user(
    api_key: Optional[str] = Security(api_key_header),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to validate API key and get current user.

    Usage:
        @router.post("/experiments/{experiment_id}/start")
        def start(user: User = Depends(get_current_user)):
            ...

    Raises:
        HTTPException: 401 if API key is invalid or missing
    """
    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    user = db.query(User).filter(
        User.api_key_hash == hash_api_key(api_key)
    ).first()

    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    return user


def create_user_with_api_key(db: Session, api_key: str) -> User:
    """
    Helper to create a new user with an API key.

    Args:
        db: Database session
        api_key: Plain text API key (will be hashed with SHA256)

    Returns:
        Created User instance
    """
    user = User(api_key_hash=hash_api_key(api_key))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_project(db: Session, owner: User, name: str) -> Project:
    """Create a project owned by the given user."""
    project = Project(owner_id=owner.id, name=name)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project
