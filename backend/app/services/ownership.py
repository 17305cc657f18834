"""Project ownership check."""
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.project import Project


def user_owns_project(db: Session, project_id: UUID, user_id: UUID) -> bool:
    """Return True if the project exists and belongs to the user."""
    project = db.query(Project).filter(
        Project.id == project_id,
        Project.owner_id == user_id
    ).first()
    return project is not None
