"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from app.config import get_settings

settings = get_settings()

engine_options = {}
if settings.database_url.startswith("sqlite"):
    # Sessions are handed across threads by the ASGI server
    engine_options["connect_args"] = {"check_same_thread": False}
    if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory databases live on a single connection
        engine_options["poolclass"] = StaticPool

# Create database engine
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    echo=settings.debug,
    **engine_options
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.

    One session per request; services commit or roll back their own work.

    Usage:
        @router.get("/experiments")
        def list_experiments(db: Session = Depends(get_db)):
            return db.query(Experiment).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
