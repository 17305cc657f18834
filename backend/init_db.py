"""Initialize database with a bootstrap user and project."""
import sys
from sqlalchemy.orm import Session
from app.config import get_settings
from app.database import SessionLocal, engine, Base
from app.seed import seed_initial_data
from app import models  # noqa: F401


def init_database():
    """Create tables and seed the bootstrap user and default project."""
    settings = get_settings()

    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    if not settings.bootstrap_api_key:
        print("✗ BOOTSTRAP_API_KEY is not set; tables created, nothing seeded")
        return

    db: Session = SessionLocal()

    try:
        project = seed_initial_data(db, settings.bootstrap_api_key)
        if not project:
            print("✓ Database already initialized")
            return

        print("\n" + "="*50)
        print("✓ Database initialized successfully!")
        print("="*50)
        print(f"\nProject ID: {project.id}")
        print("Create an experiment with:")
        print(f'  curl -H "x-api-key: $BOOTSTRAP_API_KEY" -H "Content-Type: application/json" \\')
        print(f'       -d \'{{"project_id": "{project.id}", "name": "test", "variants": [...]}}\' \\')
        print("       http://localhost:8000/experiments")
        print("\n" + "="*50)

    except Exception as e:
        print(f"✗ Error initializing database: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    init_database()
