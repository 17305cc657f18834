"""Tests for API key authentication and bootstrap seeding."""
import hashlib

from sqlalchemy.orm import Session

from app.models.user import User
from app.models.project import Project
from app.middleware.auth import hash_api_key, create_user_with_api_key
from app.seed import seed_initial_data, DEFAULT_PROJECT_NAME
from app.services.ownership import user_owns_project


def test_hash_api_key_is_deterministic():
    """Test that hash_api_key produces consistent results."""
    api_key = "test-key-12345"

    assert hash_api_key(api_key) == hash_api_key(api_key), "Hash should be deterministic"


def test_hash_api_key_is_sha256():
    """Test that hash_api_key uses SHA256."""
    api_key = "test-key-12345"
    expected = hashlib.sha256(api_key.encode()).hexdigest()
    actual = hash_api_key(api_key)

    assert actual == expected, "Should use SHA256 hashing"
    assert len(actual) == 64, "SHA256 hex digest should be 64 characters"


def test_different_keys_produce_different_hashes():
    """Test that different API keys produce different hashes."""
    assert hash_api_key("key-one") != hash_api_key("key-two")


def test_create_user_with_api_key(db: Session):
    """Test creating a user with an API key."""
    user = create_user_with_api_key(db, "new-test-key-abc123")

    assert user.id is not None
    assert user.api_key_hash == hash_api_key("new-test-key-abc123")


def test_user_owns_project(db: Session, owner, project):
    """Test the project ownership check."""
    stranger = create_user_with_api_key(db, "stranger-key")

    assert user_owns_project(db, project.id, owner.id) is True
    assert user_owns_project(db, project.id, stranger.id) is False


def test_seed_creates_user_and_project_once(db: Session):
    """Test that seeding only runs against an empty database."""
    project = seed_initial_data(db, "bootstrap-key")

    assert project is not None
    assert project.name == DEFAULT_PROJECT_NAME
    user = db.query(User).filter(User.api_key_hash == hash_api_key("bootstrap-key")).first()
    assert user is not None
    assert project.owner_id == user.id

    assert seed_initial_data(db, "bootstrap-key") is None
    assert db.query(User).count() == 1
    assert db.query(Project).count() == 1


def test_seed_without_key_does_nothing(db: Session):
    """Test that an empty bootstrap key seeds nothing."""
    assert seed_initial_data(db, "") is None
    assert db.query(User).count() == 0
