"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Experiment Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./experiments.db"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Visitor rate limiting (allocation and result recording are unauthenticated)
    visitor_rate_limit_enabled: bool = True
    visitor_rate_limit_requests: int = 600
    visitor_rate_limit_window: int = 60  # seconds

    # Seeds a user and a default project into an empty database
    bootstrap_api_key: str = ""

    # CORS
    frontend_url: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
