"""
Job Tracker - Application configuration.

Centralized configuration using Pydantic Settings for environment variable management.

Environment Variables:
    All settings can be overridden via environment variables with JOBTRACKER_ prefix.

    Auth Settings:
        JOBTRACKER_SINGLE_USER_MODE=true     - Skip auth for local use
        JOBTRACKER_SECRET_KEY=...            - JWT signing key (required in production)

    Tracker Settings:
        JOBTRACKER_DATABASE_URL=...          - SQLAlchemy URL (SQLite or PostgreSQL)
        JOBTRACKER_LOG_LEVEL=INFO            - Root log level
        JOBTRACKER_DUE_SOON_DAYS=3           - Window used to flag follow-ups as due soon
"""
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    """
    Authentication configuration settings.

    For production deployment:
        1. Set JOBTRACKER_SINGLE_USER_MODE=false
        2. Generate a secret key: openssl rand -hex 32
        3. Set JOBTRACKER_SECRET_KEY to the generated key
    """
    single_user_mode: bool = True
    secret_key: str = "development-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    class Config:
        env_prefix = "JOBTRACKER_"
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    """Combined application settings."""
    auth: AuthSettings = AuthSettings()

    # CORS allowed origins (comma-separated, e.g. "http://localhost:3000,https://myapp.com")
    allowed_origins: str = "*"

    # Database
    database_url: str = "sqlite:///./data/jobtracker.db"

    # Database connection pool (PostgreSQL only)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # Logging
    log_level: str = "INFO"

    # Rate limiting (disable for local scripting or tests)
    rate_limit_enabled: bool = True

    # Follow-ups due within this many days are flagged on the board
    due_soon_days: int = 3

    class Config:
        env_prefix = "JOBTRACKER_"
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()
