"""Runtime configuration for Group Board.

Every option maps to an upper-case environment variable and may also be set
in a ``.env`` file. Only ``SECRET_KEY`` has no default.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Async driver -> the sync driver the service and Alembic actually use.
_SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg",
    "sqlite+aiosqlite": "sqlite",
}


class Settings(BaseSettings):
    """Service settings, resolved once at import time."""

    app_name: str = Field(default="Group Board", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Identity provider token verification
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str | None = Field(default=None, alias="JWT_AUDIENCE")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Storage
    database_url: str = Field(default="sqlite:///./groupboard.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Group join codes
    group_code_length: int = Field(default=8, ge=6, le=12, alias="GROUP_CODE_LENGTH")
    group_code_max_attempts: int = Field(default=20, ge=1, alias="GROUP_CODE_MAX_ATTEMPTS")

    # Listing limits
    announcements_page_size: int = Field(default=10, ge=1, alias="ANNOUNCEMENTS_PAGE_SIZE")
    announcements_max_page_size: int = Field(
        default=100,
        ge=1,
        alias="ANNOUNCEMENTS_MAX_PAGE_SIZE",
    )
    group_activity_limit: int = Field(default=100, ge=1, alias="GROUP_ACTIVITY_LIMIT")

    # Browser clients
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    @property
    def effective_database_url(self) -> str:
        """``TEST_DATABASE_URL`` when ``USE_TEST_DATABASE`` is on, else ``DATABASE_URL``."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """The effective URL with any async driver swapped for its sync one."""
        url = self.effective_database_url
        scheme, sep, rest = url.partition("://")
        return f"{_SYNC_DRIVERS.get(scheme, scheme)}{sep}{rest}"


settings = Settings()  # type: ignore[call-arg]
