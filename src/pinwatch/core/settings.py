"""Application settings and configuration.

This module defines all configuration options for the Pinwatch service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Pinwatch", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    verifier_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="VERIFIER_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./pinwatch.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Submission quotas
    rate_salt: str = Field(default="", alias="RATE_SALT")
    submission_daily_limit: int = Field(default=3, alias="SUBMISSION_DAILY_LIMIT")
    rate_limit_ttl_hours: int = Field(default=25, alias="RATE_LIMIT_TTL_HOURS")

    # Submission validation
    require_image: bool = Field(default=False, alias="REQUIRE_IMAGE")
    require_additional_info: bool = Field(default=False, alias="REQUIRE_ADDITIONAL_INFO")
    max_input_length: int = Field(default=500, alias="MAX_INPUT_LENGTH")

    # Content moderation provider
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        alias="OPENAI_BASE_URL",
    )
    moderation_model: str = Field(default="gpt-4o", alias="MODERATION_MODEL")
    moderation_max_input_length: int = Field(
        default=100,
        alias="MODERATION_MAX_INPUT_LENGTH",
    )
    moderation_timeout_seconds: float = Field(
        default=10.0,
        alias="MODERATION_TIMEOUT_SECONDS",
    )

    # Geocoding provider
    google_maps_api_key: str | None = Field(default=None, alias="GOOGLE_MAPS_API_KEY")
    geocoding_url: str = Field(
        default="https://maps.googleapis.com/maps/api/geocode/json",
        alias="GEOCODING_URL",
    )
    geocoding_country: str = Field(default="US", alias="GEOCODING_COUNTRY")
    geocoding_timeout_seconds: float = Field(
        default=10.0,
        alias="GEOCODING_TIMEOUT_SECONDS",
    )

    # Object storage for report images
    minio_endpoint: str = Field(default="localhost:9000", alias="MINIO_ENDPOINT")
    minio_access_key: str = Field(default="minioadmin", alias="MINIO_ACCESS_KEY")
    minio_secret_key: str = Field(default="minioadmin", alias="MINIO_SECRET_KEY")
    minio_bucket: str = Field(default="pinwatch-reports", alias="MINIO_BUCKET")
    minio_secure: bool = Field(default=False, alias="MINIO_SECURE")
    public_media_base_url: str | None = Field(default=None, alias="PUBLIC_MEDIA_BASE_URL")

    # Retention and maintenance
    archive_after_days: int = Field(default=7, alias="ARCHIVE_AFTER_DAYS")
    max_batch_size: int = Field(default=500, alias="MAX_BATCH_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
