"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Booking Engine API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./booking_engine.db",
        alias="DATABASE_URL",
    )

    # Redis (disabled when REDIS_HOST is empty)
    redis_host: str = Field(default="", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # Booking
    booking_lock_backend: str = Field(
        default="local",
        alias="BOOKING_LOCK_BACKEND",
        description="Per-provider booking lock implementation: 'local' or 'redis'",
    )
    booking_lock_timeout_seconds: float = Field(
        default=10.0,
        alias="BOOKING_LOCK_TIMEOUT_SECONDS",
        description="Redis lock expiry, bounds how long a crashed worker can hold a provider",
    )
    booking_lock_wait_seconds: float = Field(
        default=5.0,
        alias="BOOKING_LOCK_WAIT_SECONDS",
        description="How long a commit waits for the provider lock before failing",
    )
    default_appointment_duration_minutes: int = Field(
        default=30,
        alias="DEFAULT_APPOINTMENT_DURATION_MINUTES",
        gt=0,
    )

    # Calendar
    default_timezone: str = Field(default="UTC", alias="DEFAULT_TIMEZONE")
    # Calendar configs change rarely, cache for 5 minutes
    calendar_config_cache_ttl: int = Field(default=300, alias="CALENDAR_CONFIG_CACHE_TTL")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def redis_enabled(self) -> bool:
        """Check if a Redis server is configured."""
        return bool(self.redis_host)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
