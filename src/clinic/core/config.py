"""Application Configuration Module.

12-factor configuration using pydantic-settings. Every value can be
overridden through environment variables.

Environment file loading priority:
1. ``.env`` (base defaults)
2. ``.env.{APP_ENV}`` (e.g. ``.env.dev``, ``.env.prod``) overrides the base
3. Real environment variables always win
"""
import os
import warnings
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_env_file() -> str | tuple[str, ...]:
    """Return the env file(s) to load, base file first."""
    app_env = os.getenv("APP_ENV", "").lower()

    env_to_file = {
        "dev": "dev",
        "development": "dev",
        "prod": "prod",
        "production": "prod",
        "staging": "staging",
        "test": "test",
    }
    file_suffix = env_to_file.get(app_env, app_env)

    env_files: list[str] = []
    if Path(".env").exists():
        env_files.append(".env")
    if file_suffix:
        env_specific = f".env.{file_suffix}"
        if Path(env_specific).exists():
            env_files.append(env_specific)

    if env_files:
        return tuple(env_files)
    return ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Set ``APP_ENV=dev`` to load ``.env.dev`` on top of ``.env``.
    """

    model_config = SettingsConfigDict(
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Application Settings
    # ========================================
    APP_NAME: str = Field(
        default="clinic-records-service",
        description="Application name used in logging and API docs"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Semantic version of the application"
    )
    APP_ENV: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (never enable in production)"
    )

    # ========================================
    # Server Configuration
    # ========================================
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, ge=1, le=65535, description="Server port")
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )

    # ========================================
    # Database Configuration (PostgreSQL)
    # ========================================
    DATABASE_URL: str = Field(
        default="",
        description="Database URL in SQLAlchemy async format (postgresql+asyncpg://...)"
    )
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    DATABASE_MAX_OVERFLOW: int = Field(
        default=10,
        ge=0,
        description="Max overflow connections beyond pool size"
    )
    DATABASE_POOL_TIMEOUT: int = Field(
        default=30,
        ge=1,
        description="Timeout for getting connection from pool (seconds)"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements to logs")

    # ========================================
    # Security Configuration
    # ========================================
    SECRET_KEY: str = Field(
        default="change-me-in-production-use-strong-random-key",
        min_length=32,
        description="Secret key for JWT signing"
    )
    ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60,
        ge=1,
        description="JWT access token expiration time (minutes)"
    )
    PASSWORD_HASH_SCHEMES: str = Field(
        default="pbkdf2_sha256",
        description="Comma-separated passlib schemes; the first one hashes new passwords"
    )

    # ========================================
    # CORS Configuration
    # ========================================
    CORS_ORIGINS: str = Field(default="*", description="Comma-separated list of allowed origins")
    CORS_ALLOW_CREDENTIALS: bool = Field(
        default=False,
        description="Allow credentials in CORS requests (requires explicit origins)"
    )
    CORS_ALLOW_METHODS: str = Field(
        default="GET,POST,PUT,DELETE,OPTIONS,PATCH",
        description="Comma-separated list of allowed HTTP methods"
    )

    # ========================================
    # Clinic Rules
    # ========================================
    FEE_WAIVER_DAYS: int = Field(
        default=14,
        ge=0,
        description="Days after a charged visit during which the registration fee is not re-charged"
    )
    TENANT_CODE_LENGTH: int = Field(
        default=6,
        ge=4,
        le=12,
        description="Length of generated tenant codes"
    )
    TENANT_CODE_MAX_ATTEMPTS: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum draws/commit retries when allocating a unique tenant code"
    )
    PATIENT_NUMBER_PADDING: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Zero padding of the sequence part of patient numbers"
    )
    PATIENT_NUMBER_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Retries when a concurrent registration takes the same patient number"
    )

    # Computed Properties
    # ========================================
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def cors_methods_list(self) -> list[str]:
        """Parse CORS methods from comma-separated string."""
        return [method.strip() for method in self.CORS_ALLOW_METHODS.split(",")]

    @property
    def password_schemes_list(self) -> list[str]:
        return [scheme.strip() for scheme in self.PASSWORD_HASH_SCHEMES.split(",") if scheme.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    # ========================================
    # Validators
    # ========================================
    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Warn (not silently substitute) when DATABASE_URL is absent."""
        if not v:
            warnings.warn(
                "DATABASE_URL is not set. The application will fail on first DB access.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate settings for production environment."""
        if self.CORS_ORIGINS.strip() == "*" and self.CORS_ALLOW_CREDENTIALS:
            raise ValueError(
                "CORS_ALLOW_CREDENTIALS cannot be True when CORS_ORIGINS is '*'. "
                "Set CORS_ORIGINS to an explicit comma-separated list of origins."
            )
        if not self.password_schemes_list:
            raise ValueError("PASSWORD_HASH_SCHEMES must name at least one passlib scheme")

        if self.is_production:
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if "change-me" in self.SECRET_KEY.lower():
                raise ValueError("SECRET_KEY must be changed in production")
            if not self.DATABASE_URL:
                raise ValueError("DATABASE_URL must be set in production")
            if "localhost" in self.DATABASE_URL or "127.0.0.1" in self.DATABASE_URL:
                raise ValueError("DATABASE_URL must not point to localhost in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings instance.

    Tests can reset it with ``get_settings.cache_clear()``.
    """
    return Settings()


settings = get_settings()
