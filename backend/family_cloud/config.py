"""Family Cloud configuration: Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-me-in-prod"
ENVIRONMENTS = ("development", "production")


class Settings(BaseSettings):
    """Application settings, built once at startup and passed to each service."""

    app_name: str = "Family Cloud API"
    debug: bool = True
    environment: str = "development"
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8080
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:4200",
    ]

    # Frontend that SSO flows redirect back to
    client_url: str = "http://localhost:4200"

    # Session + credential tokens we sign ourselves
    secret_key: str = DEFAULT_SECRET_KEY
    token_algorithm: str = "HS256"
    session_expire_days: int = 7
    credentials_expire_minutes: int = 60

    # Cognito hosted UI / user pool
    cognito_client_id: str = ""
    cognito_client_secret: str = ""
    cognito_redirect_url: str = ""
    cognito_auth_host: str = ""
    cognito_jwks_url: str = ""
    cognito_region: str = "us-east-1"
    cognito_user_pool_id: str = ""
    cognito_identity_pool_id: str = ""

    # Google sign-in button
    google_client_id: str = ""
    google_certs_url: str = "https://www.googleapis.com/oauth2/v3/certs"

    jwks_cache_seconds: int = 3600

    # Bucket
    s3_bucket: str = "family-cloud-drive"
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    presign_expire_seconds: int = 900

    # Bounded waits around bucket listings
    folder_size_timeout_seconds: float = 0.5
    list_timeout_seconds: float = 5.0

    # Local user cache
    database_path: str = "./data/family_cloud.db"
    max_db_connections: int = 5

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="FAMILY_CLOUD_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:4200"]

    @field_validator("environment")
    @classmethod
    def check_environment(cls, value: str) -> str:
        if value not in ENVIRONMENTS:
            raise ValueError(f"Invalid environment: {value}")
        return value

    @model_validator(mode="after")
    def _check_production(self) -> "Settings":
        """Production needs the full Cognito setup and a real signing key."""
        if not self.is_production:
            return self
        missing = [
            field
            for field in (
                "cognito_client_id",
                "cognito_client_secret",
                "cognito_redirect_url",
                "cognito_auth_host",
                "cognito_jwks_url",
            )
            if not getattr(self, field)
        ]
        if self.secret_key == DEFAULT_SECRET_KEY:
            missing.append("secret_key")
        if missing:
            raise ValueError(f"Missing settings for production: {', '.join(missing)}")
        return self

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure the database path is absolute."""
        base = Path(__file__).resolve().parent.parent  # backend/
        if not Path(self.database_path).is_absolute():
            self.database_path = str(base / self.database_path)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once; an invalid environment stops the process at startup."""
    try:
        return Settings()
    except ValidationError as exc:
        logger.critical("Invalid configuration:\n%s", exc)
        raise SystemExit(1) from exc
