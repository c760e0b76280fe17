"""Application configuration loaded from environment variables.

Settings for the database, API, authentication, share-link URLs and the
redeem transaction timeouts. Uses pydantic-settings for validation and
.env file support.
"""

import uuid

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Dev-only database password; check_production_security() rejects it in production
_INSECURE_DEFAULT_PASSWORD = "boardshare_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "boardshare"
    database_user: str = "boardshare_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS
    # Credentials are allowed, so this must list explicit origins, never "*"
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Authentication
    # Local-first mode: DEFAULT_USER_ID provides user context without JWT
    # Hosted mode: auth_enabled=True, JWT cookie required on every request
    default_user_id: uuid.UUID | None = None
    auth_enabled: bool = False
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "boardshare"
    auth_audience: str = "boardshare"
    auth_cookie_name: str = "boardshare.session-token"

    # Share links
    # Public origin that serves the share landing page (secret goes in ?token=)
    share_base_url: str = "http://localhost:3000"

    # Redeem transaction bounds. The share-link row lock is held for at most
    # this long; expiry surfaces as a retry-safe TRANSIENT error.
    redeem_lock_timeout_ms: int = 5000
    redeem_statement_timeout_ms: int = 10000

    # Rate limiting
    # Format: "count/period" (e.g., "10/minute", "10/5minute")
    rate_limit_redeem: str = "10/5minute"
    # Shared by every caller from one client address
    rate_limit_redeem_ip: str = "30/5minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Redeem timeouts must be positive (all environments)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars when auth is enabled in production
        """
        if self.redeem_lock_timeout_ms <= 0 or self.redeem_statement_timeout_ms <= 0:
            msg = (
                "REDEEM_LOCK_TIMEOUT_MS and REDEEM_STATEMENT_TIMEOUT_MS must be "
                f"positive. Got: {self.redeem_lock_timeout_ms}, "
                f"{self.redeem_statement_timeout_ms}"
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if self.auth_enabled:
                secret_value = self.auth_secret.get_secret_value()
                if not secret_value:
                    msg = (
                        "AUTH_SECRET must be set when AUTH_ENABLED=true in production. "
                        'Generate with: python -c "import secrets; '
                        'print(secrets.token_hex(32))"'
                    )
                    raise ValueError(msg)
                if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                    msg = (
                        f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                        "characters for adequate security."
                    )
                    raise ValueError(msg)

        return self


settings = Settings()
