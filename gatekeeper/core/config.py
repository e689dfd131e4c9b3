"""Gatekeeper configuration, loaded from environment variables and .env."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "Webhook Gatekeeper"
    app_version: str = "1.0.0"

    port: int = Field(default=3000, ge=1, le=65535)
    environment: str = Field(default="development", validation_alias="NODE_ENV")
    log_level: str = "INFO"

    # Shared secret trusted clients present in X-API-Key to obtain tokens
    api_key: str = ""

    # Real downstream address; never returned to clients
    discord_webhook_url: str = ""
    webhook_timeout_seconds: float = Field(default=10.0, gt=0)

    allowed_origins: str = "*"
    trusted_proxy_ips: str = ""

    # Fixed-window limits. Windows are milliseconds to match existing deployments.
    rate_limit_window_ms: int = Field(default=900_000, gt=0, validation_alias="RATE_LIMIT_WINDOW")
    rate_limit_max: int = Field(default=100, gt=0)
    auth_rate_limit_window_ms: int = Field(
        default=900_000, gt=0, validation_alias="AUTH_RATE_LIMIT_WINDOW"
    )
    auth_rate_limit_max: int = Field(default=10, gt=0)

    token_lifetime_seconds: int = Field(default=3600, gt=0)
    reclaim_interval_seconds: float = Field(default=60.0, gt=0)
    blacklist_prune_expired: bool = False

    enable_metrics: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got {v!r}")
        return level

    @field_validator("rate_limit_window_ms", "auth_rate_limit_window_ms", mode="before")
    @classmethod
    def parse_window(cls, v: object) -> object:
        # Empty env values fall back to the default window
        if isinstance(v, str) and not v.strip():
            return 900_000
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def debug(self) -> bool:
        return not self.is_production

    @property
    def cors_allow_all(self) -> bool:
        return self.allowed_origins.strip() == "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse ALLOWED_ORIGINS into a list."""
        if self.cors_allow_all:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def trusted_proxy_ip_set(self) -> set[str]:
        return {ip.strip() for ip in self.trusted_proxy_ips.split(",") if ip.strip()}

    @property
    def api_key_preview(self) -> str:
        """First 8 characters of the API key, for development startup logs."""
        return f"{self.api_key[:8]}..." if self.api_key else ""

    def check_security_configuration(self) -> list[str]:
        """Return warnings for configuration that leaves the gateway unusable or exposed."""
        warnings: list[str] = []
        if not self.api_key:
            warnings.append("API_KEY not set in environment variables")
        if not self.discord_webhook_url:
            warnings.append("DISCORD_WEBHOOK_URL not set in environment variables")
        if self.is_production and self.cors_allow_all:
            warnings.append("ALLOWED_ORIGINS is '*' in production")
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
