"""Form backend configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class FormBackendSettings(BaseSettings):
    environment: str = "development"
    database_url: str = Field(
        default="sqlite+aiosqlite:///formbackend.db",
        validation_alias=AliasChoices("FORMS_DATABASE_URL", "DATABASE_URL"),
    )
    echo_sql: bool = False
    app_title: str = "Form Backend"
    auto_create_tables: bool = True
    log_level: str = "INFO"

    # Public submit hardening
    rate_limit_points: int = 10
    rate_limit_window_seconds: int = 60
    default_honeypot_field: str = "_website"

    # Dashboard / submissions API
    dashboard_auth_token: str = ""
    recent_window_days: int = 7
    dashboard_submission_limit: int = 100
    public_base_url: str = "http://localhost:8000"
    cors_origins: str = "*"

    # SendGrid (optional — owner notifications)
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str | None = "forms@formbackend.com"
    sendgrid_from_name: str | None = None
    notification_drain_seconds: float = 10.0

    model_config = {
        "env_prefix": "FORMS_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def templates_dir(self) -> Path:
        return self.base_dir / "templates"

    @property
    def sendgrid_configured(self) -> bool:
        # The SendGrid placeholder from the sample .env counts as unset.
        key = (self.sendgrid_api_key or "").strip()
        return bool(key and key != "your-sendgrid-api-key" and self.sendgrid_from_email)

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def async_database_url(self) -> str:
        """Rewrite bare driver URLs (e.g. Railway's ``postgres://``) to async dialects."""
        url = self.database_url.strip()
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        if url.startswith("sqlite:///"):
            return "sqlite+aiosqlite:///" + url[len("sqlite:///"):]
        return url

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = FormBackendSettings()
