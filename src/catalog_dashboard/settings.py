from typing import Literal, Optional

from pydantic import AnyHttpUrl, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseModel):
    base_url: AnyHttpUrl = Field(default="http://localhost:8080", validate_default=True)
    timeout_seconds: float = Field(default=10.0, gt=0)
    verify_ssl: bool = True


class Settings(BaseSettings):

    # ---- app/runtime ----
    env: Literal["dev", "staging", "prod"] = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ---- remote API ----
    api: APISettings = APISettings()

    # ---- cache ----
    cache_ttl_seconds: float = Field(default=300.0, gt=0)  # 5 minutes for catalog queries
    serve_stale_on_error: bool = True

    # ---- filter pipeline timing ----
    search_debounce_seconds: float = Field(default=0.3, ge=0)
    filter_throttle_seconds: float = Field(default=0.1, ge=0)
    render_yield_seconds: float = Field(default=0.1, ge=0)

    # ---- realtime sync ----
    metrics_poll_seconds: float = Field(default=5.0, gt=0)
    refresh_interval_seconds: float = Field(default=30.0, gt=0)
    auto_refresh: bool = True

    # ---- catalog paging ----
    page_size: int = Field(default=100, ge=1)  # loaded per request, filtered client-side
    items_per_page: int = Field(default=12, ge=1)
    price_ceiling: float = Field(default=1000.0, gt=0)

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_prefix="DASHBOARD_",      # DASHBOARD_ENV, DASHBOARD_LOG_LEVEL, etc.
        env_nested_delimiter='__',    # DASHBOARD_API__BASE_URL
        extra = "ignore"
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Singleton accessor to avoid reparsing .env on every import."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
