import json
import re
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # Prefer JSON, but tolerate comma separated values from .env files.
    if raw.startswith(("[", '"', "'")):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()
            if not raw or raw == "[]":
                return []
            if raw == "*":
                return ["*"]

    origins: list[str] = []
    for part in (p for p in re.split(r"[,\s]+", raw) if p):
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
            continue
        # Browsers include the scheme in the Origin header.
        origins.append(f"http://{part}")
        origins.append(f"https://{part}")

    return list(dict.fromkeys(origins))


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Database. SQLite is the default for a local reader; any SQLAlchemy
    # async URL (e.g. postgresql+asyncpg://...) is accepted.
    database_url: str = Field(
        default="sqlite+aiosqlite:///./reader.db", validation_alias="DATABASE_URL"
    )

    # Connection pool settings (ignored for SQLite)
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_timeout: int = 30
    db_pool_recycle: int = 300
    db_pool_pre_ping: bool = True

    # Seconds SQLite waits on a locked database before failing
    db_sqlite_timeout: float = 15.0

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Article filtering
    filter_default_page_size: int = 50
    filter_max_page_size: int = 200
    article_scan_batch_size: int = 500
    filter_regex_max_length: int = 256

    # Rule application
    rule_max_workers: int = 8
    rule_apply_timeout_seconds: float = 0.0  # 0 disables the timeout

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator(
        "filter_default_page_size",
        "filter_max_page_size",
        "article_scan_batch_size",
        "filter_regex_max_length",
        "rule_max_workers",
        "db_pool_size",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate size and count values are positive."""
        if v < 1:
            raise ValueError("size values must be at least 1")
        return v

    @field_validator("rule_apply_timeout_seconds")
    @classmethod
    def validate_timeout_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("rule_apply_timeout_seconds must not be negative")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
