from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    database_url: str = "sqlite+pysqlite:///./runclub.db"
    # "sql" uses database_url; "memory" keeps everything in process
    storage_backend: str = "sql"
    # Civil timezone the organizer enters run times in.
    # Any IANA name works, e.g. "America/New_York", "Europe/London".
    reference_timezone: str = "America/New_York"
    log_level: str = "INFO"
    seed_sample_runs: bool = False
    # Comma separated, "*" allows everything
    cors_origins: str = "*"

    model_config = SettingsConfigDict(env_file=".env")

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, v):
        if v in ("", None):
            return "sql"
        v = str(v).strip().lower()
        if v not in ("sql", "memory"):
            raise ValueError("storage_backend must be 'sql' or 'memory'")
        return v

    # Allow empty env strings to fall back to defaults
    @field_validator("reference_timezone", "log_level", mode="before")
    @classmethod
    def _empty_to_default(cls, v, info):
        if v in ("", None, "null", "None"):
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("reference_timezone")
    @classmethod
    def _known_zone(cls, v):
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    @property
    def allowed_origins(self) -> list[str]:
        raw = (self.cors_origins or "").strip()
        if not raw or raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


settings = Settings()
