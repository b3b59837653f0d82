"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - Every default success message is a setting, never a literal in the dispatcher

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: works out-of-the-box
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


OPERATIONS = ("create", "retrieve", "update", "delete", "export")


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Default success messages
    create_message: str = "resource created"
    retrieve_message: str = "resource list"
    update_message: str = "resource updated"
    delete_message: str = "resource deleted"
    export_message: str = "export ready"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:5173"]

    @field_validator("api_prefix")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Reference in-memory service
    export_dir: str = "exports"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def response_messages(self) -> dict[str, str]:
        """Operation -> default success message."""
        return {op: getattr(self, f"{op}_message") for op in OPERATIONS}


@lru_cache
def get_settings() -> Settings:
    return Settings()
