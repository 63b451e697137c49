"""
Configuration and settings for the survey service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Which hosted backend receives submissions
    remote_backend: Literal["supabase", "appwrite", "memory"] = Field(
        default="supabase"
    )
    remote_timeout_seconds: float = Field(default=10.0, gt=0)
    list_page_size: int = Field(default=100, ge=1)

    # Supabase
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)
    supabase_table: str = Field(default="survey_submissions")
    supabase_schema: str = Field(default="public")

    # Appwrite
    appwrite_endpoint: str = Field(default="https://cloud.appwrite.io/v1")
    appwrite_project_id: Optional[str] = Field(default=None)
    appwrite_api_key: Optional[str] = Field(default=None)
    appwrite_database_id: Optional[str] = Field(default=None)
    appwrite_collection_id: str = Field(default="survey_responses")

    # Durable local fallback (SQLAlchemy URL; empty keeps it in memory)
    local_store_url: Optional[str] = Field(
        default="sqlite:///data/local_storage.db"
    )
    local_storage_key: str = Field(default="survey_submissions")

    # Admin gate
    admin_email: str = Field(default="admin@ncc.com")
    admin_password: str = Field(default="adminXncc")
    admin_session_ttl_seconds: float = Field(default=8 * 60 * 60, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
