# 📦 supabase_client.py

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog
from supabase import Client, create_client

log = structlog.get_logger()


class SupabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    supabase_url: str = ""
    supabase_key: str = ""


@lru_cache
def get_supabase() -> Client | None:
    """Shared Supabase client, or None when no credentials are configured."""
    settings = SupabaseSettings()
    if not settings.supabase_url or not settings.supabase_key:
        log.warning("Supabase credentials not configured")
        return None
    return create_client(settings.supabase_url, settings.supabase_key)
