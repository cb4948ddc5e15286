"""
Centralized configuration for the Guide data layer.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings are namespaced by prefix (e.g., SUPABASE_*, CATALOG_*).
"""

from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Guide"
    app_version: str = "0.1.0"
    debug: bool = False

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Federated sign-in redirect
    site_url: str = "http://localhost:3000"
    oauth_callback_path: str = "/auth/callback"

    # Cache lifetimes (seconds)
    catalog_ttl_seconds: float = 120
    search_ttl_seconds: float = 60
    experience_ttl_seconds: float = 300
    profile_ttl_seconds: float = 300

    # Persistent cache mirror
    cache_mirror_enabled: bool = True
    cache_mirror_dir: Path = Path(".guide-cache")

    # Catalog
    catalog_page_size: int = 12

    # Storage
    image_bucket: str = "experience-images"
    max_image_bytes: int = 5 * 1024 * 1024

    # Notifications
    notification_limit: int = 50
    enable_notifications: bool = True

    @property
    def oauth_redirect_url(self) -> str:
        """Absolute URL the identity provider redirects back to."""
        return self.site_url.rstrip("/") + "/" + self.oauth_callback_path.lstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
