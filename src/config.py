from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    gemini_api_key: str = ""
    # Secondary name the web client deployment exposes; only used when the primary is empty
    next_public_gemini_api_key: str = ""

    # Storage
    storage_root: str = "storage"

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_url: str = "http://localhost:8000"
    gemini_model: str = "models/gemini-2.5-flash"
    flush_timeout: float = 120.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def resolve_gemini_api_key(self) -> str:
        """Return the first non-empty Gemini credential, or an empty string."""
        return self.gemini_api_key or self.next_public_gemini_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
