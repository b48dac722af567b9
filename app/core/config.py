"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # Translation
    GOOGLE_TRANSLATE_API_KEY: str = ""
    TRANSLATE_API_URL: str = "https://translation.googleapis.com/language/translate/v2"
    TRANSLATE_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_LANGUAGE: str = "en"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Feed / search
    POSTS_PER_PAGE: int = 10
    SEARCH_DEBOUNCE_SECONDS: float = 0.5

    # Uploads
    POST_IMAGE_MAX_BYTES: int = 10 * 1024 * 1024
    AVATAR_MAX_BYTES: int = 512000

    # Counters
    ATOMIC_COUNTERS: bool = False

    # Username cache
    USERNAME_CACHE_TTL_SECONDS: int = 300

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()  # type: ignore[call-arg]
