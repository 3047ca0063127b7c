"""
Application configuration.

Uses pydantic-settings to load values from environment variables / .env file.
All secrets (bot token, Google key, backend API key) come from .env — never hardcoded.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown env vars
    )

    # ── Telegram ──────────────────────────────────────────────
    telegram_bot_token: str = ""

    # ── Google Maps Platform ─────────────────────────────────
    google_maps_api_key: str = ""
    # Autocomplete country restriction ("us" → components=country:us).
    # Empty string disables the restriction.
    places_country: str = "us"

    # ── Backend API ──────────────────────────────────────────
    api_base_url: str = "http://localhost:3000"
    event_api_key: str = ""               # sent as x-api-key when set
    upload_url: str = ""                  # photo upload endpoint (default: {api_base_url}/api/uploads)

    # ── Wizard ───────────────────────────────────────────────
    listing_timezone: str = "America/New_York"   # IANA name used to compose startsAt
    search_debounce_ms: int = 250

    # ── Network ──────────────────────────────────────────────
    # Upper bound for every outbound call (Places, geocode, upload, backend)
    http_timeout_seconds: float = 15.0

    # ── App ───────────────────────────────────────────────────
    log_level: str = "INFO"
    debug: bool = False

    @property
    def effective_upload_url(self) -> str:
        """Upload endpoint, falling back to the backend's upload route."""
        if self.upload_url:
            return self.upload_url
        return f"{self.api_base_url.rstrip('/')}/api/uploads"


# Singleton — import this wherever config is needed
settings = Settings()
