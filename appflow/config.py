"""Environment-driven settings.

Values come from the process environment, after a ``.env`` file in the
working directory (if any) has been loaded.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()  # load environment variables from .env file

GEMINI_FLASH = "gemini-2.5-flash"
GEMINI_3_PRO = "gemini-3-pro-preview"
OPENAI_DEFAULT = "gpt-4o-mini"

KNOWN_MODELS = {
    "gemini": [GEMINI_FLASH, GEMINI_3_PRO],
    "openai": [OPENAI_DEFAULT, "gpt-4o"],
}

DEFAULT_MODELS = {provider: models[0] for provider, models in KNOWN_MODELS.items()}

# env var holding the api key for each provider
API_KEY_ENV = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime settings for the library and the HTTP server."""

    provider: str = "gemini"
    model: str = GEMINI_FLASH
    openai_base_url: str | None = None
    recent_window_seconds: float = 3.0
    request_timeout: float = 60.0
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            provider=os.getenv("APPFLOW_PROVIDER", "gemini"),
            model=os.getenv("APPFLOW_MODEL", GEMINI_FLASH),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            recent_window_seconds=_float_env("APPFLOW_RECENT_WINDOW_SECONDS", 3.0),
            request_timeout=_float_env("APPFLOW_REQUEST_TIMEOUT", 60.0),
            log_level=os.getenv("APPFLOW_LOG_LEVEL", "INFO").upper(),
            # comma-separated values for multiple origins, or "*" for all (development only)
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        )

    def api_key_for(self, provider: str) -> str | None:
        """Api key for ``provider`` from the environment, if set."""
        env_name = API_KEY_ENV.get(provider)
        return os.getenv(env_name) if env_name else None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the process-wide settings, reading the environment once."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
