"""Application configuration read from the environment."""

import os
from dataclasses import dataclass, field

from ..core.macros import DEFAULT_CALORIE_TARGET, DEFAULT_WATER_GOAL_ML


DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


@dataclass
class AppConfig:
    """Configuration for the health tracker backend.

    Attributes:
        storage_path: JSON file backing the key/value store (None for in-memory)
        key_prefix: Prefix of every storage key
        gemini_api_key: Credential for the AI advisor (None disables AI features)
        gemini_model: Gemini model name
        calorie_target: Daily calorie target shown on the dashboard
        water_goal_ml: Daily water goal in millilitres
        host: Bind address for the HTTP server
        port: Bind port for the HTTP server
        log_level: Root logging level
        cors_origins: Origins allowed to call the HTTP API
    """

    storage_path: str | None = None
    key_prefix: str = "hg"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    calorie_target: int = DEFAULT_CALORIE_TARGET
    water_goal_ml: int = DEFAULT_WATER_GOAL_ML
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from environment variables."""
        cors = os.environ.get("HG_CORS_ORIGINS")
        cors_origins = (
            [origin.strip() for origin in cors.split(",") if origin.strip()]
            if cors
            else list(DEFAULT_CORS_ORIGINS)
        )
        return cls(
            storage_path=os.environ.get("HG_STORAGE_PATH") or None,
            key_prefix=os.environ.get("HG_KEY_PREFIX", "hg"),
            gemini_api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY") or None,
            gemini_model=os.environ.get("GEMINI_MODEL", "gemini-2.0-flash"),
            calorie_target=int(os.environ.get("HG_CALORIE_TARGET", DEFAULT_CALORIE_TARGET)),
            water_goal_ml=int(os.environ.get("HG_WATER_GOAL_ML", DEFAULT_WATER_GOAL_ML)),
            host=os.environ.get("HOST", "127.0.0.1"),
            port=int(os.environ.get("PORT", 8080)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            cors_origins=cors_origins,
        )
