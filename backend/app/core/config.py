# File: backend/app/core/config.py
# Version: v0.2.0
"""
Centralized application settings using Pydantic Settings.

Controls:
- App metadata and API prefix
- CORS origins
- Upstream appointment service (base URL, token, timeout, branch service types path)
- Editor session idle expiry
- Log level
"""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- App ---
    API_PREFIX: str = "/api"
    APP_NAME: str = "Branch Services"
    APP_VERSION: str = "0.2.0"

    # --- CORS ---
    CORS_ORIGINS: str = "*"  # comma-separated or '*' for all

    # --- Upstream appointment service ---
    UPSTREAM_BASE_URL: str = "http://localhost:8080"
    UPSTREAM_TOKEN: str = ""  # bearer token passed through as-is; empty disables the header
    UPSTREAM_TIMEOUT_SECONDS: float = 15.0
    BRANCH_SERVICE_TYPES_PATH: str = "/appointment-service/api/admin/branch-service-types"

    # --- Editor sessions ---
    SESSION_IDLE_TTL_SECONDS: int = 3600

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

settings = Settings()
