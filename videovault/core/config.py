from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    APP_NAME: str = "videovault"
    ENV: Literal["local", "dev", "prod"] = "local"
    API_PREFIX: str = "/api"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Telegram Bot API (upload, small-file origin, delete)
    BOT_TOKEN: str = ""
    CHANNEL_ID: str = ""
    TELEGRAM_API_BASE: str = "https://api.telegram.org"

    # Signed stream URLs
    SECRET_KEY: str = "dev-secret-change-me"
    SIGNED_URL_TTL_SECONDS: int = 86400

    # Large-file relay origin
    LARGE_FILE_SERVICE_URL: str = "http://localhost:8080"
    LARGE_FILE_THRESHOLD: int = 20 * 1024 * 1024

    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024 * 1024
    STREAM_CACHE_CONTROL: str = "public, max-age=3600"
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0

    # Key-value store
    KV_PROVIDER: Literal["memory", "redis"] = "memory"
    REDIS_URL: str | None = None
    KV_KEY_PREFIX: str = "video:"

    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    @field_validator("SECRET_KEY")
    @classmethod
    def _secret_required(cls, v: str):
        if not v.strip():
            raise ValueError("SECRET_KEY must not be empty")
        return v

    @field_validator("TELEGRAM_API_BASE", "LARGE_FILE_SERVICE_URL")
    @classmethod
    def _strip_slash(cls, v: str):
        return v.rstrip("/")

settings = Settings()
