import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_config_logger = logging.getLogger(__name__)

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Studio Tracker API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///data/studio_tracker.db"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Cloudinary (unsigned uploads)
    cloudinary_cloud_name: str = ""
    cloudinary_upload_preset: str = ""
    cloudinary_api_base: str = "https://api.cloudinary.com/v1_1"
    cloudinary_timeout: int = 120

    # Durable client-side key/value storage (session blob, chat watermarks)
    local_storage_file: str = "data/local_storage.json"

    # Live feeds
    chat_message_limit: int = 100
    chat_lookup_limit: int = 100
    chat_unread_fallback_hours: int = 24
    notification_limit: int = 50
    toast_duration_seconds: int = 5
    native_notification_icon: str = "/logo192.png"

    # One-shot reads (seconds)
    fetch_timeout_seconds: float = 15.0

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_sync: str = "INFO"             # cache store + live feed engines
    log_level_media: str = "INFO"            # Cloudinary uploader

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Make sure the directory of a file-based SQLite database exists."""
        if self.database_url.startswith("sqlite:///") and ":memory:" not in self.database_url:
            db_path = Path(self.database_url.removeprefix("sqlite:///"))
            try:
                db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                _config_logger.warning("Could not create database directory %s: %s", db_path.parent, exc)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
