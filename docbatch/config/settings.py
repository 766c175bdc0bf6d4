from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DRIVE_UPLOAD_URL = (
    "https://www.googleapis.com/upload/drive/v3/files"
    "?uploadType=multipart&fields=id,name,webViewLink,webContentLink"
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    storage_backend: Literal["memory", "postgres"] = "memory"
    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "docbatch"
    db_username: str = "docbatch"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 4
    db_pool_timeout_seconds: float = 10.0

    pipeline_max_retries: int = 2
    pipeline_retry_delay_seconds: float = 1.0
    pipeline_continue_on_error: bool = True

    upload_enabled: bool = False
    upload_url: str = DRIVE_UPLOAD_URL
    upload_max_attempts: int = 3
    upload_backoff_base_seconds: float = 1.0
    upload_timeout_seconds: int = 60
    upload_access_token: str = ""
    drive_folder_id: str | None = None
    upload_history_limit: int = 100

    pdf_quality: Literal["standard", "high"] = "standard"
    include_source_footer: bool = True
    text_font_path: str | None = None
    pictograph_font_path: str | None = None

    image_fetch_timeout_seconds: int = 30
    image_fetch_max_attempts: int = 3
    image_allow_local_files: bool = False
