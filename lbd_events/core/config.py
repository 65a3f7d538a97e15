from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "LBD Events API"
    app_env: str = "dev"
    app_version: str = "0.1.0"
    api_v1_prefix: str = ""
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    firebase_credentials_json: str = "./secrets/firebase-service-account.json"
    firebase_project_id: str | None = None
    events_collection: str = "events"
    users_collection: str = "users"
    login_path: str = "/admin/auth/login"

    storage_backend: str = "cloudinary"  # cloudinary | s3 | local
    media_dir: str = "./media"
    media_base_url: str = "http://localhost:8000/media"

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    s3_endpoint: str = "http://localhost:9000"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_bucket: str = "lbd-events-media"
    s3_region: str = "us-east-1"
    s3_public_base_url: str | None = None

    smtp_host: str = ""
    smtp_port: int = 465
    smtp_user: str = ""
    smtp_password: str = ""
    mail_from: str | None = None
    mail_timeout_seconds: float = 15.0

    @property
    def media_path(self) -> Path:
        return Path(self.media_dir).resolve()

    @property
    def mail_sender(self) -> str:
        return self.mail_from or self.smtp_user


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
