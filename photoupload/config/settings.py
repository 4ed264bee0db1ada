from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    upload_max_size_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    upload_allowed_mime_types: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    ]
    upload_allowed_extensions: list[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp"]
    upload_min_width: int = Field(default=100, gt=0)
    upload_min_height: int = Field(default=100, gt=0)
    upload_max_width: int = Field(default=4000, gt=0)
    upload_max_height: int = Field(default=4000, gt=0)
    upload_disabled: bool = False

    compression_threshold_bytes: int = Field(default=2 * 1024 * 1024, gt=0)
    compression_max_dimension: int = Field(default=2000, gt=0)
    compression_quality: float = Field(default=0.85, gt=0.0, le=1.0)

    stage_timeout_seconds: float = Field(default=30.0, gt=0.0)

    image_engine: str = "pillow"
