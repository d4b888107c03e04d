"""Configuration management for vidshare."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="VS_", extra="ignore")

    # Security keys
    app_secret_key: str
    token_enc_key: str

    # Session tokens
    access_token_ttl_seconds: int = 86400  # 1 day
    refresh_token_ttl_seconds: int = 86400 * 10  # 10 days

    # Database
    database_url: str = "sqlite+aiosqlite:///./dev.db"
    create_tables: bool = True

    # Pagination
    page_size_default: int = 10
    page_size_max: int = 100

    # CORS
    frontend_origin: str = "http://localhost:5173"

    # Media storage
    media_storage_backend: str = Field(
        default="local", pattern="^(local|cloudinary)$"
    )  # local or cloudinary
    media_local_path: str = Field(default="./media")
    media_url_base: str = Field(default="http://localhost:8000/media")
    media_upload_timeout_seconds: float = Field(default=60.0)

    # Cloudinary (only needed if media_storage_backend=cloudinary)
    cloudinary_cloud_name: str = Field(default="")
    cloudinary_api_key: str = Field(default="")
    cloudinary_api_secret: str = Field(default="")

    # Environment
    env: str = Field(default="dev", pattern="^(dev|prod)$")
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
