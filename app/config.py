#config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    # Application Settings
    APP_NAME: str = "NDVI Hub API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./ndvi_hub.db")

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    # CORS Settings (accept comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # File Upload Settings
    MAX_FILE_SIZE: int = 500 * 1024 * 1024  # 500MB, originals
    MAX_FORM_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50MB, direct form uploads
    ALLOWED_IMAGE_TYPES: List[str] = ["image/tiff", "image/tif", "image/png", "image/jpeg", "image/jpg"]
    ALLOWED_EXTENSIONS: List[str] = [".tif", ".tiff", ".png", ".jpg", ".jpeg"]
    THUMBNAIL_SIZE: int = 300
    OPTIMIZED_MAX_EDGE: int = 1200
    SIGNED_URL_TTL: int = 3600
    UPLOAD_DIR: str = "uploads"

    # Object storage (any S3-compatible endpoint, e.g. DigitalOcean Spaces)
    STORAGE_BACKEND: str = "auto"  # auto | s3 | local | disabled
    DO_SPACES_ENDPOINT: str = os.environ.get("DO_SPACES_ENDPOINT", "")
    DO_SPACES_REGION: str = os.environ.get("DO_SPACES_REGION", "fra1")
    DO_SPACES_ACCESS_KEY: str = os.environ.get("DO_SPACES_ACCESS_KEY", "")
    DO_SPACES_SECRET_KEY: str = os.environ.get("DO_SPACES_SECRET_KEY", "")
    DO_SPACES_BUCKET: str = os.environ.get("DO_SPACES_BUCKET", "")

    # Middleware settings
    GZIP_MIN_SIZE: int = 500  # bytes

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 120

    # Base URL for locally served uploads
    BASE_URL: str = os.environ.get("BASE_URL", "http://localhost:8000")

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def spaces_configured(self) -> bool:
        return all([
            self.DO_SPACES_ACCESS_KEY,
            self.DO_SPACES_SECRET_KEY,
            self.DO_SPACES_BUCKET,
            self.DO_SPACES_ENDPOINT,
        ])


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
