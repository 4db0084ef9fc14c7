"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "PFP Gallery API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the profile picture gallery and image uploads"

    # Server binding (used by `pfp-gallery` / serve())
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS Configuration
    # Cross-origin requests are permitted from anywhere
    CORS_ORIGINS: List[str] = ["*"]

    # Database Configuration
    # postgresql+asyncpg://... in production, sqlite+aiosqlite://... locally
    DATABASE_URL: str = "sqlite+aiosqlite:///./pfp_gallery.db"

    # Admin password checked against the x-admin-pass header
    ADMIN_PASSWORD: str = "admin123"
    # Optional bcrypt hash; takes precedence over ADMIN_PASSWORD when set
    # Generate with: python generate_password_hash.py
    ADMIN_PASSWORD_HASH: str = ""

    # Static frontend bundle and uploads (uploads are nested under PUBLIC_DIR)
    PUBLIC_DIR: str = "public"
    UPLOAD_SUBDIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5 MB

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def public_path(self) -> Path:
        return Path(self.PUBLIC_DIR).resolve()

    @property
    def upload_path(self) -> Path:
        return self.public_path / self.UPLOAD_SUBDIR


# Global settings instance
settings = Settings()
