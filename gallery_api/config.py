"""
Configuration management for the gallery API.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Sliding Group Gallery API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "REST gateway for the gallery images and categories"
    API_PREFIX: str = "/api/v1"

    # Runtime environment: development, production or test
    ENVIRONMENT: str = "development"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8080",
        "http://localhost:8081",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ]
    CORS_PRODUCTION_ORIGINS: List[str] = ["https://your-frontend-domain.com"]

    # Database Configuration
    # Empty value falls back to an in-memory SQLite database
    DATABASE_URL: str = ""

    # Cloudinary Configuration (object storage)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    STORAGE_BUCKET: str = "gallery-images"

    # Shared secret expected in the X-Admin-Key header (production only)
    ADMIN_KEY: str = ""

    # Uploads
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024

    # Rate limits (slowapi notation)
    RATE_LIMIT_ENABLED: bool = True
    API_RATE_LIMIT: str = "100/15minutes"
    UPLOAD_RATE_LIMIT: str = "20/15minutes"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def allowed_origins(self) -> List[str]:
        return self.CORS_PRODUCTION_ORIGINS if self.is_production else self.CORS_ORIGINS


# Global settings instance
settings = Settings()
