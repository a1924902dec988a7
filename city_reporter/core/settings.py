"""
Core settings and environment variables for City Reporter.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "City Reporter"
    APP_VERSION: str = "4.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - comma-separated frontend origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001"

    # Firebase (Firestore + Cloud Storage)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # Photo uploads
    UPLOAD_PREFIX: str = "issue-reports"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    UPLOAD_TIMEOUT_SECONDS: float = 30.0

    # Email notifications (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    EMAIL_FROM_NAME: str = "SmartCity Reporter"
    NOTIFICATION_TIMEOUT_SECONDS: float = 20.0

    # Reverse geocoding for locations submitted without city/district/province
    GEOCODING_ENABLED: bool = False
    GEOCODING_USER_AGENT: str = "city-reporter/4.1"
    GEOCODING_TIMEOUT_SECONDS: float = 5.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
