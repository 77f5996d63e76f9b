"""
Configuration management using Pydantic settings.
Required settings (database, JWT secret, Redis host) abort startup when missing;
optional integrations (media storage, push, SMTP, maps) degrade gracefully.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional, List, Dict
from functools import lru_cache
import logging
import os

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from the environment and `.env`."""

    # Application configuration
    app_name: str = "Realty API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    # Required: no defaults, a missing value fails validation at boot
    database_url: str
    jwt_secret_key: str
    redis_host: str

    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # JWT configuration
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    jwt_refresh_token_expire_days: int = 30

    # Uploads
    upload_dir: str = "./uploads"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_file_extensions: List[str] = ["jpeg", "jpg", "png", "gif", "webp", "pdf", "doc", "docx"]

    # Media storage (optional)
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    # Push notifications (optional)
    firebase_project_id: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_private_key: Optional[str] = None

    # SMTP (optional)
    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    email_from: Optional[str] = None
    email_use_tls: bool = True

    google_maps_api_key: Optional[str] = None

    # Email queue
    email_queue_name: str = "email-queue"
    email_max_attempts: int = 3
    email_backoff_ms: int = 2000

    # Cache TTLs in seconds
    cache_ttl_listings: int = 600
    cache_ttl_nearby: int = 300
    cache_ttl_inquiries: int = 300
    cache_ttl_dashboard: int = 60

    # API configuration
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Pagination defaults
    default_page_size: int = 12
    max_page_size: int = 100

    # Rate limiting, counted per client IP and route
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100
    auth_rate_limit_attempts: int = 5
    auth_rate_limit_window_seconds: int = 15 * 60
    strict_rate_limit_per_minute: int = 10
    tracking_rate_limit_per_minute: int = 60

    # Scheduler
    enable_scheduler: bool = True

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        if not v or not v.strip():
            raise ValueError("JWT_SECRET_KEY is required")
        return v

    @field_validator("redis_host")
    @classmethod
    def validate_redis_host(cls, v):
        if not v or not v.strip():
            raise ValueError("REDIS_HOST is required")
        return v.strip()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("upload_dir")
    @classmethod
    def create_upload_directory(cls, v):
        """Ensure the local upload directory exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @property
    def redis_url(self) -> str:
        """Build the Redis connection URL shared by the cache and the broker."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def media_storage_configured(self) -> bool:
        return all([self.cloudinary_cloud_name, self.cloudinary_api_key, self.cloudinary_api_secret])

    @property
    def push_configured(self) -> bool:
        return all([self.firebase_project_id, self.firebase_client_email, self.firebase_private_key])

    @property
    def email_configured(self) -> bool:
        return all([self.email_host, self.email_user, self.email_password])

    @property
    def email_sender(self) -> Optional[str]:
        return self.email_from or self.email_user

    def optional_features(self) -> Dict[str, bool]:
        """Map each optional integration to whether it is configured."""
        return {
            "media_storage": self.media_storage_configured,
            "push_notifications": self.push_configured,
            "email": self.email_configured,
            "maps": bool(self.google_maps_api_key),
        }

    def log_degraded_features(self) -> List[str]:
        """Log a warning for each optional integration left unconfigured."""
        missing = [name for name, enabled in self.optional_features().items() if not enabled]
        descriptions = {
            "media_storage": "Cloudinary credentials missing, uploads are stored on local disk",
            "push_notifications": "Firebase credentials missing, push notifications are disabled",
            "email": "SMTP credentials missing, outgoing email is disabled",
            "maps": "Google Maps API key missing, geocoding is disabled",
        }
        for name in missing:
            logger.warning(descriptions[name])
        return missing

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Raises pydantic's ValidationError when a required variable is missing.
    """
    return Settings()


# Global settings instance
settings = get_settings()
