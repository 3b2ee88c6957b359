from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Civic Pulse API"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Civic Pulse backend for geotagged civic issue reports and severity heatmaps"

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Admin account (single privileged actor)
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD_HASH: Optional[str] = None
    ADMIN_PASSWORD_PLAIN: Optional[str] = None

    # Persistence: "memory" or "supabase"
    STORAGE_BACKEND: str = "memory"

    # Supabase Configuration
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    SUPABASE_REPORTS_TABLE: str = "reports"

    # Redis Configuration
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_DB: int = 0
    CACHE_ENABLED: bool = True

    # Cache TTL (seconds)
    CACHE_TTL_REPORTS: int = 60
    CACHE_TTL_HEATMAP: int = 60
    CACHE_TTL_REPORTS_SUMMARY: int = 120

    # Remote classifier
    ML_API_URL: Optional[str] = None
    ML_TIMEOUT_MS: int = 5000
    REMOTE_ACCEPT_THRESHOLD: float = 0.6
    KEYWORD_ACCEPT_THRESHOLD: float = 0.8

    # Image Upload Configuration
    MAX_IMAGE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_IMAGE_TYPES: list = ["image/jpeg", "image/png", "image/webp"]
    SUPABASE_STORAGE_BUCKET: str = "issues_bucket"

    # Query Configuration
    DEFAULT_SINCE_DAYS: int = 30
    MAX_SINCE_DAYS: int = 365
    DEFAULT_QUERY_LIMIT: int = 500
    MAX_QUERY_LIMIT: int = 1000
    HEATMAP_LIMIT: int = 5000

    # Geospatial Configuration
    NEARBY_RADIUS_METERS: float = 50.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
