from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Salon Booking Engine"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/errors.log"

    # Database (async SQLAlchemy URL)
    DATABASE_URL: str = "sqlite+aiosqlite:///./salon_booking.db"
    DB_ECHO: bool = False

    # Scheduling
    TIMEZONE: str = "Europe/Moscow"
    DEFAULT_DURATION_MINUTES: int = 60
    LEGACY_DURATION_MINUTES: int = 30

    # Security (shared secret with the gateway, empty disables the check)
    INTERNAL_API_TOKEN: str = ""

    # Tenant directory: "static" or "supabase"
    TENANT_DIRECTORY: str = "static"
    STATIC_TENANT_IDS: List[int] = []

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_TENANT_TABLE: str = "users"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
