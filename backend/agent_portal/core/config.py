from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Agent Portal"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "postgresql://portal_user:portal_pass@db:5432/portal_db"
    AUTO_CREATE_TABLES: bool = True

    # Call get_agent_summary / get_agent_commission_statement SQL functions
    # instead of aggregating in the application (PostgreSQL only)
    USE_DB_ROLLUPS: bool = False

    # Data store gateway
    QUERY_TIMEOUT_SECONDS: float = 10.0
    DATASTORE_MAX_WORKERS: int = 8

    # Reference timezone for "today" / month-to-date windows
    TIMEZONE: str = "Africa/Johannesburg"

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Retailer drill-down
    RECENT_SALES_LIMIT: int = 10

    # App URL (frontend)
    FRONTEND_URL: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
