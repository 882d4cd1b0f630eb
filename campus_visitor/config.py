# =======================================================================================
# campus_visitor/config.py - Configuration Management
# =======================================================================================
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

def _env_bool(name: str, default: str = "false") -> bool:
    """Helper to parse boolean environment variables."""
    return os.getenv(name, default).lower() == "true"

def _env_str(name: str) -> Optional[str]:
    v = os.getenv(name)
    return v if v else None

class Config:
    # Database
    DB_URL: str = os.getenv("DB_URL", "sqlite+pysqlite:///:memory:")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))

    # API Settings
    API_DEBUG: bool = _env_bool("API_DEBUG")
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = _env_str("LOG_FILE")

    # Sessions
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-this-secret-key-in-production")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

    # Tokens
    BASE_URL: str = os.getenv("BASE_URL", "https://visitor.mitadt.edu.in").rstrip("/")
    TOKEN_CODE_PREFIX: str = os.getenv("TOKEN_CODE_PREFIX", "MIT").upper()
    TOKEN_CODE_ATTEMPTS: int = int(os.getenv("TOKEN_CODE_ATTEMPTS", "5"))

    # Email
    NOTIFICATIONS_ENABLED: bool = _env_bool("NOTIFICATIONS_ENABLED", "true")
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = _env_bool("SMTP_USE_TLS", "true")
    SMTP_USE_SSL: bool = _env_bool("SMTP_USE_SSL")
    SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", os.getenv("SMTP_USER", ""))
    SMTP_FROM_NAME: str = os.getenv("SMTP_FROM_NAME", "MIT ADT University Visitor Desk")

    # Seed accounts
    SEED_FACULTY_PASSWORD: str = os.getenv("SEED_FACULTY_PASSWORD", "password123")
    SEED_ADMIN_PASSWORD: str = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
    SEED_SECURITY_PASSWORD: str = os.getenv("SEED_SECURITY_PASSWORD", "security123")
    ADMIN_SECRET_KEY: str = os.getenv("ADMIN_SECRET_KEY", "MIT_ADT_ADMIN_2024")

config = Config()
