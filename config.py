"""
Application configuration - loads from environment variables.
"""
import os
import warnings
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Database
DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME: str = os.getenv("DATABASE_NAME", "alumni_portal")

# JWT
JWT_SECRET: str = os.getenv("JWT_SECRET", "")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

if not JWT_SECRET:
    warnings.warn("JWT_SECRET not set, falling back to an insecure default")
    JWT_SECRET = "supersecretkey"

# Admin bootstrap
ADMIN_EMAIL: Optional[str] = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD: Optional[str] = os.getenv("ADMIN_PASSWORD")
ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrator")

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR: Optional[str] = os.getenv("LOG_DIR")

# HTTP
CORS_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT: int = int(os.getenv("PORT", "8000"))

# Fundraising
GOAL_REACHED_NOTIFY_ONCE: bool = _flag("GOAL_REACHED_NOTIFY_ONCE")


class Settings:
    DATABASE_URL: str = DATABASE_URL
    DATABASE_NAME: str = DATABASE_NAME
    JWT_SECRET: str = JWT_SECRET
    JWT_ALGORITHM: str = JWT_ALGORITHM
    ACCESS_TOKEN_EXPIRE_MINUTES: int = ACCESS_TOKEN_EXPIRE_MINUTES
    ADMIN_EMAIL: Optional[str] = ADMIN_EMAIL
    ADMIN_PASSWORD: Optional[str] = ADMIN_PASSWORD
    ADMIN_NAME: str = ADMIN_NAME
    LOG_LEVEL: str = LOG_LEVEL
    LOG_DIR: Optional[str] = LOG_DIR
    CORS_ORIGINS: List[str] = CORS_ORIGINS
    PORT: int = PORT
    GOAL_REACHED_NOTIFY_ONCE: bool = GOAL_REACHED_NOTIFY_ONCE


settings = Settings()
