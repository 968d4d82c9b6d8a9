import os
import warnings
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"

INSECURE_DEV_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings(BaseModel):
    """Runtime configuration, built once at startup and passed to the app factory"""

    database_url: str = "sqlite:///./contracts.db"

    # Auth
    jwt_secret: str = INSECURE_DEV_SECRET
    jwt_algorithm: str = "HS256"

    # CORS
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Contract workflow
    max_conflict_retries: int = 3
    default_page_size: int = 50
    max_page_size: int = 100
    default_currency: str = "USD"

    # Connection pool (ignored for SQLite)
    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_pool_timeout: int = 30
    db_pool_recycle: int = 300
    # PostgreSQL only; 0 disables
    db_statement_timeout_ms: int = 5000
    db_log_slow_queries: bool = True
    db_slow_query_threshold: float = 1.0

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Settings":
        """Read settings from the environment (and .env, when present)"""
        load_dotenv(dotenv_path=dotenv_path or env_path)

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            warnings.warn(
                "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
                RuntimeWarning,
                stacklevel=2,
            )
            jwt_secret = INSECURE_DEV_SECRET

        allowed_origins = os.getenv(
            "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")

        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./contracts.db"),
            jwt_secret=jwt_secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            allowed_origins=[origin.strip() for origin in allowed_origins if origin.strip()],
            max_conflict_retries=int(os.getenv("MAX_CONFLICT_RETRIES", "3")),
            default_page_size=int(os.getenv("DEFAULT_PAGE_SIZE", "50")),
            max_page_size=int(os.getenv("MAX_PAGE_SIZE", "100")),
            default_currency=os.getenv("DEFAULT_CURRENCY", "USD").upper(),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "20")),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "30")),
            db_pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            db_pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "300")),
            db_statement_timeout_ms=int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000")),
            db_log_slow_queries=_env_bool("DB_LOG_SLOW_QUERIES", "true"),
            db_slow_query_threshold=float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
