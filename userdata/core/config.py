import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    Only the HTTP layer reads this; the record helpers take their limits
    as arguments.
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

    CORS_ALLOWED_ORIGINS: str = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000")

    ACTIVE_WINDOW_DAYS: int = int(os.getenv("USER_ACTIVE_WINDOW_DAYS", "30"))
    MAX_GENERATED_USERS: int = int(os.getenv("MAX_GENERATED_USERS", "100"))

    @classmethod
    def allowed_origins(cls, extra_origins: List[str] | None = None) -> List[str]:
        merged = [o.strip() for o in cls.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @classmethod
    def validate(cls) -> None:
        if cls.ACTIVE_WINDOW_DAYS < 0:
            raise ValueError("USER_ACTIVE_WINDOW_DAYS must not be negative")
        if cls.MAX_GENERATED_USERS < 1:
            raise ValueError("MAX_GENERATED_USERS must be at least 1")
