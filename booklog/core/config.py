from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import json
from pathlib import Path


DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


class Settings(BaseSettings):
    APP_NAME: str = "booklog"

    # Database
    DATABASE_URL: str = "sqlite:///./data/books.db"
    SEED_GENRES: bool = True

    # CORS - can be JSON string or comma-separated string
    CORS_ORIGINS: str = '["http://localhost:3000", "http://localhost:5173"]'

    # Environment
    DEBUG: bool = False

    # Pseudo-auth: user id used by read endpoints when none can be resolved
    DEFAULT_USER_ID: int = 1

    # External recommendation sources
    GOOGLE_BOOKS_BASE_URL: str = "https://www.googleapis.com/books/v1/volumes"
    GOOGLE_BOOKS_API_KEY: Optional[str] = None
    TASTEDIVE_BASE_URL: str = "https://tastedive.com/api/similar"
    TASTEDIVE_API_KEY: Optional[str] = None
    EXTERNAL_API_TIMEOUT: Optional[float] = None  # seconds, None waits indefinitely

    # Scraper
    SCRAPE_TIMEOUT: float = 10.0
    SCRAPE_USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )

    model_config = SettingsConfigDict(
        # Load from .env at the project root
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.DATABASE_URL or self.DATABASE_URL.strip() == "":
            raise RuntimeError(
                "DATABASE_URL is empty. Set it in .env, e.g. DATABASE_URL=sqlite:///./data/books.db"
            )
        if self.DEFAULT_USER_ID < 1:
            raise RuntimeError("DEFAULT_USER_ID must be a positive integer")

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def get_masked_database_url(self) -> str:
        """Return DATABASE_URL with password masked for logging."""
        if self.is_sqlite or "@" not in self.DATABASE_URL:
            return self.DATABASE_URL
        from urllib.parse import urlparse, urlunparse
        parsed = urlparse(self.DATABASE_URL)
        masked_netloc = f"{parsed.username}:***@{parsed.hostname}"
        if parsed.port:
            masked_netloc += f":{parsed.port}"
        return urlunparse((
            parsed.scheme,
            masked_netloc,
            parsed.path,
            parsed.params,
            parsed.query,
            parsed.fragment,
        ))

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from JSON string or comma-separated string."""
        if not self.CORS_ORIGINS:
            return list(DEFAULT_CORS_ORIGINS)

        try:
            parsed = json.loads(self.CORS_ORIGINS)
            if isinstance(parsed, list):
                return [str(o) for o in parsed]
            # If it's a string, treat as single origin
            return [str(parsed)]
        except (json.JSONDecodeError, TypeError):
            # Fall back to comma-separated string
            origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
            return origins if origins else list(DEFAULT_CORS_ORIGINS)


settings = Settings()
