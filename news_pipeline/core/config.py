"""
Application configuration management.

This module defines a ``Settings`` dataclass that reads its values from
environment variables at instantiation time.  Each configuration option
has a reasonable default which can be overridden by setting the
corresponding environment variable.  News provider credentials are read
here as well; a provider whose key is absent is simply left inactive.
"""

from dataclasses import dataclass, field
import os
from typing import List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Configuration values loaded from environment variables with defaults."""

    # Application settings
    ENVIRONMENT: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    PORT: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))
    DEBUG: bool = field(init=False)
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Provider credentials.  One environment variable per provider; the
    # variable names are also recorded on each ``SourceConfig`` so the
    # status endpoint can report which key a missing provider expects.
    NEWS_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("NEWS_API_KEY"))
    NEWSDATA_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("NEWSDATA_API_KEY"))
    MEDIASTACK_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("MEDIASTACK_API_KEY"))
    GNEWS_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("GNEWS_API_KEY"))

    # Aggregation settings
    NEWS_CACHE_TTL_SECONDS: int = field(default_factory=lambda: int(os.getenv("NEWS_CACHE_TTL_SECONDS", "1800")))
    NEWS_FALLBACK_FLOOR: int = field(default_factory=lambda: int(os.getenv("NEWS_FALLBACK_FLOOR", "10")))
    NEWS_DEFAULT_LIMIT: int = field(default_factory=lambda: int(os.getenv("NEWS_DEFAULT_LIMIT", "50")))
    NEWS_MAX_LIMIT: int = field(default_factory=lambda: int(os.getenv("NEWS_MAX_LIMIT", "100")))
    NEWS_SOURCE_TIMEOUT_SECONDS: float = field(default_factory=lambda: float(os.getenv("NEWS_SOURCE_TIMEOUT_SECONDS", "10")))
    NEWS_EMERGENCY_CONTENT: bool = field(default_factory=lambda: _env_bool("NEWS_EMERGENCY_CONTENT", "true"))
    NEWS_DEFAULT_QUERY: str = field(default_factory=lambda: os.getenv("NEWS_DEFAULT_QUERY", "AI artificial intelligence"))
    NEWS_DEFAULT_REGION: str = field(default_factory=lambda: os.getenv("NEWS_DEFAULT_REGION", "US"))

    # Regions refreshed by the bulk refresh endpoint
    REFRESH_REGIONS: List[str] = field(default_factory=lambda: [
        r.strip().upper()
        for r in os.getenv("REFRESH_REGIONS", "US,CN,GB,DE,FR,JP,KR,IN,CA,AU").split(",")
        if r.strip()
    ])

    # CORS
    CORS_ORIGINS: List[str] = field(default_factory=lambda: [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:8000",
    ])

    def __post_init__(self) -> None:
        """Derive additional configuration settings after initialization."""
        self.DEBUG = self.ENVIRONMENT.lower() == "development"
        # A limit of zero or below would make every fetch return nothing
        self.NEWS_MAX_LIMIT = max(1, self.NEWS_MAX_LIMIT)
        self.NEWS_DEFAULT_LIMIT = max(1, min(self.NEWS_DEFAULT_LIMIT, self.NEWS_MAX_LIMIT))

    @property
    def is_development(self) -> bool:
        """Return True if the environment is set to development."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def has_any_news_key(self) -> bool:
        """Return True if at least one news provider is configured."""
        return any([
            self.NEWS_API_KEY,
            self.NEWSDATA_API_KEY,
            self.MEDIASTACK_API_KEY,
            self.GNEWS_API_KEY,
        ])


# Default settings object.  The application factory accepts its own
# ``Settings`` instance so tests can build isolated apps.
settings = Settings()
