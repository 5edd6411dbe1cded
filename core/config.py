from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Tuuura API"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
    Swipe-feed marketplace API.

    ## Features
    * Paginated experience feed with exclusion lists
    * Jump-to-product links
    * Like, dislike, share, details and buy interaction tracking
    """
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"
    OPENAPI_URL: str = "/openapi.json"
    OPENAPI_TAGS: list[dict] = [
        {
            "name": "products",
            "description": "Feed pages and single product lookups"
        },
        {
            "name": "interactions",
            "description": "Fire-and-forget recording of user actions on products"
        },
        {
            "name": "admin",
            "description": "Operator endpoints guarded by the service key",
        }
    ]

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost"]

    # Database
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Access keys
    ANON_KEY: str
    SERVICE_ROLE_KEY: str
    REQUIRE_API_KEY: bool = True
    API_KEY_NAME: str = "apikey"
    SERVICE_KEY_NAME: str = "X-Service-Key"

    # Redis (caching and rate limiting are disabled without a host)
    REDIS_HOST: str | None = None
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str | None:
        if not self.REDIS_HOST:
            return None
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Cache
    CACHE_EXPIRE_TIME: int = 300  # 5 minutes

    # Rate Limiting
    INTERACTIONS_PER_MINUTE: int = 60

    # Feed
    FEED_DEFAULT_LIMIT: int = 4
    FEED_MAX_LIMIT: int = 50

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # console | json

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    # Project root holds the .env file
    root_dir = Path(__file__).resolve().parent.parent
    return Settings(_env_file=root_dir / ".env")
