from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./rentfinder.db"
    SQL_ECHO: bool = False

    # Runtime
    ENVIRONMENT: str = "development"  # "development" | "production"
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:3000",
    ]

    # Security
    SECRET_KEY: str = "your-secret-key-here"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Listing query
    DEFAULT_PAGE_SIZE: int = 12
    MAX_PAGE_SIZE: int = 100
    FEATURED_MIN_AURA_SCORE: float = 85
    FEATURED_DEFAULT_LIMIT: int = 8
    SIMILAR_PRICE_TOLERANCE: float = 0.3
    SIMILAR_LIMIT: int = 4

    # Messaging
    MESSAGE_PAGE_SIZE: int = 50

    # Search client
    API_BASE_URL: str = "http://localhost:8000/api"
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    CLIENT_TIMEOUT_SECONDS: float = 15.0
    CLIENT_MAX_RETRIES: int = 3

    class Config:
        env_file = ".env"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


settings = Settings()
