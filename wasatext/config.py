# wasatext/config.py
from pydantic_settings import BaseSettings
from functools import lru_cache
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./wasatext.db"

    # API configuration
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Photo uploads
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_MB: int = 10

    # Conversation limits
    MAX_GROUP_MEMBERS: int = 100
    PREVIEW_MAX_LENGTH: int = 100
    USER_SEARCH_LIMIT: int = 100

    class Config:
        env_file = ".env"

    @property
    def cors_origins(self):
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings():
    return Settings()
