from pydantic_settings import BaseSettings
import os


class Settings(BaseSettings):
    # Server Configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Cache Configuration
    CACHE_ENABLED: bool = True
    CACHE_BACKEND: str = "memory"  # memory | sql
    CACHE_DATABASE_URL: str = "sqlite:///data/prompt_cache.db"
    CACHE_MAX_ENTRIES: int = 1000
    CACHE_DEFAULT_TTL: int = 3600
    CACHE_MAX_TTL: int = 86400
    CACHE_CLEANUP_INTERVAL: int = 300
    INVALIDATION_WINDOW_SECONDS: int = 3600

    # Enhancement Settings
    DEFAULT_MAX_TOKENS: int = 4000
    MAX_DOC_LIBRARIES: int = 3
    DEFAULT_PROJECT_ID: str = "default"

    # AI Enhancement (Feature Flag)
    AI_ENHANCEMENT_ENABLED: bool = True
    AI_COST_PER_1K_TOKENS: float = 0.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create settings instance
settings = Settings()

# Ensure data directories exist
os.makedirs("data", exist_ok=True)
os.makedirs("logs", exist_ok=True)
