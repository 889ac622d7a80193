from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_PACKAGE_SCHEMAS_DIR = Path(__file__).resolve().parents[1] / "data" / "schemas"


class Settings(BaseSettings):
    # Base
    APP_ENV: str = "dev"  # dev | staging | prod
    APP_NAME: str = "CRAMKIT API"
    APP_VERSION: str = "0.1.0"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT_SECONDS: float = 120.0

    # Génération
    GENERATION_SCHEMA_ENFORCED: bool = True
    GENERATION_MAX_ATTEMPTS: int = 3

    # Storage
    USERS_PATH: str = "./data/users.json"
    SCHEMAS_DIR: str = str(_PACKAGE_SCHEMAS_DIR)
    MAX_UPLOAD_MB: int = 30
    TOKEN_LIMIT: int = 220_000

    # Historique
    HISTORY_PAGE_SIZE: int = 4

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
