from fastapi import Depends

from app.core.config import Settings, get_settings
from app.services.generation import GenerationClient
from app.services.user_store import UserStore


def get_settings_dep() -> Settings:
    return get_settings()


def get_user_store(settings: Settings = Depends(get_settings_dep)) -> UserStore:
    """
    Fournit le registre utilisateurs (DI). Les instances sur un même
    fichier partagent le même verrou d'écriture.
    """
    return UserStore(path=settings.USERS_PATH)


def get_generation_client(settings: Settings = Depends(get_settings_dep)) -> GenerationClient:
    return GenerationClient(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        base_url=settings.GEMINI_BASE_URL,
        schema_enforced=settings.GENERATION_SCHEMA_ENFORCED,
        max_attempts=settings.GENERATION_MAX_ATTEMPTS,
        timeout=settings.GEMINI_TIMEOUT_SECONDS,
    )
