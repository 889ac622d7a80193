from fastapi import APIRouter, Depends

from app.core.config import Settings
from app.core.deps import get_settings_dep

router = APIRouter(tags=["system"])


@router.get("/health")
def health(s: Settings = Depends(get_settings_dep)):
    return {"status": "ok", "version": s.APP_VERSION}


@router.get("/version")
def version(s: Settings = Depends(get_settings_dep)):
    return {
        "name": s.APP_NAME,
        "version": s.APP_VERSION,
        "env": s.APP_ENV,
        "model": s.GEMINI_MODEL,
        "schemaEnforced": s.GENERATION_SCHEMA_ENFORCED,
    }
