from fastapi import APIRouter
from ...core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.app_name,
        "env": settings.app_env,
        "document_ai_configured": settings.document_ai_configured,
        "enrichment_enabled": settings.enrichment_enabled,
    }
