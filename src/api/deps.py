from pydantic import BaseModel
from ..core.config import settings
from ..services.completion import Completer, get_completion_client


class ConfigResponse(BaseModel):
    message: str
    config: dict
    enrichment_enabled: bool


def get_completer() -> Completer | None:
    """Completion client for enrichment, or None when no LLM key is configured."""
    if not settings.enrichment_enabled:
        return None
    return get_completion_client()
