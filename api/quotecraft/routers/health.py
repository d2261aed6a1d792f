import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Request

from ..core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

_start_time = time.time()


@router.get("/healthz")
async def health(request: Request) -> Dict[str, Any]:
    """Liveness plus which upstream providers are configured.

    The service always answers (fallbacks never need the network), so a
    missing provider only marks the status as degraded.
    """
    state = request.app.state
    providers = {
        "gemini": state.gemini_client.configured,
        "unsplash": state.unsplash_client.configured,
        "pexels": state.pexels_client.configured,
    }

    # Skip the external Gemini call in dev/test to keep healthz fast
    gemini_reachable = providers["gemini"]
    if providers["gemini"] and settings.service_env not in {"dev", "test"}:
        gemini_reachable = await state.gemini_client.health_check()

    body = {
        "ok": True,
        "status": "healthy" if gemini_reachable else "degraded",
        "service": settings.service_name,
        "environment": settings.service_env,
        "uptime_seconds": int(time.time() - _start_time),
        "providers": providers,
    }
    if not gemini_reachable:
        logger.warning("Gemini unavailable; AI features are served by local fallbacks")
    return body
