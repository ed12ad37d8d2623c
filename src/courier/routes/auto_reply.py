"""Auto-reply configuration API endpoints."""

import logging

from fastapi import APIRouter

from courier.dependencies import AutoReplyDep
from courier.errors import ProviderError
from courier.models import AutoReplyConfig, ConnectionTestResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auto-reply", tags=["auto-reply"])


@router.get("/config")
async def get_config(auto_reply: AutoReplyDep) -> AutoReplyConfig:
    return await auto_reply.get_config()


@router.put("/config")
async def update_config(
    body: AutoReplyConfig, auto_reply: AutoReplyDep
) -> AutoReplyConfig:
    """Replace the whole auto-reply configuration."""
    return await auto_reply.update_config(body)


@router.get("/whitelist/{sender_id}")
async def check_whitelist(sender_id: str, auto_reply: AutoReplyDep) -> dict[str, bool]:
    return {"whitelisted": await auto_reply.is_whitelisted(sender_id)}


@router.post("/test")
async def test_connection(auto_reply: AutoReplyDep) -> ConnectionTestResponse:
    """Send a fixed test prompt to the configured AI provider."""
    try:
        await auto_reply.test_connection()
    except ProviderError as e:
        logger.warning(f"AI connection test failed: {e}")
        return ConnectionTestResponse(ok=False, error=str(e))
    return ConnectionTestResponse(ok=True)
