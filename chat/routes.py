"""Chat API routes."""

from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError
import structlog

from config import Settings, get_settings
from errors import ApiError
from chat.models import ChatRequest, ChatResponse, parse_history
from chat.agent import ChatCompleter, get_chat_completer
from paywall.pricing import PricingTable, get_pricing_table

logger = structlog.get_logger()

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat(
    request: Optional[ChatRequest] = Body(None),
    completer: Optional[ChatCompleter] = Depends(get_chat_completer),
    settings: Settings = Depends(get_settings),
    pricing: PricingTable = Depends(get_pricing_table),
):
    """Send a message plus recent history to the model and return its reply.

    The payment gate has already charged for this request by the time the
    handler runs.
    """
    message = (request.message or "").strip() if request else ""
    if not message:
        raise ApiError(400, "Message is required")

    try:
        history = parse_history(request.history, settings.history_limit)
    except ValidationError as e:
        raise ApiError(400, "Invalid history", details=str(e))

    if completer is None:
        logger.error("chat_not_configured")
        raise ApiError(
            500,
            "OpenAI API key not configured",
            tip="Add OPENAI_API_KEY to .env file",
        )

    try:
        reply = await completer.complete(message, history)
    except Exception as e:
        logger.error("chat_failed", error=str(e))
        raise ApiError(500, "Failed to process chat message", details=str(e))

    logger.info("chat_completed", message_length=len(message), history_length=len(history))
    return ChatResponse(
        reply=reply,
        cost=pricing.price_for("/api/chat", "POST") or 0,
        timestamp=datetime.now(timezone.utc).isoformat(),
        model=completer.model_name,
    )
