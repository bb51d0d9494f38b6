"""Chat data models."""

from typing import Any, Literal, Optional
from pydantic import BaseModel, TypeAdapter

Role = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    """One turn of a conversation."""
    role: Role
    content: str


class ChatRequest(BaseModel):
    """Chat request from user.

    ``history`` is validated by the route after the message check, so a
    missing message is reported as such whatever the history holds.
    """
    message: Optional[str] = None
    history: Any = None


class ChatResponse(BaseModel):
    """Chat response from the model."""
    reply: str
    cost: int
    timestamp: str
    model: str


_history_adapter = TypeAdapter(list[ChatMessage])


def parse_history(raw: Any, limit: int) -> list[ChatMessage]:
    """Validate raw history and keep the last `limit` messages.

    Raises:
        pydantic.ValidationError: if an entry is not a valid ChatMessage
    """
    if raw is None:
        return []
    history = _history_adapter.validate_python(raw)
    if limit <= 0:
        return []
    return history[-limit:]
