"""Pay-per-message chat feature."""

from .models import ChatMessage, ChatRequest, ChatResponse
from .agent import AgentChatCompleter, ChatCompleter, get_chat_completer
from .routes import router

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "AgentChatCompleter",
    "ChatCompleter",
    "get_chat_completer",
    "router",
]
