"""Chat completion through a Pydantic AI agent."""

from typing import Optional, Protocol
from fastapi import Depends
from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelMessage, ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
)
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings
import structlog

from config import Settings, get_settings
from chat.models import ChatMessage

logger = structlog.get_logger()


class ChatCompleter(Protocol):
    """Produces a reply for a message and its prior conversation."""

    model_name: str

    async def complete(self, message: str, history: list[ChatMessage]) -> str:
        ...


def to_model_messages(history: list[ChatMessage]) -> list[ModelMessage]:
    """Convert chat history into Pydantic AI message history."""
    messages: list[ModelMessage] = []
    for item in history:
        if item.role == "assistant":
            messages.append(ModelResponse(parts=[TextPart(content=item.content)]))
        elif item.role == "system":
            messages.append(ModelRequest(parts=[SystemPromptPart(content=item.content)]))
        else:
            messages.append(ModelRequest(parts=[UserPromptPart(content=item.content)]))
    return messages


def build_chat_agent(settings: Settings) -> Agent:
    """Create the agent for the configured OpenAI chat model."""
    model = OpenAIChatModel(
        settings.chat_model,
        provider=OpenAIProvider(api_key=settings.openai_api_key.get_secret_value()),
    )
    # instructions are sent on every run, even when history is supplied
    return Agent(
        model,
        instructions=settings.system_prompt,
        model_settings=ModelSettings(max_tokens=settings.max_completion_tokens),
        retries=2,
    )


class AgentChatCompleter:
    """ChatCompleter backed by a Pydantic AI agent."""

    def __init__(self, agent: Agent, model_name: str):
        self.agent = agent
        self.model_name = model_name

    async def complete(self, message: str, history: list[ChatMessage]) -> str:
        result = await self.agent.run(message, message_history=to_model_messages(history))
        logger.debug("completion_received", model=self.model_name, history_length=len(history))
        return result.output


_completer: Optional[AgentChatCompleter] = None
_completer_settings: Optional[Settings] = None


def get_chat_completer(settings: Settings = Depends(get_settings)) -> Optional[ChatCompleter]:
    """FastAPI dependency for the completer; None when no API key is configured."""
    global _completer, _completer_settings
    if settings.openai_api_key is None or not settings.openai_api_key.get_secret_value():
        return None
    if _completer is None or _completer_settings is not settings:
        _completer = AgentChatCompleter(build_chat_agent(settings), settings.chat_model)
        _completer_settings = settings
    return _completer
