"""Per-user chat session state."""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from chat.models import ChatMessage


class SessionBusy(Exception):
    """A send is already in flight for this session."""


@dataclass
class ChatSession:
    """Message history and spend counter of one user.

    Passed explicitly into every send; only one send may be in flight at a
    time, so a repeated submit cannot start a second payment.
    """
    price_per_message: int
    history_limit: int = 10
    messages: list[ChatMessage] = field(default_factory=list)
    total_spent: int = 0
    _in_flight: bool = field(default=False, init=False, repr=False)

    @property
    def busy(self) -> bool:
        return self._in_flight

    def context(self) -> list[ChatMessage]:
        """Messages sent along with the next request."""
        if self.history_limit <= 0:
            return []
        return list(self.messages[-self.history_limit:])

    def add_user_message(self, content: str) -> None:
        self.messages.append(ChatMessage(role="user", content=content))

    def record_reply(self, content: str) -> None:
        """Store an assistant reply and charge for it."""
        self.messages.append(ChatMessage(role="assistant", content=content))
        self.total_spent += self.price_per_message

    def record_error(self, error: str) -> None:
        self.messages.append(ChatMessage(role="system", content=f"Error: {error}"))

    @asynccontextmanager
    async def sending(self):
        """Mark the session busy for the duration of one send."""
        if self._in_flight:
            raise SessionBusy("A message is already being sent")
        self._in_flight = True
        try:
            yield self
        finally:
            self._in_flight = False
