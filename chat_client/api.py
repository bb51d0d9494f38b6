"""HTTP client that pays for 402 responses and retries once."""

from typing import Any, Optional
import httpx
import structlog
from pydantic import ValidationError

from chat.models import ChatMessage, ChatResponse
from paywall.middleware import PAYMENT_HEADER
from paywall.models import PaymentChallenge
from chat_client.config import ClientSettings
from chat_client.payer import PaymentFlowError, TokenTransferPayer
from chat_client.session import ChatSession, SessionBusy

logger = structlog.get_logger()


class ChatRequestError(Exception):
    """The server did not answer a request successfully."""


def parse_challenge(response: httpx.Response) -> PaymentChallenge:
    """Extract the payment challenge from a 402 response."""
    try:
        body = response.json()
    except ValueError as e:
        raise PaymentFlowError("Invalid payment info from server") from e
    payment = body.get("payment") if isinstance(body, dict) else None
    if not isinstance(payment, dict) or not payment.get("recipient") or not payment.get("amount"):
        raise PaymentFlowError("Invalid payment info from server")
    try:
        return PaymentChallenge.model_validate(payment)
    except ValidationError as e:
        raise PaymentFlowError("Invalid payment info from server") from e


class PayingChatClient:
    """Async client for the chat API with pay-on-402 handling."""

    def __init__(
        self,
        settings: ClientSettings,
        payer: TokenTransferPayer,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.payer = payer
        self._client = http

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_url,
                headers={"Content-Type": "application/json"},
                timeout=self.settings.request_timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def request(self, method: str, path: str, json: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Send a request; on 402 pay once and retry once with the proof.

        Raises:
            PaymentFlowError: if paying fails or the paid retry is not OK
        """
        client = await self._get_client()
        response = await client.request(method, path, json=json)
        if response.status_code != 402:
            return response

        challenge = parse_challenge(response)
        logger.info("payment_challenge_received", path=path, amount=challenge.amount, recipient=challenge.recipient[:8])
        proof = await self.payer.pay(challenge)

        retry = await client.request(method, path, json=json, headers={PAYMENT_HEADER: proof.to_header()})
        if not retry.is_success:
            logger.error("paid_retry_failed", path=path, status=retry.status_code, signature=proof.payload.signature[:16])
            raise PaymentFlowError("Payment verified but request failed")
        return retry

    async def fetch(self, path: str) -> dict[str, Any]:
        """GET a (possibly priced) route and return its JSON body."""
        try:
            response = await self.request("GET", path)
        except PaymentFlowError as e:
            raise PaymentFlowError(f"Payment failed: {e}") from e
        if not response.is_success:
            raise ChatRequestError(f"Request failed with status {response.status_code}")
        return response.json()

    async def send_message(self, session: ChatSession, text: str) -> Optional[str]:
        """Send a user message within a session.

        Returns the assistant reply, or None when nothing was sent or the
        send failed. Failures are recorded in the session as a single
        system message and never retried.
        """
        text = text.strip()
        if not text:
            return None

        try:
            async with session.sending():
                history = session.context()
                session.add_user_message(text)
                try:
                    reply = await self._chat(text, history)
                except (PaymentFlowError, ChatRequestError, httpx.HTTPError) as e:
                    logger.error("send_message_failed", error=str(e))
                    session.record_error(str(e))
                    return None
                session.record_reply(reply)
                return reply
        except SessionBusy as e:
            logger.warning("send_message_rejected", error=str(e))
            return None

    async def _chat(self, text: str, history: list[ChatMessage]) -> str:
        body = {"message": text, "history": [m.model_dump() for m in history]}
        try:
            response = await self.request("POST", "/api/chat", json=body)
        except PaymentFlowError as e:
            raise PaymentFlowError(f"Payment failed: {e}") from e
        if not response.is_success:
            raise ChatRequestError("Request failed")
        try:
            return ChatResponse.model_validate(response.json()).reply
        except (ValueError, ValidationError) as e:
            raise ChatRequestError("Malformed reply from server") from e
