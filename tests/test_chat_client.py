"""Tests for the pay-on-402 client flow and session state."""

import asyncio
import json
from unittest.mock import AsyncMock

import httpx
import pytest
from solders.pubkey import Pubkey

from paywall.models import PaymentProof, TransferPayload
from chat_client.api import PayingChatClient, parse_challenge
from chat_client.config import ClientSettings
from chat_client.payer import InvalidAddress, PaymentFlowError
from chat_client.session import ChatSession, SessionBusy

RECIPIENT = str(Pubkey.new_unique())
MINT = str(Pubkey.new_unique())
CHALLENGE = {
    "error": "Payment required",
    "payment": {"recipient": RECIPIENT, "amount": 1000, "network": "mainnet-beta", "mint": MINT, "decimals": 6},
}
REPLY = {"reply": "**gm**", "cost": 1000, "timestamp": "2026-01-01T00:00:00+00:00", "model": "gpt-4o"}


def make_proof(signature: str = "5xPaid") -> PaymentProof:
    return PaymentProof(
        network="mainnet-beta",
        mint=MINT,
        decimals=6,
        payload=TransferPayload(
            from_address=str(Pubkey.new_unique()),
            to=RECIPIENT,
            amount=1000,
            signature=signature,
            timestamp=1700000000000,
        ),
    )


class FakeServer:
    """Chat server answering 402 until a payment header arrives."""

    def __init__(self, paid_status: int = 200, unpaid_status: int = 402):
        self.paid_status = paid_status
        self.unpaid_status = unpaid_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if "x-payment" in request.headers:
            if self.paid_status == 200:
                return httpx.Response(200, json=REPLY)
            return httpx.Response(self.paid_status, json={"error": "Payment verification failed"})
        if self.unpaid_status == 402:
            return httpx.Response(402, json=CHALLENGE)
        return httpx.Response(self.unpaid_status, json=REPLY)


@pytest.fixture
def payer():
    payer = AsyncMock()
    payer.pay = AsyncMock(return_value=make_proof())
    return payer


@pytest.fixture
def session():
    return ChatSession(price_per_message=1000)


def client_for(server: FakeServer, payer) -> PayingChatClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url="http://chat.test")
    return PayingChatClient(ClientSettings(_env_file=None), payer, http=http)


@pytest.mark.asyncio
async def test_pays_once_and_retries_once(payer, session):
    server = FakeServer()
    client = client_for(server, payer)

    reply = await client.send_message(session, "  hello  ")

    assert reply == "**gm**"
    payer.pay.assert_awaited_once()
    challenge = payer.pay.await_args.args[0]
    assert challenge.recipient == RECIPIENT
    assert challenge.amount == 1000

    assert len(server.requests) == 2
    retry = server.requests[1]
    assert json.loads(retry.headers["x-payment"])["payload"]["signature"] == "5xPaid"
    assert json.loads(retry.content) == json.loads(server.requests[0].content)
    assert json.loads(retry.content) == {"message": "hello", "history": []}

    assert session.total_spent == 1000
    assert [m.role for m in session.messages] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_free_reply_needs_no_payment(payer, session):
    client = client_for(FakeServer(unpaid_status=200), payer)

    assert await client.send_message(session, "hi") == "**gm**"
    payer.pay.assert_not_called()
    assert session.total_spent == 1000


@pytest.mark.asyncio
async def test_rejected_retry_is_one_error_and_no_spend(payer, session):
    server = FakeServer(paid_status=402)
    client = client_for(server, payer)

    reply = await client.send_message(session, "hi")

    assert reply is None
    assert len(server.requests) == 2
    payer.pay.assert_awaited_once()
    assert session.total_spent == 0
    assert session.messages[-1].role == "system"
    assert session.messages[-1].content == "Error: Payment failed: Payment verified but request failed"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    InvalidAddress("Invalid recipient address: xyz"),
    PaymentFlowError("User rejected the request"),
    PaymentFlowError("block height exceeded"),
])
async def test_payment_failures_are_not_retried(payer, session, error):
    payer.pay.side_effect = error
    server = FakeServer()
    client = client_for(server, payer)

    assert await client.send_message(session, "hi") is None

    assert len(server.requests) == 1
    assert session.total_spent == 0
    assert session.messages[-1].content == f"Error: Payment failed: {error}"


@pytest.mark.asyncio
async def test_server_error_is_reported(payer, session):
    client = client_for(FakeServer(unpaid_status=500), payer)

    assert await client.send_message(session, "hi") is None
    assert session.messages[-1].content == "Error: Request failed"
    assert session.total_spent == 0


@pytest.mark.asyncio
async def test_blank_message_is_not_sent(payer, session):
    server = FakeServer()
    client = client_for(server, payer)

    assert await client.send_message(session, "   ") is None
    assert server.requests == []
    assert session.messages == []


@pytest.mark.asyncio
async def test_history_is_bounded_to_last_ten(payer):
    session = ChatSession(price_per_message=1000)
    for i in range(12):
        session.add_user_message(f"msg {i}")
    server = FakeServer(unpaid_status=200)
    client = client_for(server, payer)

    await client.send_message(session, "latest")

    sent = json.loads(server.requests[0].content)
    assert len(sent["history"]) == 10
    assert sent["history"][0]["content"] == "msg 2"
    assert sent["message"] == "latest"


@pytest.mark.asyncio
async def test_concurrent_send_cannot_double_pay(payer, session):
    """A second send while the first is paying is refused."""
    release = asyncio.Event()

    async def slow_pay(challenge):
        await release.wait()
        return make_proof()

    payer.pay.side_effect = slow_pay
    client = client_for(FakeServer(), payer)

    first = asyncio.create_task(client.send_message(session, "one"))
    await asyncio.sleep(0)
    while not session.busy:
        await asyncio.sleep(0)
    second = await client.send_message(session, "two")
    release.set()

    assert second is None
    assert await first == "**gm**"
    payer.pay.assert_awaited_once()
    assert session.total_spent == 1000


@pytest.mark.asyncio
async def test_fetch_priced_route(payer):
    client = client_for(FakeServer(), payer)

    data = await client.fetch("/api/premium-data")

    assert data["reply"] == "**gm**"
    payer.pay.assert_awaited_once()


@pytest.mark.parametrize("body", [{}, {"payment": {"recipient": RECIPIENT}}, ["nope"]])
def test_parse_challenge_rejects_incomplete_info(body):
    response = httpx.Response(402, json=body)

    with pytest.raises(PaymentFlowError, match="Invalid payment info from server"):
        parse_challenge(response)


@pytest.mark.asyncio
async def test_session_busy_guard(session):
    async with session.sending():
        with pytest.raises(SessionBusy):
            async with session.sending():
                pass
    assert not session.busy
