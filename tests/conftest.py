"""Pytest configuration and fixtures."""

import os
import itertools

from solders.pubkey import Pubkey

RECIPIENT = str(Pubkey.new_unique())
os.environ.setdefault("RECIPIENT_WALLET", RECIPIENT)
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock

from config import get_settings
from main import create_app
from chat.agent import get_chat_completer
from paywall.models import PaymentChallenge, PaymentProof, TransferPayload
from paywall.replay import SpentSignatures
from paywall.verifier import VerificationResult, check_terms

_signatures = itertools.count(1)


class FakeVerifier:
    """Accepts any proof matching the challenge terms, once per signature."""

    def __init__(self):
        self.spent = SpentSignatures()
        self.calls: list[PaymentProof] = []

    async def verify(self, proof: PaymentProof, challenge: PaymentChallenge) -> VerificationResult:
        self.calls.append(proof)
        mismatch = check_terms(proof, challenge)
        if mismatch:
            return VerificationResult.reject(mismatch)
        if not await self.spent.reserve(proof.payload.signature):
            return VerificationResult.reject("Payment signature already used")
        return VerificationResult.ok()


class FakeCompleter:
    """ChatCompleter returning a canned reply."""

    model_name = "gpt-4o"

    def __init__(self, reply: str = "gm, anon"):
        self.complete = AsyncMock(return_value=reply)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def completer():
    return FakeCompleter()


@pytest.fixture
def app(settings, verifier, completer):
    application = create_app(settings=settings, verifier=verifier)
    application.dependency_overrides[get_chat_completer] = lambda: completer
    return application


@pytest.fixture
async def async_client(app):
    """Async HTTP client for testing API endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_proof(settings):
    """Build a payment proof header for a priced route."""

    def _make(amount: int, signature: str = None, **overrides) -> str:
        proof = PaymentProof(
            network=overrides.get("network", settings.network),
            mint=overrides.get("mint", settings.token_mint),
            decimals=settings.token_decimals,
            payload=TransferPayload(
                from_address=str(Pubkey.new_unique()),
                to=overrides.get("to", settings.recipient_wallet),
                amount=amount,
                signature=signature or f"sig-{next(_signatures)}",
                timestamp=1700000000000,
            ),
        )
        return proof.to_header()

    return _make
