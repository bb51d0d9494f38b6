"""Tests for the payment gate on priced routes."""

import json
import pytest

from solders.pubkey import Pubkey

from paywall.pricing import ROUTE_PRICES

PRICED_GET_ROUTES = [r for r in ROUTE_PRICES if r.price > 0 and r.method == "GET"]


@pytest.mark.asyncio
async def test_free_route_never_requires_payment(async_client, verifier):
    """The free tier is served without any payment header."""
    response = await async_client.get("/api/free-data")

    assert response.status_code == 200
    data = response.json()
    assert data["tier"] == "free"
    assert data["message"] == "This is free data"
    assert verifier.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("route", PRICED_GET_ROUTES, ids=lambda r: r.path)
async def test_unpaid_request_gets_challenge(async_client, settings, route):
    """Every priced route answers an unpaid request with a 402 challenge."""
    response = await async_client.get(route.path)

    assert response.status_code == 402
    assert response.headers["x-payment-required"] == "true"
    body = response.json()
    assert body["error"] == "Payment required"
    payment = body["payment"]
    assert payment["recipient"] == settings.recipient_wallet
    assert payment["amount"] == route.price
    assert payment["network"] == settings.network
    assert payment["mint"] == settings.token_mint
    assert payment["decimals"] == settings.token_decimals
    assert payment["resource"] == route.path


@pytest.mark.asyncio
async def test_unpaid_chat_gets_challenge(async_client):
    response = await async_client.post("/api/chat", json={"message": "hi"})

    assert response.status_code == 402
    assert response.json()["payment"]["amount"] == 1000


@pytest.mark.asyncio
@pytest.mark.parametrize("route", PRICED_GET_ROUTES, ids=lambda r: r.path)
async def test_paid_request_is_served(async_client, make_proof, route):
    response = await async_client.get(route.path, headers={"X-Payment": make_proof(route.price)})

    assert response.status_code == 200
    assert response.json()["data"]["features"]


@pytest.mark.asyncio
async def test_proof_is_accepted_exactly_once(async_client, make_proof):
    """Replaying a proof that was already credited is rejected."""
    header = make_proof(10000, signature="5xReplayedSignature")

    first = await async_client.get("/api/premium-data", headers={"X-Payment": header})
    second = await async_client.get("/api/premium-data", headers={"X-Payment": header})

    assert first.status_code == 200
    assert second.status_code == 402
    assert second.json()["error"] == "Payment verification failed"
    assert "already used" in second.json()["details"]


@pytest.mark.asyncio
async def test_malformed_header_is_rejected(async_client, verifier):
    response = await async_client.get("/api/premium-data", headers={"X-Payment": "not json"})

    assert response.status_code == 402
    body = response.json()
    assert body["error"] == "Invalid payment header"
    assert "payment" in body
    assert verifier.calls == []


@pytest.mark.asyncio
async def test_proof_missing_payload_is_rejected(async_client, settings):
    header = json.dumps({"spl402Version": 1, "network": settings.network, "mint": settings.token_mint, "decimals": 6})

    response = await async_client.get("/api/premium-data", headers={"X-Payment": header})

    assert response.status_code == 402
    assert response.json()["error"] == "Invalid payment header"


@pytest.mark.asyncio
async def test_underpayment_is_rejected(async_client, make_proof):
    """A proof for a cheaper tier does not unlock a pricier one."""
    response = await async_client.get("/api/enterprise-data", headers={"X-Payment": make_proof(10000)})

    assert response.status_code == 402
    assert "Insufficient amount" in response.json()["details"]


@pytest.mark.asyncio
async def test_wrong_recipient_is_rejected(async_client, make_proof):
    header = make_proof(10000, to=str(Pubkey.new_unique()))
    response = await async_client.get("/api/premium-data", headers={"X-Payment": header})

    assert response.status_code == 402
    assert "Wrong recipient" in response.json()["details"]


@pytest.mark.asyncio
async def test_verifier_error_is_not_trusted(async_client, verifier, make_proof):
    """An RPC failure during verification leaves the route locked."""
    async def broken(proof, challenge):
        raise ConnectionError("rpc unavailable")

    verifier.verify = broken
    response = await async_client.get("/api/premium-data", headers={"X-Payment": make_proof(10000)})

    assert response.status_code == 402
    assert response.json()["details"] == "rpc unavailable"
