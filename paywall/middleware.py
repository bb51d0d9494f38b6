"""HTTP 402 payment gate for priced routes."""

from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import structlog

from config import Settings
from paywall.models import PaymentChallenge, PaymentProof, PaymentRequired
from paywall.pricing import PricingTable
from paywall.verifier import PaymentVerifier

logger = structlog.get_logger()

PAYMENT_HEADER = "X-Payment"
PAYMENT_REQUIRED_HEADER = "X-Payment-Required"


class PaymentGate:
    """Middleware that answers unpaid requests to priced routes with 402.

    Requests carrying an ``X-Payment`` proof are handed to the verifier and
    forwarded only when it accepts the proof.
    """

    def __init__(self, pricing: PricingTable, verifier: PaymentVerifier, settings: Settings):
        self.pricing = pricing
        self.verifier = verifier
        self.settings = settings

    def challenge_for(self, path: str, method: str, price: int) -> PaymentChallenge:
        return PaymentChallenge(
            recipient=self.settings.recipient_wallet,
            amount=price,
            network=self.settings.network,
            mint=self.settings.token_mint,
            decimals=self.settings.token_decimals,
            resource=path,
            method=method,
        )

    async def __call__(self, request: Request, call_next):
        path = request.url.path
        method = request.method
        if not self.pricing.requires_payment(path, method):
            return await call_next(request)

        challenge = self.challenge_for(path, method, self.pricing.price_for(path, method))
        header = request.headers.get(PAYMENT_HEADER)
        if not header:
            logger.info("payment_required", path=path, amount=challenge.amount)
            return self._payment_required(challenge)

        try:
            proof = PaymentProof.model_validate_json(header)
        except ValidationError as e:
            logger.warning("payment_header_invalid", path=path, error=str(e))
            return self._payment_required(challenge, "Invalid payment header", str(e))

        try:
            result = await self.verifier.verify(proof, challenge)
        except Exception as e:
            logger.error("payment_verification_errored", path=path, error=str(e))
            return self._payment_required(challenge, "Payment verification failed", str(e))

        if not result.valid:
            logger.warning("payment_rejected", path=path, reason=result.reason)
            return self._payment_required(challenge, "Payment verification failed", result.reason)

        logger.info("payment_accepted", path=path, signature=proof.payload.signature[:16])
        return await call_next(request)

    def _payment_required(
        self,
        challenge: PaymentChallenge,
        error: str = "Payment required",
        details: Optional[str] = None,
    ) -> JSONResponse:
        body = PaymentRequired(error=error, details=details, payment=challenge)
        return JSONResponse(
            status_code=402,
            content=body.model_dump(exclude_none=True),
            headers={PAYMENT_REQUIRED_HEADER: "true"},
        )
