"""Per-request token payments for priced routes."""

from .models import PaymentChallenge, PaymentProof, TransferPayload
from .pricing import PricingTable, RoutePrice, ROUTE_PRICES, get_pricing_table
from .verifier import PaymentVerifier, SolanaRpcVerifier, VerificationResult
from .middleware import PaymentGate, PAYMENT_HEADER

__all__ = [
    "PaymentChallenge",
    "PaymentProof",
    "TransferPayload",
    "PricingTable",
    "RoutePrice",
    "ROUTE_PRICES",
    "get_pricing_table",
    "PaymentVerifier",
    "SolanaRpcVerifier",
    "VerificationResult",
    "PaymentGate",
    "PAYMENT_HEADER",
]
