"""Payment verification collaborators."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from typing import Any, Optional, Protocol
import structlog
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.signature import Signature

from paywall.models import PaymentChallenge, PaymentProof
from paywall.replay import SpentSignatures

logger = structlog.get_logger()


@dataclass
class VerificationResult:
    """Outcome of checking a proof against a challenge."""
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "VerificationResult":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: str) -> "VerificationResult":
        return cls(valid=False, reason=reason)


class PaymentVerifier(Protocol):
    """Decides whether a proof pays for a challenge."""

    async def verify(self, proof: PaymentProof, challenge: PaymentChallenge) -> VerificationResult:
        ...


def base_units(amount: Any, decimals: int) -> int:
    """Token amount in base units, rounded down."""
    return int(Decimal(str(amount)).scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR))


def check_terms(proof: PaymentProof, challenge: PaymentChallenge) -> Optional[str]:
    """Return the first mismatch between proof and challenge, if any."""
    if proof.scheme != challenge.scheme:
        return f"Unsupported scheme: {proof.scheme}"
    if proof.network != challenge.network:
        return f"Wrong network: {proof.network}"
    if proof.mint != challenge.mint:
        return f"Wrong token mint: {proof.mint}"
    if proof.decimals != challenge.decimals:
        return f"Wrong token decimals: {proof.decimals}"
    if proof.payload.to != challenge.recipient:
        return f"Wrong recipient: {proof.payload.to}"
    if Decimal(str(proof.payload.amount)) < Decimal(challenge.amount):
        return f"Insufficient amount: {proof.payload.amount} < {challenge.amount}"
    return None


class SolanaRpcVerifier:
    """Verifies token-transfer proofs against the Solana RPC."""

    def __init__(self, rpc_url: str, spent: Optional[SpentSignatures] = None, rpc: Optional[AsyncClient] = None):
        self.rpc_url = rpc_url
        self.spent = spent if spent is not None else SpentSignatures()
        self._rpc = rpc

    def _get_rpc(self) -> AsyncClient:
        """Get or create the RPC client."""
        if self._rpc is None:
            self._rpc = AsyncClient(self.rpc_url, commitment=Confirmed)
        return self._rpc

    async def close(self):
        """Close the RPC client."""
        if self._rpc is not None:
            await self._rpc.close()
            self._rpc = None

    async def verify(self, proof: PaymentProof, challenge: PaymentChallenge) -> VerificationResult:
        mismatch = check_terms(proof, challenge)
        if mismatch:
            return VerificationResult.reject(mismatch)

        signature = proof.payload.signature
        if not await self.spent.reserve(signature):
            return VerificationResult.reject("Payment signature already used")

        try:
            received = await self._received_amount(signature, challenge.recipient, challenge.mint)
        except Exception:
            await self.spent.release(signature)
            raise

        required = base_units(challenge.amount, challenge.decimals)
        if received is None:
            await self.spent.release(signature)
            return VerificationResult.reject("Transaction not found or failed")
        if received < required:
            await self.spent.release(signature)
            return VerificationResult.reject(f"Transfer too small: {received} < {required} base units")

        logger.info("payment_verified", signature=signature[:16], base_units=received)
        return VerificationResult.ok()

    async def _received_amount(self, signature: str, recipient: str, mint: str) -> Optional[int]:
        """Base units of `mint` the recipient gained in the transaction, None if unusable."""
        try:
            tx_sig = Signature.from_string(signature)
        except ValueError:
            return None

        resp = await self._get_rpc().get_transaction(
            tx_sig,
            encoding="jsonParsed",
            commitment=Confirmed,
            max_supported_transaction_version=0,
        )
        if resp.value is None:
            return None
        meta = resp.value.transaction.meta
        if meta is None or meta.err is not None:
            return None

        def holdings(balances) -> int:
            total = 0
            for balance in balances or []:
                if str(balance.mint) == mint and str(balance.owner) == recipient:
                    total += int(balance.ui_token_amount.amount)
            return total

        return holdings(meta.post_token_balances) - holdings(meta.pre_token_balances)
