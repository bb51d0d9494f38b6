"""Pays a 402 challenge with a single SPL token transfer."""

import time
import structlog
from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import TransferParams, get_associated_token_address, transfer

from paywall.models import PROTOCOL_VERSION, PaymentChallenge, PaymentProof, TransferPayload
from paywall.verifier import base_units
from chat_client.wallet import TransferLedger, Wallet

logger = structlog.get_logger()


class PaymentFlowError(Exception):
    """Paying for a request failed."""


class InvalidAddress(PaymentFlowError):
    """The challenge names a recipient that is not a Solana address."""


def parse_address(address: str) -> Pubkey:
    try:
        return Pubkey.from_string(address)
    except ValueError as e:
        raise InvalidAddress(f"Invalid recipient address: {address}") from e


class TokenTransferPayer:
    """Turns a payment challenge into a confirmed transfer and its proof."""

    def __init__(
        self,
        wallet: Wallet,
        ledger: TransferLedger,
        mint: str,
        decimals: int,
        network: str = "mainnet-beta",
    ):
        self.wallet = wallet
        self.ledger = ledger
        self.mint = mint
        self.decimals = decimals
        self.network = network

    def build_transfer(self, recipient: Pubkey, amount: int, blockhash: Hash) -> Transaction:
        """Unsigned transaction moving `amount` base units to the recipient's token account."""
        mint = Pubkey.from_string(self.mint)
        owner = self.wallet.public_key
        instruction = transfer(TransferParams(
            program_id=TOKEN_PROGRAM_ID,
            source=get_associated_token_address(owner, mint),
            dest=get_associated_token_address(recipient, mint),
            owner=owner,
            amount=amount,
        ))
        message = Message.new_with_blockhash([instruction], owner, blockhash)
        return Transaction.new_unsigned(message)

    async def pay(self, challenge: PaymentChallenge) -> PaymentProof:
        """Perform exactly one transfer for the challenge.

        Raises:
            InvalidAddress: if the recipient is malformed
            PaymentFlowError: on any other failure (signing, submission, confirmation)
        """
        recipient = parse_address(challenge.recipient)
        if challenge.mint and challenge.mint != self.mint:
            raise PaymentFlowError(f"Unsupported token mint: {challenge.mint}")

        amount = base_units(challenge.amount, self.decimals)
        try:
            blockhash, last_valid_block_height = await self.ledger.latest_blockhash()
            tx = self.build_transfer(recipient, amount, blockhash)
            signed = await self.wallet.sign_transaction(tx)
            signature = await self.ledger.send_and_confirm(signed, last_valid_block_height)
        except PaymentFlowError:
            raise
        except Exception as e:
            logger.error("transfer_failed", recipient=challenge.recipient, error=str(e))
            raise PaymentFlowError(str(e)) from e

        logger.info("transfer_paid", signature=signature[:16], base_units=amount)
        return PaymentProof(
            spl402_version=PROTOCOL_VERSION,
            network=challenge.network or self.network,
            mint=self.mint,
            decimals=self.decimals,
            payload=TransferPayload(
                from_address=str(self.wallet.public_key),
                to=str(recipient),
                amount=challenge.amount,
                signature=signature,
                timestamp=int(time.time() * 1000),
            ),
        )
