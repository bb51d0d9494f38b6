"""Wallet and ledger collaborators for paying with SPL token transfers."""

import json
from pathlib import Path
from typing import Optional, Protocol
import structlog
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed, Finalized
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

logger = structlog.get_logger()


class Wallet(Protocol):
    """Holds the payer's key and signs transactions."""

    @property
    def public_key(self) -> Pubkey:
        ...

    async def sign_transaction(self, tx: Transaction) -> Transaction:
        ...


class TransferLedger(Protocol):
    """Blockchain access needed to submit one transfer."""

    async def latest_blockhash(self) -> tuple[Hash, int]:
        ...

    async def send_and_confirm(self, tx: Transaction, last_valid_block_height: int) -> str:
        ...


class KeypairWallet:
    """Wallet backed by a local keypair."""

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @classmethod
    def from_file(cls, path: str) -> "KeypairWallet":
        """Load a Solana CLI keypair file (JSON array of 64 bytes)."""
        secret = json.loads(Path(path).expanduser().read_text())
        return cls(Keypair.from_bytes(bytes(secret)))

    @property
    def public_key(self) -> Pubkey:
        return self._keypair.pubkey()

    async def sign_transaction(self, tx: Transaction) -> Transaction:
        tx.sign([self._keypair], tx.message.recent_blockhash)
        return tx


class SolanaLedger:
    """TransferLedger over the Solana JSON-RPC API."""

    def __init__(self, rpc_url: str):
        self.rpc_url = rpc_url
        self._client: Optional[AsyncClient] = None

    def _get_client(self) -> AsyncClient:
        """Get or create the RPC client."""
        if self._client is None:
            self._client = AsyncClient(self.rpc_url)
        return self._client

    async def close(self):
        """Close the RPC client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def latest_blockhash(self) -> tuple[Hash, int]:
        resp = await self._get_client().get_latest_blockhash(commitment=Finalized)
        return resp.value.blockhash, resp.value.last_valid_block_height

    async def send_and_confirm(self, tx: Transaction, last_valid_block_height: int) -> str:
        """Submit a signed transaction and wait for confirmed commitment."""
        client = self._get_client()
        resp = await client.send_raw_transaction(
            bytes(tx),
            opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed),
        )
        signature = resp.value
        logger.info("transfer_submitted", signature=str(signature)[:16])

        status = await client.confirm_transaction(
            signature,
            commitment=Confirmed,
            last_valid_block_height=last_valid_block_height,
        )
        result = status.value[0] if status.value else None
        if result is not None and result.err is not None:
            raise RuntimeError(f"Transaction failed: {result.err}")
        logger.info("transfer_confirmed", signature=str(signature)[:16])
        return str(signature)
