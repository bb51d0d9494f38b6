"""In-memory registry of transaction signatures already credited."""

import asyncio
import structlog

logger = structlog.get_logger()


class SpentSignatures:
    """Lock-guarded set of signatures; each one can back a single request.

    Entries are never evicted, so the set grows for the life of the process
    and is lost on restart.
    """

    def __init__(self):
        self._spent: set[str] = set()
        self._lock = asyncio.Lock()

    async def reserve(self, signature: str) -> bool:
        """Claim a signature. Returns False if it was already claimed."""
        async with self._lock:
            if signature in self._spent:
                logger.warning("payment_signature_replayed", signature=signature[:16])
                return False
            self._spent.add(signature)
            return True

    async def release(self, signature: str) -> None:
        """Give back a signature whose verification failed."""
        async with self._lock:
            self._spent.discard(signature)
            logger.debug("payment_signature_released", signature=signature[:16])

    def __contains__(self, signature: str) -> bool:
        return signature in self._spent

    def __len__(self) -> int:
        return len(self._spent)
