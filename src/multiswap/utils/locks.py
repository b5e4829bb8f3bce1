"""Concurrency control for transaction-sending operations.

Provides per-signer locking so two batches signed by the same key never
interleave their approvals and submissions (and never race for a nonce).
"""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Global lock registry: lowercase signer address -> asyncio.Lock
_signer_locks: dict[str, asyncio.Lock] = {}


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


def get_signer_lock(address: str) -> asyncio.Lock:
    """Get or create the lock for a signing address.

    Args:
        address: Signer address (case-insensitive)

    Returns:
        asyncio.Lock for the signer
    """
    key = address.lower()
    if key not in _signer_locks:
        _signer_locks[key] = asyncio.Lock()
    return _signer_locks[key]


class SignerLock:
    """Async context manager for exclusive use of a signing identity.

    Example:
        async with SignerLock(signer.address, operation="multicall"):
            # approvals + batch submission here
            ...
    """

    def __init__(
        self,
        address: str,
        timeout: Optional[float] = None,
        operation: str = "send",
    ):
        """Initialize the lock.

        Args:
            address: Signer address
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
        """
        self.address = address
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "SignerLock":
        """Acquire the lock."""
        self._lock = get_signer_lock(self.address)

        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
        except asyncio.TimeoutError:
            logger.warning(
                f"Lock timeout for signer {self.address} after {self.timeout}s: {self.operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for signer {self.address} within {self.timeout}s"
            )

        self._acquired = True
        logger.debug(f"Lock acquired for signer {self.address}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release the lock."""
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for signer {self.address}: {self.operation}")
        return False


def clear_signer_locks() -> None:
    """Clear all signer locks (useful for testing)."""
    _signer_locks.clear()
