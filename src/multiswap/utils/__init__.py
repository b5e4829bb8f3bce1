"""Utility modules for multiswap."""

from multiswap.utils.locks import SignerLock, get_signer_lock

__all__ = ["SignerLock", "get_signer_lock"]
