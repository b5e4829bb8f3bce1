"""Pytest configuration and fixtures."""

import os

import pytest

# Keep a developer's wallet out of the tests
os.environ.pop("WALLET_PRIVATE_KEY", None)
os.environ.pop("WALLET_SEED_PHRASE", None)
os.environ.pop("MASTER_KEY", None)

from multiswap.config import get_settings
from multiswap.swap.signer import EVMSigner
from multiswap.utils.locks import clear_signer_locks


@pytest.fixture(autouse=True)
def reset_global_state():
    """Each test starts with fresh settings, locks and nonce cache."""
    get_settings.cache_clear()
    clear_signer_locks()
    EVMSigner._nonce_cache.clear()
    yield
    get_settings.cache_clear()
