"""Cryptographic utilities for hot wallet key storage.

Uses Fernet (AES-128-CBC with HMAC) for symmetric encryption, so the private
key in the environment can be kept encrypted under MASTER_KEY.
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

# Fernet tokens are base64 and always start with this prefix
FERNET_PREFIX = "gAAAAA"


class SecretDecryptionError(Exception):
    """Raised when an encrypted secret cannot be decrypted."""
    pass


def generate_master_key() -> str:
    """Generate a new master encryption key.

    Returns:
        Base64-encoded 32-byte key suitable for Fernet
    """
    return Fernet.generate_key().decode()


def is_encrypted(value: str) -> bool:
    """Check whether a value looks like a Fernet token."""
    return value.startswith(FERNET_PREFIX)


def encrypt_secret(value: str, master_key: str) -> str:
    """Encrypt a secret (e.g. a private key) with the master key."""
    return Fernet(master_key.encode()).encrypt(value.encode()).decode()


def decrypt_secret(value: str, master_key: Optional[str]) -> str:
    """Decrypt a secret if it is Fernet-encrypted.

    Plain values are returned unchanged.

    Args:
        value: Encrypted token or plain secret
        master_key: Fernet key, required only for encrypted values

    Returns:
        Decrypted secret

    Raises:
        SecretDecryptionError: If the value is encrypted and no key is set,
            or the key does not match
    """
    if not is_encrypted(value):
        return value

    if not master_key:
        raise SecretDecryptionError("Secret is encrypted but MASTER_KEY is not set")

    try:
        return Fernet(master_key.encode()).decrypt(value.encode()).decode()
    except InvalidToken as e:
        logger.error("Failed to decrypt secret - wrong MASTER_KEY or corrupted data")
        raise SecretDecryptionError("Invalid MASTER_KEY for encrypted secret") from e
