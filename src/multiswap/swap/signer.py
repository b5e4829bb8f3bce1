"""Transaction signer for EVM chains.

Holds the signing identity used by the multicall orchestrator: a local
account (raw private key or BIP-44 derived from a seed phrase) plus the
web3 connection that transactions are broadcast through.
"""

import asyncio
import logging
import threading
import time
from typing import Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import TransactionNotFound

from multiswap.config import Settings, get_settings
from multiswap.crypto import decrypt_secret
from multiswap.swap.errors import TransactionRevertedError

logger = logging.getLogger(__name__)


def derive_private_key(seed_phrase: str, index: int = 0) -> bytes:
    """Derive EVM private key from seed phrase (m/44'/60'/0'/0/index)."""
    from bip_utils import (
        Bip39SeedGenerator, Bip44, Bip44Coins, Bip44Changes
    )

    seed = Bip39SeedGenerator(seed_phrase).Generate()
    bip44 = Bip44.FromSeed(seed, Bip44Coins.ETHEREUM)
    account = bip44.Purpose().Coin().Account(0).Change(Bip44Changes.CHAIN_EXT)
    return account.AddressIndex(index).PrivateKey().Raw().ToBytes()


class EVMSigner:
    """Signer for EVM-compatible chains."""

    # Class-level nonce cache to prevent race conditions
    _nonce_cache: dict[str, int] = {}
    _nonce_lock = threading.Lock()

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str | bytes] = None,
        seed_phrase: Optional[str] = None,
        account_index: int = 0,
        confirmation_timeout: int = 120,
        poll_interval: float = 2.0,
    ):
        if private_key is None and not seed_phrase:
            raise ValueError("Either private_key or seed_phrase is required")

        if private_key is None:
            private_key = derive_private_key(seed_phrase, account_index)

        self.rpc_url = rpc_url
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self._account = Account.from_key(private_key)
        self._web3 = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "EVMSigner":
        """Build a signer from WALLET_PRIVATE_KEY or WALLET_SEED_PHRASE."""
        settings = settings or get_settings()

        private_key = None
        if settings.wallet_private_key:
            private_key = decrypt_secret(settings.wallet_private_key, settings.master_key)
        elif not settings.has_wallet:
            raise ValueError("No wallet configured: set WALLET_PRIVATE_KEY or WALLET_SEED_PHRASE")

        return cls(
            rpc_url=settings.rpc_url,
            private_key=private_key,
            seed_phrase=settings.wallet_seed_phrase,
            account_index=settings.wallet_account_index,
            confirmation_timeout=settings.confirmation_timeout,
            poll_interval=settings.confirmation_poll_interval,
        )

    @property
    def web3(self) -> Web3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = Web3(Web3.HTTPProvider(self.rpc_url))
        return self._web3

    @property
    def address(self) -> str:
        return self._account.address

    def get_next_nonce(self, address: Optional[str] = None) -> int:
        """Get next nonce for address with thread-safe caching.

        Uses the higher of the chain's pending count and the cached value,
        so back-to-back transactions from one process never share a nonce.
        """
        address = address or self.address
        max_retries = 3

        with self._nonce_lock:
            chain_nonce = None
            last_error = None

            for attempt in range(max_retries):
                try:
                    chain_nonce = self.web3.eth.get_transaction_count(address, "pending")
                    break
                except Exception as e:
                    last_error = e
                    if attempt < max_retries - 1:
                        logger.warning(f"RPC error getting nonce (attempt {attempt + 1}): {e}")
                        time.sleep(1 * (attempt + 1))

            if chain_nonce is None:
                raise RuntimeError(
                    f"Failed to get nonce after {max_retries} attempts: {last_error}"
                ) from last_error

            next_nonce = max(chain_nonce, self._nonce_cache.get(address, 0))
            self._nonce_cache[address] = next_nonce + 1
            return next_nonce

    def reset_nonce_cache(self, address: Optional[str] = None):
        """Drop the cached nonce so the next lookup goes to the chain."""
        with self._nonce_lock:
            self._nonce_cache.pop(address or self.address, None)

    async def sign_and_send_transaction(self, tx_params: dict) -> str:
        """Sign and send an EVM transaction.

        Args:
            tx_params: Transaction parameters (to, data, gas, value, ...).
                Missing from/nonce/chainId/gas/gasPrice are filled in.

        Returns:
            Transaction hash (0x-prefixed)
        """
        tx = dict(tx_params)
        tx.setdefault("from", self.address)
        tx.setdefault("value", 0)

        if "nonce" not in tx:
            tx["nonce"] = self.get_next_nonce(self.address)

        # From here until broadcast the cached nonce is ahead of the chain
        try:
            if "chainId" not in tx:
                tx["chainId"] = self.web3.eth.chain_id

            if "gas" not in tx:
                tx["gas"] = self.web3.eth.estimate_gas(tx)

            if "gasPrice" not in tx and "maxFeePerGas" not in tx:
                tx["gasPrice"] = self.web3.eth.gas_price

            signed_tx = self._account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception:
            self.reset_nonce_cache(self.address)
            raise

        return Web3.to_hex(tx_hash)

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        timeout: Optional[int] = None,
        confirmations: int = 1,
    ) -> dict:
        """Wait for transaction to be confirmed.

        Args:
            tx_hash: Transaction hash to wait for
            timeout: Maximum seconds to wait (defaults to confirmation_timeout)
            confirmations: Number of block confirmations required

        Returns:
            Transaction receipt dict

        Raises:
            TimeoutError: If transaction not confirmed within timeout
            TransactionRevertedError: If the transaction reverted
        """
        timeout = self.confirmation_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        while True:
            try:
                receipt = self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None

            if receipt is not None:
                confirms = self.web3.eth.block_number - receipt["blockNumber"] + 1
                if confirms >= confirmations:
                    if receipt["status"] == 0:
                        raise TransactionRevertedError(tx_hash, dict(receipt))
                    return dict(receipt)

            if loop.time() - start_time > timeout:
                raise TimeoutError(f"Transaction {tx_hash} not confirmed after {timeout}s")

            await asyncio.sleep(self.poll_interval)
