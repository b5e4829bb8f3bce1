"""Shared test doubles for the orchestrator tests."""

import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from web3 import Web3

from multiswap.swap.abi import UNISWAP_V3_FACTORY_ABI, UNISWAP_V3_POOL_ABI
from multiswap.swap.validation import ZERO_ADDRESS

OWNER = Web3.to_checksum_address("0x1234567890abcdef1234567890abcdef12345678")
ROUTER = Web3.to_checksum_address("0xe592427a0aece92de3edee1f18e0157c05861564")
FACTORY = Web3.to_checksum_address("0x1f98431c8ad98523631ae4a59f267346ea31f984")
POOL = Web3.to_checksum_address("0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640")
WETH = Web3.to_checksum_address("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
USDC = Web3.to_checksum_address("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
DAI = Web3.to_checksum_address("0x6b175474e89094c44da98b954eedeac495271d0f")

TX_HASH = "0x" + "cd" * 32


def make_chain(balance=10**24, allowance=0, pools=None, liquidity=10**18, events=None):
    """Build a mock web3 whose contract() dispatches on the ABI requested.

    Token contracts share one mock; `pools` maps fee tier -> pool address.
    """
    events = events if events is not None else []
    pools = {500: POOL} if pools is None else pools

    token = MagicMock()
    token.functions.balanceOf.return_value.call.return_value = balance
    token.functions.allowance.return_value.call.return_value = allowance
    token.functions.approve.return_value.build_transaction.side_effect = (
        lambda params: {"to": WETH, "data": "0x095ea7b3", **params}
    )

    factory = MagicMock()

    def get_pool(token_in, token_out, fee):
        events.append(("getPool", fee))
        handle = MagicMock()
        handle.call.return_value = pools.get(fee, ZERO_ADDRESS)
        return handle

    factory.functions.getPool.side_effect = get_pool

    pool = MagicMock()
    pool.functions.liquidity.return_value.call.return_value = liquidity

    def contract(address, abi):
        if abi is UNISWAP_V3_FACTORY_ABI:
            return factory
        if abi is UNISWAP_V3_POOL_ABI:
            return pool
        return token

    w3 = MagicMock()
    w3.eth.contract.side_effect = contract
    return SimpleNamespace(w3=w3, token=token, factory=factory, pool=pool, events=events)


def make_signer(chain, receipt=None, send_error=None, confirm_error=None):
    """Mock EVMSigner recording send/confirm calls into chain.events."""
    receipt = receipt or {"status": 1, "blockNumber": 100, "gasUsed": 210_000}

    async def send(tx):
        chain.events.append(("send", tx))
        if send_error is not None:
            raise send_error
        return TX_HASH

    async def confirm(tx_hash, *args, **kwargs):
        chain.events.append(("confirm", tx_hash))
        if confirm_error is not None:
            raise confirm_error
        return receipt

    signer = MagicMock()
    signer.address = OWNER
    signer.web3 = chain.w3
    signer.get_next_nonce.return_value = 7
    signer.sign_and_send_transaction = AsyncMock(side_effect=send)
    signer.wait_for_confirmation = AsyncMock(side_effect=confirm)
    return signer


def future_deadline(seconds: int = 600) -> int:
    return int(time.time()) + seconds
