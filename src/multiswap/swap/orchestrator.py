"""Multicall swap orchestrator.

Validates a list of swap requests against live chain state, obtains router
approvals, resolves a fee tier and pool per pair, applies slippage, and
submits every swap as one SwapRouter ``multicall`` transaction.

Requests are processed strictly in order. Any pre-flight failure raises and
nothing is encoded or submitted; approvals already mined for earlier
requests stay in place. A failure of the final transaction is logged and
reported through the returned BatchResult instead of being raised.
"""

import logging
import time
from typing import Optional, Sequence

from web3 import Web3

from multiswap.config import ApprovalPolicy, get_settings
from multiswap.swap.abi import ERC20_ABI, UNISWAP_V3_FACTORY_ABI, UNISWAP_V3_POOL_ABI
from multiswap.swap.encoding import encode_multicall
from multiswap.swap.errors import (
    ApprovalRemovedError,
    ExpiredDeadlineError,
    InsufficientBalanceError,
    NoLiquidityError,
    NoPoolFoundError,
)
from multiswap.swap.models import BatchResult, ResolvedSwap, SwapRequest
from multiswap.swap.signer import EVMSigner
from multiswap.swap.validation import calculate_slippage, is_zero_address, validate_deadline
from multiswap.utils.locks import SignerLock

logger = logging.getLogger(__name__)


class MulticallSwap:
    """Batches exactInputSingle swaps into a single router multicall."""

    def __init__(
        self,
        signer: EVMSigner,
        router_address: str,
        factory_address: str,
        fee_tiers: Optional[Sequence[int]] = None,
        gas_limit: Optional[int] = None,
        approval_gas_limit: Optional[int] = None,
        approval_policy: Optional[ApprovalPolicy] = None,
    ):
        settings = get_settings()
        self._signer = signer
        self._router_address = Web3.to_checksum_address(router_address)
        self._factory_address = Web3.to_checksum_address(factory_address)
        self._fee_tiers = tuple(fee_tiers or settings.fee_tiers)
        self._gas_limit = gas_limit or settings.multicall_gas_limit
        self._approval_gas_limit = approval_gas_limit or settings.approval_gas_limit
        self._approval_policy = ApprovalPolicy(approval_policy or settings.approval_policy)

    @classmethod
    def from_settings(cls, signer: Optional[EVMSigner] = None) -> "MulticallSwap":
        """Build an orchestrator for the configured router and factory."""
        settings = get_settings()
        return cls(
            signer or EVMSigner.from_settings(settings),
            settings.swap_router_address,
            settings.pool_factory_address,
        )

    @property
    def signer(self) -> EVMSigner:
        return self._signer

    @property
    def router_address(self) -> str:
        return self._router_address

    @property
    def factory_address(self) -> str:
        return self._factory_address

    @property
    def fee_tiers(self) -> tuple[int, ...]:
        return self._fee_tiers

    # ---------- contract handles ----------

    def _token(self, token_address: str):
        return self._signer.web3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )

    def _factory(self):
        return self._signer.web3.eth.contract(
            address=self._factory_address, abi=UNISWAP_V3_FACTORY_ABI
        )

    def _pool(self, pool_address: str):
        return self._signer.web3.eth.contract(
            address=Web3.to_checksum_address(pool_address), abi=UNISWAP_V3_POOL_ABI
        )

    # ---------- pre-flight checks ----------

    async def get_balance(self, token: str) -> int:
        """Read the signer's balance of an ERC-20 token."""
        return self._token(token).functions.balanceOf(self._signer.address).call()

    async def has_sufficient_balance(self, token_in: str, amount_in: int) -> bool:
        """Check the signer holds strictly more than amount_in of token_in."""
        return await self.get_balance(token_in) > amount_in

    async def needs_approval(self, token_in: str, amount_in: int) -> bool:
        """Check whether the router must be approved for amount_in.

        Under the REVOKE policy an allowance that already covers the swap is
        reset to zero and the batch is aborted.

        Raises:
            ApprovalRemovedError: If an existing allowance was revoked
        """
        allowance = self._token(token_in).functions.allowance(
            self._signer.address, self._router_address
        ).call()
        logger.info(f"Allowance is {allowance}")

        if allowance >= amount_in:
            if self._approval_policy == ApprovalPolicy.REUSE:
                logger.warning(f"Reusing existing allowance {allowance} for token: {token_in}")
                return False
            await self.approve_token(token_in, 0)
            raise ApprovalRemovedError(token_in)

        return True

    async def approve_token(self, token_in: str, amount: int) -> str:
        """Approve the router for exactly `amount` and wait for it to be mined."""
        nonce = self._signer.get_next_nonce(self._signer.address)
        try:
            tx = self._token(token_in).functions.approve(self._router_address, amount).build_transaction({
                "from": self._signer.address,
                "nonce": nonce,
                "gas": self._approval_gas_limit,
            })
            tx_hash = await self._signer.sign_and_send_transaction(tx)
        except Exception:
            # Nonce was never broadcast
            self._signer.reset_nonce_cache(self._signer.address)
            raise

        logger.info(f"Approval transaction sent: {tx_hash} for {amount}")

        await self._signer.wait_for_confirmation(tx_hash)
        logger.info(f"Approval confirmed: {tx_hash} for {amount}")
        return tx_hash

    async def get_pool_fee(self, token_in: str, token_out: str) -> tuple[int, str]:
        """Find the first fee tier with a deployed pool.

        Returns:
            Tuple of (fee, pool_address)

        Raises:
            NoPoolFoundError: If no tier has a pool for the pair
        """
        factory = self._factory()
        for fee in self._fee_tiers:
            pool_address = factory.functions.getPool(
                Web3.to_checksum_address(token_in),
                Web3.to_checksum_address(token_out),
                fee,
            ).call()

            if not is_zero_address(pool_address):
                logger.info(f"Valid pool found for {token_in}-{token_out} with fee: {fee}")
                return fee, pool_address

        raise NoPoolFoundError(token_in, token_out, self._fee_tiers)

    async def pool_has_liquidity(self, pool_address: str) -> tuple[bool, int]:
        """Read the pool's in-range liquidity.

        Returns:
            Tuple of (has_liquidity, liquidity)
        """
        logger.info(f"Pool found at address: {pool_address}")
        liquidity = self._pool(pool_address).functions.liquidity().call()
        logger.info(f"Pool liquidity: {liquidity}")
        return liquidity > 0, liquidity

    # ---------- batch ----------

    async def _prepare_swap(self, request: SwapRequest) -> ResolvedSwap:
        """Run every pre-flight step for one request and encode it."""
        now = int(time.time())
        if not validate_deadline(request.deadline, now):
            raise ExpiredDeadlineError(request.deadline, now)

        balance = await self.get_balance(request.token_in)
        logger.debug(f"Balance of {request.token_in}: {balance} (need > {request.amount_in})")
        if not balance > request.amount_in:
            raise InsufficientBalanceError(request.token_in, balance, request.amount_in)

        if await self.needs_approval(request.token_in, request.amount_in):
            await self.approve_token(request.token_in, request.amount_in)

        fee, pool_address = await self.get_pool_fee(request.token_in, request.token_out)

        has_liquidity, liquidity = await self.pool_has_liquidity(pool_address)
        if not has_liquidity:
            raise NoLiquidityError(request.token_in, request.token_out, fee, pool_address)

        amount_out_minimum = calculate_slippage(
            request.amount_out_minimum, request.slippage_tolerance
        )
        swap = ResolvedSwap(
            request=request,
            fee=fee,
            pool_address=pool_address,
            liquidity=liquidity,
            amount_out_minimum=amount_out_minimum,
            recipient=request.recipient or self._signer.address,
        )
        # Encode now so bad params fail before the next request is touched
        calldata = swap.calldata
        logger.debug(f"Encoded Data is -- {calldata}")
        return swap

    def build_calldata(self, swaps: Sequence[ResolvedSwap]) -> str:
        """Aggregate per-swap calldata into one multicall blob, preserving order."""
        return encode_multicall([swap.calldata for swap in swaps])

    async def perform_swaps(self, requests: Sequence[SwapRequest]) -> BatchResult:
        """Execute multiple swaps via a multicall transaction after verifying pool liquidity.

        Args:
            requests: Swap requests, executed on-chain in this order

        Returns:
            BatchResult describing the submitted transaction

        Raises:
            SwapError: Any pre-flight failure (deadline, balance, approval,
                pool, liquidity). Submission failures are not raised.
        """
        async with SignerLock(self._signer.address, operation="multicall"):
            swaps: list[ResolvedSwap] = []
            for index, request in enumerate(requests):
                logger.debug(
                    f"Preparing swap {index}: {request.amount_in} {request.token_in} -> {request.token_out}"
                )
                swaps.append(await self._prepare_swap(request))

            swap_calldata = self.build_calldata(swaps)
            logger.debug(f"SwapData is -- {swap_calldata} ({len(swaps)} calls)")

            tx_args = {
                "to": self._router_address,
                "from": self._signer.address,
                "data": swap_calldata,
                "gas": self._gas_limit,
            }

            result = BatchResult(success=False, swaps=swaps, calldata=swap_calldata)
            try:
                result.tx_hash = await self._signer.sign_and_send_transaction(tx_args)
                logger.info(f"Transaction sent. Hash: {result.tx_hash}")

                result.receipt = await self._signer.wait_for_confirmation(result.tx_hash)
                logger.info(
                    f"Transaction confirmed. Block: {result.receipt.get('blockNumber')}, "
                    f"gas used: {result.receipt.get('gasUsed')}"
                )
                result.success = True
            except Exception as e:
                logger.error(f"Swap failed: {e}")
                result.error = str(e)

            return result
