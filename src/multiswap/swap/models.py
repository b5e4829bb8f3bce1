"""Value objects passed into and returned from the multicall orchestrator."""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional

from multiswap.swap.encoding import encode_exact_input_single


@dataclass(frozen=True)
class SwapRequest:
    """One intended exact-input swap.

    ``amount_out_minimum`` is the caller's estimate of the output; the
    slippage-adjusted minimum ends up on the ResolvedSwap, never here.
    """

    token_in: str
    token_out: str
    amount_in: int
    amount_out_minimum: int
    slippage_tolerance: float
    deadline: int
    recipient: Optional[str] = None  # Defaults to the signer's address
    sqrt_price_limit_x96: int = 0

    def __post_init__(self):
        if self.amount_in < 0:
            raise ValueError(f"amount_in must be non-negative, got {self.amount_in}")
        if self.amount_out_minimum < 0:
            raise ValueError(
                f"amount_out_minimum must be non-negative, got {self.amount_out_minimum}"
            )
        if not 0 <= self.slippage_tolerance <= 100:
            raise ValueError(
                f"slippage_tolerance must be between 0 and 100, got {self.slippage_tolerance}"
            )


@dataclass(frozen=True)
class ResolvedSwap:
    """A SwapRequest after pool resolution, slippage adjustment and encoding."""

    request: SwapRequest
    fee: int
    pool_address: str
    liquidity: int
    amount_out_minimum: int  # After slippage
    recipient: str

    @cached_property
    def calldata(self) -> str:
        """Encoded exactInputSingle call for this swap."""
        return encode_exact_input_single(*self.params())

    def params(self) -> tuple:
        """exactInputSingle params struct, in ABI order."""
        return (
            self.request.token_in,
            self.request.token_out,
            self.fee,
            self.recipient,
            self.request.deadline,
            self.request.amount_in,
            self.amount_out_minimum,
            self.request.sqrt_price_limit_x96,
        )


@dataclass
class BatchResult:
    """Outcome of submitting one multicall batch."""

    success: bool
    swaps: list[ResolvedSwap] = field(default_factory=list)
    calldata: Optional[str] = None
    tx_hash: Optional[str] = None
    receipt: Optional[dict] = None
    error: Optional[str] = None

    @property
    def swap_count(self) -> int:
        return len(self.swaps)
