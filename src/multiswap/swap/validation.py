"""Pure pre-flight helpers: deadline check, slippage math, address sentinel."""

import math
import time
from typing import Optional

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def validate_deadline(deadline: int, now: Optional[int] = None) -> bool:
    """Return True if the deadline is strictly in the future."""
    if now is None:
        now = int(time.time())
    return deadline > now


def calculate_slippage(estimated_amount_out: int, slippage_tolerance: float) -> int:
    """Calculate the slippage-adjusted amountOutMinimum.

    The tolerance is truncated to an integer of hundredths first and then
    applied over 10000, so 0.01 removes 0.01% and 0.5 removes 0.5%.
    Truncation order matters: the result must match the on-chain amounts
    produced by existing callers exactly.

    Args:
        estimated_amount_out: Expected amount out from the swap
        slippage_tolerance: User-defined slippage tolerance (e.g., 1% = 0.01)

    Returns:
        Amount out minimum after applying slippage tolerance
    """
    estimated = int(estimated_amount_out)
    scaled_tolerance = math.floor(slippage_tolerance * 100)
    slippage_amount = (estimated * scaled_tolerance) // 10000
    return estimated - slippage_amount


def is_zero_address(address: Optional[str]) -> bool:
    """Check for the null address a factory returns when no pool exists."""
    if not address:
        return True
    return int(str(address), 16) == 0
