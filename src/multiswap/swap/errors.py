"""Exceptions raised while preparing and submitting a multicall swap batch."""

from typing import Optional, Sequence


class SwapError(Exception):
    """Base class for multicall swap failures."""
    pass


class ExpiredDeadlineError(SwapError):
    """Raised when a swap request's deadline is not in the future."""

    def __init__(self, deadline: int, now: int):
        self.deadline = deadline
        self.now = now
        super().__init__(f"Deadline has expired: {deadline} <= {now}")


class InsufficientBalanceError(SwapError):
    """Raised when the signer's balance does not exceed the input amount."""

    def __init__(self, token: str, balance: int, required: int):
        self.token = token
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient balance for token: {token} (balance {balance}, required > {required})"
        )


class ApprovalRemovedError(SwapError):
    """Raised after a pre-existing sufficient allowance was reset to zero."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Removed Approval for token: {token}.")


class NoPoolFoundError(SwapError):
    """Raised when no configured fee tier has a pool for the pair."""

    def __init__(self, token_in: str, token_out: str, fee_tiers: Sequence[int]):
        self.token_in = token_in
        self.token_out = token_out
        self.fee_tiers = tuple(fee_tiers)
        super().__init__(f"No valid pool found for tokens {token_in} and {token_out}")


class NoLiquidityError(SwapError):
    """Raised when the resolved pool reports zero liquidity."""

    def __init__(self, token_in: str, token_out: str, fee: int, pool_address: str):
        self.token_in = token_in
        self.token_out = token_out
        self.fee = fee
        self.pool_address = pool_address
        super().__init__(
            f"No liquidity available in the pool for tokens {token_in} and {token_out}"
        )


class SubmissionError(SwapError):
    """Raised by the signer when a transaction cannot be sent or confirmed."""
    pass


class TransactionRevertedError(SubmissionError):
    """Raised when a mined transaction has status 0."""

    def __init__(self, tx_hash: str, receipt: Optional[dict] = None):
        self.tx_hash = tx_hash
        self.receipt = receipt
        super().__init__(f"Transaction {tx_hash} failed (reverted)")
