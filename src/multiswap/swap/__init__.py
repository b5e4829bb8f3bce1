"""Multicall swap module.

Provides:
- MulticallSwap: pre-flight checks, approvals and batched submission
- EVMSigner: signing identity and transaction transport
- Swap request / result models and the error taxonomy
"""

from multiswap.swap.errors import (
    ApprovalRemovedError,
    ExpiredDeadlineError,
    InsufficientBalanceError,
    NoLiquidityError,
    NoPoolFoundError,
    SubmissionError,
    SwapError,
    TransactionRevertedError,
)
from multiswap.swap.models import BatchResult, ResolvedSwap, SwapRequest
from multiswap.swap.orchestrator import MulticallSwap
from multiswap.swap.signer import EVMSigner

__all__ = [
    # Orchestrator
    "MulticallSwap",
    "EVMSigner",
    # Models
    "SwapRequest",
    "ResolvedSwap",
    "BatchResult",
    # Errors
    "SwapError",
    "ExpiredDeadlineError",
    "InsufficientBalanceError",
    "ApprovalRemovedError",
    "NoPoolFoundError",
    "NoLiquidityError",
    "SubmissionError",
    "TransactionRevertedError",
]
