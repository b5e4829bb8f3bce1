"""SwapRouter calldata encoding for batched UniswapV3 swaps.

Encodes ``exactInputSingle`` (the SwapRouter variant whose params struct
carries a deadline) and wraps any number of such calls into ``multicall``.
"""

from typing import Sequence, Union

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from hexbytes import HexBytes

# exactInputSingle((tokenIn, tokenOut, fee, recipient, deadline,
#                   amountIn, amountOutMinimum, sqrtPriceLimitX96))
EXACT_INPUT_SINGLE_PARAMS = "(address,address,uint24,address,uint256,uint256,uint256,uint160)"
EXACT_INPUT_SINGLE_SIGNATURE = f"exactInputSingle({EXACT_INPUT_SINGLE_PARAMS})"
EXACT_INPUT_SINGLE_SELECTOR = function_signature_to_4byte_selector(EXACT_INPUT_SINGLE_SIGNATURE)

MULTICALL_SIGNATURE = "multicall(bytes[])"
MULTICALL_SELECTOR = function_signature_to_4byte_selector(MULTICALL_SIGNATURE)

EXACT_INPUT_SINGLE_FIELDS = (
    "tokenIn",
    "tokenOut",
    "fee",
    "recipient",
    "deadline",
    "amountIn",
    "amountOutMinimum",
    "sqrtPriceLimitX96",
)

CallData = Union[str, bytes]


def encode_exact_input_single(
    token_in: str,
    token_out: str,
    fee: int,
    recipient: str,
    deadline: int,
    amount_in: int,
    amount_out_minimum: int,
    sqrt_price_limit_x96: int = 0,
) -> str:
    """Encode SwapRouter.exactInputSingle call.

    Args:
        token_in: Input token address
        token_out: Output token address
        fee: Pool fee tier (e.g., 500 for 0.05%)
        recipient: Address to receive output tokens
        deadline: Unix timestamp after which the swap reverts
        amount_in: Exact amount of input tokens
        amount_out_minimum: Minimum output amount (slippage protection)
        sqrt_price_limit_x96: Price limit (0 = no limit)

    Returns:
        Calldata as 0x-prefixed hex
    """
    encoded_params = encode(
        [EXACT_INPUT_SINGLE_PARAMS],
        [
            (
                to_checksum_address(token_in),
                to_checksum_address(token_out),
                fee,
                to_checksum_address(recipient),
                deadline,
                amount_in,
                amount_out_minimum,
                sqrt_price_limit_x96,
            )
        ],
    )
    return "0x" + (EXACT_INPUT_SINGLE_SELECTOR + encoded_params).hex()


def encode_multicall(calls: Sequence[CallData]) -> str:
    """Encode SwapRouter.multicall over an ordered list of calls.

    The router executes the inner calls in list order.
    """
    payload = [bytes(HexBytes(call)) for call in calls]
    return "0x" + (MULTICALL_SELECTOR + encode(["bytes[]"], [payload])).hex()


def _strip_selector(data: CallData, selector: bytes, name: str) -> bytes:
    raw = bytes(HexBytes(data))
    if raw[:4] != selector:
        raise ValueError(f"Calldata is not a {name} call (selector 0x{raw[:4].hex()})")
    return raw[4:]


def decode_multicall(data: CallData) -> list[bytes]:
    """Decode multicall calldata back into its ordered inner calls."""
    (calls,) = decode(["bytes[]"], _strip_selector(data, MULTICALL_SELECTOR, "multicall"))
    return list(calls)


def decode_exact_input_single(data: CallData) -> dict:
    """Decode exactInputSingle calldata into a params dict keyed by ABI name."""
    body = _strip_selector(data, EXACT_INPUT_SINGLE_SELECTOR, "exactInputSingle")
    (params,) = decode([EXACT_INPUT_SINGLE_PARAMS], body)
    decoded = dict(zip(EXACT_INPUT_SINGLE_FIELDS, params))
    for key in ("tokenIn", "tokenOut", "recipient"):
        decoded[key] = to_checksum_address(decoded[key])
    return decoded


__all__ = [
    "EXACT_INPUT_SINGLE_SELECTOR",
    "EXACT_INPUT_SINGLE_SIGNATURE",
    "MULTICALL_SELECTOR",
    "MULTICALL_SIGNATURE",
    "decode_exact_input_single",
    "decode_multicall",
    "encode_exact_input_single",
    "encode_multicall",
]
