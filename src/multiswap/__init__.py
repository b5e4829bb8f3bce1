"""multiswap - batch Uniswap V3 swaps into one multicall transaction."""

__version__ = "0.1.0"
