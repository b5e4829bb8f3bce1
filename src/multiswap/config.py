"""Application configuration using pydantic-settings.

Holds the wallet, RPC and contract addresses used by the multicall swap
orchestrator, plus its tuning knobs (fee tiers, gas limits, approval policy).
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApprovalPolicy(str, Enum):
    """What to do when the router already holds a sufficient allowance."""

    REVOKE = "revoke"  # Reset allowance to zero and abort the batch
    REUSE = "reuse"    # Swap against the existing allowance


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Chain
    # ======================
    rpc_url: str = Field(default="https://eth.llamarpc.com", description="EVM JSON-RPC URL")

    # ======================
    # Wallet
    # ======================
    wallet_private_key: Optional[str] = Field(
        default=None, description="Hot wallet private key (hex, optionally Fernet-encrypted)"
    )
    wallet_seed_phrase: Optional[str] = Field(
        default=None, description="12/24 word seed phrase for BIP-44 derivation"
    )
    wallet_account_index: int = Field(default=0, description="BIP-44 address index")
    master_key: Optional[str] = Field(
        default=None, description="Fernet key used to decrypt WALLET_PRIVATE_KEY"
    )

    # ======================
    # DEX contracts
    # ======================
    swap_router_address: str = Field(
        default="0xE592427A0AEce92De3Edee1F18E0157C05861564",
        description="Uniswap V3 SwapRouter address",
    )
    pool_factory_address: str = Field(
        default="0x1F98431c8aD98523631AE4a59f267346ea31F984",
        description="Uniswap V3 factory address",
    )
    fee_tiers: list[int] = Field(
        default=[500, 2000, 10000], description="Fee tiers tried in priority order"
    )

    # ======================
    # Transactions
    # ======================
    multicall_gas_limit: int = Field(default=500_000, description="Gas limit of the batch tx")
    approval_gas_limit: int = Field(default=100_000, description="Gas limit of approve() txs")
    confirmation_timeout: int = Field(default=120, description="Seconds to wait for a receipt")
    confirmation_poll_interval: float = Field(
        default=2.0, description="Seconds between receipt polls"
    )
    approval_policy: ApprovalPolicy = Field(
        default=ApprovalPolicy.REVOKE,
        description="Behavior when the router allowance already covers the swap",
    )

    @property
    def has_wallet(self) -> bool:
        """Check if a private key or seed phrase is configured."""
        if self.wallet_private_key:
            return True
        return bool(self.wallet_seed_phrase and len(self.wallet_seed_phrase.split()) >= 12)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "rpc_url": self.rpc_url,
            "wallet_private_key": "***" if self.wallet_private_key else "(not set)",
            "wallet_seed_phrase": "***" if self.wallet_seed_phrase else "(not set)",
            "wallet_account_index": self.wallet_account_index,
            "master_key": "***" if self.master_key else "(not set)",
            "contracts": {
                "router": self.swap_router_address,
                "factory": self.pool_factory_address,
            },
            "swap": {
                "fee_tiers": list(self.fee_tiers),
                "multicall_gas_limit": self.multicall_gas_limit,
                "approval_gas_limit": self.approval_gas_limit,
                "confirmation_timeout": self.confirmation_timeout,
                "approval_policy": self.approval_policy.value,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
