"""Application configuration using pydantic-settings.

Holds the single target network, the deployed token address and the wallet
provider selection. Values come from environment variables or a `.env` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from scrollgen.chains import NETWORKS
from scrollgen.contracts.network import NetworkDescriptor
from scrollgen.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    log_level: str = Field(default="INFO", description="Root log level")

    # ======================
    # Network / Contract
    # ======================
    network: str = Field(
        default="scroll_sepolia", description="Target network key (see scrollgen.chains)"
    )
    contract_address: str = Field(
        default="", description="Deployed token contract address"
    )
    token_decimals: int = Field(default=18, description="Token decimal precision")
    token_symbol: str = Field(default="SGT", description="Token display symbol")

    # ======================
    # Wallet Provider
    # ======================
    wallet_provider: str = Field(
        default="dryrun", description="Wallet provider: dryrun or jsonrpc"
    )
    wallet_rpc_url: str = Field(
        default="", description="EIP-1193 JSON-RPC endpoint (empty = no wallet)"
    )
    wallet_rpc_timeout: float = Field(
        default=30.0, description="HTTP timeout for wallet requests (seconds)"
    )
    watch_interval: float = Field(
        default=2.0, description="Account/chain polling interval (seconds)"
    )

    # ======================
    # Confirmation
    # ======================
    confirmation_timeout: float = Field(
        default=300.0, description="Max seconds to wait for a receipt (0 = no bound)"
    )
    confirmation_poll_interval: float = Field(
        default=2.0, description="Receipt polling interval (seconds)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_contract(self) -> bool:
        """Check if the token contract address is configured."""
        return bool(self.contract_address.strip())

    @property
    def target_network(self) -> NetworkDescriptor:
        """Resolve the configured network key to its descriptor."""
        descriptor = NETWORKS.get(self.network.lower())
        if descriptor is None:
            raise ConfigurationError(
                f"Unknown network '{self.network}'. Known: {', '.join(sorted(NETWORKS))}"
            )
        return descriptor

    @property
    def receipt_timeout(self) -> Optional[float]:
        """Confirmation bound, or None when disabled."""
        return self.confirmation_timeout if self.confirmation_timeout > 0 else None

    def get_safe_dict(self) -> dict:
        """Return settings dict with endpoint credentials redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "network": self.network,
            "contract_address": self.contract_address or "(not set)",
            "token": {
                "symbol": self.token_symbol,
                "decimals": self.token_decimals,
            },
            "wallet": {
                "provider": self.wallet_provider,
                "rpc_url": self._redact_url(self.wallet_rpc_url) or "(not set)",
                "timeout": self.wallet_rpc_timeout,
            },
            "confirmation": {
                "timeout": self.confirmation_timeout,
                "poll_interval": self.confirmation_poll_interval,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact credentials embedded in an RPC URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
