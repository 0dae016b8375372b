"""Provider factory for creating the wallet provider."""

from typing import Optional

from scrollgen.config import Settings, get_settings
from scrollgen.providers.base import WalletProvider
from scrollgen.providers.dryrun import (
    DEFAULT_ACCOUNT,
    DEFAULT_TOKEN_ADDRESS,
    DryRunWalletProvider,
)
from scrollgen.providers.jsonrpc import JsonRpcWalletProvider

# Singleton instance
_provider_instance: WalletProvider | None = None

DRY_RUN_SUPPLY = 1_000_000 * 10**18


def get_wallet_provider(settings: Optional[Settings] = None) -> WalletProvider:
    """Get the configured wallet provider.

    Provider is selected based on WALLET_PROVIDER environment variable:
    - dryrun (default): Simulated wallet holding the initial token supply
    - jsonrpc: EIP-1193 endpoint at WALLET_RPC_URL

    Returns:
        Configured WalletProvider instance
    """
    global _provider_instance

    if _provider_instance is not None:
        return _provider_instance

    settings = settings or get_settings()
    provider_name = settings.wallet_provider.lower()

    if provider_name == "jsonrpc":
        _provider_instance = JsonRpcWalletProvider(
            rpc_url=settings.wallet_rpc_url,
            timeout=settings.wallet_rpc_timeout,
        )
    else:
        # Default to dry-run: wallet starts on mainnet so the switch path runs,
        # and the default account holds the initial supply
        _provider_instance = DryRunWalletProvider(
            known_chains=[settings.target_network.chain_id],
            token_address=settings.contract_address or DEFAULT_TOKEN_ADDRESS,
            balances={DEFAULT_ACCOUNT: DRY_RUN_SUPPLY},
        )

    return _provider_instance


def reset_wallet_provider() -> None:
    """Reset provider instance (useful for testing)."""
    global _provider_instance
    _provider_instance = None
