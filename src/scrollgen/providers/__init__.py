"""Wallet provider adapters."""

from scrollgen.providers.base import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    Signer,
    WalletProvider,
)
from scrollgen.providers.factory import get_wallet_provider, reset_wallet_provider

__all__ = [
    "ACCOUNTS_CHANGED",
    "CHAIN_CHANGED",
    "Signer",
    "WalletProvider",
    "get_wallet_provider",
    "reset_wallet_provider",
]
