"""Data contracts shared by the connection and transfer layers."""

from scrollgen.contracts.network import NativeCurrency, NetworkDescriptor
from scrollgen.contracts.transfers import (
    Confirmed,
    Failed,
    Idle,
    Submitted,
    TransferPhase,
    TransferRequest,
    TransferStatus,
    Validating,
)
from scrollgen.contracts.wallet import ConnectResult, SessionState, WalletSession

__all__ = [
    # Network contracts
    "NativeCurrency",
    "NetworkDescriptor",
    # Wallet contracts
    "ConnectResult",
    "SessionState",
    "WalletSession",
    # Transfer contracts
    "TransferPhase",
    "TransferRequest",
    "TransferStatus",
    "Idle",
    "Validating",
    "Submitted",
    "Confirmed",
    "Failed",
]
