"""Wallet session contracts.

SECURITY: nothing here ever holds key material. The session only records
which public address the wallet exposes and which chain it is on; signing
stays inside the wallet.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from scrollgen.errors import ScrollGenError


class SessionState(str, Enum):
    """Coarse connection state derived from a WalletSession."""

    UNATTACHED = "unattached"
    ATTACHED = "attached"  # Provider found, no account yet
    CONNECTED = "connected"


class WalletSession(BaseModel):
    """Current relationship with the wallet provider.

    Invariant: a session without an attached provider has no account.
    """

    account_address: Optional[str] = Field(
        None, description="Active account (first authorized account)"
    )
    provider_attached: bool = Field(default=False, description="Provider detected")
    network_id: Optional[int] = Field(None, description="Chain ID the wallet reports")

    @model_validator(mode="after")
    def check_account_requires_provider(self) -> "WalletSession":
        if not self.provider_attached and self.account_address is not None:
            raise ValueError("account_address requires an attached provider")
        return self

    @property
    def state(self) -> SessionState:
        if not self.provider_attached:
            return SessionState.UNATTACHED
        if self.account_address is None:
            return SessionState.ATTACHED
        return SessionState.CONNECTED

    @property
    def is_connected(self) -> bool:
        return self.state == SessionState.CONNECTED


@dataclass
class ConnectResult:
    """Outcome of a connect attempt.

    Attributes:
        success: Whether a contract handle is now available
        account: Connected account on success
        error: Captured failure (NoProviderError, NetworkSwitchError, ...)
    """

    success: bool
    account: Optional[str] = None
    error: Optional[ScrollGenError] = None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return f"Connected {self.account}"
