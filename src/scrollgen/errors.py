"""Error taxonomy for connection and transfer failures.

Every failure is scoped to one connection attempt or one transfer attempt.
Connection errors are captured into ConnectResult, transfer errors into a
terminal Failed status, so none of these is fatal to the process.
"""

from typing import Any, Optional

# EIP-1193 / JSON-RPC error codes reported by wallet providers
USER_REJECTED = 4001
UNAUTHORIZED = 4100
UNRECOGNIZED_CHAIN = 4902
REQUEST_PENDING = -32002
EXECUTION_REVERTED = 3
INTERNAL_ERROR = -32603


class ScrollGenError(Exception):
    """Base exception for wallet client errors."""

    default_message = "Unexpected wallet error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ProviderRpcError(ScrollGenError):
    """Raised when the wallet provider answers a request with an error.

    Attributes:
        code: EIP-1193 or JSON-RPC error code
        data: Optional error payload (revert data for code 3)
    """

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.data = data
        super().__init__(message)

    @property
    def is_user_rejection(self) -> bool:
        return self.code == USER_REJECTED

    @property
    def is_unrecognized_chain(self) -> bool:
        return self.code == UNRECOGNIZED_CHAIN

    def __repr__(self) -> str:
        return f"ProviderRpcError(code={self.code}, message={self.message!r})"


class NoProviderError(ScrollGenError):
    """Raised when no wallet provider is available."""

    default_message = "No wallet detected. Please install a wallet extension to use this app."


class ConfigurationError(ScrollGenError):
    """Raised when required configuration is missing or invalid."""

    default_message = "Contract address not configured. Please deploy the contract and update the config."


class NetworkSwitchError(ScrollGenError):
    """Raised when the wallet could not be moved to the target network."""

    default_message = "Failed to switch to the target network"


class UserRejectedError(ScrollGenError):
    """Raised when the user declines a wallet prompt."""

    default_message = "Request rejected in wallet"


class NoContractError(ScrollGenError):
    """Raised when the contract handle is missing or bound to a stale account."""

    default_message = "Wallet not connected"


class InvalidAddressError(ScrollGenError):
    """Raised when a recipient is not a well-formed address."""

    default_message = "Invalid recipient address"


class InvalidAmountError(ScrollGenError):
    """Raised when an amount is empty, non-positive or not representable."""

    default_message = "Invalid amount"


class ContractExecutionError(ScrollGenError):
    """Raised when the transfer call reverted or failed on-chain.

    Attributes:
        reason: Revert explanation supplied by the contract, if any
        tx_hash: Transaction hash when the failure happened after broadcast
    """

    default_message = "Transfer failed"

    def __init__(
        self,
        reason: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ):
        self.reason = reason
        self.tx_hash = tx_hash
        super().__init__(reason)


class ConfirmationTimeoutError(ScrollGenError):
    """Raised when a transaction is not confirmed within the client-side bound."""

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not confirmed after {timeout}s")


class TransferInProgressError(ScrollGenError):
    """Raised when a transfer is submitted while another one is still in flight."""

    default_message = "A transfer is already in progress"
