"""Wallet provider capability.

Providers follow the EIP-1193 shape: a single `request(method, params)`
transport plus `accountsChanged` / `chainChanged` notifications. The typed
operations below are built on that transport, so an implementation only has
to move requests to and from a wallet.

SECURITY: providers never expose private keys. A Signer is a handle that
asks the wallet to sign and broadcast on the account's behalf.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Optional

from scrollgen.contracts.network import NetworkDescriptor
from scrollgen.errors import ProviderRpcError

logger = logging.getLogger(__name__)

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"

Listener = Callable[[Any], None]
Disposer = Callable[[], None]


class WalletProvider(ABC):
    """Abstract base class for wallet providers."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        raise NotImplementedError()

    @abstractmethod
    def is_present(self) -> bool:
        """Whether a wallet is reachable through this provider."""
        raise NotImplementedError()

    @abstractmethod
    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """Send an EIP-1193 request.

        Raises:
            ProviderRpcError: If the wallet answers with an error
        """
        raise NotImplementedError()

    # ------------------------------------------------------------------
    # Account and network operations
    # ------------------------------------------------------------------
    async def request_accounts(self) -> list[str]:
        """Ask the user to authorize accounts (may prompt)."""
        return list(await self.request("eth_requestAccounts") or [])

    async def get_authorized_accounts(self) -> list[str]:
        """Accounts already authorized for this client (never prompts)."""
        return list(await self.request("eth_accounts") or [])

    async def get_chain_id(self) -> int:
        result = await self.request("eth_chainId")
        return int(result, 16) if isinstance(result, str) else int(result)

    async def switch_network(self, chain_id: int) -> None:
        """Ask the wallet to switch chains.

        Raises:
            ProviderRpcError: code 4902 if the wallet does not know the chain,
                4001 if the user rejected the prompt
        """
        await self.request("wallet_switchEthereumChain", [{"chainId": hex(chain_id)}])

    async def register_network(self, descriptor: NetworkDescriptor) -> None:
        """Ask the wallet to add a chain it does not know yet."""
        await self.request("wallet_addEthereumChain", [descriptor.to_add_chain_params()])

    async def get_signer(self, address: str) -> "Signer":
        """Signing capability for an authorized account."""
        accounts = await self.get_authorized_accounts()
        if address.lower() not in {a.lower() for a in accounts}:
            raise ProviderRpcError(4100, f"Account {address} is not authorized")
        return Signer(self, address)

    # ------------------------------------------------------------------
    # Chain reads
    # ------------------------------------------------------------------
    async def call(self, tx: dict, block: str = "latest") -> str:
        return await self.request("eth_call", [tx, block])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def on(self, event: str, listener: Listener) -> Disposer:
        """Register a listener and return a callable that removes it."""
        self._listeners[event].append(listener)

        def dispose() -> None:
            self.remove_listener(event, listener)

        return dispose

    def remove_listener(self, event: str, listener: Listener) -> None:
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def emit(self, event: str, payload: Any) -> None:
        """Deliver a notification to every listener, in registration order."""
        for listener in list(self._listeners[event]):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Error in {event} listener: {e}", exc_info=True)

    async def aclose(self) -> None:
        """Release transport resources."""
        self._listeners.clear()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


class Signer:
    """Signing capability for one account.

    Transactions are handed to the wallet, which signs and broadcasts them.
    """

    def __init__(self, provider: WalletProvider, address: str):
        self.provider = provider
        self.address = address

    async def send_transaction(self, tx: dict) -> str:
        """Submit a transaction for signing and broadcast.

        Returns:
            Transaction hash
        """
        params = {"from": self.address, **tx}
        return await self.provider.request("eth_sendTransaction", [params])

    def __repr__(self) -> str:
        return f"Signer(address={self.address[:10]}...)"
