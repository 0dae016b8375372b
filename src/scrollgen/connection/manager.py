"""Connection manager for the injected wallet.

Keeps a usable (account, network, contract handle) triple:

1. Attach to the provider and subscribe to account/chain notifications
2. Switch the wallet to the target network, registering it if unknown
3. Request account authorization
4. Bind a TokenContract to a signer for the first authorized account

An account change makes the current handle stale; it is not rebuilt behind
the caller's back. A chain change tears the manager down completely and the
owner is told to build a fresh one through `on_reset`.
"""

import logging
from typing import Callable, Optional

from scrollgen.config import Settings, get_settings
from scrollgen.contracts.network import NetworkDescriptor
from scrollgen.contracts.wallet import ConnectResult, WalletSession
from scrollgen.errors import (
    ConfigurationError,
    NetworkSwitchError,
    NoContractError,
    NoProviderError,
    ProviderRpcError,
    ScrollGenError,
    UserRejectedError,
)
from scrollgen.providers.base import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    Disposer,
    WalletProvider,
)
from scrollgen.token.contract import PendingTransaction, TokenContract

logger = logging.getLogger(__name__)


def _short(address: Optional[str]) -> str:
    if not address:
        return "(none)"
    return address[:10] + "..." if len(address) > 10 else address


def _same_account(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


class ContractHandle:
    """Token contract bound to one account for one connection.

    A handle goes stale the moment the active account changes and must not be
    reused afterwards. Calls already in flight finish with the account the
    handle was built for.
    """

    def __init__(self, contract: TokenContract, account: str, network: NetworkDescriptor):
        self.contract = contract
        self.account = account
        self.network = network
        self._stale = False

    @property
    def contract_address(self) -> str:
        return self.contract.address

    @property
    def is_stale(self) -> bool:
        return self._stale

    def invalidate(self) -> None:
        if not self._stale:
            logger.debug(f"Contract handle for {_short(self.account)} invalidated")
        self._stale = True

    async def transfer(self, to: str, amount: int) -> PendingTransaction:
        return await self.contract.transfer(to, amount)

    def __repr__(self) -> str:
        return (
            f"ContractHandle(account={_short(self.account)}, "
            f"chain={self.network.chain_id}, stale={self._stale})"
        )


class ConnectionManager:
    """Owns the relationship with one wallet provider."""

    def __init__(
        self,
        provider: Optional[WalletProvider],
        contract_address: str,
        network: NetworkDescriptor,
        on_reset: Optional[Callable[[int], None]] = None,
    ):
        """Initialize the manager.

        Args:
            provider: Wallet provider, or None when no wallet is installed
            contract_address: Deployed token address ("" = not configured)
            network: Network the wallet must be on
            on_reset: Called with the new chain ID after a chain change has
                torn this manager down
        """
        self.provider = provider
        self.contract_address = contract_address
        self.network = network
        self.on_reset = on_reset

        self.session = WalletSession()
        self.is_connecting = False
        self.last_error: Optional[ScrollGenError] = None
        self.torn_down = False

        self._handle: Optional[ContractHandle] = None
        self._disposers: list[Disposer] = []
        # Bumped on every account change, disconnect and teardown
        self._generation = 0

    @classmethod
    def from_settings(
        cls,
        provider: Optional[WalletProvider],
        settings: Optional[Settings] = None,
        on_reset: Optional[Callable[[int], None]] = None,
    ) -> "ConnectionManager":
        settings = settings or get_settings()
        return cls(
            provider=provider,
            contract_address=settings.contract_address.strip(),
            network=settings.target_network,
            on_reset=on_reset,
        )

    @property
    def account(self) -> Optional[str]:
        return self.session.account_address

    @property
    def handle(self) -> Optional[ContractHandle]:
        """Current contract handle, or None if missing or stale."""
        if self._handle is None or self._handle.is_stale:
            return None
        return self._handle

    # ------------------------------------------------------------------
    # Provider attachment
    # ------------------------------------------------------------------
    def attach_provider(self) -> None:
        """Detect the wallet and subscribe to its notifications.

        Raises:
            NoProviderError: If no wallet is available
        """
        if self.torn_down:
            raise ScrollGenError("Connection was reset by a network change")
        if self.provider is None or not self.provider.is_present():
            raise NoProviderError()

        if not self._disposers:
            self._disposers = [
                self.provider.on(ACCOUNTS_CHANGED, self._on_accounts_changed),
                self.provider.on(CHAIN_CHANGED, self._on_chain_changed),
            ]
            logger.info(f"Attached to wallet provider: {self.provider.name}")

        if not self.session.provider_attached:
            self.session = WalletSession(
                provider_attached=True, network_id=self.session.network_id
            )

    async def restore_session(self) -> Optional[ConnectResult]:
        """Reconnect silently if the wallet already authorized this client.

        Best effort: failures are logged, never raised or stored as last_error.
        """
        try:
            self.attach_provider()
            accounts = await self.provider.get_authorized_accounts()
        except Exception as e:
            logger.warning(f"Session restore skipped: {e}")
            return None

        if not accounts:
            logger.info("No previously authorized accounts")
            return None

        try:
            account = await self._connect()
        except Exception as e:
            logger.warning(f"Session restore failed: {e}")
            self._clear_connection()
            return None

        return ConnectResult(success=True, account=account)

    # ------------------------------------------------------------------
    # Network
    # ------------------------------------------------------------------
    async def ensure_target_network(self) -> None:
        """Put the wallet on the target network.

        Raises:
            NetworkSwitchError: If the switch (or registering the network)
                was rejected or failed
        """
        target = self.network
        try:
            await self.provider.switch_network(target.chain_id)
        except ProviderRpcError as e:
            if not e.is_unrecognized_chain:
                raise NetworkSwitchError(
                    f"Failed to switch to {target.chain_name}: {e.message}"
                ) from e

            logger.info(f"{target.chain_name} unknown to wallet, registering it")
            try:
                await self.provider.register_network(target)
                await self.provider.switch_network(target.chain_id)
            except ProviderRpcError as add_error:
                raise NetworkSwitchError(
                    f"Failed to add {target.chain_name} network"
                ) from add_error

        self.session = self.session.model_copy(update={"network_id": target.chain_id})
        logger.info(f"Wallet on {target.chain_name} ({target.chain_id_hex})")

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------
    async def connect(self) -> ConnectResult:
        """Connect the wallet and build a contract handle.

        Never raises: failures are returned in the result and kept in
        `last_error`, with the session and handle reset to empty.
        """
        self.is_connecting = True
        self.last_error = None

        try:
            account = await self._connect()
        except ScrollGenError as e:
            return self._connect_failed(e)
        except Exception as e:
            logger.error(f"Unexpected connection error: {e}", exc_info=True)
            return self._connect_failed(ScrollGenError(str(e) or "Failed to connect wallet"))
        finally:
            self.is_connecting = False

        logger.info(f"Wallet connected: {_short(account)} on {self.network.chain_name}")
        return ConnectResult(success=True, account=account)

    async def _connect(self) -> str:
        self.attach_provider()

        if not self.contract_address:
            raise ConfigurationError()

        if self.handle is not None:
            # Already connected: only re-prompt if the authorized account moved
            accounts = await self.provider.get_authorized_accounts()
            if accounts and _same_account(accounts[0], self.handle.account):
                logger.debug("Already connected, skipping wallet prompts")
                return self.handle.account

        generation = self._generation

        await self.ensure_target_network()

        try:
            accounts = await self.provider.request_accounts()
        except ProviderRpcError as e:
            if e.is_user_rejection:
                raise UserRejectedError() from e
            raise

        if not accounts:
            raise UserRejectedError("No accounts authorized")

        account = accounts[0]
        signer = await self.provider.get_signer(account)

        if self.torn_down or generation != self._generation:
            raise ScrollGenError("Wallet changed while connecting, please try again")

        if self._handle is not None:
            self._handle.invalidate()
        contract = TokenContract(self.contract_address, self.provider, signer)
        self._handle = ContractHandle(contract, account, self.network)
        self.session = WalletSession(
            provider_attached=True,
            account_address=account,
            network_id=self.network.chain_id,
        )
        return account

    def _connect_failed(self, error: ScrollGenError) -> ConnectResult:
        logger.warning(f"Connection failed: {error.message}")
        self._clear_connection()
        self.last_error = error
        return ConnectResult(success=False, error=error)

    async def refresh_handle(self) -> ContractHandle:
        """Rebuild the handle for the current account after an account change.

        This is the explicit re-confirmation step: the caller decides to sign
        with the new account.

        Raises:
            NoContractError: If no account is connected
        """
        if self.handle is not None:
            return self.handle
        if self.torn_down or self.account is None or not self.contract_address:
            raise NoContractError()

        account = self.account
        generation = self._generation
        try:
            signer = await self.provider.get_signer(account)
        except ProviderRpcError as e:
            raise NoContractError(f"Account {_short(account)} is no longer authorized") from e

        if generation != self._generation:
            raise NoContractError("Wallet changed while refreshing, please try again")

        contract = TokenContract(self.contract_address, self.provider, signer)
        self._handle = ContractHandle(contract, account, self.network)
        logger.info(f"Contract handle rebuilt for {_short(account)}")
        return self._handle

    def disconnect(self) -> None:
        """Forget the account and handle. Purely local: the wallet is not told."""
        self._clear_connection()
        self.session = WalletSession()
        logger.info("Wallet disconnected")

    def _clear_connection(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.invalidate()
        self._handle = None
        if self.session.account_address is not None:
            self.session = self.session.model_copy(update={"account_address": None})

    def teardown(self) -> None:
        """Unsubscribe from the provider and drop all connection state."""
        for dispose in self._disposers:
            dispose()
        self._disposers = []
        self.disconnect()
        self.torn_down = True

    async def __aenter__(self) -> "ConnectionManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.teardown()
        return False

    # ------------------------------------------------------------------
    # Provider notifications
    # ------------------------------------------------------------------
    def _on_accounts_changed(self, accounts: list[str]) -> None:
        if not accounts:
            logger.info("Wallet revoked all accounts")
            self.disconnect()
            return

        new_account = accounts[0]
        if self.account is None:
            # Not connected: only a connect() may adopt an account
            self._generation += 1
            logger.debug(f"Ignoring account {_short(new_account)} while not connected")
            return
        if _same_account(new_account, self.account):
            return

        logger.info(f"Active account changed: {_short(self.account)} -> {_short(new_account)}")
        self._generation += 1
        if self._handle is not None:
            self._handle.invalidate()
        self.session = WalletSession(
            provider_attached=True,
            account_address=new_account,
            network_id=self.session.network_id,
        )

    def _on_chain_changed(self, chain_id) -> None:
        chain_id = int(chain_id, 16) if isinstance(chain_id, str) else int(chain_id)
        if chain_id == self.session.network_id:
            return

        if self.handle is None and chain_id == self.network.chain_id:
            # Our own switch landing while connecting
            self.session = self.session.model_copy(update={"network_id": chain_id})
            return

        logger.warning(f"Network changed to {chain_id}, resetting connection")
        self.teardown()
        if self.on_reset is not None:
            self.on_reset(chain_id)

    def __repr__(self) -> str:
        return (
            f"ConnectionManager(state={self.session.state.value}, "
            f"account={_short(self.account)}, network={self.network.chain_id})"
        )
