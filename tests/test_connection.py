"""Tests for the wallet connection manager."""

from unittest.mock import MagicMock

import pytest

from scrollgen.chains import HARDHAT_LOCAL, SCROLL_SEPOLIA
from scrollgen.config import get_settings
from scrollgen.connection.manager import ConnectionManager
from scrollgen.contracts.wallet import SessionState
from scrollgen.errors import (
    REQUEST_PENDING,
    ConfigurationError,
    NetworkSwitchError,
    NoContractError,
    NoProviderError,
    ProviderRpcError,
    ScrollGenError,
    UserRejectedError,
)
from scrollgen.providers.base import ACCOUNTS_CHANGED, CHAIN_CHANGED
from scrollgen.providers.dryrun import DryRunWalletProvider

from conftest import ALICE, BOB, TOKEN


def _methods(provider: DryRunWalletProvider) -> list[str]:
    return [method for method, _ in provider.calls]


class TestAttach:
    """Tests for provider detection."""

    @pytest.mark.asyncio
    async def test_no_provider(self):
        manager = ConnectionManager(None, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert not result.success
        assert isinstance(result.error, NoProviderError)
        assert result.message.startswith("No wallet detected")
        assert manager.session.state == SessionState.UNATTACHED
        assert manager.last_error is result.error

    @pytest.mark.asyncio
    async def test_absent_wallet(self):
        provider = DryRunWalletProvider(present=False)
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert isinstance(result.error, NoProviderError)
        assert provider.calls == []

    def test_attach_registers_listeners_once(self, manager, provider):
        manager.attach_provider()
        manager.attach_provider()

        assert manager.session.state == SessionState.ATTACHED
        assert provider.listener_count(ACCOUNTS_CHANGED) == 1
        assert provider.listener_count(CHAIN_CHANGED) == 1


class TestConnect:
    """Tests for the connect flow."""

    @pytest.mark.asyncio
    async def test_connect_builds_handle(self, manager, provider):
        result = await manager.connect()

        assert result.success
        assert result.account == ALICE
        assert manager.session.state == SessionState.CONNECTED
        assert manager.session.network_id == SCROLL_SEPOLIA.chain_id
        assert manager.handle is not None
        assert manager.handle.account == ALICE
        assert manager.handle.contract_address == TOKEN
        assert manager.is_connecting is False
        assert manager.last_error is None

    @pytest.mark.asyncio
    async def test_missing_contract_address(self, provider):
        manager = ConnectionManager(provider, "", SCROLL_SEPOLIA)

        result = await manager.connect()

        assert isinstance(result.error, ConfigurationError)
        assert "not configured" in result.error.message
        assert provider.count_calls("eth_requestAccounts") == 0
        assert manager.handle is None

    @pytest.mark.asyncio
    async def test_switches_from_other_chain(self):
        provider = DryRunWalletProvider(
            accounts=[ALICE], chain_id=1, known_chains=[1, SCROLL_SEPOLIA.chain_id]
        )
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert result.success
        assert provider.chain_id == SCROLL_SEPOLIA.chain_id
        # Our own switch must not reset the manager
        assert manager.torn_down is False

    @pytest.mark.asyncio
    async def test_registers_unknown_network(self):
        provider = DryRunWalletProvider(accounts=[ALICE], chain_id=1)
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert result.success
        assert _methods(provider)[:4] == [
            "wallet_switchEthereumChain",
            "wallet_addEthereumChain",
            "wallet_switchEthereumChain",
            "eth_requestAccounts",
        ]
        add_params = provider.calls[1][1][0]
        assert add_params["chainId"] == "0x8274f"
        assert add_params["chainName"] == "Scroll Sepolia Testnet"
        assert add_params["nativeCurrency"]["symbol"] == "ETH"

    @pytest.mark.asyncio
    async def test_switch_rejected(self, provider):
        provider.reject.add("wallet_switchEthereumChain")
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert isinstance(result.error, NetworkSwitchError)
        assert provider.count_calls("eth_requestAccounts") == 0
        assert manager.account is None

    @pytest.mark.asyncio
    async def test_register_rejected(self):
        provider = DryRunWalletProvider(accounts=[ALICE], chain_id=1)
        provider.reject.add("wallet_addEthereumChain")
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert isinstance(result.error, NetworkSwitchError)
        assert "Scroll Sepolia" in result.error.message

    @pytest.mark.asyncio
    async def test_user_rejects_accounts(self, manager, provider):
        provider.reject.add("eth_requestAccounts")

        result = await manager.connect()

        assert isinstance(result.error, UserRejectedError)
        assert manager.session.state == SessionState.ATTACHED
        assert manager.handle is None

    @pytest.mark.asyncio
    async def test_request_already_pending(self, manager, provider):
        provider.failures["eth_requestAccounts"] = ProviderRpcError(
            REQUEST_PENDING, "Request of type 'wallet_requestPermissions' already pending"
        )

        result = await manager.connect()

        assert isinstance(result.error, ProviderRpcError)
        assert result.error.code == REQUEST_PENDING
        assert manager.is_connecting is False

    @pytest.mark.asyncio
    async def test_no_accounts_authorized(self):
        provider = DryRunWalletProvider(accounts=[], chain_id=SCROLL_SEPOLIA.chain_id)
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)

        result = await manager.connect()

        assert isinstance(result.error, UserRejectedError)

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, connected, provider):
        handle = connected.handle

        result = await connected.connect()

        assert result.success
        assert connected.handle is handle
        assert provider.count_calls("eth_requestAccounts") == 1

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, manager, provider):
        provider.reject.add("eth_requestAccounts")
        assert not (await manager.connect()).success

        provider.reject.clear()
        result = await manager.connect()

        assert result.success
        assert manager.last_error is None

    @pytest.mark.asyncio
    async def test_account_change_while_connecting(self, manager, provider, monkeypatch):
        original = provider.get_signer

        async def switching_get_signer(address):
            signer = await original(address)
            provider.set_accounts([BOB])
            return signer

        monkeypatch.setattr(provider, "get_signer", switching_get_signer)

        result = await manager.connect()

        assert not result.success
        assert "changed while connecting" in result.error.message
        assert manager.handle is None

    def test_from_settings(self, provider):
        manager = ConnectionManager.from_settings(provider, get_settings())

        assert manager.contract_address == TOKEN
        assert manager.network == SCROLL_SEPOLIA


class TestRestoreSession:
    """Tests for silent reconnection."""

    @pytest.mark.asyncio
    async def test_nothing_to_restore(self, manager, provider):
        assert await manager.restore_session() is None
        assert provider.count_calls("eth_requestAccounts") == 0
        assert manager.last_error is None

    @pytest.mark.asyncio
    async def test_restores_authorized_account(self, manager, provider):
        await provider.request_accounts()

        result = await manager.restore_session()

        assert result.success
        assert manager.handle.account == ALICE

    @pytest.mark.asyncio
    async def test_restore_while_connected_does_not_prompt(self, connected, provider):
        handle = connected.handle

        result = await connected.restore_session()

        assert result.success
        assert connected.handle is handle
        assert provider.count_calls("eth_requestAccounts") == 1
        assert provider.count_calls("wallet_switchEthereumChain") == 1

    @pytest.mark.asyncio
    async def test_restore_failure_is_silent(self, manager, provider):
        await provider.request_accounts()
        provider.reject.add("wallet_switchEthereumChain")

        assert await manager.restore_session() is None
        assert manager.last_error is None
        assert manager.handle is None

    @pytest.mark.asyncio
    async def test_restore_without_wallet(self):
        manager = ConnectionManager(None, TOKEN, SCROLL_SEPOLIA)
        assert await manager.restore_session() is None


class TestNotifications:
    """Tests for reacting to wallet-side changes."""

    @pytest.mark.asyncio
    async def test_account_change_makes_handle_stale(self, connected, provider):
        old = connected.handle

        provider.set_accounts([BOB])

        assert old.is_stale
        assert connected.handle is None
        assert connected.account == BOB

    @pytest.mark.asyncio
    async def test_same_account_is_ignored(self, connected, provider):
        handle = connected.handle

        provider.set_accounts([ALICE.upper().replace("0X", "0x")])

        assert connected.handle is handle

    @pytest.mark.asyncio
    async def test_refresh_handle_after_account_change(self, connected, provider):
        provider.set_accounts([BOB])

        handle = await connected.refresh_handle()

        assert handle.account == BOB
        assert connected.handle is handle

    @pytest.mark.asyncio
    async def test_account_change_after_disconnect_is_ignored(self, connected, provider):
        connected.disconnect()

        provider.set_accounts([BOB])

        assert connected.session.state == SessionState.UNATTACHED
        assert connected.account is None
        with pytest.raises(NoContractError):
            await connected.refresh_handle()

    @pytest.mark.asyncio
    async def test_account_after_revocation_needs_connect(self, connected, provider):
        provider.set_accounts([])
        provider.set_accounts([BOB])

        assert connected.account is None
        assert connected.handle is None

        result = await connected.connect()

        assert result.account == BOB
        assert connected.handle.account == BOB

    @pytest.mark.asyncio
    async def test_refresh_without_account(self, manager):
        with pytest.raises(NoContractError):
            await manager.refresh_handle()

    @pytest.mark.asyncio
    async def test_accounts_revoked(self, connected, provider):
        old = connected.handle

        provider.set_accounts([])

        assert old.is_stale
        assert connected.handle is None
        assert not connected.session.is_connected

    @pytest.mark.asyncio
    async def test_chain_change_tears_down(self, provider):
        on_reset = MagicMock()
        manager = ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA, on_reset=on_reset)
        assert (await manager.connect()).success
        old = manager.handle

        provider.set_chain(HARDHAT_LOCAL.chain_id)

        on_reset.assert_called_once_with(HARDHAT_LOCAL.chain_id)
        assert manager.torn_down
        assert old.is_stale
        assert manager.session.state == SessionState.UNATTACHED
        assert provider.listener_count(ACCOUNTS_CHANGED) == 0
        assert provider.listener_count(CHAIN_CHANGED) == 0

    @pytest.mark.asyncio
    async def test_torn_down_manager_refuses_connect(self, connected, provider):
        provider.set_chain(HARDHAT_LOCAL.chain_id)

        result = await connected.connect()

        assert not result.success
        assert isinstance(result.error, ScrollGenError)

    @pytest.mark.asyncio
    async def test_same_chain_notification_is_ignored(self, connected, provider):
        handle = connected.handle

        provider.emit(CHAIN_CHANGED, hex(SCROLL_SEPOLIA.chain_id))

        assert connected.handle is handle
        assert not connected.torn_down


class TestDisconnect:
    """Tests for disconnect and teardown."""

    @pytest.mark.asyncio
    async def test_disconnect_is_local(self, connected, provider):
        old = connected.handle

        connected.disconnect()

        assert old.is_stale
        assert connected.session.state == SessionState.UNATTACHED
        # Wallet still has the account authorized
        assert await provider.get_authorized_accounts() == [ALICE]
        assert provider.listener_count(ACCOUNTS_CHANGED) == 1

    @pytest.mark.asyncio
    async def test_reconnect_after_disconnect(self, connected):
        connected.disconnect()

        result = await connected.connect()

        assert result.success
        assert connected.handle is not None

    @pytest.mark.asyncio
    async def test_context_manager_tears_down(self, provider):
        async with ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA) as manager:
            assert (await manager.connect()).success

        assert manager.torn_down
        assert provider.listener_count(ACCOUNTS_CHANGED) == 0
