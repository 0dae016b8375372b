"""JSON-RPC wallet provider over HTTP.

Talks EIP-1193 methods to a wallet bridge or a development node with
unlocked accounts (e.g. `npx hardhat node`). HTTP has no push channel, so
account and chain changes are detected by polling in `watch()`.
"""

import asyncio
import itertools
import logging
from typing import Any, Optional

import httpx

from scrollgen.errors import INTERNAL_ERROR, ProviderRpcError
from scrollgen.providers.base import ACCOUNTS_CHANGED, CHAIN_CHANGED, WalletProvider

logger = logging.getLogger(__name__)


class JsonRpcWalletProvider(WalletProvider):
    """Wallet provider reached through an HTTP JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__()
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)
        self._last_accounts: Optional[list[str]] = None
        self._last_chain_id: Optional[int] = None

    @property
    def name(self) -> str:
        return "jsonrpc"

    def is_present(self) -> bool:
        return bool(self.rpc_url)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        try:
            response = await self._get_client().post(self.rpc_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Wallet RPC {method} failed: {e}")
            raise ProviderRpcError(INTERNAL_ERROR, f"Wallet unreachable: {e}")

        if response.status_code != 200:
            raise ProviderRpcError(
                INTERNAL_ERROR, f"Wallet RPC HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Wallet RPC {method} returned a non-JSON body: {e}")
            raise ProviderRpcError(INTERNAL_ERROR, "Wallet returned an invalid response")
        if not isinstance(data, dict):
            raise ProviderRpcError(INTERNAL_ERROR, "Wallet returned an invalid response")

        error = data.get("error")
        if error:
            raise ProviderRpcError(
                int(error.get("code", INTERNAL_ERROR)),
                error.get("message", "Unknown wallet error"),
                error.get("data"),
            )

        return data.get("result")

    async def poll_changes(self) -> None:
        """Compare accounts and chain with the last poll and emit changes."""
        accounts = await self.get_authorized_accounts()
        chain_id = await self.get_chain_id()

        if self._last_accounts is not None and accounts != self._last_accounts:
            logger.info(f"Accounts changed: {len(accounts)} authorized")
            self.emit(ACCOUNTS_CHANGED, accounts)
        if self._last_chain_id is not None and chain_id != self._last_chain_id:
            logger.info(f"Chain changed: {self._last_chain_id} -> {chain_id}")
            self.emit(CHAIN_CHANGED, hex(chain_id))

        self._last_accounts = accounts
        self._last_chain_id = chain_id

    async def watch(self, interval: float = 2.0) -> None:
        """Poll for account/chain changes until cancelled."""
        logger.debug(f"Watching {self.rpc_url} every {interval}s")
        while True:
            try:
                await self.poll_changes()
            except ProviderRpcError as e:
                logger.warning(f"Change poll failed: {e.message}")
            await asyncio.sleep(interval)

    async def aclose(self) -> None:
        await super().aclose()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
