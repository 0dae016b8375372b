"""Command-line entry point.

    scrollgen config
    scrollgen connect
    scrollgen info
    scrollgen transfer --to 0x... --amount 2.5
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from scrollgen.config import Settings, get_settings
from scrollgen.connection.manager import ConnectionManager
from scrollgen.contracts.transfers import Confirmed, TransferRequest, TransferStatus
from scrollgen.errors import ScrollGenError
from scrollgen.providers.base import WalletProvider
from scrollgen.providers.factory import get_wallet_provider
from scrollgen.providers.jsonrpc import JsonRpcWalletProvider
from scrollgen.transfer.lifecycle import TransferLifecycle

logger = logging.getLogger(__name__)


class Application:
    """Wires the wallet provider, connection manager and transfer lifecycle."""

    def __init__(self, settings: Optional[Settings] = None, provider: Optional[WalletProvider] = None):
        self.settings = settings or get_settings()
        self.provider = provider or get_wallet_provider(self.settings)
        self.manager = self._build_manager()
        self._watch_task: Optional[asyncio.Task] = None
        self._restore_tasks: list[asyncio.Task] = []

    def _build_manager(self) -> ConnectionManager:
        return ConnectionManager.from_settings(
            self.provider, self.settings, on_reset=self._on_reset
        )

    def _on_reset(self, chain_id: int) -> None:
        # Network changed: nothing built for the old chain survives
        logger.warning(f"Rebuilding connection after switch to chain {chain_id}")
        self.manager = self._build_manager()
        try:
            self.manager.attach_provider()
        except ScrollGenError as e:
            logger.warning(f"Wallet not re-attached: {e.message}")
            return

        task = asyncio.get_running_loop().create_task(self.manager.restore_session())
        self._restore_tasks.append(task)

    async def wait_restored(self) -> None:
        """Wait for reconnects scheduled by network-change resets."""
        while any(not task.done() for task in self._restore_tasks):
            await asyncio.gather(*self._restore_tasks, return_exceptions=True)

    async def start(self) -> ConnectionManager:
        """Restore or establish the wallet connection."""
        if isinstance(self.provider, JsonRpcWalletProvider) and self.provider.is_present():
            self._watch_task = asyncio.create_task(
                self.provider.watch(self.settings.watch_interval)
            )

        result = await self.manager.restore_session()
        if result is None or not result.success:
            result = await self.manager.connect()
        if not result.success:
            raise result.error
        return self.manager

    async def transfer(self, recipient: str, amount: str) -> TransferStatus:
        network = self.settings.target_network
        lifecycle = TransferLifecycle(
            decimals=self.settings.token_decimals,
            confirmation_timeout=self.settings.receipt_timeout,
            poll_interval=self.settings.confirmation_poll_interval,
            network=network,
        )
        lifecycle.on_status(_print_status)

        handle = self.manager.handle
        if handle is None and self.manager.account is not None:
            handle = await self.manager.refresh_handle()

        return await lifecycle.submit(
            TransferRequest(recipient=recipient, amount=amount), handle
        )

    async def close(self) -> None:
        if self._watch_task is not None:
            self._watch_task.cancel()
            await asyncio.gather(self._watch_task, return_exceptions=True)
        for task in self._restore_tasks:
            task.cancel()
        await asyncio.gather(*self._restore_tasks, return_exceptions=True)
        self.manager.teardown()
        await self.provider.aclose()


def _print_status(status: TransferStatus) -> None:
    line = f"[{status.phase.value}] {status.message}"
    tx_ref = getattr(status, "tx_ref", None)
    if tx_ref:
        line += f" ({tx_ref})"
    print(line)
    explorer_url = getattr(status, "explorer_url", None)
    if explorer_url:
        print(f"  View on Explorer: {explorer_url}")


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()

    if args.command == "config":
        print(json.dumps(settings.get_safe_dict(), indent=2))
        return 0

    try:
        app = Application(settings)
    except ScrollGenError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    try:
        manager = await app.start()
        print(f"Connected: {manager.account} on {manager.network.chain_name}")

        if args.command == "info":
            info = await manager.handle.contract.fetch_token_info(manager.account)
            print(f"Token:   {info.name} ({info.symbol})")
            print(f"Address: {info.address}")
            print(f"Supply:  {info.formatted_supply}")
            print(f"Balance: {info.formatted_balance}")
            print(f"Owner:   {info.owner}")

        elif args.command == "transfer":
            status = await app.transfer(args.to, args.amount)
            return 0 if isinstance(status, Confirmed) else 1

        return 0

    except ScrollGenError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        await app.close()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="ScrollGen token wallet client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("config", help="Show effective configuration")
    subparsers.add_parser("connect", help="Connect the wallet")
    subparsers.add_parser("info", help="Show token details and balance")
    transfer = subparsers.add_parser("transfer", help="Send tokens")
    transfer.add_argument("--to", required=True, help="Recipient address")
    transfer.add_argument("--amount", required=True, help="Amount in tokens, e.g. 2.5")

    args = parser.parse_args(argv)

    settings = get_settings()
    log_level = logging.DEBUG if (args.debug or settings.debug) else settings.log_level.upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        return 130


if __name__ == "__main__":
    sys.exit(main())
