"""Pytest configuration and fixtures."""

import os

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["WALLET_PROVIDER"] = "dryrun"
os.environ["CONTRACT_ADDRESS"] = "0xd9145cce52d386f254917e481eb44e9943f39138"
os.environ["NETWORK"] = "scroll_sepolia"

from scrollgen.chains import SCROLL_SEPOLIA
from scrollgen.config import get_settings
from scrollgen.connection.manager import ConnectionManager
from scrollgen.providers.dryrun import DryRunWalletProvider
from scrollgen.providers.factory import reset_wallet_provider
from scrollgen.transfer.lifecycle import TransferLifecycle

ALICE = "0x5b38da6a701c568545dcfcb03fcb875f56beddc4"
BOB = "0xab8483f64d9c6d1ecf9b849ae677dd3315835cb2"
CAROL = "0x4b20993bc481177ec7e8f571cecae8a9e22c02db"
TOKEN = "0xd9145cce52d386f254917e481eb44e9943f39138"

ONE_TOKEN = 10**18


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings and provider singletons between tests."""
    get_settings.cache_clear()
    reset_wallet_provider()
    yield
    get_settings.cache_clear()
    reset_wallet_provider()


@pytest.fixture
def provider() -> DryRunWalletProvider:
    """Wallet holding Alice, already on Scroll Sepolia, Alice owns 100 tokens."""
    return DryRunWalletProvider(
        accounts=[ALICE],
        chain_id=SCROLL_SEPOLIA.chain_id,
        token_address=TOKEN,
        balances={ALICE: 100 * ONE_TOKEN},
    )


@pytest.fixture
def manager(provider) -> ConnectionManager:
    return ConnectionManager(provider, TOKEN, SCROLL_SEPOLIA)


@pytest_asyncio.fixture
async def connected(manager) -> ConnectionManager:
    result = await manager.connect()
    assert result.success, result.error
    return manager


@pytest.fixture
def lifecycle() -> TransferLifecycle:
    return TransferLifecycle(poll_interval=0, network=SCROLL_SEPOLIA)
