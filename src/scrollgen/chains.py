"""Known networks for the ScrollGen token.

The client targets exactly one of these at a time (Settings.network).
Scroll Sepolia is the deployment network; the local Hardhat chain is used
for development against `npx hardhat node`.
"""

import os

from scrollgen.contracts.network import NativeCurrency, NetworkDescriptor

ETHER = NativeCurrency(name="Ether", symbol="ETH", decimals=18)


# ======================
# Network Descriptors
# ======================

SCROLL_SEPOLIA = NetworkDescriptor(
    chain_id=534351,  # 0x8274f
    chain_name="Scroll Sepolia Testnet",
    native_currency=ETHER,
    rpc_urls=(os.getenv("SCROLL_SEPOLIA_RPC", "https://sepolia-rpc.scroll.io/"),),
    explorer_urls=("https://sepolia.scrollscan.com/",),
    is_testnet=True,
)

SCROLL_MAINNET = NetworkDescriptor(
    chain_id=534352,
    chain_name="Scroll",
    native_currency=ETHER,
    rpc_urls=(os.getenv("SCROLL_RPC", "https://rpc.scroll.io/"),),
    explorer_urls=("https://scrollscan.com/",),
)

HARDHAT_LOCAL = NetworkDescriptor(
    chain_id=1337,
    chain_name="Hardhat Local",
    native_currency=ETHER,
    rpc_urls=("http://127.0.0.1:8545/",),
    is_testnet=True,
)

NETWORKS: dict[str, NetworkDescriptor] = {
    "scroll_sepolia": SCROLL_SEPOLIA,
    "scroll": SCROLL_MAINNET,
    "hardhat": HARDHAT_LOCAL,
}


def get_network_by_chain_id(chain_id: int) -> NetworkDescriptor | None:
    """Look up a known network by its chain ID."""
    for descriptor in NETWORKS.values():
        if descriptor.chain_id == chain_id:
            return descriptor
    return None
