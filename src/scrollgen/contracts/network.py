"""Network descriptor contracts.

A NetworkDescriptor is the immutable record handed to the wallet when it has
to switch to (or first learn about) the target chain.
"""

from pydantic import BaseModel, ConfigDict, Field


class NativeCurrency(BaseModel):
    """Gas currency of a network."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Currency name")
    symbol: str = Field(..., description="Currency ticker")
    decimals: int = Field(default=18, description="Currency decimals")


class NetworkDescriptor(BaseModel):
    """Static description of a network the client can target."""

    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., description="EVM chain ID")
    chain_name: str = Field(..., description="Display name")
    native_currency: NativeCurrency = Field(..., description="Gas currency")
    rpc_urls: tuple[str, ...] = Field(..., description="Public RPC endpoints")
    explorer_urls: tuple[str, ...] = Field(
        default=(), description="Block explorer base URLs"
    )
    is_testnet: bool = Field(default=False, description="Whether this is a testnet")

    @property
    def chain_id_hex(self) -> str:
        """Chain ID in the 0x-prefixed form wallets expect."""
        return hex(self.chain_id)

    def to_add_chain_params(self) -> dict:
        """Render the wallet_addEthereumChain parameter object."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.chain_name,
            "nativeCurrency": {
                "name": self.native_currency.name,
                "symbol": self.native_currency.symbol,
                "decimals": self.native_currency.decimals,
            },
            "rpcUrls": list(self.rpc_urls),
            "blockExplorerUrls": list(self.explorer_urls),
        }

    def tx_url(self, tx_hash: str) -> str | None:
        """Explorer link for a transaction, if the network has an explorer."""
        if not self.explorer_urls:
            return None
        return f"{self.explorer_urls[0].rstrip('/')}/tx/{tx_hash}"
