"""Token contract capability bound to an address and a wallet provider.

Read accessors go through eth_call. The transfer call goes through a Signer,
so the wallet signs and broadcasts it; the result is a PendingTransaction
that can be awaited for confirmation.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from scrollgen.errors import (
    EXECUTION_REVERTED,
    ConfirmationTimeoutError,
    ContractExecutionError,
    NoContractError,
    ProviderRpcError,
    UserRejectedError,
)
from scrollgen.providers.base import Signer, WalletProvider
from scrollgen.token import abi
from scrollgen.token.units import format_units

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


@dataclass
class TokenInfo:
    """Token metadata and one account's balance, for display."""

    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: int
    balance: int
    owner: str

    @property
    def formatted_balance(self) -> str:
        return format_units(self.balance, self.decimals)

    @property
    def formatted_supply(self) -> str:
        return format_units(self.total_supply, self.decimals)


class TokenContract:
    """ERC-20 contract reached through a wallet provider."""

    abi = abi.TOKEN_ABI

    def __init__(
        self,
        address: str,
        provider: WalletProvider,
        signer: Optional[Signer] = None,
    ):
        self.address = address
        self.provider = provider
        self.signer = signer

    async def _read(self, name: str, *args: Any) -> Any:
        data = abi.encode_call(name, *args)
        result = await self.provider.call({"to": self.address, "data": data})
        return abi.decode_result(name, result)

    async def name(self) -> str:
        return await self._read("name")

    async def symbol(self) -> str:
        return await self._read("symbol")

    async def decimals(self) -> int:
        return await self._read("decimals")

    async def total_supply(self) -> int:
        return await self._read("totalSupply")

    async def balance_of(self, account: str) -> int:
        return await self._read("balanceOf", account)

    async def owner(self) -> str:
        return await self._read("owner")

    async def fetch_token_info(self, account: str) -> TokenInfo:
        """Read all display fields in one go."""
        name, symbol, decimals, supply, balance, owner = await asyncio.gather(
            self.name(),
            self.symbol(),
            self.decimals(),
            self.total_supply(),
            self.balance_of(account),
            self.owner(),
        )
        return TokenInfo(
            address=self.address,
            name=name,
            symbol=symbol,
            decimals=decimals,
            total_supply=supply,
            balance=balance,
            owner=owner,
        )

    async def transfer(self, to: str, amount: int) -> "PendingTransaction":
        """Send `amount` base units to `to`.

        Returns as soon as the wallet hands back a transaction hash.

        Raises:
            NoContractError: If the contract has no signer
            UserRejectedError: If the user declined to sign
            ContractExecutionError: If the wallet refused the call
        """
        if self.signer is None:
            raise NoContractError("Contract is read-only (no signer)")

        tx = {"to": self.address, "data": abi.encode_call("transfer", to, amount)}
        try:
            tx_hash = await self.signer.send_transaction(tx)
        except ProviderRpcError as e:
            if e.is_user_rejection:
                raise UserRejectedError("Transaction rejected in wallet")
            raise ContractExecutionError(_reason_from_rpc_error(e))

        logger.info(f"Transfer broadcast: {tx_hash}")
        return PendingTransaction(self, tx_hash, {"from": self.signer.address, **tx})

    def __repr__(self) -> str:
        signer = self.signer.address[:10] + "..." if self.signer else None
        return f"TokenContract(address={self.address}, signer={signer})"


class PendingTransaction:
    """A broadcast transaction that has not been confirmed yet."""

    def __init__(self, contract: TokenContract, tx_hash: str, tx: dict):
        self.contract = contract
        self.tx_hash = tx_hash
        self.tx = tx

    async def wait(
        self,
        timeout: Optional[float] = None,
        poll_interval: float = 2.0,
    ) -> dict:
        """Wait for the transaction to be mined.

        Args:
            timeout: Seconds to wait (None = rely on the network)
            poll_interval: Seconds between receipt polls

        Returns:
            Transaction receipt dict

        Raises:
            ConfirmationTimeoutError: If not confirmed within timeout
            ContractExecutionError: If the transaction reverted or the
                provider reported an error
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        provider = self.contract.provider

        while True:
            if timeout is not None and loop.time() - start_time > timeout:
                raise ConfirmationTimeoutError(self.tx_hash, timeout)

            try:
                receipt = await provider.get_transaction_receipt(self.tx_hash)
            except ProviderRpcError as e:
                raise ContractExecutionError(_reason_from_rpc_error(e), self.tx_hash)

            if receipt:
                if _to_int(receipt.get("status", 0)) == 1:
                    return receipt
                reason = await self._revert_reason(receipt)
                logger.warning(f"Transaction {self.tx_hash} reverted: {reason}")
                raise ContractExecutionError(reason, self.tx_hash)

            await asyncio.sleep(poll_interval)

    async def _revert_reason(self, receipt: dict) -> Optional[str]:
        """Replay the call at the receipt block to recover the revert reason."""
        block = receipt.get("blockNumber") or "latest"
        try:
            await self.contract.provider.call(self.tx, block)
        except ProviderRpcError as e:
            return _reason_from_rpc_error(e)
        return None

    def __repr__(self) -> str:
        return f"PendingTransaction(tx_hash={self.tx_hash})"


def _reason_from_rpc_error(error: ProviderRpcError) -> Optional[str]:
    """Prefer the contract-supplied revert reason over the generic message."""
    data = error.data
    if isinstance(data, dict):
        data = data.get("data")
    decoded = abi.decode_revert_reason(data)
    if decoded:
        return decoded
    if error.code == EXECUTION_REVERTED and error.message.startswith("execution reverted: "):
        return error.message[len("execution reverted: "):]
    return error.message or None
