"""Dry-run wallet provider for testing (no real wallet or chain)."""

import asyncio
import hashlib
import logging
from typing import Any, Iterable, Optional

from scrollgen.errors import (
    EXECUTION_REVERTED,
    UNAUTHORIZED,
    UNRECOGNIZED_CHAIN,
    USER_REJECTED,
    ProviderRpcError,
)
from scrollgen.providers.base import ACCOUNTS_CHANGED, CHAIN_CHANGED, WalletProvider
from scrollgen.token import abi

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT = "0x5b38da6a701c568545dcfcb03fcb875f56beddc4"
DEFAULT_TOKEN_ADDRESS = "0xd9145cce52d386f254917e481eb44e9943f39138"
INSUFFICIENT_BALANCE = "ERC20: transfer amount exceeds balance"


class DryRunWalletProvider(WalletProvider):
    """Simulated wallet holding accounts, a chain and one ERC-20 ledger.

    Every request is a suspension point. Transactions are mined after
    `confirm_after` receipt polls. `reject` makes the simulated user decline
    the named methods; `failures` injects arbitrary provider errors.
    """

    def __init__(
        self,
        accounts: Optional[Iterable[str]] = None,
        chain_id: int = 1,
        known_chains: Optional[Iterable[int]] = None,
        present: bool = True,
        token_address: str = DEFAULT_TOKEN_ADDRESS,
        balances: Optional[dict[str, int]] = None,
        confirm_after: int = 1,
        token_name: str = "ScrollGen Token",
        token_symbol: str = "SGT",
    ):
        super().__init__()
        self.present = present
        self.wallet_accounts = list(accounts if accounts is not None else [DEFAULT_ACCOUNT])
        self.authorized: list[str] = []
        self.chain_id = chain_id
        self.known_chains = set(known_chains if known_chains is not None else [chain_id])
        self.known_chains.add(chain_id)

        self.token_address = token_address
        self.token_name = token_name
        self.token_symbol = token_symbol
        self.owner = self.wallet_accounts[0] if self.wallet_accounts else DEFAULT_ACCOUNT
        self.balances: dict[str, int] = {
            addr.lower(): amount for addr, amount in (balances or {}).items()
        }

        self.confirm_after = confirm_after
        self.block_number = 0
        self.reject: set[str] = set()
        self.failures: dict[str, ProviderRpcError] = {}
        self.calls: list[tuple[str, list]] = []
        self._transactions: dict[str, dict] = {}
        self._dropped: set[str] = set()

    @property
    def name(self) -> str:
        return "dryrun"

    def is_present(self) -> bool:
        return self.present

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        params = params or []
        self.calls.append((method, params))
        await asyncio.sleep(0)

        if method in self.failures:
            raise self.failures[method]
        if method in self.reject:
            raise ProviderRpcError(USER_REJECTED, "User rejected the request.")

        handler = getattr(self, f"_rpc_{method}", None)
        if handler is None:
            raise ProviderRpcError(-32601, f"Method not found: {method}")
        return handler(params)

    def count_calls(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)

    # ------------------------------------------------------------------
    # Simulation controls
    # ------------------------------------------------------------------
    def set_accounts(self, accounts: list[str]) -> None:
        """Simulate the user switching or revoking accounts in the wallet."""
        self.wallet_accounts = list(accounts)
        self.authorized = list(accounts)
        self.emit(ACCOUNTS_CHANGED, list(accounts))

    def set_chain(self, chain_id: int) -> None:
        """Simulate the user switching chains in the wallet."""
        self.known_chains.add(chain_id)
        self.chain_id = chain_id
        self.emit(CHAIN_CHANGED, hex(chain_id))

    def mint(self, address: str, amount: int) -> None:
        key = address.lower()
        self.balances[key] = self.balances.get(key, 0) + amount

    def balance_of(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)

    def drop(self, tx_hash: str) -> None:
        """Simulate a dropped transaction that will never be mined."""
        self._dropped.add(tx_hash)

    # ------------------------------------------------------------------
    # RPC handlers
    # ------------------------------------------------------------------
    def _rpc_eth_accounts(self, params: list) -> list[str]:
        return list(self.authorized)

    def _rpc_eth_requestAccounts(self, params: list) -> list[str]:
        self.authorized = list(self.wallet_accounts)
        return list(self.authorized)

    def _rpc_eth_chainId(self, params: list) -> str:
        return hex(self.chain_id)

    def _rpc_eth_blockNumber(self, params: list) -> str:
        return hex(self.block_number)

    def _rpc_wallet_switchEthereumChain(self, params: list) -> None:
        chain_id = int(params[0]["chainId"], 16)
        if chain_id not in self.known_chains:
            raise ProviderRpcError(
                UNRECOGNIZED_CHAIN,
                f"Unrecognized chain ID {hex(chain_id)}. Try adding the chain first.",
            )
        if chain_id != self.chain_id:
            self.chain_id = chain_id
            self.emit(CHAIN_CHANGED, hex(chain_id))
        return None

    def _rpc_wallet_addEthereumChain(self, params: list) -> None:
        chain_id = int(params[0]["chainId"], 16)
        self.known_chains.add(chain_id)
        logger.debug(f"Dry-run wallet learned chain {params[0].get('chainName')}")
        return None

    def _rpc_eth_sendTransaction(self, params: list) -> str:
        tx = params[0]
        sender = tx.get("from", "")
        if sender.lower() not in {a.lower() for a in self.authorized}:
            raise ProviderRpcError(UNAUTHORIZED, f"Account {sender} is not authorized")

        nonce = len(self._transactions)
        tx_hash = "0x" + hashlib.sha256(
            f"{sender}:{nonce}:{tx.get('data', '')}".encode()
        ).hexdigest()

        revert = self._simulate(tx)
        self._transactions[tx_hash] = {"tx": tx, "polls": 0, "revert": revert, "receipt": None}
        return tx_hash

    def _rpc_eth_getTransactionReceipt(self, params: list) -> Optional[dict]:
        tx_hash = params[0]
        record = self._transactions.get(tx_hash)
        if record is None or tx_hash in self._dropped:
            return None
        if record["receipt"] is not None:
            return record["receipt"]

        record["polls"] += 1
        if record["polls"] < self.confirm_after:
            return None

        self.block_number += 1
        tx = record["tx"]
        if record["revert"] is None:
            self._apply(tx)
        record["receipt"] = {
            "transactionHash": tx_hash,
            "blockNumber": hex(self.block_number),
            "from": tx.get("from"),
            "to": tx.get("to"),
            "status": "0x0" if record["revert"] else "0x1",
            "logs": [],
        }
        return record["receipt"]

    def _rpc_eth_call(self, params: list) -> str:
        tx = params[0]
        if (tx.get("to") or "").lower() != self.token_address.lower():
            return "0x"

        fn, args = abi.decode_call(tx.get("data", "0x"))
        if fn.name == "transfer":
            revert = self._simulate(tx)
            if revert:
                raise ProviderRpcError(
                    EXECUTION_REVERTED,
                    f"execution reverted: {revert}",
                    abi.encode_revert_reason(revert),
                )
            return abi.encode_result("transfer", True)
        if fn.name == "balanceOf":
            return abi.encode_result("balanceOf", self.balance_of(args[0]))

        values = {
            "name": self.token_name,
            "symbol": self.token_symbol,
            "decimals": 18,
            "totalSupply": sum(self.balances.values()),
            "owner": self.owner,
        }
        return abi.encode_result(fn.name, values[fn.name])

    # ------------------------------------------------------------------
    # Token ledger
    # ------------------------------------------------------------------
    def _simulate(self, tx: dict) -> Optional[str]:
        """Return the revert reason the transfer would hit, or None."""
        if (tx.get("to") or "").lower() != self.token_address.lower():
            return None
        fn, args = abi.decode_call(tx.get("data", "0x"))
        if fn.name != "transfer":
            return None
        _, amount = args
        if self.balance_of(tx.get("from", "")) < amount:
            return INSUFFICIENT_BALANCE
        return None

    def _apply(self, tx: dict) -> None:
        if (tx.get("to") or "").lower() != self.token_address.lower():
            return
        fn, args = abi.decode_call(tx.get("data", "0x"))
        if fn.name != "transfer":
            return
        recipient, amount = args
        sender = tx["from"].lower()
        self.balances[sender] = self.balances.get(sender, 0) - amount
        self.mint(recipient, amount)
