"""ERC-20 interface descriptor and calldata helpers.

Only the functions the client touches are described: the transfer call and
the read-only accessors used for token display.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from eth_abi import decode, encode
from web3 import Web3

logger = logging.getLogger(__name__)


# Human-readable interface, as deployed
TOKEN_ABI = [
    "function name() view returns (string)",
    "function symbol() view returns (string)",
    "function decimals() view returns (uint8)",
    "function totalSupply() view returns (uint256)",
    "function balanceOf(address) view returns (uint256)",
    "function transfer(address to, uint256 amount) returns (bool)",
    "function owner() view returns (address)",
    "event Transfer(address indexed from, address indexed to, uint256 value)",
]

# Solidity revert payload selectors
ERROR_STRING_SELECTOR = "0x08c379a0"  # Error(string)
PANIC_SELECTOR = "0x4e487b71"  # Panic(uint256)

PANIC_REASONS = {
    0x01: "assertion failed",
    0x11: "arithmetic underflow or overflow",
    0x12: "division by zero",
    0x32: "array index out of bounds",
}


@dataclass(frozen=True)
class AbiFunction:
    """One callable entry of the interface."""

    name: str
    selector: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    mutating: bool = False


ERC20_FUNCTIONS: dict[str, AbiFunction] = {
    "name": AbiFunction("name", "0x06fdde03", (), ("string",)),
    "symbol": AbiFunction("symbol", "0x95d89b41", (), ("string",)),
    "decimals": AbiFunction("decimals", "0x313ce567", (), ("uint8",)),
    "totalSupply": AbiFunction("totalSupply", "0x18160ddd", (), ("uint256",)),
    "balanceOf": AbiFunction("balanceOf", "0x70a08231", ("address",), ("uint256",)),
    "transfer": AbiFunction(
        "transfer", "0xa9059cbb", ("address", "uint256"), ("bool",), mutating=True
    ),
    "owner": AbiFunction("owner", "0x8da5cb5b", (), ("address",)),
}


def get_function(name: str) -> AbiFunction:
    try:
        return ERC20_FUNCTIONS[name]
    except KeyError:
        raise ValueError(f"Function not in token interface: {name}")


def encode_call(name: str, *args: Any) -> str:
    """Encode a function call as 0x-prefixed calldata.

    Address arguments are checksummed before encoding.
    """
    fn = get_function(name)
    if len(args) != len(fn.inputs):
        raise ValueError(f"{name} expects {len(fn.inputs)} arguments, got {len(args)}")

    values = [
        Web3.to_checksum_address(arg) if abi_type == "address" else arg
        for abi_type, arg in zip(fn.inputs, args)
    ]
    return fn.selector + encode(list(fn.inputs), values).hex()


def decode_call(data: str) -> tuple[AbiFunction, tuple]:
    """Decode calldata back into (function, arguments)."""
    raw = _to_bytes(data)
    selector = "0x" + raw[:4].hex()
    for fn in ERC20_FUNCTIONS.values():
        if fn.selector == selector:
            return fn, tuple(decode(list(fn.inputs), raw[4:])) if fn.inputs else ()
    raise ValueError(f"Unknown selector: {selector}")


def encode_result(name: str, value: Any) -> str:
    """Encode a single return value (used by the dry-run provider)."""
    fn = get_function(name)
    return "0x" + encode(list(fn.outputs), [value]).hex()


def decode_result(name: str, data: str) -> Any:
    """Decode the single return value of an eth_call."""
    fn = get_function(name)
    return decode(list(fn.outputs), _to_bytes(data))[0]


def encode_revert_reason(reason: str) -> str:
    """Encode a revert reason the way Solidity's require() does."""
    return ERROR_STRING_SELECTOR + encode(["string"], [reason]).hex()


def decode_revert_reason(data: Any) -> Optional[str]:
    """Decode a Solidity revert payload.

    Args:
        data: Hex string revert data (Error(string) or Panic(uint256))

    Returns:
        Human-readable reason, or None if the payload is not recognised
    """
    if not isinstance(data, str) or len(data) < 10:
        return None

    selector = data[:10].lower()
    try:
        payload = _to_bytes(data)[4:]
        if selector == ERROR_STRING_SELECTOR:
            return decode(["string"], payload)[0]
        if selector == PANIC_SELECTOR:
            code = decode(["uint256"], payload)[0]
            return f"panic: {PANIC_REASONS.get(code, hex(code))}"
    except Exception as e:
        logger.debug(f"Could not decode revert data {data[:18]}...: {e}")
    return None


def _to_bytes(data: str) -> bytes:
    hex_str = data[2:] if data.startswith("0x") else data
    return bytes.fromhex(hex_str)
