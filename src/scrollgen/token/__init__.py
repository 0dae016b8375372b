"""ERC-20 token helpers: interface descriptor, unit conversion, contract access."""

from scrollgen.token.abi import TOKEN_ABI
from scrollgen.token.units import DEFAULT_DECIMALS, format_units, parse_units

__all__ = [
    "TOKEN_ABI",
    "DEFAULT_DECIMALS",
    "format_units",
    "parse_units",
]
