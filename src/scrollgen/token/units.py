"""Conversion between display amounts and integer token base units.

Amounts are typed by the user as decimal strings ("2.5") and sent on-chain
as integers scaled by 10**decimals. Conversion is exact: anything that would
lose precision or overflow uint256 is rejected instead of truncated.
"""

import re
from decimal import Decimal, InvalidOperation, localcontext

from scrollgen.errors import InvalidAmountError

DEFAULT_DECIMALS = 18
MAX_UINT256 = 2**256 - 1

# Plain positional decimals only: no sign, exponent, separators or whitespace inside
_AMOUNT_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")


def parse_units(amount: str, decimals: int = DEFAULT_DECIMALS) -> int:
    """Convert a decimal string to integer base units.

    Args:
        amount: Decimal string, e.g. "2.5"
        decimals: Token decimal precision

    Returns:
        Amount scaled by 10**decimals

    Raises:
        InvalidAmountError: If the amount is empty, malformed, not positive,
            has more fractional digits than the token supports, or overflows
            uint256
    """
    if amount is None or not amount.strip():
        raise InvalidAmountError("Amount is required")

    text = amount.strip()
    if not _AMOUNT_RE.match(text):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    with localcontext() as ctx:
        ctx.prec = 120
        try:
            scaled = Decimal(text).scaleb(decimals)
        except InvalidOperation:
            raise InvalidAmountError(f"Invalid amount: {amount!r}")

        if scaled != scaled.to_integral_value():
            raise InvalidAmountError(
                f"Amount {amount} has more than {decimals} decimal places"
            )
        value = int(scaled)

    if value <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    if value > MAX_UINT256:
        raise InvalidAmountError("Amount is too large")

    return value


def format_units(value: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render integer base units as a decimal string.

    Always keeps at least one fractional digit, so 10**18 renders as "1.0".
    """
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"
