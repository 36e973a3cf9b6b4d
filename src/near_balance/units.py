from __future__ import annotations

from .constants import DEFAULT_FRACTION_DIGITS, YOCTO_DECIMALS


def parse_yocto(value: int | str) -> int:
    """Parse a raw yoctoNEAR amount as returned by the RPC.

    Args:
        value: Decimal integer string (or int) in yoctoNEAR.

    Returns:
        The amount as an arbitrary-precision ``int``.

    Raises:
        ValueError: If the value is not a non-negative base-10 integer.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid yoctoNEAR amount: {value!r}")
    if isinstance(value, int):
        amount = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise ValueError(f"Invalid yoctoNEAR amount: {value!r}")
        amount = int(text)
    if amount < 0:
        raise ValueError(f"yoctoNEAR amount must be non-negative, got {amount}")
    return amount


def format_near_amount(
    yocto: int, fraction_digits: int = DEFAULT_FRACTION_DIGITS
) -> str:
    """Format a yoctoNEAR amount as NEAR with a fixed number of decimals.

    Args:
        yocto: Non-negative amount in yoctoNEAR.
        fraction_digits: Number of fractional digits to keep (0..24).

    Returns:
        A decimal string such as ``"1.5000"``.

    Notes:
        - Rounds half up at the last kept digit, like the NEAR JS SDK.
        - Pure integer arithmetic; no float or Decimal context involved.
    """
    if yocto < 0:
        raise ValueError(f"yoctoNEAR amount must be non-negative, got {yocto}")
    if not 0 <= fraction_digits <= YOCTO_DECIMALS:
        raise ValueError(
            f"fraction_digits {fraction_digits} out of supported range [0, {YOCTO_DECIMALS}]"
        )

    drop = YOCTO_DECIMALS - fraction_digits
    if drop > 0:
        rounded = (yocto + 5 * 10 ** (drop - 1)) // 10**drop
    else:
        rounded = yocto

    if fraction_digits == 0:
        return str(rounded)
    whole, fraction = divmod(rounded, 10**fraction_digits)
    return f"{whole}.{fraction:0{fraction_digits}d}"
