"""
Display formatting for estimates.

Every formatter renders non-finite values as a placeholder instead of
"nan" or "inf". Fixed-decimal output rounds exact ties away from zero.
"""

import math
from decimal import Context, Decimal, ROUND_HALF_UP

PLACEHOLDER = "—"

# Wide enough for the integer digits of any finite float plus the decimals
_FIXED_CONTEXT = Context(prec=400)


def _to_fixed(num: float, decimals: int) -> str:
    """Fixed-decimal string of the exact binary value, ties rounded up."""
    if num == 0:
        num = 0.0  # Drop the sign of negative zero
    exponent = Decimal(1).scaleb(-decimals)
    rounded = Decimal(num).quantize(exponent, rounding=ROUND_HALF_UP, context=_FIXED_CONTEXT)
    return f"{rounded:f}"


def format_count(num: float) -> str:
    """Format a large count with a B/M/K suffix."""
    if not math.isfinite(num):
        return PLACEHOLDER
    if num >= 1e9:
        return f"{_to_fixed(num / 1e9, 2)}B"
    if num >= 1e6:
        return f"{_to_fixed(num / 1e6, 2)}M"
    if num >= 1e3:
        return f"{_to_fixed(num / 1e3, 2)}K"
    return _to_fixed(num, 0)


def format_float(num: float, decimals: int = 2) -> str:
    """Format with a fixed number of decimals."""
    if not math.isfinite(num):
        return PLACEHOLDER
    return _to_fixed(num, decimals)


def format_approx_tb(num: float) -> str:
    """Format terabytes as an approximation, e.g. "~0.07 TB"."""
    if not math.isfinite(num):
        return PLACEHOLDER
    return f"~{format_float(num, 2)} TB"


def format_half_step(num: float) -> str:
    """Format a half-unit quantity: 8.5 stays "8.5", 17.0 becomes "17"."""
    if not math.isfinite(num):
        return PLACEHOLDER
    if num == int(num):
        return f"{int(num)}"
    return f"{num:.1f}"
