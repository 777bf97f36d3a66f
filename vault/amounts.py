"""
amounts.py - Conversions and checked arithmetic between the two decimal scales

Native amounts carry 9 decimal places, fixed-point (debt token) amounts 18.
Conversion down to native truncates toward zero, so a caller never extracts
more native value than a fixed-point balance justifies.

Every helper works on Python ints and enforces the width of the host
platform's integer type explicitly, raising Overflow instead of wrapping.
"""

from __future__ import annotations
import re

from .core import (
    NATIVE_DECIMALS, FIXED_POINT_DECIMALS, ONE_NATIVE,
    NATIVE_TO_FIXED_POINT, U256_MAX, U512_MAX,
    Overflow,
)


DECIMAL_INPUT_REGEX = re.compile(r"^\d*(?:\.\d*)?$")

# Fractional digits shown by the formatters.
DISPLAY_DECIMALS = 4


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def checked_add(a: int, b: int, bound: int = U512_MAX) -> int:
    result = a + b
    if result > bound:
        raise Overflow(f"{a} + {b} exceeds {bound.bit_length()}-bit range")
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise Overflow(f"{a} - {b} underflows")
    return a - b


def checked_mul(a: int, b: int, bound: int = U512_MAX) -> int:
    result = a * b
    if result > bound:
        raise Overflow(f"{a} * {b} exceeds {bound.bit_length()}-bit range")
    return result


# ============================================================================
# SCALE CONVERSION
# ============================================================================

def to_fixed_point(native: int) -> int:
    """Native amount (9 decimals) to fixed-point (18 decimals)."""
    return checked_mul(native, NATIVE_TO_FIXED_POINT, U256_MAX)


def to_native(fixed_point: int) -> int:
    """Fixed-point amount to native, truncating toward zero."""
    return fixed_point // NATIVE_TO_FIXED_POINT


# ============================================================================
# DISPLAY
# ============================================================================

def _format_scaled(amount: int, decimals: int) -> str:
    unit = 10 ** decimals
    whole, frac = divmod(amount, unit)
    return f"{whole}.{str(frac).rjust(decimals, '0')[:DISPLAY_DECIMALS]}"


def format_native(native: int) -> str:
    """
    Render a native amount as whole units with four truncated decimals.

    >>> format_native(1_500_000_000)
    '1.5000'
    """
    return _format_scaled(native, NATIVE_DECIMALS)


def format_fixed_point(fixed_point: int) -> str:
    """Render a fixed-point amount as whole units with four truncated decimals."""
    return _format_scaled(fixed_point, FIXED_POINT_DECIMALS)


def normalize_decimal_input(text: str) -> str:
    """
    Clean free-form user input into a decimal string.

    Strips anything that is not a digit or dot, keeps only the first dot,
    and prefixes a bare leading dot with zero.
    """
    trimmed = text.strip()
    if not trimmed:
        return ""
    cleaned = re.sub(r"[^\d.]", "", trimmed)
    first_dot = cleaned.find(".")
    if first_dot != -1:
        cleaned = cleaned[:first_dot + 1] + cleaned[first_dot + 1:].replace(".", "")
    if cleaned.startswith("."):
        return f"0{cleaned}"
    return cleaned


def parse_native(text: str) -> int:
    """
    Parse a decimal string of whole units into a native amount.

    Digits past the ninth decimal place are dropped. Empty or malformed
    input parses to 0.
    """
    normalized = text.strip()
    if not normalized or not DECIMAL_INPUT_REGEX.match(normalized):
        return 0
    whole_part, _, frac_part = normalized.partition(".")
    whole = int(whole_part) if whole_part else 0
    frac = 0
    if frac_part:
        frac = int(frac_part[:NATIVE_DECIMALS].ljust(NATIVE_DECIMALS, "0"))
    return whole * ONE_NATIVE + frac
