"""
Palette - Native Pixel Codes for the 7in3e Panel
================================================
The controller stores one 4-bit code per pixel. Only six codes drive a
defined colour; 0x4 and 0x7 are reserved by the panel and rejected here.
"""

from ..errors import InvalidColorError

# =============================================================================
# Color Constants
# =============================================================================

BLACK = 0x0
WHITE = 0x1
YELLOW = 0x2
RED = 0x3
BLUE = 0x5
GREEN = 0x6

COLORS = {
    "BLACK": BLACK,
    "WHITE": WHITE,
    "YELLOW": YELLOW,
    "RED": RED,
    "BLUE": BLUE,
    "GREEN": GREEN,
}

_VALID_CODES = frozenset(COLORS.values())
_NIBBLE_MASK = 0x0F


def is_valid(code) -> bool:
    """Check whether code is one of the palette codes."""
    return isinstance(code, int) and code in _VALID_CODES


def check_color(code) -> int:
    """Return code unchanged, or raise InvalidColorError."""
    if not is_valid(code):
        raise InvalidColorError(code)
    return code


def fill_byte(code: int) -> int:
    """Byte holding the same code in both nibbles."""
    check_color(code)
    return (code << 4) | (code & _NIBBLE_MASK)


def name(code: int) -> str:
    """Human-readable palette name (for logs)."""
    for key, value in COLORS.items():
        if value == code:
            return key
    return f"UNKNOWN(0x{code:X})"
