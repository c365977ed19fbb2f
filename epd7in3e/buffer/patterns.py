"""
Built-in Test Patterns
======================
Fixed frames used to check wiring and colour rendering without any
caller-supplied image.

    PATTERN_BLOCKS  Six horizontal bands, top to bottom:
                    BLACK, YELLOW, RED, BLUE, GREEN, WHITE
    PATTERN_BARS    Six vertical bars, left to right, in palette order:
                    BLACK, WHITE, YELLOW, RED, BLUE, GREEN

Frames are built on first use and cached (192000 bytes each).
"""

from .framebuffer import PANEL_HEIGHT, PANEL_WIDTH, row_bytes
from .palette import BLACK, BLUE, GREEN, RED, WHITE, YELLOW, fill_byte

PATTERN_BLOCKS = "blocks"
PATTERN_BARS = "bars"

PATTERNS = (PATTERN_BLOCKS, PATTERN_BARS)

BLOCK_COLORS = (BLACK, YELLOW, RED, BLUE, GREEN, WHITE)
BAR_COLORS = (BLACK, WHITE, YELLOW, RED, BLUE, GREEN)

_cache = {}


def _bands(colors, width: int, height: int) -> bytes:
    """Horizontal bands; the last band absorbs any remainder rows."""
    stride = row_bytes(width)
    band_h = height // len(colors)
    out = bytearray()
    for i, color in enumerate(colors):
        rows = band_h if i < len(colors) - 1 else height - band_h * i
        out += bytes((fill_byte(color),)) * (stride * rows)
    return bytes(out)


def _bars(colors, width: int, height: int) -> bytes:
    """Vertical bars, 2-pixel aligned so no byte straddles two colours."""
    stride = row_bytes(width)
    bar_bytes = stride // len(colors)
    row = bytearray()
    for i, color in enumerate(colors):
        n = bar_bytes if i < len(colors) - 1 else stride - bar_bytes * i
        row += bytes((fill_byte(color),)) * n
    if width & 1:
        row[-1] &= 0xF0
    return bytes(row) * height


def build(which: str, width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> bytes:
    """Return the frame for a built-in pattern."""
    key = (which, width, height)
    frame = _cache.get(key)
    if frame is not None:
        return frame

    if which == PATTERN_BLOCKS:
        frame = _bands(BLOCK_COLORS, width, height)
    elif which == PATTERN_BARS:
        frame = _bars(BAR_COLORS, width, height)
    else:
        raise ValueError(f"Unknown pattern {which!r}, expected one of {PATTERNS}")

    _cache[key] = frame
    return frame
