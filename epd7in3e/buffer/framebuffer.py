"""
FrameBuffer - 4-bit Packed Pixel Buffer
=======================================
Packs a logical pixel grid into the wire format of the 7in3e panel.

Wire format:
- 4 bits per pixel, two horizontal pixels per byte
- High nibble = even x, low nibble = odd x
- Row-major, top-to-bottom, left-to-right
- Row stride is ceil(width / 2) bytes; with an odd width the final low
  nibble of each row is filler and always written as 0

Codes are stored verbatim. Mapping RGB to palette codes happens before
this layer.
"""

from ..errors import InvalidBufferSizeError, OutOfBoundsError
from .palette import WHITE, check_color, fill_byte

# =============================================================================
# Panel Geometry
# =============================================================================

PANEL_WIDTH = 800
PANEL_HEIGHT = 480

# =============================================================================
# Bit Manipulation Constants
# =============================================================================

_PIXELS_PER_BYTE = 2
_HIGH_SHIFT = 4
_LOW_MASK = 0x0F
_HIGH_MASK = 0xF0
_PAD_NIBBLE = 0x0


def row_bytes(width: int = PANEL_WIDTH) -> int:
    """Bytes per row: ceil(width / 2)."""
    return (width + 1) // _PIXELS_PER_BYTE


def buffer_size(width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> int:
    """Required buffer length in bytes: ceil(width / 2) * height."""
    return row_bytes(width) * height


def check_size(buffer, width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> None:
    """Raise InvalidBufferSizeError unless len(buffer) matches the geometry."""
    expected = buffer_size(width, height)
    if len(buffer) != expected:
        raise InvalidBufferSizeError(expected, len(buffer))


def _index(buffer, x: int, y: int, width: int, height: int) -> int:
    if not (0 <= x < width and 0 <= y < height):
        raise OutOfBoundsError(x, y, width, height)
    check_size(buffer, width, height)
    return (x >> 1) + y * row_bytes(width)


# =============================================================================
# Pixel Ops
# =============================================================================

def set_pixel(buffer: bytearray, x: int, y: int, code: int,
              width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> None:
    """
    Store code at (x, y), keeping the neighbouring pixel's nibble.

    Raises:
        OutOfBoundsError: x or y outside the geometry
        InvalidColorError: code is not a palette code
        InvalidBufferSizeError: buffer does not match the geometry
    """
    check_color(code)
    idx = _index(buffer, x, y, width, height)
    if x & 1:
        buffer[idx] = (buffer[idx] & _HIGH_MASK) | code
    else:
        buffer[idx] = (buffer[idx] & _LOW_MASK) | (code << _HIGH_SHIFT)


def get_pixel(buffer, x: int, y: int,
              width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> int:
    """Return the code stored at (x, y)."""
    idx = _index(buffer, x, y, width, height)
    if x & 1:
        return buffer[idx] & _LOW_MASK
    return (buffer[idx] & _HIGH_MASK) >> _HIGH_SHIFT


def _fill_row(code: int, width: int) -> bytes:
    full = fill_byte(code)
    if width & 1:
        return bytes((full,)) * (width >> 1) + bytes(((code << _HIGH_SHIFT) | _PAD_NIBBLE,))
    return bytes((full,)) * (width >> 1)


def fill(buffer: bytearray, code: int,
         width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> None:
    """Set every pixel to code in one slice assignment."""
    check_color(code)
    check_size(buffer, width, height)
    buffer[:] = _fill_row(code, width) * height


def solid(code: int = WHITE, width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> bytes:
    """Immutable full frame of a single code."""
    check_color(code)
    return _fill_row(code, width) * height


def create_buffer(color: int = WHITE, width: int = PANEL_WIDTH,
                  height: int = PANEL_HEIGHT) -> bytearray:
    """New mutable buffer filled with color."""
    return bytearray(solid(color, width, height))


# =============================================================================
# Grid Conversion
# =============================================================================

def pack(rows) -> bytearray:
    """
    Pack a grid of codes, indexed rows[y][x], into wire format.

    All rows must have the same length. With an odd width the last byte of
    every row carries a zero low nibble.
    """
    height = len(rows)
    width = len(rows[0]) if height else 0
    stride = row_bytes(width)
    out = bytearray(stride * height)

    for y, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Row {y} has {len(row)} pixels, expected {width}")
        base = y * stride
        for x in range(0, width - 1, 2):
            out[base + (x >> 1)] = (check_color(row[x]) << _HIGH_SHIFT) | check_color(row[x + 1])
        if width & 1:
            out[base + stride - 1] = (check_color(row[-1]) << _HIGH_SHIFT) | _PAD_NIBBLE
    return out


def unpack(buffer, width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT) -> list:
    """Inverse of pack(): returns rows[y][x]."""
    check_size(buffer, width, height)
    stride = row_bytes(width)
    rows = []
    for y in range(height):
        base = y * stride
        row = []
        for x in range(width):
            byte = buffer[base + (x >> 1)]
            row.append(byte & _LOW_MASK if x & 1 else byte >> _HIGH_SHIFT)
        rows.append(row)
    return rows


class FrameBuffer:
    """
    Display buffer in the panel's 4-bit wire format.

    Thin stateful wrapper over the module functions; buffer is passed to
    the driver unmodified.
    """

    def __init__(self, width: int = PANEL_WIDTH, height: int = PANEL_HEIGHT,
                 color: int = WHITE):
        self._width = width
        self._height = height
        self._buffer = create_buffer(color, width, height)

    @classmethod
    def from_rows(cls, rows) -> "FrameBuffer":
        packed = pack(rows)
        fb = cls.__new__(cls)
        fb._height = len(rows)
        fb._width = len(rows[0]) if rows else 0
        fb._buffer = packed
        return fb

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def width(self) -> int: return self._width

    @property
    def height(self) -> int: return self._height

    @property
    def buffer(self) -> bytearray: return self._buffer

    @property
    def buffer_size(self) -> int: return len(self._buffer)

    # =========================================================================
    # Pixel & Buffer Ops
    # =========================================================================

    def pixel(self, x: int, y: int, color: int) -> None:
        set_pixel(self._buffer, x, y, color, self._width, self._height)

    def get_pixel(self, x: int, y: int) -> int:
        return get_pixel(self._buffer, x, y, self._width, self._height)

    def clear(self, color: int = WHITE) -> None:
        """Fill the whole buffer with one colour."""
        fill(self._buffer, color, self._width, self._height)

    def to_rows(self) -> list:
        return unpack(self._buffer, self._width, self._height)
