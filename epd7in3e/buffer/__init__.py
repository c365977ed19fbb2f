"""
Buffer subsystem - palette, packed framebuffer and built-in frames.

Modules:
    palette: Native pixel codes of the 7in3e panel
    framebuffer: 4-bit packed pixel buffer codec
    patterns: Built-in test frames
"""
from .palette import BLACK, WHITE, YELLOW, RED, BLUE, GREEN, COLORS
from .framebuffer import (
    FrameBuffer,
    PANEL_WIDTH,
    PANEL_HEIGHT,
    buffer_size,
    create_buffer,
    fill,
    get_pixel,
    pack,
    set_pixel,
    unpack,
)
from .patterns import PATTERN_BLOCKS, PATTERN_BARS

__all__ = [
    "FrameBuffer",
    "PANEL_WIDTH",
    "PANEL_HEIGHT",
    "buffer_size",
    "create_buffer",
    "fill",
    "get_pixel",
    "pack",
    "set_pixel",
    "unpack",
    "PATTERN_BLOCKS",
    "PATTERN_BARS",
    "BLACK",
    "WHITE",
    "YELLOW",
    "RED",
    "BLUE",
    "GREEN",
    "COLORS",
]
