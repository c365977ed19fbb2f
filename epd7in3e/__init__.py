"""
epd7in3e
========
Driver for the Waveshare 7.3" 7-color (E6) e-paper panel, 800x480, on
Linux single-board computers.

Architecture
------------
The library is organized into layers:

    EPDModule           Lifecycle: init / exit, ownership, state guards
       │
       ├── EPD7in3e          Panel protocol (init stream, frame, refresh, sleep)
       │      │
       │      └── SPIDevice      CS/DC framing, reset pulse, busy polling
       │             │
       │             └── Backend     cdev | sysfs | softspi
       │
       └── buffer            4-bit packed frame codec, palette, test patterns

    platforms           Pin tables, bus settings and timing per board

Quick Start
-----------
    from epd7in3e import EPDModule, RED

    epd = EPDModule()
    epd.init()
    buf = epd.create_buffer()
    epd.set_pixel(buf, 0, 0, RED)
    epd.display(buf)
    epd.sleep()
    epd.exit()

Module Structure
----------------
    epd7in3e/
    ├── module.py            Lifecycle manager
    ├── platforms.py         Platform profiles + env overrides
    ├── errors.py            Exception hierarchy
    ├── buffer/
    │   ├── palette.py       Pixel codes
    │   ├── framebuffer.py   Packed buffer codec
    │   └── patterns.py      Built-in frames
    ├── drivers/
    │   ├── base.py          DisplayDriver protocol
    │   ├── epd7in3e.py      Panel driver
    │   ├── commands.py      Command constants
    │   ├── sequences.py     Init/refresh parameters
    │   └── state.py         Protocol state machine
    └── hardware/
        ├── backend.py       Pin/bus interface
        ├── cdev.py          adafruit-blinka backend
        ├── sysfs.py         python-periphery backend
        ├── softspi.py       python-periphery bit-banged backend
        ├── spi.py           SPIDevice
        └── clock.py         Injectable clock
"""
import logging

# Buffer layer
from .buffer import (
    BLACK,
    WHITE,
    YELLOW,
    RED,
    BLUE,
    GREEN,
    COLORS,
    FrameBuffer,
    PATTERN_BLOCKS,
    PATTERN_BARS,
    buffer_size,
    create_buffer,
    get_pixel,
    pack,
    set_pixel,
    unpack,
)

# Errors
from .errors import (
    EPDError,
    HardwareError,
    PinConfigurationError,
    TransportError,
    BusyTimeoutError,
    StateError,
    ProtocolStateError,
    AlreadyInitializedError,
    NotInitializedError,
    FramebufferError,
    InvalidBufferSizeError,
    OutOfBoundsError,
    InvalidColorError,
)

# Hardware + driver layers
from .hardware import BackendVariant, PinRole, SPIDevice
from .drivers import EPD7in3e, PanelState
from .platforms import Platform, Timing, load_platform, create_backend
from .module import EPDModule, ModuleState

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Lifecycle
    "EPDModule",
    "ModuleState",
    # Buffer
    "FrameBuffer",
    "BLACK",
    "WHITE",
    "YELLOW",
    "RED",
    "BLUE",
    "GREEN",
    "COLORS",
    "PATTERN_BLOCKS",
    "PATTERN_BARS",
    "buffer_size",
    "create_buffer",
    "get_pixel",
    "pack",
    "set_pixel",
    "unpack",
    # Hardware / driver
    "BackendVariant",
    "PinRole",
    "SPIDevice",
    "EPD7in3e",
    "PanelState",
    "Platform",
    "Timing",
    "load_platform",
    "create_backend",
    # Errors
    "EPDError",
    "HardwareError",
    "PinConfigurationError",
    "TransportError",
    "BusyTimeoutError",
    "StateError",
    "ProtocolStateError",
    "AlreadyInitializedError",
    "NotInitializedError",
    "FramebufferError",
    "InvalidBufferSizeError",
    "OutOfBoundsError",
    "InvalidColorError",
]
