"""
Hardware abstraction layer.

Modules:
    backend: Pin/bus capability interface and shared bookkeeping
    cdev: GPIO character device + hardware SPI (adafruit-blinka)
    sysfs: Legacy sysfs GPIO + hardware SPI (python-periphery)
    softspi: Legacy sysfs GPIO + bit-banged SPI (python-periphery)
    spi: Command framing, reset pulse, busy polling
    clock: Injectable time source

Variant modules are not imported here; platforms.create_backend loads the
one selected, and cdev defers its blinka imports until open().
"""
from .backend import Backend, BackendVariant, Direction, PinRole
from .clock import DEFAULT_CLOCK, MonotonicClock
from .spi import SPIDevice

__all__ = [
    "Backend",
    "BackendVariant",
    "Direction",
    "PinRole",
    "DEFAULT_CLOCK",
    "MonotonicClock",
    "SPIDevice",
]
