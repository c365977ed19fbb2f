r"""
SoftSpiBackend - Legacy sysfs GPIO + Bit-Banged SPI
===================================================
For boards where the SPI peripheral is not routed to the panel header
(or spidev is not enabled): MOSI and SCLK are ordinary sysfs GPIO outputs
driven one bit at a time.

Wire format is SPI mode 0 (CPOL=0, CPHA=0), MSB first:

    SCLK  __/‾‾\__/‾‾\__ ... __/‾‾\__
    MOSI  <b7 ><b6 >     ...  <b0 >

MOSI is set while SCLK is low; the panel samples on the rising edge.
SCLK idles low between bytes.
"""
import logging
import time

from ..errors import TransportError
from .backend import BackendVariant, Direction, PinRole
from .sysfs import SysfsBackend

logger = logging.getLogger(__name__)


class _SoftBus:
    """Placeholder bus handle; the bus is the MOSI/SCLK pins themselves."""

    def __init__(self, half_period_ns: int):
        self.half_period_ns = half_period_ns


def _spin(ns: int):
    """Busy-wait ns nanoseconds (time.sleep is far too coarse here)."""
    end = time.perf_counter_ns() + ns
    while time.perf_counter_ns() < end:
        pass


class SoftSpiBackend(SysfsBackend):
    """
    Backend using python-periphery SysfsGPIO for every line, SPI included.

    Args:
        pins: PinRole -> line offset (must include MOSI and SCLK)
        half_period_ns: Extra delay per clock half-period. 0 means the
            sysfs write latency alone sets the clock rate.
        gpio_base: Added to every line offset for the sysfs number
    """
    VARIANT = BackendVariant.SOFTSPI
    BUS_PINS = (
        (PinRole.MOSI, Direction.OUTPUT),
        (PinRole.SCLK, Direction.OUTPUT),
    )

    def __init__(self, pins: dict, half_period_ns: int = 0, gpio_base: int = 0,
                 hardware_id=None):
        super().__init__(pins, spi_device=None, gpio_base=gpio_base,
                         hardware_id=hardware_id)
        self._half_period_ns = half_period_ns

    def _bus_open(self):
        return _SoftBus(self._half_period_ns)

    def _bus_write(self, bus, data):
        try:
            mosi = self._handles[PinRole.MOSI]
            sclk = self._handles[PinRole.SCLK]
        except KeyError as exc:
            raise TransportError(f"Soft SPI line {exc} is not configured") from exc

        half = bus.half_period_ns
        for value in data:
            for bit in range(7, -1, -1):
                self._write(sclk, False)
                self._write(mosi, bool((value >> bit) & 1))
                if half:
                    _spin(half)
                self._write(sclk, True)
                if half:
                    _spin(half)
            self._write(sclk, False)

    def _bus_close(self, bus):
        pass

    def _bus_key(self):
        return ("bitbang", self._pins.get(PinRole.MOSI), self._pins.get(PinRole.SCLK),
                self._gpio_base)
