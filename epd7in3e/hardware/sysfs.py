"""
SysfsBackend - Legacy sysfs GPIO + Hardware SPI
===============================================
Pin control through /sys/class/gpio (python-periphery SysfsGPIO) and the
SPI peripheral through /dev/spidevB.C (python-periphery SPI).

Pin identifiers are line offsets; gpio_base is added to get the global
sysfs number (0 on older kernels, 512 on Raspberry Pi kernels >= 6.6).
"""
import logging

from periphery import GPIOError, SPI, SPIError, SysfsGPIO

from ..errors import PinConfigurationError, TransportError
from .backend import Backend, BackendVariant, Direction, IDLE_LEVELS

logger = logging.getLogger(__name__)


def _direction(role: str, direction: str) -> str:
    """periphery direction string, with the initial level for outputs."""
    if direction == Direction.INPUT:
        return "in"
    return "high" if IDLE_LEVELS.get(role, False) else "low"


class SysfsBackend(Backend):
    """
    Backend using python-periphery SysfsGPIO and SPI.

    Args:
        pins: PinRole -> line offset
        spi_device: spidev path (e.g. "/dev/spidev0.0")
        baudrate: SPI clock speed in Hz
        gpio_base: Added to every line offset for the sysfs number
    """
    VARIANT = BackendVariant.SYSFS
    CHUNK_SIZE = 4096
    SPI_MODE = 0

    def __init__(self, pins: dict, spi_device: str = "/dev/spidev0.0",
                 baudrate: int = 4_000_000, gpio_base: int = 0,
                 hardware_id=None):
        super().__init__(pins, hardware_id)
        self._spi_device = spi_device
        self._baudrate = baudrate
        self._gpio_base = gpio_base

    # =========================================================================
    # Pin hooks
    # =========================================================================

    def _claim(self, role: str, pin, direction: str):
        line = self._gpio_base + pin
        try:
            return SysfsGPIO(line, _direction(role, direction))
        except (GPIOError, OSError, TimeoutError) as exc:
            raise PinConfigurationError(
                f"Cannot claim {role} (gpio{line}): {exc}", role=role, pin=line
            ) from exc

    def _write(self, gpio, level: bool):
        try:
            gpio.write(level)
        except (GPIOError, OSError) as exc:
            raise TransportError(f"GPIO write failed: {exc}") from exc

    def _read(self, gpio) -> bool:
        try:
            return gpio.read()
        except (GPIOError, OSError) as exc:
            raise TransportError(f"GPIO read failed: {exc}") from exc

    def _release(self, gpio):
        gpio.close()

    # =========================================================================
    # Bus hooks
    # =========================================================================

    def _bus_open(self):
        try:
            return SPI(self._spi_device, self.SPI_MODE, self._baudrate)
        except (SPIError, OSError) as exc:
            raise PinConfigurationError(
                f"Cannot open {self._spi_device}: {exc}", pin=self._spi_device
            ) from exc

    def _bus_write(self, spi, data):
        try:
            for i in range(0, len(data), self.CHUNK_SIZE):
                spi.transfer(bytes(data[i:i + self.CHUNK_SIZE]))
        except (SPIError, OSError) as exc:
            raise TransportError(f"SPI transfer failed: {exc}") from exc

    def _bus_close(self, spi):
        spi.close()

    def _bus_key(self):
        return ("spidev", self._spi_device, self._gpio_base)
