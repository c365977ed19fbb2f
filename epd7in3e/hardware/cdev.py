"""
CdevBackend - Character-Device GPIO + Hardware SPI
==================================================
Modern pin control through adafruit-blinka's digitalio (libgpiod /
lgpio on /dev/gpiochipN) and the SPI peripheral through busio.SPI
(/dev/spidevB.C).

Pin identifiers are board attribute names ("D17", "MOSI", ...), resolved
against the `board` module at claim time.

board/busio/digitalio are imported lazily: importing them on a host that
blinka does not recognise raises, and that must surface as a
PinConfigurationError from open(), not at package import.
"""
import logging
import time

from ..errors import PinConfigurationError, TransportError
from .backend import Backend, BackendVariant, Direction, IDLE_LEVELS

logger = logging.getLogger(__name__)


class CdevBackend(Backend):
    """
    Backend using adafruit-blinka digitalio/busio.

    Args:
        pins: PinRole -> board pin name
        sclk: Board name of the SPI clock pin
        mosi: Board name of the SPI data pin
        baudrate: SPI clock speed in Hz
    """
    VARIANT = BackendVariant.CDEV
    CHUNK_SIZE = 4096
    LOCK_TIMEOUT = 1.0

    def __init__(self, pins: dict, sclk: str = "SCLK", mosi: str = "MOSI",
                 baudrate: int = 4_000_000, hardware_id=None):
        super().__init__(pins, hardware_id)
        self._sclk = sclk
        self._mosi = mosi
        self._baudrate = baudrate
        self._board = None
        self._digitalio = None

    def _import(self):
        try:
            import board
            import busio
            import digitalio
        except (ImportError, NotImplementedError, RuntimeError) as exc:
            raise PinConfigurationError(
                f"adafruit-blinka is not usable on this platform: {exc}"
            ) from exc
        self._board = board
        self._digitalio = digitalio
        return board, busio

    def _board_pin(self, name: str, role: str | None = None):
        try:
            return getattr(self._board, name)
        except AttributeError as exc:
            raise PinConfigurationError(
                f"Board has no pin {name}", role=role, pin=name
            ) from exc

    # =========================================================================
    # Bus hooks
    # =========================================================================

    def _bus_open(self):
        board, busio = self._import()
        sclk = self._board_pin(self._sclk)
        mosi = self._board_pin(self._mosi)
        try:
            spi = busio.SPI(sclk, MOSI=mosi)
        except (OSError, RuntimeError, ValueError) as exc:
            raise PinConfigurationError(f"Cannot open SPI bus: {exc}") from exc

        start = time.monotonic()
        while not spi.try_lock():
            if time.monotonic() - start > self.LOCK_TIMEOUT:
                spi.deinit()
                raise PinConfigurationError("SPI lock timeout during initialization")
        try:
            spi.configure(baudrate=self._baudrate, phase=0, polarity=0)
        finally:
            spi.unlock()
        return spi

    def _bus_write(self, spi, data):
        view = memoryview(data)
        while not spi.try_lock():
            pass
        try:
            for i in range(0, len(view), self.CHUNK_SIZE):
                spi.write(view[i:i + self.CHUNK_SIZE])
        except OSError as exc:
            raise TransportError(f"SPI write failed: {exc}") from exc
        finally:
            spi.unlock()

    def _bus_close(self, spi):
        spi.deinit()

    def _bus_key(self):
        return ("busio", self._sclk, self._mosi)

    # =========================================================================
    # Pin hooks
    # =========================================================================

    def _claim(self, role: str, pin, direction: str):
        board_pin = self._board_pin(pin, role)
        digitalio = self._digitalio
        try:
            io = digitalio.DigitalInOut(board_pin)
        except (OSError, RuntimeError, ValueError) as exc:
            raise PinConfigurationError(
                f"Cannot claim {role} ({pin}): {exc}", role=role, pin=pin
            ) from exc

        try:
            if direction == Direction.OUTPUT:
                io.switch_to_output(value=IDLE_LEVELS.get(role, False))
            else:
                io.switch_to_input()
        except (OSError, RuntimeError, ValueError) as exc:
            io.deinit()
            raise PinConfigurationError(
                f"Cannot set {role} ({pin}) direction: {exc}", role=role, pin=pin
            ) from exc
        return io

    def _write(self, io, level: bool):
        try:
            io.value = level
        except OSError as exc:
            raise TransportError(f"GPIO write failed: {exc}") from exc

    def _read(self, io) -> bool:
        try:
            return io.value
        except OSError as exc:
            raise TransportError(f"GPIO read failed: {exc}") from exc

    def _release(self, io):
        io.deinit()
