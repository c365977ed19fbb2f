"""
Backend - Pin & Bus Capability Interface
========================================
Defines the low-level capability set every backend variant provides:

    configure_pin(role, direction)   claim a pin in a direction
    write_pin(role, level)           drive an output
    read_pin(role) -> bool           sample an input (BUSY only)
    transfer_bytes(data)             clock bytes out on the SPI bus
    open() / close()                 acquire / release everything

Chip-select is never touched by transfer_bytes(); the caller frames each
transaction with write_pin(PinRole.CS, ...) because some panel commands
need CS held across several transfers.

Variants differ only in how the pin and the bus are reached, so the
protocol code above is written once. Bookkeeping (claim order, reverse
release, error translation for unclaimed roles) lives in this base class;
subclasses implement the _claim/_write/_read/_release/_bus_* hooks.

Note: duck typing with NotImplementedError hooks, same as DisplayDriver.
"""
import logging
import threading

from ..errors import PinConfigurationError, TransportError

logger = logging.getLogger(__name__)


class PinRole:
    """Logical pin roles. Values double as log labels."""
    RESET = "RST"
    DC = "DC"
    CS = "CS"
    BUSY = "BUSY"
    POWER = "PWR"
    MOSI = "MOSI"
    SCLK = "SCLK"

    ALL = (RESET, DC, CS, BUSY, POWER, MOSI, SCLK)


class Direction:
    """Pin direction."""
    INPUT = "in"
    OUTPUT = "out"


class BackendVariant:
    """
    Backend selection tags.

    CDEV     GPIO character device + hardware SPI (adafruit-blinka)
    SYSFS    /sys/class/gpio + hardware SPI (python-periphery)
    SOFTSPI  /sys/class/gpio + bit-banged SPI (python-periphery)
    """
    CDEV = "cdev"
    SYSFS = "sysfs"
    SOFTSPI = "softspi"

    ALL = (CDEV, SYSFS, SOFTSPI)


# Level each output is driven to when claimed: CS deselected (active low),
# RST released, DC in data mode, POWER off until the driver powers up.
IDLE_LEVELS = {
    PinRole.CS: True,
    PinRole.RESET: True,
    PinRole.DC: True,
    PinRole.POWER: False,
    PinRole.MOSI: False,
    PinRole.SCLK: False,
}


# Pins every variant claims; MOSI/SCLK are added by SOFTSPI only.
CONTROL_PINS = (
    (PinRole.POWER, Direction.OUTPUT),
    (PinRole.RESET, Direction.OUTPUT),
    (PinRole.DC, Direction.OUTPUT),
    (PinRole.CS, Direction.OUTPUT),
    (PinRole.BUSY, Direction.INPUT),
)


class Backend:
    """
    Base class for pin/bus backends.

    Args:
        pins: Mapping of PinRole -> platform pin identifier. A role mapped
            to None is not driven by this backend (e.g. CS owned by the
            kernel SPI driver, or no POWER line); writes to it are ignored.
        hardware_id: Hashable name of the physical lines this backend
            drives, the same whichever variant reaches them. Two backends
            with equal ids must never be open at once. Defaults to the
            variant, bus and pin table.
    """
    VARIANT = None
    BUS_PINS = ()

    def __init__(self, pins: dict, hardware_id=None):
        self._pins = dict(pins)
        self._hardware_id = hardware_id
        self._handles = {}
        self._order = []
        self._bus = None
        self._lock = threading.Lock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self):
        """
        Claim the bus and every pin in the table.

        On a failed claim, everything already acquired is released in
        reverse order before PinConfigurationError propagates.
        """
        try:
            self._bus = self._bus_open()
            logger.debug("%s: bus open", self.VARIANT)
            for role, direction in CONTROL_PINS + self.BUS_PINS:
                self.configure_pin(role, direction)
        except Exception:
            self.close()
            raise

    def close(self):
        """Release pins and bus in reverse order of acquisition. Never raises."""
        with self._lock:
            order, self._order = self._order, []
            handles, self._handles = self._handles, {}
            bus, self._bus = self._bus, None

        for role in reversed(order):
            try:
                self._release(handles[role])
                logger.debug("%s: released %s", self.VARIANT, role)
            except Exception as exc:
                logger.warning("%s: failed to release %s: %s", self.VARIANT, role, exc)

        if bus is not None:
            try:
                self._bus_close(bus)
                logger.debug("%s: bus closed", self.VARIANT)
            except Exception as exc:
                logger.warning("%s: failed to close bus: %s", self.VARIANT, exc)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.close()
        return False

    @property
    def is_open(self) -> bool:
        return self._bus is not None

    @property
    def claimed(self) -> tuple:
        """Roles currently claimed, in acquisition order."""
        return tuple(self._order)

    @property
    def resource_key(self) -> tuple:
        """Hashable identity of the physical resources this backend claims."""
        if self._hardware_id is not None:
            return self._hardware_id
        pins = tuple(sorted((r, p) for r, p in self._pins.items() if p is not None))
        return (self.VARIANT, self._bus_key(), pins)

    # =========================================================================
    # Capability set
    # =========================================================================

    def configure_pin(self, role: str, direction: str):
        """Claim the pin bound to role in the given direction."""
        if role in self._handles:
            raise PinConfigurationError(f"{role} already claimed", role=role)
        if role not in self._pins:
            raise PinConfigurationError(f"No pin bound to {role}", role=role)

        pin = self._pins[role]
        if pin is None:
            return

        handle = self._claim(role, pin, direction)
        with self._lock:
            self._handles[role] = handle
            self._order.append(role)
        logger.debug("%s: claimed %s=%r (%s)", self.VARIANT, role, pin, direction)

    def write_pin(self, role: str, level: bool):
        """Drive an output role high (True) or low (False)."""
        handle = self._handle(role)
        if handle is None:
            return
        self._write(handle, bool(level))

    def read_pin(self, role: str) -> bool:
        """Sample an input role."""
        handle = self._handle(role)
        if handle is None:
            raise PinConfigurationError(f"{role} is not readable", role=role)
        return bool(self._read(handle))

    def transfer_bytes(self, data):
        """Send bytes in order. Blocks until clocked out."""
        if self._bus is None:
            raise TransportError("SPI bus is not open")
        if isinstance(data, int):
            data = bytes((data,))
        elif not isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data)
        if data:
            self._bus_write(self._bus, data)

    def _handle(self, role: str):
        if role in self._handles:
            return self._handles[role]
        if self._pins.get(role, False) is None:
            return None
        raise PinConfigurationError(f"{role} is not configured", role=role)

    # =========================================================================
    # Variant hooks
    # =========================================================================

    def _claim(self, role: str, pin, direction: str):
        raise NotImplementedError

    def _write(self, handle, level: bool):
        raise NotImplementedError

    def _read(self, handle) -> bool:
        raise NotImplementedError

    def _release(self, handle):
        raise NotImplementedError

    def _bus_open(self):
        raise NotImplementedError

    def _bus_write(self, bus, data):
        raise NotImplementedError

    def _bus_close(self, bus):
        raise NotImplementedError

    def _bus_key(self):
        raise NotImplementedError
