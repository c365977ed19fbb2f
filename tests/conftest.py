import sys
import types

import pytest

from epd7in3e.errors import PinConfigurationError, TransportError
from epd7in3e.hardware.backend import Backend, PinRole
from epd7in3e.platforms import RPI, Timing

FAKE_PINS = {
    PinRole.RESET: 17,
    PinRole.DC: 25,
    PinRole.CS: 8,
    PinRole.BUSY: 24,
    PinRole.POWER: 18,
}


class FakeClock:
    """Clock that advances only when slept on."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeBackend(Backend):
    """
    Backend that records every pin and bus operation.

    events: ("bus_open",), ("claim", role, direction), ("pin", role, level),
        ("xfer", bytes), ("release", role), ("bus_close",)
    frames: one (cmd, bytes) per CS-low window, decoded from DC
    """
    VARIANT = "fake"

    def __init__(self, pins=None, busy=None, fail_claim=None, fail_xfer_after=None,
                 key=None):
        super().__init__(FAKE_PINS if pins is None else pins)
        self.key = key
        self.events = []
        self.frames = []
        self.busy = list(busy or [])
        self.idle_level = True
        self.fail_claim = fail_claim
        self.fail_xfer_after = fail_xfer_after
        self.on_busy_read = None
        self._levels = {}

    def _bus_open(self):
        self.events.append(("bus_open",))
        return object()

    def _bus_write(self, bus, data):
        data = bytes(data)
        if self.fail_xfer_after is not None:
            if self.fail_xfer_after == 0:
                raise TransportError("injected transfer fault")
            self.fail_xfer_after -= 1
        self.events.append(("xfer", data))
        if self._levels.get(PinRole.DC):
            cmd, payload = self.frames[-1]
            self.frames[-1] = (cmd, payload + data)
        else:
            self.frames.append((data[0], b""))

    def _bus_close(self, bus):
        self.events.append(("bus_close",))

    def _bus_key(self):
        return ("fake", id(self) if self.key is None else self.key)

    def _claim(self, role, pin, direction):
        if role == self.fail_claim:
            raise PinConfigurationError(f"{role} busy", role=role, pin=pin)
        self.events.append(("claim", role, direction))
        return role

    def _write(self, role, level):
        self._levels[role] = level
        self.events.append(("pin", role, level))

    def _read(self, role):
        if self.on_busy_read is not None:
            self.on_busy_read()
        if self.busy:
            return self.busy.pop(0)
        return self.idle_level

    def _release(self, role):
        self.events.append(("release", role))

    def pin_events(self, role=None):
        return [e for e in self.events if e[0] == "pin" and (role is None or e[1] == role)]

    def commands(self):
        return [cmd for cmd, _ in self.frames]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timing():
    return Timing()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def opened(backend):
    backend.open()
    yield backend
    backend.close()


@pytest.fixture
def platform():
    return RPI


# =============================================================================
# Fake adafruit-blinka modules
# =============================================================================

class FakeDigitalInOut:
    def __init__(self, pin):
        if pin == "BAD":
            raise ValueError("pin in use")
        self.pin = pin
        self.value = None
        self.mode = None
        self.deinited = False

    def switch_to_output(self, value=False):
        self.mode = "out"
        self.value = value

    def switch_to_input(self):
        self.mode = "in"
        self.value = True

    def deinit(self):
        self.deinited = True


class FakeBusioSPI:
    instances = []

    def __init__(self, clock, MOSI=None, MISO=None):
        self.clock = clock
        self.mosi = MOSI
        self.written = []
        self.config = None
        self.locked = False
        self.deinited = False
        FakeBusioSPI.instances.append(self)

    def try_lock(self):
        if self.locked:
            return False
        self.locked = True
        return True

    def unlock(self):
        self.locked = False

    def configure(self, baudrate=100000, phase=0, polarity=0, bits=8):
        self.config = (baudrate, phase, polarity)

    def write(self, buf):
        self.written.append(bytes(buf))

    def deinit(self):
        self.deinited = True


@pytest.fixture
def blinka(monkeypatch):
    """Install fake board/busio/digitalio modules."""
    board = types.ModuleType("board")
    for name in ("D17", "D25", "D24", "D18", "MOSI", "SCLK", "CE0"):
        setattr(board, name, name)
    busio = types.ModuleType("busio")
    busio.SPI = FakeBusioSPI
    digitalio = types.ModuleType("digitalio")
    digitalio.DigitalInOut = FakeDigitalInOut

    FakeBusioSPI.instances = []
    monkeypatch.setitem(sys.modules, "board", board)
    monkeypatch.setitem(sys.modules, "busio", busio)
    monkeypatch.setitem(sys.modules, "digitalio", digitalio)
    return types.SimpleNamespace(board=board, busio=busio, digitalio=digitalio)


# =============================================================================
# Fake python-periphery classes
# =============================================================================

class FakeSysfsGPIO:
    instances = {}
    unavailable = set()
    log = []

    def __init__(self, line, direction):
        from periphery import GPIOError
        if line in FakeSysfsGPIO.unavailable:
            raise GPIOError(16, f"gpio{line} busy")
        self.line = line
        self.direction = direction
        self.value = direction == "high"
        self.writes = []
        self.closed = False
        FakeSysfsGPIO.instances[line] = self

    def write(self, value):
        self.value = value
        self.writes.append(value)
        FakeSysfsGPIO.log.append((self.line, value))

    def read(self):
        return self.value

    def close(self):
        self.closed = True


class FakePeripherySPI:
    instances = []

    def __init__(self, devpath, mode, max_speed):
        self.devpath = devpath
        self.mode = mode
        self.max_speed = max_speed
        self.transfers = []
        self.closed = False
        FakePeripherySPI.instances.append(self)

    def transfer(self, data):
        self.transfers.append(bytes(data))
        return bytes(len(data))

    def close(self):
        self.closed = True


@pytest.fixture
def periphery_fakes(monkeypatch):
    from epd7in3e.hardware import sysfs

    FakeSysfsGPIO.instances = {}
    FakeSysfsGPIO.unavailable = set()
    FakeSysfsGPIO.log = []
    FakePeripherySPI.instances = []
    monkeypatch.setattr(sysfs, "SysfsGPIO", FakeSysfsGPIO)
    monkeypatch.setattr(sysfs, "SPI", FakePeripherySPI)
    return types.SimpleNamespace(gpio=FakeSysfsGPIO, spi=FakePeripherySPI)
