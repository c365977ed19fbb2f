import sys

import pytest

from epd7in3e.errors import PinConfigurationError, TransportError
from epd7in3e.hardware.backend import BackendVariant, Direction, PinRole
from epd7in3e.hardware.cdev import CdevBackend
from epd7in3e.hardware.softspi import SoftSpiBackend
from epd7in3e.hardware.sysfs import SysfsBackend
from epd7in3e.platforms import JETSON, RPI, create_backend

from .conftest import FAKE_PINS, FakeBackend


# =============================================================================
# Shared bookkeeping
# =============================================================================

def test_open_claims_outputs_then_busy(backend):
    backend.open()
    claims = [e[1:] for e in backend.events if e[0] == "claim"]
    assert claims == [
        (PinRole.POWER, Direction.OUTPUT),
        (PinRole.RESET, Direction.OUTPUT),
        (PinRole.DC, Direction.OUTPUT),
        (PinRole.CS, Direction.OUTPUT),
        (PinRole.BUSY, Direction.INPUT),
    ]
    assert backend.events[0] == ("bus_open",)
    assert backend.is_open


def test_close_releases_in_reverse(opened):
    opened.events.clear()
    opened.close()
    assert opened.events == [
        ("release", PinRole.BUSY),
        ("release", PinRole.CS),
        ("release", PinRole.DC),
        ("release", PinRole.RESET),
        ("release", PinRole.POWER),
        ("bus_close",),
    ]
    assert not opened.is_open
    assert opened.claimed == ()


def test_close_is_idempotent(opened):
    opened.close()
    opened.events.clear()
    opened.close()
    assert opened.events == []


def test_close_keeps_going_after_release_error(opened):
    def broken(role):
        if role == PinRole.DC:
            raise OSError("stuck")
        opened.events.append(("release", role))

    opened._release = broken
    opened.close()
    released = [e[1] for e in opened.events if e[0] == "release"]
    assert released == [PinRole.BUSY, PinRole.CS, PinRole.RESET, PinRole.POWER]
    assert opened.events[-1] == ("bus_close",)


def test_partial_claim_failure_releases_earlier_claims():
    backend = FakeBackend(fail_claim=PinRole.CS)
    with pytest.raises(PinConfigurationError) as exc:
        backend.open()
    assert exc.value.role == PinRole.CS
    tail = backend.events[-4:]
    assert tail == [
        ("release", PinRole.DC),
        ("release", PinRole.RESET),
        ("release", PinRole.POWER),
        ("bus_close",),
    ]
    assert not backend.is_open


def test_double_claim_rejected(opened):
    with pytest.raises(PinConfigurationError):
        opened.configure_pin(PinRole.DC, Direction.OUTPUT)


def test_write_before_open_rejected(backend):
    with pytest.raises(PinConfigurationError):
        backend.write_pin(PinRole.DC, True)


def test_kernel_owned_cs_is_noop():
    pins = dict(FAKE_PINS)
    pins[PinRole.CS] = None
    backend = FakeBackend(pins=pins)
    backend.open()
    backend.write_pin(PinRole.CS, False)
    assert backend.pin_events(PinRole.CS) == []
    assert PinRole.CS not in backend.claimed
    with pytest.raises(PinConfigurationError):
        backend.read_pin(PinRole.CS)


def test_transfer_requires_open_bus(backend):
    with pytest.raises(TransportError):
        backend.transfer_bytes(b"\x00")


def test_transport_error_is_ioerror():
    assert issubclass(TransportError, IOError)


def test_transfer_coerces_int_and_iterables(opened):
    opened.transfer_bytes(0x10)
    opened.transfer_bytes([0x01, 0x02])
    xfers = [e[1] for e in opened.events if e[0] == "xfer"]
    assert xfers == [b"\x10", b"\x01\x02"]


def test_resource_key_identity():
    assert FakeBackend(key="a").resource_key == FakeBackend(key="a").resource_key
    assert FakeBackend(key="a").resource_key != FakeBackend(key="b").resource_key


# =============================================================================
# cdev (adafruit-blinka)
# =============================================================================

def test_cdev_open_configures_bus_and_pins(blinka):
    backend = create_backend(RPI, BackendVariant.CDEV, env={})
    backend.open()
    spi = blinka.busio.SPI.instances[-1]
    assert spi.clock == "SCLK"
    assert spi.mosi == "MOSI"
    assert spi.config == (4_000_000, 0, 0)
    assert not spi.locked
    assert backend.claimed == (PinRole.POWER, PinRole.RESET, PinRole.DC, PinRole.BUSY)

    power = backend._handles[PinRole.POWER]
    reset = backend._handles[PinRole.RESET]
    busy = backend._handles[PinRole.BUSY]
    assert (power.mode, power.value) == ("out", False)
    assert (reset.mode, reset.value) == ("out", True)
    assert busy.mode == "in"
    assert backend.read_pin(PinRole.BUSY) is True

    backend.close()
    assert spi.deinited
    assert power.deinited and busy.deinited


def test_cdev_chunks_large_transfers(blinka):
    backend = create_backend(RPI, BackendVariant.CDEV, env={})
    backend.open()
    backend.transfer_bytes(bytes(5000))
    spi = blinka.busio.SPI.instances[-1]
    assert [len(w) for w in spi.written] == [4096, 904]
    backend.close()


def test_cdev_missing_board_pin(blinka):
    backend = create_backend(RPI, BackendVariant.CDEV, env={})
    backend._pins[PinRole.BUSY] = "D99"
    with pytest.raises(PinConfigurationError) as exc:
        backend.open()
    assert exc.value.pin == "D99"
    assert backend.claimed == ()
    assert blinka.busio.SPI.instances[-1].deinited


def test_cdev_without_blinka(monkeypatch):
    monkeypatch.setitem(sys.modules, "board", None)
    backend = create_backend(RPI, BackendVariant.CDEV, env={})
    with pytest.raises(PinConfigurationError):
        backend.open()
    assert not backend.is_open


# =============================================================================
# sysfs (python-periphery)
# =============================================================================

def test_sysfs_adds_gpio_base(periphery_fakes):
    backend = create_backend(RPI.replace(gpio_base=512), BackendVariant.SYSFS, env={})
    backend.open()
    gpio = periphery_fakes.gpio.instances
    assert gpio[512 + 18].direction == "low"
    assert gpio[512 + 17].direction == "high"
    assert gpio[512 + 25].direction == "high"
    assert gpio[512 + 24].direction == "in"
    assert 512 + 8 not in gpio

    spi = periphery_fakes.spi.instances[-1]
    assert (spi.devpath, spi.mode, spi.max_speed) == ("/dev/spidev0.0", 0, 4_000_000)

    backend.transfer_bytes(bytes(9000))
    assert [len(t) for t in spi.transfers] == [4096, 4096, 808]

    backend.close()
    assert spi.closed
    assert all(g.closed for g in gpio.values())


def test_sysfs_busy_line_rejected(periphery_fakes):
    periphery_fakes.gpio.unavailable.add(24)
    backend = create_backend(RPI, BackendVariant.SYSFS, env={})
    with pytest.raises(PinConfigurationError) as exc:
        backend.open()
    assert exc.value.role == PinRole.BUSY
    assert exc.value.pin == 24
    gpio = periphery_fakes.gpio.instances
    assert gpio[18].closed and gpio[17].closed and gpio[25].closed
    assert periphery_fakes.spi.instances[-1].closed


# =============================================================================
# softspi (bit-banged on python-periphery)
# =============================================================================

def _clocked_bits(log, mosi, sclk):
    level = None
    bits = []
    for line, value in log:
        if line == mosi:
            level = value
        elif line == sclk and value:
            bits.append(int(level))
    return bits


def test_softspi_msb_first_on_rising_edges(periphery_fakes):
    backend = create_backend(JETSON, BackendVariant.SOFTSPI, env={})
    backend.open()
    assert set(backend.claimed) == set(PinRole.ALL)

    periphery_fakes.gpio.log.clear()
    backend.transfer_bytes(b"\xa5\x01")
    bits = _clocked_bits(periphery_fakes.gpio.log, mosi=16, sclk=18)
    assert bits == [1, 0, 1, 0, 0, 1, 0, 1, 0, 0, 0, 0, 0, 0, 0, 1]
    assert periphery_fakes.gpio.instances[18].value is False
    backend.close()


def test_softspi_leaves_cs_to_caller(periphery_fakes):
    backend = create_backend(JETSON, BackendVariant.SOFTSPI, env={})
    backend.open()
    cs = periphery_fakes.gpio.instances[19]
    backend.transfer_bytes(b"\xff")
    assert cs.writes == []
    backend.close()


def test_softspi_bus_key_names_bus_lines():
    backend = SoftSpiBackend({PinRole.MOSI: 16, PinRole.SCLK: 18})
    assert backend._bus_key() == ("bitbang", 16, 18, 0)
    assert backend.resource_key[0] == BackendVariant.SOFTSPI


def test_explicit_hardware_id_overrides_default_key():
    backend = FakeBackend(key="a")
    backend._hardware_id = ("rpi", (8, 17))
    assert backend.resource_key == ("rpi", (8, 17))


def test_hardware_id_passes_through_every_variant():
    hw = ("board", (1, 2, 3))
    pins = {PinRole.MOSI: 16, PinRole.SCLK: 18}
    assert CdevBackend({}, hardware_id=hw).resource_key == hw
    assert SysfsBackend({}, hardware_id=hw).resource_key == hw
    assert SoftSpiBackend(pins, hardware_id=hw).resource_key == hw
