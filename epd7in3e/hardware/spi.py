r"""
SPIDevice - Command Framing, Reset and Busy Polling for EPD Controllers
=======================================================================
Sits between the panel driver and a pin/bus Backend. Handles:

- Command/data framing (CS + DC around each transaction)
- Hardware reset pulse and POWER line control
- Busy-wait polling with a timeout and an abort flag

Every delay goes through an injected clock, so the full protocol runs
instantly against a fake backend in tests.

Transaction framing:

    CS   ‾‾\________________________________/‾‾
    DC   ____/‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾‾  (low for the command byte)
    SPI      [cmd][data0][data1]...[dataN]
"""
import logging
import threading

from ..errors import BusyTimeoutError, ProtocolStateError
from .backend import PinRole
from .clock import DEFAULT_CLOCK

logger = logging.getLogger(__name__)


class SPIDevice:
    """
    Panel-facing wrapper around a Backend.

    Args:
        backend: Opened Backend instance
        timing: platforms.Timing with pulse widths, settle delays, poll rate
        clock: Object with monotonic() and sleep() (default: real time)
        busy_level: Level BUSY reads while the controller is busy.
            The 7in3e pulls BUSY low while busy.
    """

    def __init__(self, backend, timing, clock=None, busy_level: bool = False):
        self.backend = backend
        self.timing = timing
        self.clock = clock or DEFAULT_CLOCK
        self.busy_level = busy_level
        self._abort = threading.Event()

    def sleep_ms(self, ms: float):
        self.clock.sleep(ms / 1000)

    # =========================================================================
    # Transactions
    # =========================================================================

    def write_command(self, cmd: int, data=None):
        """
        Send a command byte and optional parameter bytes in one CS frame.

        Args:
            cmd: Command byte (0x00-0xFF)
            data: None, int, iterable of ints, or bytes-like

        CS is released even if a transfer raises.
        """
        backend = self.backend
        backend.write_pin(PinRole.CS, False)
        try:
            backend.write_pin(PinRole.DC, False)
            backend.transfer_bytes(cmd)
            if data is not None:
                backend.write_pin(PinRole.DC, True)
                backend.transfer_bytes(data)
        finally:
            backend.write_pin(PinRole.CS, True)

        if logger.isEnabledFor(logging.DEBUG):
            length = 0 if data is None else (1 if isinstance(data, int) else len(data))
            logger.debug("cmd 0x%02X (%d data bytes)", cmd, length)

    def write_sequence(self, sequence):
        """Send (cmd, data) pairs in order."""
        for cmd, data in sequence:
            self.write_command(cmd, data)

    # =========================================================================
    # Control lines
    # =========================================================================

    def power_on(self):
        """Assert the panel POWER line and let the supply settle."""
        self.backend.write_pin(PinRole.POWER, True)
        self.sleep_ms(self.timing.power_settle_ms)

    def power_off(self):
        self.backend.write_pin(PinRole.POWER, False)

    def hardware_reset(self):
        """
        Pulse RST: high, low for the pulse width, high again, then settle.

        The controller only returns to a known state on a clean
        falling-then-rising edge of at least the pulse width.
        """
        t = self.timing
        self.backend.write_pin(PinRole.RESET, True)
        self.sleep_ms(t.reset_high_ms)
        self.backend.write_pin(PinRole.RESET, False)
        self.sleep_ms(t.reset_pulse_ms)
        self.backend.write_pin(PinRole.RESET, True)
        self.sleep_ms(t.reset_settle_ms)
        logger.debug("hardware reset")

    # =========================================================================
    # Busy line
    # =========================================================================

    @property
    def is_busy(self) -> bool:
        """True while the controller reports busy."""
        return self.backend.read_pin(PinRole.BUSY) == self.busy_level

    def wait_ready(self, timeout: float, operation: str = "command") -> float:
        """
        Poll BUSY until the controller is idle.

        Args:
            timeout: Maximum wait time in seconds
            operation: Step name for errors and logs

        Returns:
            Time spent waiting in seconds

        Raises:
            BusyTimeoutError: BUSY still asserted after timeout
            ProtocolStateError: abort() was called while waiting
        """
        clock = self.clock
        poll = self.timing.busy_poll_ms / 1000
        start = clock.monotonic()
        while True:
            if self._abort.is_set():
                raise ProtocolStateError(f"Busy wait aborted during {operation}")
            if not self.is_busy:
                break
            if clock.monotonic() - start > timeout:
                logger.error("busy timeout during %s (>%ss)", operation, timeout)
                raise BusyTimeoutError(operation, timeout)
            clock.sleep(poll)

        elapsed = clock.monotonic() - start
        logger.debug("%s ready after %.3fs", operation, elapsed)
        return elapsed

    def abort(self):
        """Make the current and any later wait_ready() fail. Thread-safe."""
        self._abort.set()

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def deinit(self):
        """Drop POWER. Never raises; the backend itself is closed by its owner."""
        try:
            self.power_off()
        except Exception as exc:
            logger.warning("failed to drop POWER: %s", exc)
