"""
EPD7in3e - 7.3" 7-Color E-Paper Panel Driver
============================================
Driver for the Waveshare 7.3" E6 panel (800x480, 4 bits per pixel).

Architecture
------------
  - Backend: pin and bus access (cdev / sysfs / softspi)
  - SPIDevice: command framing, reset pulse, busy polling
  - DriverState: protocol state machine
  - EPD7in3e: panel-specific sequencing

The panel has a single frame RAM loaded with one DTM command. A refresh
powers the charge pump, runs the waveform (about 20-30 s at room
temperature) and powers it down again. BUSY is LOW while the controller
works.

The driver never retries: any error leaves it UNINITIALIZED and a fresh
init() is required.
"""
import logging

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..hardware.spi import SPIDevice

from ..buffer import patterns
from ..buffer.framebuffer import PANEL_HEIGHT, PANEL_WIDTH, buffer_size, check_size, solid
from ..buffer.palette import WHITE, name as color_name
from .base import DisplayDriver
from .state import DriverState, PanelState
from . import commands as CMD
from . import sequences as SEQ

logger = logging.getLogger(__name__)


class EPD7in3e(DisplayDriver):
    """
    7in3e E-Paper Display Driver.

    Example:
        spi = SPIDevice(backend, platform.timing, busy_level=EPD7in3e.BUSY_LEVEL)
        epd = EPD7in3e(spi)
        epd.init()
        epd.display(buffer)
        epd.sleep()
    """
    WIDTH = PANEL_WIDTH
    HEIGHT = PANEL_HEIGHT
    BUFFER_SIZE = buffer_size(PANEL_WIDTH, PANEL_HEIGHT)  # 192000
    BUSY_LEVEL = SEQ.BUSY_LEVEL

    def __init__(self, spi: "SPIDevice"):
        """
        Args:
            spi: SPIDevice over an opened backend
        """
        self._spi = spi
        self._state = DriverState()

    def _fail(self, operation: str, exc: Exception):
        logger.error("%s failed in %s: %s", operation,
                     PanelState.name(self._state.state), exc)
        self._state.reset()

    # =========================================================================
    # Initialization
    # =========================================================================

    def init(self):
        """
        Power up, reset and configure the panel.

        Valid from UNINITIALIZED or SLEPT; the reset pulse is the only way
        out of deep sleep.

        Raises:
            ProtocolStateError: Called in any other state
            BusyTimeoutError: Controller did not become ready
        """
        self._state.require("init", PanelState.UNINITIALIZED, PanelState.SLEPT)
        spi = self._spi
        timeout = spi.timing.init_timeout_s
        try:
            self._state.on_init_start()
            spi.power_on()

            self._state.on_reset()
            spi.hardware_reset()
            spi.wait_ready(timeout, "reset")

            self._state.on_configure()
            spi.write_sequence(SEQ.INIT_SEQUENCE)
            spi.write_command(CMD.CMD_POWER_ON)
            spi.wait_ready(timeout, "power on")
        except Exception as exc:
            self._fail("init", exc)
            raise

        self._state.on_init_complete()
        logger.info("panel initialized")

    # =========================================================================
    # Frame Transfer
    # =========================================================================

    def _refresh(self) -> float:
        """Power on, run the waveform, power off. Returns waveform time."""
        spi = self._spi
        timing = spi.timing

        spi.write_command(CMD.CMD_POWER_ON)
        spi.wait_ready(timing.command_timeout_s, "power on")

        spi.write_command(*SEQ.REFRESH_BOOSTER)

        spi.write_command(CMD.CMD_REFRESH, SEQ.REFRESH_PARAM)
        elapsed = spi.wait_ready(timing.refresh_timeout_s, "refresh")

        spi.write_command(CMD.CMD_POWER_OFF, SEQ.POWER_OFF_PARAM)
        spi.wait_ready(timing.command_timeout_s, "power off")
        return elapsed

    def _send_frame(self, data, operation: str) -> float:
        self._state.require(operation, PanelState.IDLE)
        try:
            self._state.on_transmit()
            self._spi.write_command(CMD.CMD_DATA_START, data)

            self._state.on_refresh()
            elapsed = self._refresh()
        except Exception as exc:
            self._fail(operation, exc)
            raise

        self._state.on_refresh_complete(elapsed)
        logger.info("%s: refresh took %.1fs", operation, elapsed)
        return elapsed

    def display(self, data) -> float:
        """
        Stream a frame buffer unmodified and refresh.

        Args:
            data: Packed frame, exactly BUFFER_SIZE bytes

        Returns:
            Refresh time in seconds

        Raises:
            InvalidBufferSizeError: Wrong buffer length
            ProtocolStateError: Panel not IDLE
        """
        check_size(data, self.WIDTH, self.HEIGHT)
        return self._send_frame(data, "display")

    def clear(self, color: int = WHITE) -> float:
        """Fill the whole panel with one palette color."""
        frame = solid(color, self.WIDTH, self.HEIGHT)
        logger.debug("clear to %s", color_name(color))
        return self._send_frame(frame, "clear")

    def show_pattern(self, which: str = patterns.PATTERN_BLOCKS) -> float:
        """
        Display a built-in test frame.

        Args:
            which: patterns.PATTERN_BLOCKS or patterns.PATTERN_BARS

        Raises:
            ValueError: Unknown pattern
        """
        frame = patterns.build(which, self.WIDTH, self.HEIGHT)
        return self._send_frame(frame, "show_pattern")

    # =========================================================================
    # Power Management
    # =========================================================================

    def sleep(self):
        """
        Enter deep sleep.

        Only init() is valid afterwards.
        """
        self._state.require("sleep", PanelState.IDLE)
        try:
            self._state.on_sleep_start()
            self._spi.write_command(CMD.CMD_DEEP_SLEEP, SEQ.DEEP_SLEEP_CHECK)
            self._spi.sleep_ms(self._spi.timing.sleep_settle_ms)
        except Exception as exc:
            self._fail("sleep", exc)
            raise

        self._state.on_sleep()
        logger.info("panel asleep")

    def deinit(self):
        """Drop panel power. Never raises."""
        self._spi.deinit()
        self._state.reset()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def is_sleeping(self) -> bool:
        return self._state.is_sleeping
