"""
EPDModule - Lifecycle Manager for the 7in3e Panel
=================================================
The entry point for applications. Owns the backend from init() to exit()
and guards every panel operation.

Usage:
    from epd7in3e import EPDModule, RED

    with EPDModule() as epd:           # init() on enter, exit() on leave
        buf = epd.create_buffer()
        epd.set_pixel(buf, 10, 10, RED)
        epd.display(buf)
        epd.sleep()

    # With dependency injection (tests, custom wiring)
    epd = EPDModule(backend=my_backend, clock=fake_clock)

Lifecycle:

    UNINITIALIZED --init()--> READY --exit()--> EXITED --init()--> READY

Exclusive ownership: the physical pins and bus can be claimed once, so
two modules on the same header lines cannot both be READY in one process,
whichever backend variant each one uses.
"""
import logging
import threading

from .buffer import framebuffer, patterns
from .buffer.palette import COLORS, WHITE
from .drivers.epd7in3e import EPD7in3e
from .errors import AlreadyInitializedError, NotInitializedError, ProtocolStateError
from .hardware.clock import DEFAULT_CLOCK
from .hardware.spi import SPIDevice
from .platforms import Platform, create_backend, load_platform

logger = logging.getLogger(__name__)

__all__ = ["EPDModule", "ModuleState"]


class ModuleState:
    """Lifecycle states."""
    UNINITIALIZED = 0  # Constructed, nothing claimed
    READY = 1          # Backend open, panel initialized
    EXITED = 2         # Everything released; init() starts over

    _names = {
        0: "UNINITIALIZED",
        1: "READY",
        2: "EXITED",
    }

    @classmethod
    def name(cls, state: int) -> str:
        """Get human-readable state name."""
        return cls._names.get(state, f"UNKNOWN({state})")


# resource_key -> owning EPDModule, process wide
_owners = {}
_owners_lock = threading.Lock()


class EPDModule:
    """
    Lifecycle manager for one 7.3" E6 panel.

    Args:
        platform: Platform, platform tag ("rpi", "jetson"), or None for
            $EPD_PLATFORM / rpi
        variant: BackendVariant tag, or None for $EPD_BACKEND / platform
            default
        backend: Pre-built Backend (not yet opened). Overrides variant.
        clock: Time source with monotonic() and sleep()
    """

    def __init__(
        self,
        platform: "Platform | str | None" = None,
        variant: str | None = None,
        backend=None,
        clock=None,
    ):
        if not isinstance(platform, Platform):
            platform = load_platform(platform)
        self._platform = platform
        self._variant = variant
        self._backend_override = backend
        self._clock = clock or DEFAULT_CLOCK

        self._state = ModuleState.UNINITIALIZED
        self._backend = None
        self._spi = None
        self._driver = None
        self._key = None
        self._exit_requested = False
        self._lock = threading.Lock()

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, *args):
        self.exit()
        return False

    def __repr__(self) -> str:
        return f"EPDModule({self._platform.name}, {ModuleState.name(self._state)})"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self):
        """
        Claim the hardware and initialize the panel.

        The backend, SPIDevice and driver are published before the backend
        is opened, so an exit() from another thread at any point releases
        whatever has been claimed so far. init() then fails with
        ProtocolStateError and the module stays EXITED.

        Raises:
            AlreadyInitializedError: This module is READY, or another
                module holds the same pins/bus
            PinConfigurationError: A pin or the bus could not be claimed
            BusyTimeoutError: The panel never reported ready
            ProtocolStateError: exit() was called while init() ran
        """
        if self._state == ModuleState.READY:
            raise AlreadyInitializedError("EPD module is already initialized")

        backend = self._backend_override or create_backend(self._platform, self._variant)
        key = backend.resource_key
        with _owners_lock:
            owner = _owners.get(key)
            if owner is not None and owner is not self:
                raise AlreadyInitializedError(
                    f"EPD hardware is already in use by {owner!r}"
                )
            _owners[key] = self

        previous = self._state
        self._exit_requested = False
        self._key = key
        self._backend = backend
        self._spi = SPIDevice(
            backend,
            self._platform.timing,
            self._clock,
            busy_level=EPD7in3e.BUSY_LEVEL,
        )
        self._driver = EPD7in3e(self._spi)
        driver = self._driver
        try:
            backend.open()
            self._check_exit("backend open")
            driver.init()
            with self._lock:
                self._check_exit("panel init")
                self._state = ModuleState.READY
        except Exception as exc:
            logger.error("init failed, releasing hardware")
            self._release()
            # exit() may have run while open() was still claiming pins
            backend.close()
            if self._exit_requested:
                if isinstance(exc, ProtocolStateError):
                    raise
                raise ProtocolStateError("exit() called during init()") from exc
            self._state = previous
            raise

        logger.info("EPD module ready (%s, %s)", self._platform.name, backend.VARIANT)

    def _check_exit(self, stage: str):
        if self._exit_requested:
            raise ProtocolStateError(f"exit() called during init() after {stage}")

    def exit(self):
        """
        Release all hardware. Idempotent; never raises.

        An in-progress busy wait in another thread is aborted; the panel
        is then left in an unspecified state. A concurrent init() fails.
        """
        if self._backend is None and self._key is None:
            return

        with self._lock:
            self._exit_requested = True
        spi = self._spi
        if spi is not None:
            spi.abort()
        try:
            self._release()
        except Exception as exc:
            logger.warning("error during exit: %s", exc)
        self._state = ModuleState.EXITED
        logger.info("EPD module exited")

    def _release(self):
        driver, self._driver = self._driver, None
        backend, self._backend = self._backend, None
        key, self._key = self._key, None
        self._spi = None

        if driver is not None:
            driver.deinit()
        if backend is not None:
            backend.close()
        if key is not None:
            with _owners_lock:
                if _owners.get(key) is self:
                    del _owners[key]

    def _require_ready(self, operation: str) -> EPD7in3e:
        if self._state != ModuleState.READY:
            raise NotInitializedError(
                f"{operation}() requires init() (module is {ModuleState.name(self._state)})"
            )
        return self._driver

    # =========================================================================
    # Panel Operations
    # =========================================================================

    def clear(self, color: int = WHITE) -> float:
        """Fill the panel with one color. Returns refresh time in seconds."""
        return self._require_ready("clear").clear(color)

    def show_pattern(self, which: str) -> float:
        """Display a built-in pattern (PATTERN_BLOCKS or PATTERN_BARS)."""
        return self._require_ready("show_pattern").show_pattern(which)

    def show_7block(self) -> float:
        """Horizontal color bands test frame."""
        return self.show_pattern(patterns.PATTERN_BLOCKS)

    def show(self) -> float:
        """Vertical color bars test frame."""
        return self.show_pattern(patterns.PATTERN_BARS)

    def display(self, buffer) -> float:
        """
        Send a packed frame buffer to the panel.

        Raises:
            NotInitializedError: init() not called, or after exit()
            InvalidBufferSizeError: len(buffer) != get_buffer_size()
        """
        return self._require_ready("display").display(buffer)

    def sleep(self):
        """Put the panel into deep sleep. exit() then init() to use it again."""
        self._require_ready("sleep").sleep()

    # =========================================================================
    # Geometry & Buffers
    # =========================================================================

    @property
    def state(self) -> int:
        return self._state

    @property
    def driver(self) -> "EPD7in3e | None":
        return self._driver

    @property
    def platform(self) -> Platform:
        return self._platform

    def get_width(self) -> int:
        return EPD7in3e.WIDTH

    def get_height(self) -> int:
        return EPD7in3e.HEIGHT

    def get_buffer_size(self) -> int:
        return EPD7in3e.BUFFER_SIZE

    def get_colors(self) -> dict:
        """Palette name -> pixel code."""
        return dict(COLORS)

    def create_buffer(self, color: int = WHITE) -> bytearray:
        return framebuffer.create_buffer(color, EPD7in3e.WIDTH, EPD7in3e.HEIGHT)

    def set_pixel(self, buffer: bytearray, x: int, y: int, color: int):
        framebuffer.set_pixel(buffer, x, y, color, EPD7in3e.WIDTH, EPD7in3e.HEIGHT)

    def get_pixel(self, buffer, x: int, y: int) -> int:
        return framebuffer.get_pixel(buffer, x, y, EPD7in3e.WIDTH, EPD7in3e.HEIGHT)
