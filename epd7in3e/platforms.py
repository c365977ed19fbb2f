"""
Platforms - Pin Tables, Bus Settings and Timing per Board
=========================================================
Persisted wiring for the Waveshare 7.3" e-Paper HAT on the boards the
vendor supports, plus the controller timing the protocol relies on.

    Role    rpi (board / BCM line)   jetson (sysfs number)
    ----    ----------------------   ---------------------
    RST     D17 / 17                 50
    DC      D25 / 25                 13
    CS      kernel CE0 / 8           19
    BUSY    D24 / 24                 15
    PWR     D18 / 18                 79
    MOSI    MOSI / 10                16
    SCLK    SCLK / 11                18

Environment overrides (read by load_platform / resolve_variant):

    EPD_PLATFORM   rpi | jetson                   (default: rpi)
    EPD_BACKEND    cdev | sysfs | softspi         (default: per platform)
    EPD_SPI_DEV    spidev path for the sysfs variant
    EPD_SPI_HZ     SPI clock for hardware variants
    EPD_GPIO_BASE  sysfs number of line 0 (512 on Pi kernels >= 6.6)

Timing values are not overridable: they encode what the controller needs.
"""
import logging
import os

from .hardware.backend import BackendVariant, PinRole

logger = logging.getLogger(__name__)


class Timing:
    """
    Controller timing for one platform.

    Attributes:
        power_settle_ms: Wait after asserting PWR before reset
        reset_high_ms: RST held high before the pulse
        reset_pulse_ms: RST low pulse width
        reset_settle_ms: Wait after RST returns high
        busy_poll_ms: Delay between BUSY samples
        init_timeout_s: Bound on busy-waits during init
        command_timeout_s: Bound on busy-waits after power on/off
        refresh_timeout_s: Bound on the refresh busy-wait
        sleep_settle_ms: Wait after the deep-sleep command
    """

    def __init__(
        self,
        power_settle_ms: float = 10,
        reset_high_ms: float = 20,
        reset_pulse_ms: float = 2,
        reset_settle_ms: float = 20,
        busy_poll_ms: float = 10,
        init_timeout_s: float = 10.0,
        command_timeout_s: float = 5.0,
        refresh_timeout_s: float = 60.0,
        sleep_settle_ms: float = 2000,
    ):
        self.power_settle_ms = power_settle_ms
        self.reset_high_ms = reset_high_ms
        self.reset_pulse_ms = reset_pulse_ms
        self.reset_settle_ms = reset_settle_ms
        self.busy_poll_ms = busy_poll_ms
        self.init_timeout_s = init_timeout_s
        self.command_timeout_s = command_timeout_s
        self.refresh_timeout_s = refresh_timeout_s
        self.sleep_settle_ms = sleep_settle_ms

    def __repr__(self) -> str:
        return (
            f"Timing(reset={self.reset_high_ms}/{self.reset_pulse_ms}/"
            f"{self.reset_settle_ms}ms, poll={self.busy_poll_ms}ms, "
            f"refresh<={self.refresh_timeout_s}s)"
        )


class Platform:
    """
    Wiring and bus parameters for one board.

    Attributes:
        name: Platform tag ("rpi", "jetson")
        board_pins: PinRole -> board pin name, for the CDEV variant
        line_pins: PinRole -> GPIO line offset, for the sysfs variants
        default_variant: BackendVariant used when none is requested
        spi_device: spidev path for the SYSFS variant
        baudrate: SPI clock for hardware variants (Hz)
        gpio_base: Added to line offsets for sysfs numbers
        kernel_cs: True if the SPI driver owns CS on hardware variants
        half_period_ns: Extra clock half-period for the SOFTSPI variant
        timing: Timing constants
    """

    def __init__(
        self,
        name: str,
        board_pins: dict,
        line_pins: dict,
        default_variant: str,
        spi_device: str = "/dev/spidev0.0",
        baudrate: int = 4_000_000,
        gpio_base: int = 0,
        kernel_cs: bool = True,
        half_period_ns: int = 0,
        timing: Timing | None = None,
    ):
        self.name = name
        self.board_pins = dict(board_pins)
        self.line_pins = dict(line_pins)
        self.default_variant = default_variant
        self.spi_device = spi_device
        self.baudrate = baudrate
        self.gpio_base = gpio_base
        self.kernel_cs = kernel_cs
        self.half_period_ns = half_period_ns
        self.timing = timing or Timing()

    def replace(self, **changes) -> "Platform":
        """Copy with some attributes changed."""
        attrs = dict(vars(self))
        attrs.update(changes)
        return Platform(**attrs)

    def __repr__(self) -> str:
        return (
            f"Platform({self.name}, variant={self.default_variant}, "
            f"spi={self.spi_device}@{self.baudrate}, base={self.gpio_base})"
        )


# =============================================================================
# Built-in platforms
# =============================================================================

RPI = Platform(
    name="rpi",
    board_pins={
        PinRole.RESET: "D17",
        PinRole.DC: "D25",
        PinRole.CS: "CE0",
        PinRole.BUSY: "D24",
        PinRole.POWER: "D18",
        PinRole.MOSI: "MOSI",
        PinRole.SCLK: "SCLK",
    },
    line_pins={
        PinRole.RESET: 17,
        PinRole.DC: 25,
        PinRole.CS: 8,
        PinRole.BUSY: 24,
        PinRole.POWER: 18,
        PinRole.MOSI: 10,
        PinRole.SCLK: 11,
    },
    default_variant=BackendVariant.CDEV,
)

JETSON = Platform(
    name="jetson",
    board_pins={
        PinRole.RESET: "D17",
        PinRole.DC: "D25",
        PinRole.CS: "CE0",
        PinRole.BUSY: "D24",
        PinRole.POWER: "D18",
        PinRole.MOSI: "MOSI",
        PinRole.SCLK: "SCLK",
    },
    line_pins={
        PinRole.RESET: 50,
        PinRole.DC: 13,
        PinRole.CS: 19,
        PinRole.BUSY: 15,
        PinRole.POWER: 79,
        PinRole.MOSI: 16,
        PinRole.SCLK: 18,
    },
    default_variant=BackendVariant.SOFTSPI,
)

PLATFORMS = {p.name: p for p in (RPI, JETSON)}


# =============================================================================
# Configuration
# =============================================================================

def _env_int(env, key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


def load_platform(name: str | None = None, env=None) -> Platform:
    """
    Resolve a platform profile, applying environment overrides.

    Args:
        name: Platform tag. Defaults to $EPD_PLATFORM, then "rpi".
        env: Mapping to read overrides from (default: os.environ)

    Raises:
        ValueError: Unknown platform or malformed override
    """
    env = os.environ if env is None else env
    name = name or env.get("EPD_PLATFORM") or RPI.name
    try:
        base = PLATFORMS[name]
    except KeyError:
        raise ValueError(
            f"Unknown platform {name!r}, expected one of {sorted(PLATFORMS)}"
        ) from None

    platform = base.replace(
        spi_device=env.get("EPD_SPI_DEV") or base.spi_device,
        baudrate=_env_int(env, "EPD_SPI_HZ", base.baudrate),
        gpio_base=_env_int(env, "EPD_GPIO_BASE", base.gpio_base),
    )
    logger.debug("Loaded %r", platform)
    return platform


def resolve_variant(platform: Platform, variant: str | None = None, env=None) -> str:
    """Pick the backend variant: argument, then $EPD_BACKEND, then platform default."""
    env = os.environ if env is None else env
    variant = variant or env.get("EPD_BACKEND") or platform.default_variant
    if variant not in BackendVariant.ALL:
        raise ValueError(
            f"Unknown backend {variant!r}, expected one of {BackendVariant.ALL}"
        )
    return variant


def hardware_key(platform: Platform) -> tuple:
    """Identity of the header lines a platform profile drives."""
    return (platform.name, tuple(sorted(platform.line_pins.values())))


def create_backend(platform: Platform, variant: str | None = None, env=None):
    """
    Build (but do not open) the backend for a platform.

    Hardware-SPI variants leave CS to the kernel when platform.kernel_cs
    is set; the bit-banged variant always drives CS itself.

    Every variant gets the same hardware_id for a given platform, so the
    lifecycle guard sees two variants on the same header as one resource.
    """
    variant = resolve_variant(platform, variant, env)
    hardware_id = hardware_key(platform)

    if variant == BackendVariant.CDEV:
        from .hardware.cdev import CdevBackend
        pins = dict(platform.board_pins)
        if platform.kernel_cs:
            pins[PinRole.CS] = None
        return CdevBackend(
            pins,
            sclk=pins.pop(PinRole.SCLK),
            mosi=pins.pop(PinRole.MOSI),
            baudrate=platform.baudrate,
            hardware_id=hardware_id,
        )

    if variant == BackendVariant.SYSFS:
        from .hardware.sysfs import SysfsBackend
        pins = dict(platform.line_pins)
        if platform.kernel_cs:
            pins[PinRole.CS] = None
        pins.pop(PinRole.MOSI, None)
        pins.pop(PinRole.SCLK, None)
        return SysfsBackend(
            pins,
            spi_device=platform.spi_device,
            baudrate=platform.baudrate,
            gpio_base=platform.gpio_base,
            hardware_id=hardware_id,
        )

    from .hardware.softspi import SoftSpiBackend
    return SoftSpiBackend(
        dict(platform.line_pins),
        half_period_ns=platform.half_period_ns,
        gpio_base=platform.gpio_base,
        hardware_id=hardware_id,
    )
