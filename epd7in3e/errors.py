"""
Error Hierarchy
===============
Every exception raised by the driver inherits from EPDError, so callers
can catch all driver errors with a single except clause.

Exception Hierarchy
-------------------
EPDError (base)
├── HardwareError
│   ├── PinConfigurationError - pin or bus could not be claimed
│   ├── TransportError - pin write / SPI transfer fault (an IOError)
│   └── BusyTimeoutError - controller never reported ready (a TimeoutError)
├── StateError
│   ├── ProtocolStateError - operation invalid in the current panel state
│   ├── AlreadyInitializedError - init() on a module that is already ready
│   └── NotInitializedError - draw/sleep before init() or after exit()
└── FramebufferError
    ├── InvalidBufferSizeError - buffer length != panel buffer size
    ├── OutOfBoundsError - pixel coordinate outside the panel
    └── InvalidColorError - nibble is not one of the palette codes

Nothing is retried internally. After any HardwareError the panel state is
unspecified and a fresh init() is required.
"""


class EPDError(Exception):
    """Base exception for all e-paper driver errors."""


# =============================================================================
# Hardware
# =============================================================================

class HardwareError(EPDError):
    """Base for faults reported by a pin/bus backend or by the panel."""


class PinConfigurationError(HardwareError):
    """
    A pin or the SPI bus could not be claimed.

    Raised when the line is already claimed by another process, when
    permission is denied, or when the platform does not provide the pin.

    Attributes:
        role: PinRole that failed (None for the bus itself)
        pin: Platform pin identifier that was requested
    """

    def __init__(self, message: str, role: str | None = None, pin=None):
        super().__init__(message)
        self.role = role
        self.pin = pin


class TransportError(HardwareError, IOError):
    """A pin write, pin read or SPI transfer failed at the OS level."""


class BusyTimeoutError(HardwareError, TimeoutError):
    """
    The BUSY line did not report ready within the allowed time.

    Attributes:
        operation: Name of the step that was waiting (e.g. "refresh")
        timeout: Bound that was exceeded, in seconds
    """

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"EPD busy timeout during {operation} (>{timeout}s)")
        self.operation = operation
        self.timeout = timeout


# =============================================================================
# Lifecycle / protocol state
# =============================================================================

class StateError(EPDError):
    """Base for operations issued in a state that does not allow them."""


class ProtocolStateError(StateError):
    """Panel command issued while the driver is not in a state that accepts it."""


class AlreadyInitializedError(StateError):
    """init() called while the module (or its hardware) is already in use."""


class NotInitializedError(StateError):
    """Panel operation called before init() or after exit()."""


# =============================================================================
# Framebuffer
# =============================================================================

class FramebufferError(EPDError):
    """Base for caller errors in framebuffer contents or coordinates."""


class InvalidBufferSizeError(FramebufferError, ValueError):
    """Buffer length does not match ceil(width / 2) * height."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Buffer must be {expected} bytes, got {actual}")
        self.expected = expected
        self.actual = actual


class OutOfBoundsError(FramebufferError, IndexError):
    """Pixel coordinate outside [0, width) x [0, height)."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(f"Pixel ({x}, {y}) outside {width}x{height}")
        self.x = x
        self.y = y


class InvalidColorError(FramebufferError, ValueError):
    """Pixel code that is not part of the panel palette."""

    def __init__(self, code):
        super().__init__(f"Invalid pixel code {code!r}")
        self.code = code
