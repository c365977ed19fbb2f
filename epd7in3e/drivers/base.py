"""
DisplayDriver - Base Interface for EPD Panel Drivers
====================================================
Defines the interface the lifecycle manager drives, so it works with any
panel without knowing controller details.

Note: duck typing with NotImplementedError, no ABC.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import DriverState


class DisplayDriver:
    """
    Base class for e-paper panel drivers.

    Properties:
        WIDTH: Physical display width in pixels
        HEIGHT: Physical display height in pixels
        BUFFER_SIZE: Required frame buffer size in bytes
        BUSY_LEVEL: Level the BUSY line reads while the controller works
        state: Current DriverState
    """

    # Subclasses must define these
    WIDTH: int = 0
    HEIGHT: int = 0
    BUFFER_SIZE: int = 0
    BUSY_LEVEL: bool = True

    def init(self):
        """Power up, reset and configure the panel. Valid when off or asleep."""
        raise NotImplementedError

    def display(self, data) -> float:
        """
        Send a full frame and refresh.

        Args:
            data: Frame buffer of exactly BUFFER_SIZE bytes

        Returns:
            Refresh time in seconds
        """
        raise NotImplementedError

    def clear(self, color: int) -> float:
        """Fill the panel with one palette color and refresh."""
        raise NotImplementedError

    def show_pattern(self, which: str) -> float:
        """Display a built-in test pattern."""
        raise NotImplementedError

    def sleep(self):
        """Enter deep sleep. Only init() is valid afterwards."""
        raise NotImplementedError

    def deinit(self):
        """Drop panel power. Must not raise."""
        raise NotImplementedError

    @property
    def state(self) -> "DriverState":
        """Current driver state."""
        raise NotImplementedError

    @property
    def is_sleeping(self) -> bool:
        """Check if display is in deep sleep."""
        raise NotImplementedError
