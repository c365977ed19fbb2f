"""
Display driver layer.
"""
from .state import PanelState, DriverState
from .base import DisplayDriver
from .epd7in3e import EPD7in3e

__all__ = [
    "PanelState",
    "DriverState",
    "DisplayDriver",
    "EPD7in3e",
]
