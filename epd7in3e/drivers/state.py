"""
PanelState - Protocol State Machine for the 7in3e Driver
========================================================
Tracks where the panel is in its lifecycle and rejects commands issued
out of order.

State Diagram:

    UNINITIALIZED / SLEPT
          | init()
          v
     POWERING_UP --> RESETTING --> INITIALIZING --> IDLE
                                                     |  ^
              clear() / display() / show_pattern()   |  |
                                                     v  |
                                  TRANSMITTING --> REFRESHING
                                                     |
                      sleep()  IDLE --> SLEEP_PENDING --> SLEPT

Any failure drops the machine back to UNINITIALIZED: the controller is
then in an unknown state and only a full init() recovers it.
"""
from ..errors import ProtocolStateError


class PanelState:
    """Panel protocol states."""
    UNINITIALIZED = 0  # Not powered/reset, or after an error
    POWERING_UP = 1    # POWER asserted, supply settling
    RESETTING = 2      # RST pulse in progress
    INITIALIZING = 3   # Manufacturer init stream, power-on
    IDLE = 4           # Ready for a frame or sleep
    TRANSMITTING = 5   # Frame data on the bus
    REFRESHING = 6     # Waveform running, BUSY asserted
    SLEEP_PENDING = 7  # Deep-sleep command sent, settling
    SLEPT = 8          # Deep sleep, only init() is valid

    _names = {
        0: "UNINITIALIZED",
        1: "POWERING_UP",
        2: "RESETTING",
        3: "INITIALIZING",
        4: "IDLE",
        5: "TRANSMITTING",
        6: "REFRESHING",
        7: "SLEEP_PENDING",
        8: "SLEPT",
    }

    @classmethod
    def name(cls, state: int) -> str:
        """Get human-readable state name."""
        return cls._names.get(state, f"UNKNOWN({state})")


class DriverState:
    """
    Driver state container.

    Attributes:
        state: Current PanelState
        refresh_count: Refreshes completed since the last init
        last_refresh_s: Duration of the last refresh busy-wait
    """

    def __init__(self, state: int = PanelState.UNINITIALIZED):
        self.state = state
        self.refresh_count = 0
        self.last_refresh_s = 0.0

    def require(self, operation: str, *allowed: int):
        """Raise ProtocolStateError unless the current state is one of allowed."""
        if self.state not in allowed:
            expected = "/".join(PanelState.name(s) for s in allowed)
            raise ProtocolStateError(
                f"{operation}() requires {expected}, panel is {PanelState.name(self.state)}"
            )

    def reset(self):
        """Back to UNINITIALIZED (after an error or deinit)."""
        self.state = PanelState.UNINITIALIZED

    def on_init_start(self):
        self.state = PanelState.POWERING_UP
        self.refresh_count = 0

    def on_reset(self):
        self.state = PanelState.RESETTING

    def on_configure(self):
        self.state = PanelState.INITIALIZING

    def on_init_complete(self):
        self.state = PanelState.IDLE

    def on_transmit(self):
        self.state = PanelState.TRANSMITTING

    def on_refresh(self):
        self.state = PanelState.REFRESHING

    def on_refresh_complete(self, elapsed: float):
        self.state = PanelState.IDLE
        self.refresh_count += 1
        self.last_refresh_s = elapsed

    def on_sleep_start(self):
        self.state = PanelState.SLEEP_PENDING

    def on_sleep(self):
        self.state = PanelState.SLEPT

    @property
    def is_idle(self) -> bool:
        return self.state == PanelState.IDLE

    @property
    def is_sleeping(self) -> bool:
        return self.state == PanelState.SLEPT

    def __repr__(self) -> str:
        return (
            f"DriverState("
            f"state={PanelState.name(self.state)}, "
            f"refreshes={self.refresh_count})"
        )
