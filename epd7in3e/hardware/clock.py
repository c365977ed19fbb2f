"""
Clock - Injectable Time Source
==============================
All protocol delays and busy-wait deadlines go through a clock object so
tests can substitute one that advances instantly.

Any object with monotonic() -> float (seconds) and sleep(seconds) works.
"""
import time


class MonotonicClock:
    """Real time: time.monotonic() and time.sleep()."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float):
        if seconds > 0:
            time.sleep(seconds)


DEFAULT_CLOCK = MonotonicClock()
