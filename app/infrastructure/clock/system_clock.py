from datetime import datetime

from ...application.ports.clock import Clock


class SystemClock(Clock):
    """Wall clock in naive local time, matching how appointments are stored."""

    def now(self) -> datetime:
        return datetime.now()
