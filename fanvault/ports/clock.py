from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    def now(self) -> datetime:
        """Return current time as a timezone-aware UTC datetime."""
        ...
