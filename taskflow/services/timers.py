"""
Clock and timer abstractions used by the notification scheduler
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional, Protocol
from taskflow.utils.date_utils import utc_now


class Clock(Protocol):
    """Source of the current time"""

    def now(self) -> datetime:
        ...


class ScheduledHandle(Protocol):
    """Cancellable pending callback"""

    def cancel(self) -> None:
        ...


class Timer(Protocol):
    """Runs a callback once after a delay"""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledHandle:
        ...


class SystemClock:
    """Wall clock in UTC"""

    def now(self) -> datetime:
        return utc_now()


class AsyncioTimer:
    """Timer on top of the asyncio event loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay_seconds), callback)
