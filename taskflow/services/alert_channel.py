"""
Alert delivery: platform channel interface and the in-process fallback toast
"""

import asyncio
import itertools
import sys
from typing import Callable, Dict, List, Optional, Protocol, TextIO
from taskflow.config.constants import (
    PERMISSION_RECORD_NAME,
    TOAST_DURATION_SECONDS,
    TOAST_HINT,
    TOAST_TRANSITION_SECONDS,
)
from taskflow.models.notification import Alert, PermissionState, Toast, ToastPhase
from taskflow.services.local_store import LocalStore
from taskflow.services.timers import Clock, ScheduledHandle, SystemClock, Timer
from taskflow.utils.logger import logger


class AlertChannel(Protocol):
    """Platform-level alerting primitives"""

    @property
    def is_supported(self) -> bool:
        ...

    def permission(self) -> PermissionState:
        ...

    async def request_permission(self) -> PermissionState:
        ...

    def show(self, alert: Alert) -> None:
        """Deliver alert natively; raise on failure"""
        ...


class ConsoleAlertChannel:
    """
    Native channel for terminal use

    The permission prompt is a yes/no question on stdin; alerts are written
    to stderr, urgent ones with a " [!]" marker. With a store the answer is
    kept across restarts, so a user who declined is not asked again.
    """

    def __init__(
        self,
        store: Optional[LocalStore] = None,
        permission: Optional[PermissionState] = None,
        stream: Optional[TextIO] = None,
        ask: Optional[Callable[[str], str]] = None,
        record_name: str = PERMISSION_RECORD_NAME,
    ):
        """
        Initialize console channel

        Args:
            store: Local store remembering the prompt answer (optional)
            permission: Initial permission (defaults to the stored answer)
            stream: Output stream for alerts (defaults to stderr)
            ask: Prompt function (defaults to input)
            record_name: Record holding the stored answer
        """
        self.store = store
        self.record_name = record_name
        self.stream = stream or sys.stderr
        self._ask = ask or input
        self.logger = logger
        self._permission = permission if permission is not None else self._load_permission()

    def _load_permission(self) -> PermissionState:
        if self.store is None:
            return PermissionState.UNREQUESTED
        raw = self.store.get(self.record_name)
        if raw is None:
            return PermissionState.UNREQUESTED
        try:
            return PermissionState(raw)
        except ValueError:
            self.logger.warning(f"Ignoring unknown stored notification permission {raw!r}")
            return PermissionState.UNREQUESTED

    @property
    def is_supported(self) -> bool:
        return True

    def permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        answer = await asyncio.to_thread(self._ask, "Allow TaskFlow deadline reminders? [y/N] ")
        granted = answer.strip().lower() in {"y", "yes"}
        self._permission = PermissionState.GRANTED if granted else PermissionState.DENIED
        if self.store is not None:
            self.store.set(self.record_name, self._permission.value)
        return self._permission

    def show(self, alert: Alert) -> None:
        marker = " [!]" if alert.urgent else ""
        self.stream.write(f"{alert.title}{marker}\n  {alert.body}\n")
        self.stream.flush()


class FallbackToaster:
    """
    In-process visual toast

    A toast enters, stays visible and exits on its own after a fixed duration.
    Every phase change is passed to the renderer.
    """

    def __init__(
        self,
        timer: Timer,
        clock: Optional[Clock] = None,
        render: Optional[Callable[[Toast], None]] = None,
        duration: float = TOAST_DURATION_SECONDS,
        transition: float = TOAST_TRANSITION_SECONDS,
        hint: Optional[str] = TOAST_HINT,
    ):
        self.timer = timer
        self.clock = clock or SystemClock()
        self.render = render or self._log_toast
        self.duration = duration
        self.transition = transition
        self.hint = hint
        self.logger = logger
        self._ids = itertools.count(1)
        self._toasts: Dict[int, Toast] = {}
        self._handles: Dict[int, List[ScheduledHandle]] = {}

    @property
    def active(self) -> List[Toast]:
        """Toasts currently on screen (entering, visible or exiting)"""
        return list(self._toasts.values())

    def _log_toast(self, toast: Toast):
        if toast.phase == ToastPhase.ENTERING:
            body = f" - {toast.body}" if toast.body else ""
            self.logger.info(f"[toast] {toast.title}{body}")

    def _set_phase(self, toast_id: int, phase: ToastPhase):
        toast = self._toasts.get(toast_id)
        if toast is None:
            return
        toast.phase = phase
        if phase == ToastPhase.DISMISSED:
            del self._toasts[toast_id]
            self._handles.pop(toast_id, None)
        self.render(toast)

    def _mark_visible(self, toast_id: int):
        toast = self._toasts.get(toast_id)
        if toast is not None and toast.phase == ToastPhase.ENTERING:
            self._set_phase(toast_id, ToastPhase.VISIBLE)

    def _begin_exit(self, toast_id: int):
        if toast_id not in self._toasts:
            return
        self._set_phase(toast_id, ToastPhase.EXITING)
        handle = self.timer.call_later(
            self.transition, lambda: self._set_phase(toast_id, ToastPhase.DISMISSED)
        )
        self._handles.setdefault(toast_id, []).append(handle)

    def show(self, title: str, body: Optional[str] = None) -> Toast:
        """
        Show toast

        Args:
            title: Headline
            body: Optional details

        Returns:
            The toast (its phase advances as timers fire)
        """
        toast = Toast(
            id=next(self._ids),
            title=title,
            body=body,
            hint=self.hint,
            shown_at=self.clock.now(),
        )
        self._toasts[toast.id] = toast
        self.render(toast)

        self._handles[toast.id] = [
            self.timer.call_later(
                self.transition, lambda: self._mark_visible(toast.id)
            ),
            self.timer.call_later(self.duration, lambda: self._begin_exit(toast.id)),
        ]
        return toast

    def dismiss(self, toast_id: int):
        """Remove toast immediately"""
        for handle in self._handles.pop(toast_id, []):
            handle.cancel()
        self._set_phase(toast_id, ToastPhase.DISMISSED)
