"""
Deadline notification scheduler

Owns the alert permission state and a periodic scan over the task
collection. Each scan classifies open tasks with a due date into one of
three deadline buckets and emits at most one alert per task. Alerts go to
the platform channel when permission is granted, otherwise (or when the
platform fails) to the in-process fallback toast.

Usage:

    scheduler = NotificationScheduler(channel, timer=AsyncioTimer())
    await scheduler.request_permission()
    scheduler.start(store.snapshot)
    ...
    scheduler.stop()
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set
from taskflow.config.constants import DUE_SOON_WINDOW_SECONDS, DUE_TOMORROW_WINDOW_SECONDS
from taskflow.config.settings import settings
from taskflow.models.notification import (
    Alert,
    DedupKey,
    DeliveryChannel,
    DisplayState,
    PermissionState,
    ThresholdKind,
)
from taskflow.models.task import Task
from taskflow.services.alert_channel import AlertChannel, FallbackToaster
from taskflow.services.timers import Clock, ScheduledHandle, SystemClock, Timer
from taskflow.utils.date_utils import ensure_utc
from taskflow.utils.logger import logger

DUE_SOON_WINDOW = timedelta(seconds=DUE_SOON_WINDOW_SECONDS)
DUE_TOMORROW_WINDOW = timedelta(seconds=DUE_TOMORROW_WINDOW_SECONDS)

PERMISSION_GUIDE = """
To enable notifications:
1. Open the notification settings of your system or browser
2. Find TaskFlow and change it to "Allow"
3. Restart TaskFlow
"""

_ALERT_TEXT = {
    ThresholdKind.OVERDUE: ("🚨 Task Overdue!", '"{title}" is overdue!', True),
    ThresholdKind.DUE_SOON: ("⏰ Task Due Soon!", '"{title}" is due in less than 1 hour!', True),
    ThresholdKind.DUE_TOMORROW: ("📅 Task Due Tomorrow", '"{title}" is due tomorrow!', False),
}

TaskSource = Callable[[], Sequence[Task]]


def classify(task: Task, now: datetime) -> Optional[ThresholdKind]:
    """
    Deadline bucket of a task

    overdue:      due <= now
    due-soon:     now < due <= now + 1h
    due-tomorrow: now + 1h < due <= now + 24h

    Args:
        task: Task to check
        now: Reference time

    Returns:
        Threshold kind, or None for completed, undated or far-away tasks
    """
    if task.completed or task.due_date is None:
        return None

    now = ensure_utc(now)
    due = task.due_date
    if due <= now:
        return ThresholdKind.OVERDUE
    if due <= now + DUE_SOON_WINDOW:
        return ThresholdKind.DUE_SOON
    if due <= now + DUE_TOMORROW_WINDOW:
        return ThresholdKind.DUE_TOMORROW
    return None


class NotificationScheduler:
    """Permission state machine plus periodic deadline scan"""

    def __init__(
        self,
        channel: AlertChannel,
        timer: Timer,
        clock: Optional[Clock] = None,
        toaster: Optional[FallbackToaster] = None,
        on_alert: Optional[Callable[[Alert], None]] = None,
        interval_ms: Optional[int] = None,
        remember_alerts: Optional[bool] = None,
    ):
        """
        Initialize scheduler

        Args:
            channel: Platform alerting channel
            timer: Timer driving the periodic scan
            clock: Time source (defaults to the system clock)
            toaster: Fallback toast presenter
            on_alert: Called with every delivered alert
            interval_ms: Default scan interval
            remember_alerts: Keep the last alerted bucket per task across scans
        """
        self.channel = channel
        self.timer = timer
        self.clock = clock or SystemClock()
        self.toaster = toaster or FallbackToaster(timer, self.clock)
        self.on_alert = on_alert
        self.interval_ms = settings.TASKFLOW_CHECK_INTERVAL_MS if interval_ms is None else interval_ms
        self.remember_alerts = (
            settings.TASKFLOW_REMEMBER_ALERTS if remember_alerts is None else remember_alerts
        )
        self.logger = logger

        self._permission = self._read_platform_permission()
        self._disabled = False
        self._handle: Optional[ScheduledHandle] = None
        self._generation = 0
        self._task_source: Optional[TaskSource] = None
        self._interval = self.interval_ms / 1000.0
        self._last_alerted: Dict[str, ThresholdKind] = {}

    # ---- permission ----

    def _read_platform_permission(self) -> PermissionState:
        if not self.channel.is_supported:
            self.logger.info("Platform notifications are not supported; using fallback alerts")
            return PermissionState.DENIED
        return self.channel.permission()

    @property
    def permission(self) -> PermissionState:
        return self._permission

    @property
    def display_state(self) -> DisplayState:
        if self._permission == PermissionState.GRANTED:
            return DisplayState.DISABLED if self._disabled else DisplayState.ENABLED
        if self._permission == PermissionState.DENIED:
            return DisplayState.BLOCKED
        return DisplayState.UNREQUESTED

    async def request_permission(self) -> bool:
        """
        Ask the platform for alert permission

        Granted and denied are final: a granted state returns True without
        prompting; a denied state never prompts again, shows how to unblock
        notifications and returns False.

        Returns:
            True if native alerts are allowed
        """
        if not self.channel.is_supported:
            self.logger.info("Platform notifications are not supported")
            return False

        if self._permission == PermissionState.GRANTED:
            return True

        if self._permission == PermissionState.DENIED:
            self.logger.info("Notification permission was previously denied; not prompting again")
            self.show_permission_guide()
            return False

        try:
            outcome = PermissionState(await self.channel.request_permission())
        except Exception as e:
            self.logger.error(f"Error requesting notification permission: {e}", exc_info=True)
            return False

        # A dismissed prompt leaves the state unrequested
        self._permission = outcome
        self.logger.info(f"Notification permission: {self._permission.value}")
        return self._permission == PermissionState.GRANTED

    def show_permission_guide(self):
        """Tell the user how to unblock notifications"""
        self.logger.info(PERMISSION_GUIDE)
        self.toaster.show(
            "Notifications Blocked",
            "Please enable notifications in your system settings to get task reminders.",
        )

    async def enable(self) -> bool:
        """
        Turn notifications on (settings toggle)

        Re-enables a locally disabled channel, otherwise requests permission
        and greets the user when it is granted.

        Returns:
            True if native alerts are now active
        """
        if self._permission == PermissionState.GRANTED and self._disabled:
            self._disabled = False
            self.logger.info("Notifications enabled")
            return True

        previous = self._permission
        granted = await self.request_permission()
        if granted and previous != PermissionState.GRANTED:
            self.emit(
                "🔔 TaskFlow Notifications Enabled",
                "You will now receive reminders for upcoming task deadlines!",
                ("notifications-enabled", ""),
            )
        elif previous != PermissionState.DENIED and self._permission == PermissionState.DENIED:
            self.show_permission_guide()
        return granted

    def disable(self):
        """Switch native alerts off without touching the platform permission"""
        if self._permission == PermissionState.GRANTED:
            self._disabled = True
            self.logger.info("Notifications disabled")

    # ---- delivery ----

    def emit(
        self,
        title: str,
        body: str,
        dedup_key: DedupKey,
        urgent: bool = False,
        task_id: Optional[str] = None,
        kind: Optional[ThresholdKind] = None,
    ) -> Alert:
        """
        Deliver an alert

        Native delivery when permission is granted and not disabled; on any
        failure, or without permission, a fallback toast is shown instead.
        Urgent alerts ask the platform to keep them until dismissed.

        Returns:
            The delivered alert (with the channel that was used)
        """
        alert = Alert(
            title=title,
            body=body,
            dedup_key=dedup_key,
            urgent=urgent,
            task_id=task_id,
            kind=kind,
        )

        if self._permission == PermissionState.GRANTED and not self._disabled:
            try:
                self.channel.show(alert)
                return self._delivered(alert, DeliveryChannel.NATIVE)
            except Exception as e:
                self.logger.warning(f"Native notification failed, using fallback: {e}")
        else:
            self.logger.debug(f"Native notifications unavailable ({self.display_state.value})")

        self.toaster.show(title, body)
        return self._delivered(alert, DeliveryChannel.FALLBACK)

    def _delivered(self, alert: Alert, channel: DeliveryChannel) -> Alert:
        alert = alert.model_copy(update={"channel": channel})
        self.logger.debug(f"Alert {alert.tag} delivered via {channel.value}")
        if self.on_alert is not None:
            try:
                self.on_alert(alert)
            except Exception:
                self.logger.exception("on_alert callback failed")
        return alert

    def _alert_for(self, task: Task, kind: ThresholdKind) -> Alert:
        title, body, urgent = _ALERT_TEXT[kind]
        return self.emit(
            title,
            body.format(title=task.title),
            (task.id, kind.value),
            urgent=urgent,
            task_id=task.id,
            kind=kind,
        )

    # ---- scanning ----

    def _now(self, now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now is not None else self.clock.now()

    def scan(self, tasks: Iterable[Task], now: Optional[datetime] = None) -> List[Alert]:
        """
        Check all tasks against the deadline thresholds

        At most one alert per task and threshold kind is emitted per call.
        The set of emitted keys is dropped when the call returns unless
        remember_alerts is on, in which case a task is alerted again only
        when it moves to a different bucket.

        Args:
            tasks: Task snapshot (not modified)
            now: Reference time (defaults to the clock)

        Returns:
            Alerts emitted by this scan
        """
        now = self._now(now)
        seen: Set[DedupKey] = set()
        current: Dict[str, ThresholdKind] = {}
        alerts = []

        for task in tasks:
            kind = classify(task, now)
            if kind is None:
                continue

            key = (task.id, kind.value)
            if key in seen:
                continue
            seen.add(key)
            current[task.id] = kind

            if self.remember_alerts and self._last_alerted.get(task.id) == kind:
                continue

            alerts.append(self._alert_for(task, kind))

        if self.remember_alerts:
            self._last_alerted = current

        if alerts:
            self.logger.info(f"Deadline check: {len(alerts)} alert(s)")
        return alerts

    def check_single_task(self, task: Task, now: Optional[datetime] = None) -> Optional[Alert]:
        """
        Check one task right away (e.g. just after it was created)

        Returns:
            Emitted alert, or None if the task is not near its deadline
        """
        kind = classify(task, self._now(now))
        if kind is None:
            return None
        alert = self._alert_for(task, kind)
        if self.remember_alerts:
            self._last_alerted[task.id] = kind
        return alert

    # ---- periodic loop ----

    @property
    def running(self) -> bool:
        return self._task_source is not None

    def start(self, task_source: Any, interval_ms: Optional[int] = None):
        """
        Start periodic deadline checks

        Scans once immediately, then every interval. A running loop is
        stopped first. The task source is called on every tick so the scan
        always sees the latest collection.

        Args:
            task_source: Zero-argument callable returning the current tasks,
                or an object with a snapshot() method (e.g. TaskStore)
            interval_ms: Interval between scans (defaults to interval_ms)
        """
        self.stop()

        if hasattr(task_source, "snapshot"):
            task_source = task_source.snapshot
        if not callable(task_source):
            raise TypeError("task_source must be callable so each scan reads the latest tasks")

        interval_ms = self.interval_ms if interval_ms is None else interval_ms
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self._task_source = task_source
        self._interval = interval_ms / 1000.0
        generation = self._generation

        self.logger.info(f"Deadline checker started (every {interval_ms} ms)")
        self._schedule(generation)
        self._scan_source()

    def stop(self):
        """Stop periodic checks; no scan runs after this returns"""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._task_source is not None:
            self.logger.info("Deadline checker stopped")
        self._task_source = None
        self._generation += 1

    def _schedule(self, generation: int):
        self._handle = self.timer.call_later(self._interval, lambda: self._tick(generation))

    def _tick(self, generation: int):
        if generation != self._generation or self._task_source is None:
            return
        self._schedule(generation)
        self._scan_source()

    def _scan_source(self):
        source = self._task_source
        if source is None:
            return
        try:
            self.scan(source())
        except Exception:
            self.logger.exception("Deadline check failed")
