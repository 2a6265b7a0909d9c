"""
Tests for notification scheduler
"""

import pytest
from datetime import timedelta
from taskflow.models.notification import (
    DeliveryChannel,
    DisplayState,
    PermissionState,
    ThresholdKind,
)
from taskflow.services.notification_scheduler import classify
from tests.fakes import FakeAlertChannel, make_task


def _due_in(virtual_timer, **delta):
    return virtual_timer.now() + timedelta(**delta)


@pytest.mark.parametrize(
    "delta,expected",
    [
        (timedelta(seconds=-1), ThresholdKind.OVERDUE),
        (timedelta(0), ThresholdKind.OVERDUE),
        (timedelta(seconds=1), ThresholdKind.DUE_SOON),
        (timedelta(minutes=30), ThresholdKind.DUE_SOON),
        (timedelta(hours=1), ThresholdKind.DUE_SOON),
        (timedelta(hours=1, seconds=1), ThresholdKind.DUE_TOMORROW),
        (timedelta(hours=20), ThresholdKind.DUE_TOMORROW),
        (timedelta(hours=24), ThresholdKind.DUE_TOMORROW),
        (timedelta(hours=48), None),
    ],
)
def test_classify_thresholds(virtual_timer, delta, expected):
    """Test deadline buckets around their boundaries"""
    now = virtual_timer.now()
    task = make_task("1", due_date=now + delta)
    assert classify(task, now) == expected


def test_classify_ignores_completed_and_undated(virtual_timer):
    """Test completed or undated tasks are never alerted"""
    now = virtual_timer.now()
    assert classify(make_task("1", completed=True, due_date=now), now) is None
    assert classify(make_task("2"), now) is None


def test_scan_emits_one_alert_per_bucket(make_scheduler, granted_channel, virtual_timer):
    """Test overdue / soon / tomorrow alerts and their text"""
    scheduler = make_scheduler(granted_channel)
    tasks = [
        make_task("1", "Pay rent", due_date=_due_in(virtual_timer, seconds=-1)),
        make_task("2", "Call mom", due_date=_due_in(virtual_timer, minutes=30)),
        make_task("3", "Dentist", due_date=_due_in(virtual_timer, hours=20)),
        make_task("4", "Holiday", due_date=_due_in(virtual_timer, hours=48)),
    ]

    alerts = scheduler.scan(tasks)

    assert [(a.task_id, a.kind) for a in alerts] == [
        ("1", ThresholdKind.OVERDUE),
        ("2", ThresholdKind.DUE_SOON),
        ("3", ThresholdKind.DUE_TOMORROW),
    ]
    assert alerts[0].title == "🚨 Task Overdue!"
    assert alerts[0].body == '"Pay rent" is overdue!'
    assert alerts[0].tag == "overdue-1"
    assert [a.urgent for a in alerts] == [True, True, False]
    assert all(a.channel == DeliveryChannel.NATIVE for a in alerts)
    assert len(granted_channel.shown) == 3


def test_scan_deduplicates_within_one_pass(make_scheduler, granted_channel, virtual_timer):
    """Test a task listed twice is alerted once"""
    scheduler = make_scheduler(granted_channel)
    task = make_task("1", due_date=_due_in(virtual_timer, minutes=5))

    alerts = scheduler.scan([task, task])

    assert len(alerts) == 1


def test_each_scan_alerts_again_by_default(make_scheduler, granted_channel, virtual_timer):
    """Test dedup set is not carried over between scans"""
    scheduler = make_scheduler(granted_channel)
    tasks = [make_task("1", due_date=_due_in(virtual_timer, minutes=5))]

    assert len(scheduler.scan(tasks)) == 1
    assert len(scheduler.scan(tasks)) == 1


def test_remember_alerts_suppresses_repeats(make_scheduler, granted_channel, virtual_timer):
    """Test remembered alerts repeat only when the bucket changes"""
    scheduler = make_scheduler(granted_channel, remember_alerts=True)
    tasks = [make_task("1", due_date=_due_in(virtual_timer, minutes=90))]

    first = scheduler.scan(tasks)
    assert [a.kind for a in first] == [ThresholdKind.DUE_TOMORROW]
    assert scheduler.scan(tasks) == []

    virtual_timer.advance(60 * 60)
    moved = scheduler.scan(tasks)
    assert [a.kind for a in moved] == [ThresholdKind.DUE_SOON]


def test_check_single_task(make_scheduler, granted_channel, virtual_timer):
    """Test immediate check of a newly created task"""
    scheduler = make_scheduler(granted_channel)

    alert = scheduler.check_single_task(make_task("1", due_date=_due_in(virtual_timer, minutes=10)))
    assert alert.kind == ThresholdKind.DUE_SOON

    assert scheduler.check_single_task(make_task("2", due_date=_due_in(virtual_timer, days=3))) is None


@pytest.mark.asyncio
async def test_request_permission_prompts_once(make_scheduler):
    """Test granted permission is final"""
    channel = FakeAlertChannel()
    scheduler = make_scheduler(channel)
    assert scheduler.display_state == DisplayState.UNREQUESTED

    assert await scheduler.request_permission() is True
    assert await scheduler.request_permission() is True

    assert channel.prompts == 1
    assert scheduler.display_state == DisplayState.ENABLED


@pytest.mark.asyncio
async def test_denied_permission_never_prompts_again(make_scheduler, toaster):
    """Test denied state shows guidance instead of prompting"""
    channel = FakeAlertChannel(permission=PermissionState.DENIED)
    scheduler = make_scheduler(channel)

    assert await scheduler.request_permission() is False
    assert await scheduler.request_permission() is False

    assert channel.prompts == 0
    assert scheduler.display_state == DisplayState.BLOCKED
    assert [toast.title for toast in toaster.active] == ["Notifications Blocked"] * 2


@pytest.mark.asyncio
async def test_prompt_denied_by_user(make_scheduler):
    """Test prompt answered with deny"""
    channel = FakeAlertChannel(prompt_result=PermissionState.DENIED)
    scheduler = make_scheduler(channel)

    assert await scheduler.request_permission() is False
    assert scheduler.permission == PermissionState.DENIED

    await scheduler.request_permission()
    assert channel.prompts == 1


@pytest.mark.asyncio
async def test_dismissed_prompt_can_be_asked_again(make_scheduler):
    """Test a dismissed prompt leaves the state unrequested"""
    channel = FakeAlertChannel(prompt_result=PermissionState.UNREQUESTED)
    scheduler = make_scheduler(channel)

    assert await scheduler.request_permission() is False
    assert scheduler.permission == PermissionState.UNREQUESTED

    channel.prompt_result = PermissionState.GRANTED
    assert await scheduler.request_permission() is True
    assert channel.prompts == 2


@pytest.mark.asyncio
async def test_prompt_error_leaves_state_unchanged(make_scheduler):
    """Test platform failure while prompting"""
    channel = FakeAlertChannel(prompt_result=RuntimeError("prompt crashed"))
    scheduler = make_scheduler(channel)

    assert await scheduler.request_permission() is False
    assert scheduler.permission == PermissionState.UNREQUESTED


@pytest.mark.asyncio
async def test_unsupported_platform_uses_fallback(make_scheduler, toaster, virtual_timer):
    """Test that without platform support alerts become toasts"""
    channel = FakeAlertChannel(supported=False)
    scheduler = make_scheduler(channel)

    assert scheduler.display_state == DisplayState.BLOCKED
    assert await scheduler.request_permission() is False
    assert channel.prompts == 0

    alerts = scheduler.scan([make_task("1", "Late", due_date=_due_in(virtual_timer, hours=-2))])

    assert alerts[0].channel == DeliveryChannel.FALLBACK
    assert channel.shown == []
    assert [toast.title for toast in toaster.active] == ["🚨 Task Overdue!"]


def test_native_failure_falls_back_to_toast(make_scheduler, toaster, virtual_timer):
    """Test delivery failure is not fatal"""
    channel = FakeAlertChannel(permission=PermissionState.GRANTED, fail_show=True)
    scheduler = make_scheduler(channel)

    alerts = scheduler.scan([make_task("1", due_date=_due_in(virtual_timer, minutes=1))])

    assert alerts[0].channel == DeliveryChannel.FALLBACK
    assert len(toaster.active) == 1


@pytest.mark.asyncio
async def test_disable_and_enable(make_scheduler, granted_channel, toaster, virtual_timer):
    """Test the settings toggle"""
    scheduler = make_scheduler(granted_channel)
    task = make_task("1", due_date=_due_in(virtual_timer, minutes=1))

    scheduler.disable()
    assert scheduler.display_state == DisplayState.DISABLED
    assert scheduler.scan([task])[0].channel == DeliveryChannel.FALLBACK
    assert granted_channel.shown == []

    assert await scheduler.enable() is True
    assert scheduler.display_state == DisplayState.ENABLED
    assert scheduler.scan([task])[0].channel == DeliveryChannel.NATIVE
    assert granted_channel.prompts == 0


@pytest.mark.asyncio
async def test_enable_greets_when_newly_granted(make_scheduler):
    """Test welcome alert after granting permission"""
    channel = FakeAlertChannel()
    scheduler = make_scheduler(channel)

    assert await scheduler.enable() is True
    assert [alert.dedup_key for alert in channel.shown] == [("notifications-enabled", "")]

    assert await scheduler.enable() is True
    assert len(channel.shown) == 1


def test_on_alert_callback_errors_are_contained(make_scheduler, granted_channel, virtual_timer):
    """Test a failing listener does not break delivery"""
    received = []

    def listener(alert):
        received.append(alert)
        raise RuntimeError("listener broke")

    scheduler = make_scheduler(granted_channel, on_alert=listener)
    alerts = scheduler.scan([make_task("1", due_date=_due_in(virtual_timer, minutes=1))])

    assert len(alerts) == 1
    assert received == alerts


class _CountingSource:
    def __init__(self, tasks):
        self.tasks = list(tasks)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return tuple(self.tasks)


def test_start_scans_immediately_and_periodically(make_scheduler, granted_channel, virtual_timer):
    """Test the periodic loop on a virtual clock"""
    scheduler = make_scheduler(granted_channel, interval_ms=60_000)
    source = _CountingSource([])

    scheduler.start(source)
    assert scheduler.running
    assert source.calls == 1

    virtual_timer.advance(59)
    assert source.calls == 1
    virtual_timer.advance(1)
    assert source.calls == 2
    virtual_timer.advance(120)
    assert source.calls == 4


def test_stop_prevents_further_scans(make_scheduler, granted_channel, virtual_timer):
    """Test that no scan runs after stop() returns"""
    scheduler = make_scheduler(granted_channel)
    source = _CountingSource([])

    scheduler.start(source)
    virtual_timer.advance(60)
    scheduler.stop()
    virtual_timer.advance(600)

    assert source.calls == 2
    assert not scheduler.running
    assert virtual_timer.pending == 0


def test_restart_does_not_overlap(make_scheduler, granted_channel, virtual_timer):
    """Test starting twice keeps a single loop"""
    scheduler = make_scheduler(granted_channel)
    source = _CountingSource([])

    scheduler.start(source)
    virtual_timer.advance(30)
    scheduler.start(source)
    assert source.calls == 2

    virtual_timer.advance(30)
    assert source.calls == 2
    virtual_timer.advance(30)
    assert source.calls == 3
    assert virtual_timer.pending == 1


def test_each_tick_reads_latest_tasks(make_scheduler, granted_channel, virtual_timer):
    """Test that tasks added after start are checked"""
    scheduler = make_scheduler(granted_channel)
    source = _CountingSource([])

    scheduler.start(source)
    assert granted_channel.shown == []

    source.tasks.append(make_task("new", due_date=_due_in(virtual_timer, minutes=30)))
    virtual_timer.advance(60)

    assert [alert.task_id for alert in granted_channel.shown] == ["new"]


@pytest.mark.asyncio
async def test_start_with_task_store(make_scheduler, granted_channel, task_store,
                                     mock_taskflow_client, virtual_timer):
    """Test that a store can be passed directly"""
    mock_taskflow_client.get_tasks.return_value = [
        make_task("1", due_date=_due_in(virtual_timer, hours=-1)),
    ]
    await task_store.load()
    scheduler = make_scheduler(granted_channel)

    scheduler.start(task_store)

    assert [alert.kind for alert in granted_channel.shown] == [ThresholdKind.OVERDUE]
    scheduler.stop()


def test_failing_source_keeps_loop_alive(make_scheduler, granted_channel, virtual_timer):
    """Test that a scan error does not stop the loop"""
    scheduler = make_scheduler(granted_channel)
    calls = []

    def source():
        calls.append(1)
        raise RuntimeError("store unavailable")

    scheduler.start(source)
    virtual_timer.advance(60)

    assert len(calls) == 2
    assert scheduler.running


def test_start_rejects_invalid_arguments(make_scheduler, granted_channel):
    """Test start() argument checks"""
    scheduler = make_scheduler(granted_channel)

    with pytest.raises(TypeError):
        scheduler.start([make_task("1")])
    with pytest.raises(ValueError):
        scheduler.start(lambda: [], interval_ms=0)
    assert not scheduler.running
