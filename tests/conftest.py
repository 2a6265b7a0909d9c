"""
Pytest configuration and fixtures
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from taskflow.api.taskflow_client import TaskFlowClient
from taskflow.models.notification import PermissionState
from taskflow.services.alert_channel import FallbackToaster
from taskflow.services.local_store import LocalStore
from taskflow.services.notification_scheduler import NotificationScheduler
from taskflow.services.tag_registry import TagRegistry
from taskflow.services.task_store import TaskStore
from tests.fakes import FakeAlertChannel, VirtualTimer, make_task


@pytest.fixture
def created_task():
    """Task returned by the mocked create endpoint"""
    return make_task("task_1", "Test Task", priority="high")


@pytest.fixture
def mock_taskflow_client(created_task):
    """Mock TaskFlow client"""
    client = MagicMock(spec=TaskFlowClient)
    client.access_token = "test_token"
    client.check_health = AsyncMock(return_value={"status": "OK", "message": "TaskFlow API is running!"})
    client.get_tasks = AsyncMock(return_value=[])
    client.create_task = AsyncMock(return_value=created_task)
    client.toggle_task = AsyncMock()
    client.update_task = AsyncMock()
    client.delete_task = AsyncMock(return_value=None)
    client.close = AsyncMock()
    return client


@pytest.fixture
def task_store(mock_taskflow_client):
    """Task store with mocked client"""
    return TaskStore(mock_taskflow_client, max_tags=3)


@pytest.fixture
def local_store(tmp_path):
    """Local store with temporary file"""
    return LocalStore(store_file=str(tmp_path / "test_store.json"))


@pytest.fixture
def tag_registry(local_store):
    """Tag registry on a temporary store"""
    return TagRegistry(local_store)


@pytest.fixture
def virtual_timer():
    """Manually advanced clock + timer"""
    return VirtualTimer()


@pytest.fixture
def toaster(virtual_timer):
    """Fallback toaster on the virtual timeline"""
    return FallbackToaster(virtual_timer, virtual_timer, render=lambda toast: None)


@pytest.fixture
def granted_channel():
    """Platform channel that already has permission"""
    return FakeAlertChannel(permission=PermissionState.GRANTED)


@pytest.fixture
def make_scheduler(virtual_timer, toaster):
    """Factory for schedulers on the virtual timeline"""
    def _make(channel, **kwargs):
        kwargs.setdefault("remember_alerts", False)
        kwargs.setdefault("interval_ms", 60_000)
        return NotificationScheduler(
            channel,
            timer=virtual_timer,
            clock=virtual_timer,
            toaster=toaster,
            **kwargs,
        )
    return _make
