"""
Notification models
"""

from enum import Enum
from typing import Optional, Tuple
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class ThresholdKind(str, Enum):
    """Deadline bucket a task falls into relative to now"""
    OVERDUE = "overdue"
    DUE_SOON = "due-soon"
    DUE_TOMORROW = "due-tomorrow"


class PermissionState(str, Enum):
    """Platform alerting permission"""
    UNREQUESTED = "unrequested"
    GRANTED = "granted"
    DENIED = "denied"


class DisplayState(str, Enum):
    """Notification state as shown in settings"""
    UNREQUESTED = "unrequested"
    ENABLED = "enabled"
    DISABLED = "disabled"  # granted, but switched off by the user
    BLOCKED = "blocked"


class DeliveryChannel(str, Enum):
    NATIVE = "native"
    FALLBACK = "fallback"


class ToastPhase(str, Enum):
    ENTERING = "entering"
    VISIBLE = "visible"
    EXITING = "exiting"
    DISMISSED = "dismissed"


DedupKey = Tuple[str, str]


class Alert(BaseModel):
    """Alert produced for a task deadline (or a system message)"""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    dedup_key: DedupKey
    urgent: bool = False
    task_id: Optional[str] = None
    kind: Optional[ThresholdKind] = None
    channel: Optional[DeliveryChannel] = None

    @property
    def tag(self) -> str:
        """Platform tag used to collapse repeated alerts ("overdue-<id>")"""
        key, kind = self.dedup_key
        return f"{kind}-{key}" if kind else key


class Toast(BaseModel):
    """In-process fallback notification"""

    model_config = ConfigDict(validate_assignment=True)

    id: int
    title: str
    body: Optional[str] = None
    hint: Optional[str] = None
    phase: ToastPhase = ToastPhase.ENTERING
    shown_at: Optional[datetime] = None
