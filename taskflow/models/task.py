"""
Task and tag models
"""

from enum import Enum
from typing import Optional, List, Any, Dict
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator, field_serializer
from taskflow.utils.date_utils import ensure_utc, to_iso, utc_now


class Priority(str, Enum):
    """Task priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FilterType(str, Enum):
    """Task list filters"""
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    TAG = "tag"


class SortType(str, Enum):
    """Task list orderings"""
    NEWEST = "newest"
    OLDEST = "oldest"
    PRIORITY = "priority"
    ALPHABETICAL = "alphabetical"
    DUE_DATE = "dueDate"


def _unique_tags(value: Any) -> List[str]:
    seen = []
    for tag_id in value:
        tag_id = str(tag_id)
        if tag_id not in seen:
            seen.append(tag_id)
    return seen


class _TaskFields(BaseModel):
    """Shared validation for task payloads"""

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def _dedupe_tags(cls, value: Any) -> Any:
        if value is None:
            return None
        return _unique_tags(value)

    @field_validator("due_date", "created_at", "updated_at", check_fields=False)
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)

    @field_serializer("due_date", "created_at", "updated_at", when_used="json", check_fields=False)
    def _serialize_dates(self, value: Optional[datetime]) -> Optional[str]:
        return to_iso(value)


class Task(_TaskFields):
    """Task as returned by the persistence service"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str = Field(min_length=1)
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    tags: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value: Any) -> Any:
        # Server may send null for tasks created without tags
        if value is None:
            return []
        return _unique_tags(value)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Not completed and due date in the past"""
        if self.completed or self.due_date is None:
            return False
        if now is None:
            now = utc_now()
        return self.due_date < ensure_utc(now)


class TaskCreate(_TaskFields):
    """Task creation payload"""

    title: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    tags: List[str] = Field(default_factory=list)
    completed: bool = False
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for POST /tasks"""
        payload = self.model_dump(by_alias=True, mode="json")
        if payload.get("dueDate") is None:
            payload.pop("dueDate", None)
        if not payload.get("tags"):
            payload.pop("tags", None)
        return payload


class TaskUpdate(_TaskFields):
    """Partial task update (only fields that were set are sent)"""

    title: Optional[str] = Field(None, min_length=1)
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    tags: Optional[List[str]] = None
    completed: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for PUT /tasks/{id}"""
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


class Tag(BaseModel):
    """Tag with display colour"""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str
