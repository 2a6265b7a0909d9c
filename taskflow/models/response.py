"""
Result models returned to the presentation layer
"""

from typing import Optional, List, Dict
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """User-facing description of a failed operation"""
    message: str
    error_code: Optional[str] = None
    status_code: Optional[int] = None
    details: Optional[dict] = None


class TaskStats(BaseModel):
    """Counters shown above the task list"""
    total: int = 0
    active: int = 0
    completed: int = 0


class ClearCompletedResult(BaseModel):
    """Outcome of clearing completed tasks (each deletion is independent)"""
    deleted: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
