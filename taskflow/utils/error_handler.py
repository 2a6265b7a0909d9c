"""
Error handling utilities
"""

from typing import Optional
from taskflow.models.response import ErrorResponse
from taskflow.utils.logger import logger


class TaskFlowError(Exception):
    """Base exception for TaskFlow errors"""
    pass


class ValidationError(TaskFlowError):
    """Input rejected before any network call"""
    pass


class SyncError(TaskFlowError):
    """Persistence service returned a non-success response or was unreachable"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(SyncError):
    """Task id no longer exists on the server"""
    def __init__(self, message: str, task_id: Optional[str] = None):
        self.task_id = task_id
        super().__init__(message, status_code=404)


class PermissionDenied(TaskFlowError):
    """
    Platform alerting channel is blocked

    The scheduler never raises this: blocked alerts go to the fallback toast.
    It labels that outcome for callers reporting it through handle_error().
    """
    pass


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message

    Args:
        error: Exception to handle

    Returns:
        ErrorResponse with user-friendly message
    """
    logger.error(f"Error occurred: {error}", exc_info=True)

    if isinstance(error, NotFoundError):
        return ErrorResponse(
            message="Task not found. It may have been deleted elsewhere; reload the list.",
            error_code="not_found",
            status_code=404,
            details={"task_id": error.task_id} if error.task_id else None,
        )

    if isinstance(error, SyncError):
        return ErrorResponse(
            message=f"Could not sync with the server: {error.message}",
            error_code="sync_error",
            status_code=error.status_code,
        )

    if isinstance(error, ValidationError):
        return ErrorResponse(
            message=f"Invalid input: {str(error)}",
            error_code="validation_error",
        )

    if isinstance(error, PermissionDenied):
        return ErrorResponse(
            message="Notifications are blocked. Enable them in your system settings.",
            error_code="permission_denied",
        )

    # Generic error message
    return ErrorResponse(
        message="Something went wrong. Please try again or reload.",
    )


def format_error_message(error: Exception) -> str:
    """
    Format error message for user

    Args:
        error: Exception to format

    Returns:
        User-friendly error message
    """
    error_response = handle_error(error)
    return error_response.message
