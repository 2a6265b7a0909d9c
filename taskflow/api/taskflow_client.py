"""
TaskFlow persistence API client
"""

from typing import Optional, Dict, Any, List
import httpx
from pydantic import ValidationError as ModelValidationError
from taskflow.api.base_client import BaseAPIClient
from taskflow.config.settings import settings
from taskflow.models.task import Task, TaskCreate, TaskUpdate
from taskflow.utils.error_handler import SyncError, NotFoundError
from taskflow.utils.logger import logger


class TaskFlowClient(BaseAPIClient):
    """Client for the TaskFlow REST API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize TaskFlow client

        Args:
            base_url: API base URL (defaults to settings)
            access_token: Bearer token attached to every request (optional)
            timeout: Request timeout in seconds
            max_retries: Attempts per request
            transport: Custom httpx transport (used by tests)
        """
        super().__init__(
            base_url or settings.TASKFLOW_API_BASE_URL,
            timeout=settings.TASKFLOW_HTTP_TIMEOUT if timeout is None else timeout,
            max_retries=settings.TASKFLOW_HTTP_MAX_RETRIES if max_retries is None else max_retries,
            transport=transport,
        )
        self.access_token = access_token if access_token is not None else settings.TASKFLOW_API_TOKEN
        self.logger = logger

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with authentication"""
        headers = {
            "Content-Type": "application/json",
        }

        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        return headers

    @staticmethod
    def _parse_task(data: Any, operation: str) -> Task:
        if not isinstance(data, dict):
            raise SyncError(f"{operation}: expected task object, got {type(data).__name__}")
        try:
            return Task.model_validate(data)
        except ModelValidationError as e:
            raise SyncError(f"{operation}: malformed task in response: {e}") from e

    async def _call_for_task(self, task_id: str, method: str, endpoint: str, **kwargs) -> Any:
        """Run request against a single task, mapping 404 to NotFoundError"""
        try:
            return await self._request(method, endpoint, headers=self._get_headers(), **kwargs)
        except SyncError as e:
            if e.status_code == 404:
                raise NotFoundError(f"Task {task_id} not found", task_id=task_id) from e
            raise

    async def check_health(self) -> Dict[str, Any]:
        """
        Check that the API is up

        Returns:
            Health payload ({"status": "OK", "message": ...})
        """
        data = await self.get(endpoint="/health", headers=self._get_headers())
        return data if isinstance(data, dict) else {}

    async def get_tasks(self) -> List[Task]:
        """
        Get all tasks

        Returns:
            Tasks as stored on the server
        """
        data = await self.get(endpoint="/tasks", headers=self._get_headers())

        if not isinstance(data, list):
            raise SyncError(f"GET /tasks: expected a list, got {type(data).__name__}")

        tasks = [self._parse_task(item, "GET /tasks") for item in data]
        self.logger.debug(f"Fetched {len(tasks)} tasks")
        return tasks

    async def create_task(self, payload: TaskCreate) -> Task:
        """
        Create a new task

        Args:
            payload: Validated creation payload

        Returns:
            Created task with server-assigned id
        """
        data = await self.post(
            endpoint="/tasks",
            headers=self._get_headers(),
            json_data=payload.to_payload(),
        )
        task = self._parse_task(data, "POST /tasks")
        self.logger.info(f"Created task {task.id}: '{task.title}'")
        return task

    async def toggle_task(self, task_id: str) -> Task:
        """
        Flip completion state

        Args:
            task_id: Task ID

        Returns:
            Updated task

        Raises:
            NotFoundError: If the task no longer exists
        """
        data = await self._call_for_task(task_id, "PATCH", f"/tasks/{task_id}/toggle")
        return self._parse_task(data, f"PATCH /tasks/{task_id}/toggle")

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task:
        """
        Update existing task

        Args:
            task_id: Task ID
            updates: Fields to change

        Returns:
            Updated task
        """
        payload = updates.to_payload()
        if not payload:
            raise ValueError("No fields to update")

        data = await self._call_for_task(task_id, "PUT", f"/tasks/{task_id}", json_data=payload)
        return self._parse_task(data, f"PUT /tasks/{task_id}")

    async def delete_task(self, task_id: str) -> None:
        """
        Delete task

        Args:
            task_id: Task ID
        """
        await self._call_for_task(task_id, "DELETE", f"/tasks/{task_id}")
        self.logger.info(f"Deleted task {task_id}")
