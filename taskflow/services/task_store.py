"""
Task store service
"""

import asyncio
from datetime import datetime
from typing import Optional, List, Tuple, Iterable, Union, Any
from pydantic import ValidationError as ModelValidationError
from taskflow.api.taskflow_client import TaskFlowClient
from taskflow.config.settings import settings
from taskflow.models.task import Task, TaskCreate, TaskUpdate, Priority, FilterType, SortType
from taskflow.models.response import TaskStats, ClearCompletedResult
from taskflow.services.task_view import project
from taskflow.utils.error_handler import ValidationError
from taskflow.utils.logger import logger


class TaskStore:
    """
    Owner of the canonical task collection

    Every mutation (except reorder) waits for the server response before the
    local collection changes. On failure the error is logged and re-raised and
    the local collection keeps its last-known-good state.
    """

    def __init__(self, client: TaskFlowClient, max_tags: Optional[int] = None):
        """
        Initialize task store

        Args:
            client: TaskFlow API client
            max_tags: Maximum tags accepted when creating a task
        """
        self.client = client
        self.max_tags = settings.TASKFLOW_MAX_TAGS if max_tags is None else max_tags
        self.logger = logger
        self._tasks: List[Task] = []

    @property
    def tasks(self) -> Tuple[Task, ...]:
        """Read-only snapshot of the current collection"""
        return tuple(self._tasks)

    def snapshot(self) -> Tuple[Task, ...]:
        """Current collection (callable form, used as a scheduler task source)"""
        return tuple(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _index_of(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return -1

    def _replace(self, updated: Task):
        i = self._index_of(updated.id)
        if i >= 0:
            self._tasks[i] = updated
        else:
            # Server knows it but we did not; keep it visible
            self._tasks.insert(0, updated)

    async def check_health(self) -> bool:
        """True if the persistence service answers its health check"""
        data = await self.client.check_health()
        return str(data.get("status", "")).upper() == "OK"

    async def load(self) -> List[Task]:
        """
        Load all tasks from the server, replacing local state

        Returns:
            Loaded tasks

        Raises:
            SyncError: On transport or parse failure
        """
        try:
            tasks = await self.client.get_tasks()
        except Exception as e:
            self.logger.error(f"Failed to load tasks: {e}")
            raise

        self._tasks = list(tasks)
        self.logger.info(f"Loaded {len(self._tasks)} tasks")
        return list(self._tasks)

    async def create(
        self,
        title: str,
        priority: Union[Priority, str] = Priority.MEDIUM,
        due_date: Optional[datetime] = None,
        tag_ids: Iterable[str] = (),
    ) -> Optional[Task]:
        """
        Create a new task

        Invalid input is rejected locally: nothing is sent and None is returned.

        Args:
            title: Task title (trimmed)
            priority: low / medium / high
            due_date: Optional due date
            tag_ids: Tag ids (at most max_tags)

        Returns:
            Created task, or None if the input was rejected
        """
        try:
            payload = self._build_create(title, priority, due_date, tag_ids)
        except ValidationError as e:
            self.logger.warning(f"Task not created: {e}")
            return None

        try:
            task = await self.client.create_task(payload)
        except Exception as e:
            self.logger.error(f"Failed to create task '{payload.title}': {e}")
            raise

        self._tasks.insert(0, task)
        return task

    def _build_create(
        self,
        title: str,
        priority: Union[Priority, str],
        due_date: Optional[datetime],
        tag_ids: Iterable[str],
    ) -> TaskCreate:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Task title is required")

        # A single id given as a string is one tag, not a sequence of characters
        if isinstance(tag_ids, str):
            tag_ids = [tag_ids]
        tags = list(dict.fromkeys(tag_ids or ()))
        if len(tags) > self.max_tags:
            raise ValidationError(f"At most {self.max_tags} tags can be set on a new task")

        try:
            return TaskCreate(title=title, priority=priority, due_date=due_date, tags=tags)
        except ModelValidationError as e:
            raise ValidationError(str(e)) from e

    async def toggle(self, task_id: str) -> Task:
        """
        Flip completion of a task

        Args:
            task_id: Task ID

        Returns:
            Updated task

        Raises:
            NotFoundError: If the task no longer exists on the server
        """
        try:
            task = await self.client.toggle_task(task_id)
        except Exception as e:
            self.logger.error(f"Failed to toggle task {task_id}: {e}")
            raise

        self._replace(task)
        self.logger.debug(f"Task {task_id} completed={task.completed}")
        return task

    async def update(self, task_id: str, **fields: Any) -> Optional[Task]:
        """
        Update fields of a task

        Args:
            task_id: Task ID
            **fields: Any of title, priority, due_date, tags, completed

        Returns:
            Updated task, or None if the input was rejected
        """
        unknown = set(fields) - set(TaskUpdate.model_fields)
        if unknown:
            self.logger.warning(f"Task {task_id} not updated: unknown fields {sorted(unknown)}")
            return None

        try:
            updates = TaskUpdate(**fields)
        except ModelValidationError as e:
            self.logger.warning(f"Task {task_id} not updated: {e}")
            return None

        if not updates.model_fields_set:
            self.logger.warning(f"Task {task_id} not updated: no fields given")
            return None

        try:
            task = await self.client.update_task(task_id, updates)
        except Exception as e:
            self.logger.error(f"Failed to update task {task_id}: {e}")
            raise

        self._replace(task)
        return task

    async def delete(self, task_id: str) -> None:
        """
        Delete a task (removed locally only after the server confirms)

        Args:
            task_id: Task ID
        """
        try:
            await self.client.delete_task(task_id)
        except Exception as e:
            self.logger.error(f"Failed to delete task {task_id}: {e}")
            raise

        self._tasks = [task for task in self._tasks if task.id != task_id]

    def reorder(self, from_index: int, to_index: int) -> None:
        """
        Move a task within the local sequence (not persisted)

        Args:
            from_index: Current position
            to_index: New position

        Raises:
            IndexError: If either index is out of range
        """
        size = len(self._tasks)
        if not (0 <= from_index < size) or not (0 <= to_index < size):
            raise IndexError(f"Cannot move task from {from_index} to {to_index} (size {size})")

        task = self._tasks.pop(from_index)
        self._tasks.insert(to_index, task)

    async def clear_completed(self) -> ClearCompletedResult:
        """
        Delete every completed task, one request per task

        A failed deletion does not stop the others.

        Returns:
            Deleted ids and failures by id
        """
        completed_ids = [task.id for task in self._tasks if task.completed]
        result = ClearCompletedResult()
        if not completed_ids:
            return result

        outcomes = await asyncio.gather(
            *(self.delete(task_id) for task_id in completed_ids),
            return_exceptions=True,
        )

        for task_id, outcome in zip(completed_ids, outcomes):
            if isinstance(outcome, BaseException):
                result.failed[task_id] = str(outcome)
            else:
                result.deleted.append(task_id)

        self.logger.info(
            f"Clear completed: {len(result.deleted)} deleted, {len(result.failed)} failed"
        )
        return result

    def stats(self) -> TaskStats:
        """Total / active / completed counts"""
        completed = sum(1 for task in self._tasks if task.completed)
        return TaskStats(
            total=len(self._tasks),
            active=len(self._tasks) - completed,
            completed=completed,
        )

    def view(
        self,
        filter_type: Union[FilterType, str] = FilterType.ALL,
        sort_type: Union[SortType, str] = SortType.NEWEST,
        selected_tag: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Task]:
        """Derived view of the current collection"""
        return project(self._tasks, filter_type, sort_type, selected_tag=selected_tag, now=now)
