"""
Main application entry point
"""

import asyncio
from datetime import datetime
from typing import Iterable, Optional, Union
from taskflow.api.taskflow_client import TaskFlowClient
from taskflow.config.settings import settings
from taskflow.models.task import FilterType, Priority, SortType, Task
from taskflow.services.alert_channel import ConsoleAlertChannel
from taskflow.services.local_store import LocalStore
from taskflow.services.notification_scheduler import NotificationScheduler
from taskflow.services.tag_registry import TagRegistry
from taskflow.services.task_store import TaskStore
from taskflow.services.timers import AsyncioTimer
from taskflow.utils.error_handler import format_error_message
from taskflow.utils.formatters import format_stats, format_task_line, format_task_list
from taskflow.utils.logger import logger


class TaskFlowApp:
    """Wires the task store, tag registry and deadline reminders together"""

    def __init__(
        self,
        client: Optional[TaskFlowClient] = None,
        scheduler: Optional[NotificationScheduler] = None,
        tags: Optional[TagRegistry] = None,
        local_store: Optional[LocalStore] = None,
    ):
        """
        Initialize application

        Args:
            client: TaskFlow API client
            scheduler: Deadline notification scheduler
            tags: Tag registry
            local_store: Store for tags and the notification permission answer
        """
        self.client = client or TaskFlowClient()
        self.local_store = local_store or LocalStore()
        self.store = TaskStore(self.client)
        self.tags = tags or TagRegistry(self.local_store)
        self.scheduler = scheduler or NotificationScheduler(
            ConsoleAlertChannel(store=self.local_store),
            timer=AsyncioTimer(),
        )
        self.logger = logger

    def render(
        self,
        filter_type: FilterType = FilterType.ALL,
        sort_type: SortType = SortType.NEWEST,
        selected_tag: Optional[str] = None,
    ) -> str:
        """Current task list as text"""
        lines = [
            format_task_line(task, self.tags.resolve(task.tags))
            for task in self.store.view(filter_type, sort_type, selected_tag)
        ]
        return f"{format_task_list(lines)}\n\n{format_stats(self.store.stats())}"

    async def create_task(
        self,
        title: str,
        priority: Union[Priority, str] = Priority.MEDIUM,
        due_date: Optional[datetime] = None,
        tag_ids: Iterable[str] = (),
    ) -> Optional[Task]:
        """
        Create task and check its deadline right away

        Returns:
            Created task, or None if the input was rejected
        """
        task = await self.store.create(title, priority, due_date, tag_ids)
        if task is not None and task.due_date is not None:
            self.scheduler.check_single_task(task)
        return task

    async def start(self):
        """Load tasks and start deadline reminders"""
        settings.validate()

        try:
            await self.store.load()
        except Exception as e:
            self.logger.error(f"Could not load tasks: {format_error_message(e)}")
            raise

        print(self.render(sort_type=SortType.DUE_DATE))

        await self.scheduler.request_permission()
        self.scheduler.start(self.store.snapshot)
        self.logger.info("TaskFlow started")

    async def stop(self):
        """Stop reminders and close the API client"""
        self.logger.info("Stopping TaskFlow...")
        self.scheduler.stop()
        await self.client.close()
        self.logger.info("TaskFlow stopped")


async def main():
    """Main entry point"""
    app = TaskFlowApp()

    try:
        await app.start()
        while True:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Received shutdown signal")
    finally:
        await app.stop()


def run():
    """Console script entry point"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
