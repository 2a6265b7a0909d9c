"""
Message formatting utilities
"""

from datetime import datetime
from typing import List, Optional, Sequence
from taskflow.models.response import TaskStats
from taskflow.models.task import Tag, Task
from taskflow.utils.date_utils import format_due

PRIORITY_ICONS = {"high": "🔴", "medium": "🟡", "low": "🟢"}


def format_task_line(task: Task, tags: Sequence[Tag] = (), now: Optional[datetime] = None) -> str:
    """
    Format one task for the console list

    Args:
        task: Task to format
        tags: Resolved tags of the task (stale ids already dropped)
        now: Reference time for the due date description

    Returns:
        Single line, e.g. "[ ] 🔴 Pay rent (due in 3 h) #Personal"
    """
    check = "[x]" if task.completed else "[ ]"
    icon = PRIORITY_ICONS.get(task.priority.value, "")
    line = f"{check} {icon} {task.title}"

    if task.due_date is not None and not task.completed:
        line += f" ({format_due(task.due_date, now)})"

    if tags:
        line += " " + " ".join(f"#{tag.name}" for tag in tags)

    return line


def format_stats(stats: TaskStats) -> str:
    """
    Format counters line

    Args:
        stats: Task counters

    Returns:
        E.g. "3 tasks left · 5 total · 2 done"
    """
    left = f"{stats.active} task{'s' if stats.active != 1 else ''} left"
    return f"{left} · {stats.total} total · {stats.completed} done"


def format_task_list(lines: List[str]) -> str:
    """Join formatted lines, with a placeholder for an empty list"""
    if not lines:
        return "No tasks yet. Add one above!"
    return "\n".join(lines)
