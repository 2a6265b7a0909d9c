"""
Derived task view: filtering and sorting

Pure functions only. The input sequence is never mutated and the same
arguments (including `now`) always give the same output.
"""

from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union
from taskflow.config.constants import PRIORITY_RANK
from taskflow.models.task import Task, FilterType, SortType
from taskflow.utils.date_utils import ensure_utc, utc_now


def _make_predicate(
    filter_type: FilterType,
    selected_tag: Optional[str],
    now: datetime,
) -> Callable[[Task], bool]:
    if filter_type == FilterType.ALL:
        return lambda task: True
    if filter_type == FilterType.ACTIVE:
        return lambda task: not task.completed
    if filter_type == FilterType.COMPLETED:
        return lambda task: task.completed
    if filter_type == FilterType.OVERDUE:
        return lambda task: task.is_overdue(now)
    if filter_type == FilterType.TAG:
        # No tag selected matches nothing
        return lambda task: selected_tag is not None and selected_tag in task.tags
    raise ValueError(f"Unknown filter: {filter_type!r}")


def _sort(tasks: List[Task], sort_type: SortType) -> List[Task]:
    # sorted() is stable, also with reverse=True
    if sort_type == SortType.NEWEST:
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)
    if sort_type == SortType.OLDEST:
        return sorted(tasks, key=lambda t: t.created_at)
    if sort_type == SortType.ALPHABETICAL:
        return sorted(tasks, key=lambda t: (t.title.casefold(), t.title))
    if sort_type == SortType.PRIORITY:
        return sorted(
            tasks,
            key=lambda t: (-PRIORITY_RANK[t.priority.value], -t.created_at.timestamp()),
        )
    if sort_type == SortType.DUE_DATE:
        return sorted(
            tasks,
            key=lambda t: (t.due_date is None, t.due_date.timestamp() if t.due_date else 0.0),
        )
    raise ValueError(f"Unknown sort: {sort_type!r}")


def project(
    tasks: Iterable[Task],
    filter_type: Union[FilterType, str] = FilterType.ALL,
    sort_type: Union[SortType, str] = SortType.NEWEST,
    selected_tag: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Task]:
    """
    Build the ordered view of tasks

    Filtering is applied before sorting.

    Args:
        tasks: Task snapshot
        filter_type: Which tasks to keep
        sort_type: Ordering of the kept tasks
        selected_tag: Tag id for the "tag" filter
        now: Reference time for the "overdue" filter (defaults to current time)

    Returns:
        New list with the projected tasks

    Raises:
        ValueError: If filter or sort is unknown
    """
    filter_type = FilterType(filter_type)
    sort_type = SortType(sort_type)
    now = utc_now() if now is None else ensure_utc(now)

    predicate = _make_predicate(filter_type, selected_tag, now)
    kept = [task for task in tasks if predicate(task)]
    return _sort(kept, sort_type)
