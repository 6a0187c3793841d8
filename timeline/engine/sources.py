"""
Item source and time updater - the engine's two consumed boundaries.

Item source: owned tasks, calendar links and read-only external events come
in as validated records and are funnelled into one ScheduledItem shape.
is_external is the single discriminant between "owned, modifiable" and
"foreign feed, read-only".

Time updater: persists one item's new start/end. Must apply start and end
together or not at all, and be idempotent under retry.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, model_validator

from .items import ScheduledItem

logger = logging.getLogger(__name__)

# External event ids are shifted so they never collide with link/task ids
EXTERNAL_ID_OFFSET = 1_000_000_000


# =============================================================================
# BOUNDARY RECORDS
# =============================================================================


class TaskRecord(BaseModel):
    """An owned task. Unlinked tasks are placed at their due time."""

    id: int
    title: str
    description: str = ""
    due: datetime | None = None
    difficulty_percent: int = Field(default=60, ge=0, le=100)
    category_key: int | None = None
    is_completed: bool = False


class CalendarLinkRecord(BaseModel):
    """A scheduled slot owned by the app, optionally tied to a task."""

    id: int
    task_id: int | None = None
    title: str
    starts_at: datetime
    ends_at: datetime
    difficulty_percent: int = Field(default=60, ge=0, le=100)
    category_key: int | None = None
    rewarded: bool = False

    @model_validator(mode="after")
    def check_range(self) -> "CalendarLinkRecord":
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class ExternalEventRecord(BaseModel):
    """An event from a foreign calendar feed (read-only)."""

    id: int
    title: str
    start: datetime
    end: datetime
    description: str = ""
    calendar_name: str | None = None

    @model_validator(mode="after")
    def check_range(self) -> "ExternalEventRecord":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


# =============================================================================
# PROTOCOLS
# =============================================================================


@runtime_checkable
class ItemSource(Protocol):
    def load(self, start_date: date, end_date: date) -> Iterable[ScheduledItem]:
        """Items whose time range touches [start_date, end_date]."""
        ...


@dataclass(frozen=True)
class UpdateResult:
    success: bool
    message: str | None = None

    @classmethod
    def ok(cls) -> "UpdateResult":
        return cls(success=True)

    @classmethod
    def failed(cls, message: str) -> "UpdateResult":
        return cls(success=False, message=message)


@runtime_checkable
class TimeUpdater(Protocol):
    async def update_time(
        self,
        source_task_id: int | None,
        source_link_id: int | None,
        new_start: datetime,
        new_end: datetime,
    ) -> UpdateResult: ...


# =============================================================================
# ITEM BUILDING
# =============================================================================


def duration_for_difficulty(difficulty_percent: int) -> int:
    """
    Default duration in minutes for an unlinked task, by difficulty.

    - up to 25% (trivial): 30
    - up to 45% (easy): 60
    - up to 70% (medium): 120
    - up to 90% (hard): 180
    - above (epic): 240
    """
    if difficulty_percent <= 25:
        return 30
    if difficulty_percent <= 45:
        return 60
    if difficulty_percent <= 70:
        return 120
    if difficulty_percent <= 90:
        return 180
    return 240


def build_items(
    start_date: date,
    end_date: date,
    tasks: Iterable[TaskRecord] = (),
    links: Iterable[CalendarLinkRecord] = (),
    external_events: Iterable[ExternalEventRecord] = (),
) -> list[ScheduledItem]:
    """
    Funnel boundary records into ScheduledItems for a date range.

    - Links whose start or end falls in range: id = link id
    - Tasks with a due time in range and no link: id = -task id,
      duration derived from difficulty
    - External events in range: id = event id + EXTERNAL_ID_OFFSET,
      is_external = True

    Returns:
        Items sorted by start time
    """
    range_start = datetime.combine(start_date, time.min)
    range_end = datetime.combine(end_date, time(23, 59, 59))

    def in_range(value: datetime) -> bool:
        return range_start <= value <= range_end

    tasks = list(tasks)
    tasks_by_id = {t.id: t for t in tasks}
    items: list[ScheduledItem] = []
    linked_task_ids: set[int] = set()

    for link in links:
        if not (in_range(link.starts_at) or in_range(link.ends_at)):
            continue
        task = tasks_by_id.get(link.task_id) if link.task_id is not None else None
        if link.task_id is not None:
            linked_task_ids.add(link.task_id)
        items.append(
            ScheduledItem(
                id=link.id,
                title=link.title,
                start_time=link.starts_at,
                end_time=link.ends_at,
                source_task_id=link.task_id,
                source_link_id=link.id,
                difficulty_percent=link.difficulty_percent,
                category_key=link.category_key,
                description=task.description if task else "",
                is_completed=link.rewarded,
            )
        )

    for task in tasks:
        if task.due is None or not in_range(task.due) or task.id in linked_task_ids:
            continue
        duration = duration_for_difficulty(task.difficulty_percent)
        items.append(
            ScheduledItem(
                id=-task.id,
                title=task.title,
                start_time=task.due,
                end_time=task.due + timedelta(minutes=duration),
                source_task_id=task.id,
                difficulty_percent=task.difficulty_percent,
                category_key=task.category_key,
                description=task.description,
                is_completed=task.is_completed,
            )
        )

    external_count = 0
    for event in external_events:
        if not (in_range(event.start) or in_range(event.end)):
            continue
        external_count += 1
        items.append(
            ScheduledItem(
                id=event.id + EXTERNAL_ID_OFFSET,
                title=event.title,
                start_time=event.start,
                end_time=event.end,
                difficulty_percent=0,
                is_external=True,
                description=event.description,
                calendar_name=event.calendar_name,
            )
        )

    logger.debug(
        "Built %d items for %s..%s (%d external)",
        len(items),
        start_date.isoformat(),
        end_date.isoformat(),
        external_count,
    )
    return sorted(items, key=lambda i: i.start_time)


# =============================================================================
# ROUTING UPDATER
# =============================================================================

TaskWithLinkHandler = Callable[[int, int, datetime, datetime], Awaitable[None]]
TaskOnlyHandler = Callable[[int, datetime], Awaitable[None]]
LinkOnlyHandler = Callable[[int, datetime, datetime], Awaitable[None]]


class RoutingTimeUpdater:
    """
    TimeUpdater that routes by which source ids an item carries.

    - task + link: both records move together
    - task only: the task's due time moves to the new start
    - link only: the link's range moves

    Handlers signal failure by raising; the exception becomes a failed
    UpdateResult so one bad item never escapes as a fault.
    """

    def __init__(
        self,
        update_task_with_link: TaskWithLinkHandler,
        update_task_only: TaskOnlyHandler,
        update_link_only: LinkOnlyHandler,
    ):
        self._update_task_with_link = update_task_with_link
        self._update_task_only = update_task_only
        self._update_link_only = update_link_only

    async def update_time(
        self,
        source_task_id: int | None,
        source_link_id: int | None,
        new_start: datetime,
        new_end: datetime,
    ) -> UpdateResult:
        try:
            if source_task_id is not None and source_link_id is not None:
                await self._update_task_with_link(
                    source_task_id, source_link_id, new_start, new_end
                )
            elif source_task_id is not None:
                await self._update_task_only(source_task_id, new_start)
            elif source_link_id is not None:
                await self._update_link_only(source_link_id, new_start, new_end)
            else:
                logger.error("Update requested with neither task id nor link id")
                return UpdateResult.failed("Invalid task/link combination")
        except Exception as e:
            logger.exception(
                "Time update failed (task=%s, link=%s)", source_task_id, source_link_id
            )
            return UpdateResult.failed(f"Failed to update time: {e}")

        logger.debug(
            "Updated task=%s link=%s to %s-%s",
            source_task_id,
            source_link_id,
            new_start.isoformat(),
            new_end.isoformat(),
        )
        return UpdateResult.ok()
