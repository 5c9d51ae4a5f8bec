"""Activity lists: groups of non-overlapping, explicitly timed activities."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterator, List, Optional, Tuple

from .config import DEFAULT_GROUP_NAME
from .errors import ChartError
from .project import AbstractGroup, AbstractProject, AbstractTask, LeafTask, TimeLike

logger = logging.getLogger(__name__)


class Activity(LeafTask):
    """A bar with its own start; activities of one group share a row."""

    label_prefix = "Activity"

    def __init__(self, group: ActivityGroup, name: Optional[str], start: TimeLike, duration: int) -> None:
        super().__init__(group, name, duration)
        self.start = group.project.trim(start)

    @property
    def group(self) -> ActivityGroup:
        return self._group

    def create_next(self, name: str, duration: int, gap: int = 1) -> Optional[Activity]:
        """Create an activity in the same group starting ``gap`` units after this one ends."""
        project = self._project
        return project.create_activity(self._group, name, self.get_end() + gap * project.duration_unit.delta, duration)

    def check(self) -> None:
        if self._duration <= 0:
            raise ChartError(f"Invalid duration in {self}")

    def __str__(self) -> str:
        project = self._project
        return f"[{self.name} ({project.format_time(self.get_start())} - {project.format_time(self.get_end())})]"


class ActivityGroup(AbstractGroup):
    """One row of an activity list."""

    @property
    def activities(self) -> Tuple[Activity, ...]:
        return tuple(self._members)

    def create_activity(
        self,
        name: str,
        start: TimeLike,
        duration: Optional[int] = None,
        *,
        end: Optional[TimeLike] = None,
    ) -> Optional[Activity]:
        return self._project.create_activity(self, name, start, duration, end=end)

    def get_activity(self, index: int) -> Activity:
        return self._members[index]

    @property
    def activity_count(self) -> int:
        return len(self._members)

    def check(self) -> None:
        """Raise ChartError for a bad duration or for two activities that overlap."""
        for activity in self._members:
            activity.check()
        for later, earlier in zip(self._members, self._members[1:]):
            if later.get_start() < earlier.get_end():
                raise ChartError(f"{later} overlaps with {earlier}")


class ActivityList(AbstractProject):
    """Groups of activities, each group drawn on a single row.

    Unlike :class:`~sochart.project.Project` nothing is scheduled: every
    activity carries its own start. When no start is set the list starts
    with its earliest activity.
    """

    @property
    def groups(self) -> Tuple[ActivityGroup, ...]:
        return tuple(self._groups)

    @property
    def activity_count(self) -> int:
        return sum(len(group._members) for group in self._groups)

    @property
    def row_count(self) -> int:
        return len(self._groups)

    def get_activity_group(self, index: int) -> ActivityGroup:
        return self._groups[index]

    def activities(self) -> Iterator[Activity]:
        for group in self._groups:
            yield from group._members

    def create_activity_group(self, name: str) -> ActivityGroup:
        """Create a group; the newest group comes first."""
        group = ActivityGroup(self, name)
        self._groups.insert(0, group)
        self.invalidate()
        return group

    def create_activity(
        self,
        group: Optional[ActivityGroup],
        name: str,
        start: TimeLike,
        duration: Optional[int] = None,
        *,
        end: Optional[TimeLike] = None,
    ) -> Optional[Activity]:
        """Create an activity lasting ``duration`` units, or running until ``end``.

        ``None`` as the group puts the activity into a fresh default group.
        Returns ``None`` when ``group`` does not belong to this list.
        """
        if duration is None and end is None:
            raise ValueError("Either a duration or an end is required")
        if group is None:
            group = self.create_activity_group(DEFAULT_GROUP_NAME)
        if group not in self._groups:
            return None
        if end is not None:
            duration = self.duration_unit.between(self.trim(start), self.trim(end))
        self.invalidate()
        return Activity(group, name, start, duration)

    def delete(self, *nodes: Optional[AbstractTask]) -> None:
        """Remove activities or groups; deleting a group deletes its activities."""
        for node in nodes:
            if node is None:
                continue
            self.invalidate()
            if node.is_group:
                if node in self._groups:
                    self._groups.remove(node)
                node._members.clear()
            elif node in node.group._members:
                node.group._members.remove(node)

    @property
    def start(self) -> Optional[datetime]:
        if self._start is not None:
            return self._start
        starts = [activity.get_start() for activity in self.activities()]
        return min(starts) if starts else None

    def validate_constraints(self) -> None:
        """Check durations and overlaps; cached until the next change."""
        if self._checked:
            return
        self._require_start()
        self._groups[:] = [group for group in self._groups if group._members]
        for group in self._groups:
            group._sort()
            group.check()
        self._checked = True
        logger.debug(
            "Activity list %r validated: %d groups, %d activities", self.name, self.group_count, self.activity_count
        )

    def stream_groups(self) -> Optional[Iterator[ActivityGroup]]:
        """Iterate groups, or ``None`` when the list is invalid."""
        if not self._validated():
            return None
        return iter(list(self._groups))

    def stream_activities(self, group: ActivityGroup) -> Optional[Iterator[Activity]]:
        if not self._validated():
            return None
        return iter(list(group._members))

    # --- Rendering rows --------------------------------------------------------

    def rendering_position(self, task: Activity, index: int) -> int:
        return self.index_of_group(task.group)

    def extra_axis_label(self, group: ActivityGroup) -> str:
        return group.extra_info or ""

    def _axis_label_filter(self, task: Activity) -> bool:
        return task is task.group._members[0]

    def _axis_label_row(self, task: Activity, index: int) -> List[Any]:
        group = task.group
        return [
            self.index_of_group(group),
            "",
            0,
            group.name,
            self.extra_axis_label(group),
            group.color,
            self._font_size(group, self.style.group_font_size),
            group.extra_font_size if group.extra_font_size > 0 else self.style.extra_font_size,
        ]
