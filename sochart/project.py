"""Task model for Gantt-style charts: projects, task groups and tasks."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional, Tuple, Union

from . import scheduling
from .colors import ColorLike, color_name, default_color
from .config import (
    BAND_COLOR_EVEN,
    BAND_COLOR_ODD,
    DEFAULT_EXTRA_FONT_SIZE,
    DEFAULT_GROUP_FONT_SIZE,
    DEFAULT_GROUP_NAME,
    DEFAULT_TASK_FONT_SIZE,
    TASK_FILL_COLOR,
    TASK_STROKE_COLOR,
    TODAY_COLOR,
)
from .data import DataType, ProviderData
from .errors import ChartError
from .registry import DEFAULT_REGISTRY, PartRegistry

logger = logging.getLogger(__name__)

TimeLike = Union[date, datetime]
TimeFormat = Callable[[datetime], str]


class DurationUnit(Enum):
    """Unit in which task durations are counted."""

    DAYS = ("day", True, timedelta(days=1))
    HOURS = ("hour", False, timedelta(hours=1))
    MINUTES = ("minute", False, timedelta(minutes=1))
    SECONDS = ("second", False, timedelta(seconds=1))
    MILLIS = ("millisecond", False, timedelta(milliseconds=1))

    def __init__(self, label: str, date_based: bool, delta: timedelta) -> None:
        self.label = label
        self.date_based = date_based
        self.delta = delta

    @classmethod
    def of(cls, unit: Union["DurationUnit", str, None]) -> "DurationUnit":
        """Days when unset; anything finer than seconds (or unknown) becomes milliseconds."""
        if unit is None:
            return cls.DAYS
        if isinstance(unit, cls):
            return unit
        try:
            return cls[str(unit).upper()]
        except KeyError:
            return cls.MILLIS

    def truncate(self, when: datetime) -> datetime:
        if self is DurationUnit.DAYS:
            return when.replace(hour=0, minute=0, second=0, microsecond=0)
        if self is DurationUnit.HOURS:
            return when.replace(minute=0, second=0, microsecond=0)
        if self is DurationUnit.MINUTES:
            return when.replace(second=0, microsecond=0)
        if self is DurationUnit.SECONDS:
            return when.replace(microsecond=0)
        return when.replace(microsecond=when.microsecond - when.microsecond % 1000)

    def between(self, start: datetime, end: datetime) -> int:
        return int((end - start) / self.delta)

    def time_pattern(self) -> str:
        pattern = "%b %d, %Y"
        if self is DurationUnit.SECONDS:
            return pattern + " %H:%M:%S"
        if self is DurationUnit.MINUTES:
            return pattern + " %H:%M"
        if self is DurationUnit.HOURS:
            return pattern + " %H"
        if self is DurationUnit.MILLIS:
            return pattern + " %H:%M:%S.%f"
        return pattern


def _as_datetime(when: TimeLike) -> datetime:
    if isinstance(when, datetime):
        return when
    return datetime(when.year, when.month, when.day)


def _trim(value: float) -> str:
    """Format a percentage without a trailing ``.0``."""
    text = str(float(value))
    return text[:-2] if text.endswith(".0") else text


@dataclass
class RowStyle:
    """Colors, fonts and formats used when a project is turned into chart rows."""

    band_color_odd: str = BAND_COLOR_ODD
    band_color_even: str = BAND_COLOR_EVEN
    today_color: str = TODAY_COLOR
    today_format: Optional[TimeFormat] = None
    tooltip_time_format: Optional[TimeFormat] = None
    task_font_size: int = DEFAULT_TASK_FONT_SIZE
    group_font_size: int = DEFAULT_GROUP_FONT_SIZE
    extra_font_size: int = DEFAULT_EXTRA_FONT_SIZE

    def band_color(self, row: int) -> str:
        return self.band_color_even if row % 2 == 0 else self.band_color_odd


class AbstractTask:
    """Common part of every bar or group drawn on a Gantt chart."""

    is_group = False
    label_prefix = "Task"

    def __init__(self, project: AbstractProject, name: Optional[str]) -> None:
        self._project = project
        self.id = project.registry.new_id()
        self._name = name
        self._color: Optional[str] = None
        self._order = -1
        self.extra_info: Optional[str] = None
        self.font_size = 0
        self.extra_font_size = 0
        self.earliest_start: Optional[datetime] = None
        self.start: Optional[datetime] = None
        self._predecessors: List[AbstractTask] = []

    @property
    def project(self) -> AbstractProject:
        return self._project

    @property
    def name(self) -> str:
        if self._name:
            return "" if self._name == DEFAULT_GROUP_NAME else self._name
        return f"{self.label_prefix}: {self.id}"

    @name.setter
    def name(self, name: Optional[str]) -> None:
        self._name = name

    @property
    def order(self) -> int:
        return self._order

    @order.setter
    def order(self, order: int) -> None:
        self._order = order
        self._project.invalidate()

    @property
    def predecessors(self) -> Tuple[AbstractTask, ...]:
        return tuple(self._predecessors)

    @property
    def duration(self) -> int:
        raise NotImplementedError

    @property
    def is_milestone(self) -> bool:
        return not self.is_group and self.duration == 0

    @property
    def color(self) -> Optional[str]:
        return self._color

    @color.setter
    def color(self, color: Optional[ColorLike]) -> None:
        self._color = None if color is None else color_name(color)

    def get_start(self) -> Optional[datetime]:
        return self.start

    def get_end(self) -> Optional[datetime]:
        start = self.get_start()
        if start is None:
            return None
        return start + self.duration * self._project.duration_unit.delta

    def render_start(self) -> Optional[datetime]:
        """Start used for drawing; milestones are drawn one unit early."""
        start = self.get_start()
        if start is not None and self.duration == 0:
            return start - self._project.duration_unit.delta
        return start

    def is_completed(self) -> bool:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AbstractTask):
            return NotImplemented
        return self.id == other.id and self._project is other._project

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} start={self.get_start()}>"


class AbstractGroup(AbstractTask):
    """A named row group; start, end and duration come from its members."""

    is_group = True
    label_prefix = "Group"

    def __init__(self, project: AbstractProject, name: Optional[str]) -> None:
        super().__init__(project, name)
        self._members: List[LeafTask] = []

    def get_start(self) -> Optional[datetime]:
        starts = [m.get_start() for m in self._members if m.get_start() is not None]
        return min(starts) if starts else None

    def get_end(self) -> Optional[datetime]:
        ends = [m.get_end() for m in self._members if m.get_end() is not None]
        return max(ends) if ends else None

    @property
    def duration(self) -> int:
        start, end = self.get_start(), self.get_end()
        if start is None or end is None:
            return 0
        return self._project.duration_unit.between(start, end)

    @property
    def color(self) -> str:
        if self._color is None:
            self._color = default_color(self._project.index_of_group(self))
        return self._color

    @color.setter
    def color(self, color: Optional[ColorLike]) -> None:
        self._color = None if color is None else color_name(color)

    def is_completed(self) -> bool:
        return all(member.is_completed() for member in self._members)

    def _sort(self) -> None:
        self._members[:] = scheduling.display_order(self._members)


class LeafTask(AbstractTask):
    """A bar inside a group, with its own duration and completion."""

    def __init__(self, group: AbstractGroup, name: Optional[str], duration: int) -> None:
        super().__init__(group.project, name)
        self._group = group
        self._duration = max(int(duration), 0)
        self._completed = 0.0
        group._members.append(self)

    @property
    def group(self) -> AbstractGroup:
        return self._group

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def completed(self) -> float:
        return self._completed

    @completed.setter
    def completed(self, completed: float) -> None:
        self._completed = min(max(0.0, float(completed)), 100.0)

    @property
    def color(self) -> Optional[str]:
        return self._color or self._group.color

    @color.setter
    def color(self, color: Optional[ColorLike]) -> None:
        self._color = None if color is None else color_name(color)

    def is_completed(self) -> bool:
        return self._completed >= 100 or self._duration == 0


class Task(LeafTask):
    """Leaf unit of work; zero duration makes it a milestone."""

    @property
    def group(self) -> TaskGroup:
        return self._group

    def is_completed(self) -> bool:
        if self._duration > 0:
            return self._completed >= 100
        return all(predecessor.is_completed() for predecessor in self._predecessors)


class TaskGroup(AbstractGroup):
    """Ordered collection of tasks with its own predecessors."""

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._members)

    def create_task(self, name: str, duration: int) -> Optional[Task]:
        return self._project.create_task(self, name, duration)

    def get_task(self, index: int) -> Task:
        return self._members[index]

    @property
    def task_count(self) -> int:
        return len(self._members)


class AbstractProject:
    """Time settings, validation cache and Gantt row providers shared by every project model.

    Subclasses say which bars exist (:meth:`rows`), on which row each one is
    drawn (:meth:`rendering_position`) and how many rows there are.
    """

    def __init__(
        self,
        duration_unit: Union[DurationUnit, str, None] = None,
        *,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self.id = self.registry.new_id()
        self.duration_unit = DurationUnit.of(duration_unit)
        self._name = name
        self._groups: List[AbstractGroup] = []
        self._start: Optional[datetime] = None
        self._checked = False
        if self.duration_unit.date_based:
            self.today = datetime.combine(date.today(), datetime.min.time())
        else:
            self.today = datetime.now()
        self.style = RowStyle()

    @property
    def name(self) -> str:
        return self._name or f"Project {self.id}"

    @name.setter
    def name(self, name: Optional[str]) -> None:
        self._name = name

    def invalidate(self) -> None:
        self._checked = False

    @property
    def is_validated(self) -> bool:
        return self._checked

    @property
    def row_count(self) -> int:
        raise NotImplementedError

    def is_empty(self) -> bool:
        return self.row_count == 0

    @property
    def group_count(self) -> int:
        return len(self._groups)

    def index_of_group(self, group: AbstractGroup) -> int:
        try:
            return self._groups.index(group)
        except ValueError:
            return 0

    # --- Time ------------------------------------------------------------------

    def trim(self, when: TimeLike) -> datetime:
        return self.duration_unit.truncate(_as_datetime(when))

    @property
    def start(self) -> Optional[datetime]:
        return self._start

    def set_start(self, start: TimeLike) -> None:
        self.invalidate()
        self._start = self.trim(start)

    def get_end(self) -> Optional[datetime]:
        end = self.start
        for item, _ in self.rows():
            item_end = item.get_end()
            if item_end is not None and (end is None or item_end > end):
                end = item_end
        return end

    def set_today(self, today: TimeLike) -> None:
        self.today = _as_datetime(today)

    # --- Validation ------------------------------------------------------------

    def validate_constraints(self) -> None:
        raise NotImplementedError

    def _require_start(self) -> None:
        if self.start is None:
            raise ChartError("Project start not specified")

    def _validated(self) -> bool:
        try:
            self.validate_constraints()
        except ChartError as error:
            logger.warning("Project %r is not valid: %s", self.name, error)
            return False
        return True

    # --- Rendering rows --------------------------------------------------------

    @property
    def task_font_size(self) -> int:
        return self.style.task_font_size

    @task_font_size.setter
    def task_font_size(self, size: int) -> None:
        self.style.task_font_size = size if size > 0 else DEFAULT_TASK_FONT_SIZE

    @property
    def group_font_size(self) -> int:
        return self.style.group_font_size

    @group_font_size.setter
    def group_font_size(self, size: int) -> None:
        self.style.group_font_size = size if size > 0 else DEFAULT_GROUP_FONT_SIZE

    def set_task_band_colors(self, odd: ColorLike, even: ColorLike) -> None:
        self.style.band_color_odd = color_name(odd)
        self.style.band_color_even = color_name(even)

    def encode_time(self, when: datetime) -> str:
        if self.duration_unit.date_based:
            return when.date().isoformat()
        return when.isoformat()

    def format_time(self, when: datetime) -> str:
        """Time as shown in tooltips and messages."""
        if self.style.tooltip_time_format is not None:
            return self.style.tooltip_time_format(when)
        return self._default_time_format(when)

    def _default_time_format(self, when: datetime) -> str:
        return when.strftime(self.duration_unit.time_pattern())

    def rows(self, task_filter: Optional[Callable[[LeafTask], bool]] = None) -> Iterator[Tuple[LeafTask, int]]:
        """Yield ``(bar, index)`` in display order; filtered bars still use up their index."""
        index = -1
        for group in self._groups:
            for member in group._members:
                index += 1
                if task_filter is None or task_filter(member):
                    yield member, index

    def rendering_position(self, task: LeafTask, index: int) -> int:
        """Row on which the bar yielded at ``index`` is drawn."""
        return index

    def task_label(self, task: LeafTask) -> str:
        if task.is_milestone:
            return task.name
        return f"{task.name} ({_trim(task.completed)}%)"

    def tooltip_label(self, task: LeafTask) -> str:
        extra = f"<br>{task.extra_info}" if task.extra_info else ""
        text = f"{self.task_label(task)}<br>{self.format_time(task.get_start())}"
        if task.is_milestone:
            return text + extra
        return f"{text} - {self.format_time(task.get_end())} ({task.duration}){extra}"

    def _font_size(self, task: AbstractTask, default: int) -> int:
        return task.font_size if task.font_size > 0 else default

    def _task_row(self, task: LeafTask, index: int) -> List[Any]:
        return [
            self.rendering_position(task, index),
            self.task_label(task),
            self.encode_time(task.render_start()),
            self.encode_time(task.get_end()),
            100 if task.is_milestone else task.completed,
            task.color,
            TASK_STROKE_COLOR,
            TASK_FILL_COLOR,
            self._font_size(task, self.style.task_font_size),
        ]

    def _axis_label_row(self, task: LeafTask, index: int) -> List[Any]:
        raise NotImplementedError

    def _axis_label_filter(self, task: LeafTask) -> bool:
        return True

    def _band_row(self, row: int) -> List[Any]:
        return [row, self.encode_time(self.start), self.encode_time(self.get_end()), self.style.band_color(row)]

    def _today_row(self) -> List[Any]:
        fmt = self.style.today_format or (lambda when: "Today: " + self._default_time_format(when))
        return [self.encode_time(self.today), fmt(self.today), self.style.today_color, 100]

    def _provider(
        self,
        data_type: DataType,
        encoder: Callable[[LeafTask, int], Any],
        task_filter: Optional[Callable[[LeafTask], bool]] = None,
    ) -> ProviderData:
        return ProviderData(
            data_type,
            lambda: [encoder(task, index) for task, index in self.rows(task_filter)],
            registry=self.registry,
        )

    def task_data(self) -> ProviderData:
        return self._provider(DataType.OBJECT, self._task_row)

    def task_dependencies(self) -> Optional[ProviderData]:
        """Dependency arrows; ``None`` when the model has no dependencies."""
        return None

    def task_axis_labels(self) -> ProviderData:
        return self._provider(DataType.OBJECT, self._axis_label_row, self._axis_label_filter)

    def task_tooltip_labels(self) -> ProviderData:
        return self._provider(DataType.CATEGORY, lambda task, index: self.tooltip_label(task))

    def task_bands(self) -> ProviderData:
        return ProviderData(
            DataType.OBJECT,
            lambda: [self._band_row(row) for row in range(self.row_count)],
            registry=self.registry,
        )

    def data_for_today(self) -> ProviderData:
        return ProviderData(DataType.OBJECT, lambda: [self._today_row()], registry=self.registry)


class Project(AbstractProject):
    """A set of task groups scheduled from a single start time.

    Any structural change clears the cached validation; the next call to
    :meth:`validate_constraints` schedules again.
    """

    @property
    def groups(self) -> Tuple[TaskGroup, ...]:
        return tuple(self._groups)

    @property
    def task_count(self) -> int:
        return sum(len(group._members) for group in self._groups)

    @property
    def row_count(self) -> int:
        return self.task_count

    def get_task_group(self, index: int) -> TaskGroup:
        return self._groups[index]

    def tasks(self) -> Iterator[Task]:
        for group in self._groups:
            yield from group._members

    def create_task_group(self, name: str) -> TaskGroup:
        """Create a group; the newest group comes first."""
        group = TaskGroup(self, name)
        self._groups.insert(0, group)
        self.invalidate()
        return group

    def create_task(self, group: Optional[TaskGroup], name: str, duration: int) -> Optional[Task]:
        """Create a task in ``group``; ``None`` puts it into a fresh default group.

        Returns ``None`` when ``group`` does not belong to this project.
        """
        if group is None:
            group = self.create_task_group(DEFAULT_GROUP_NAME)
        if group not in self._groups:
            return None
        self.invalidate()
        return Task(group, name, duration)

    def delete(self, *nodes: Optional[AbstractTask]) -> None:
        """Remove tasks or groups and every dependency pointing at them.

        Deleting a group deletes its tasks too.
        """
        for node in nodes:
            if node is None:
                continue
            if node.is_group:
                self._delete_group(node)
            else:
                self._delete_task(node)

    def _strip(self, node: AbstractTask) -> None:
        for group in self._groups:
            if node in group._predecessors:
                group._predecessors.remove(node)
            for task in group._members:
                if node in task._predecessors:
                    task._predecessors.remove(node)

    def _delete_task(self, task: Task) -> None:
        self.invalidate()
        if task in task.group._members:
            task.group._members.remove(task)
        self._strip(task)

    def _delete_group(self, group: TaskGroup) -> None:
        self.invalidate()
        if group in self._groups:
            self._groups.remove(group)
        while group._members:
            self._delete_task(group._members[0])
        self._strip(group)

    def depends_on(self, dependent: Optional[AbstractTask], predecessor: Optional[AbstractTask]) -> None:
        """Record that ``dependent`` can not start before ``predecessor`` ends."""
        if dependent is None or predecessor is None:
            return
        if predecessor not in dependent._predecessors:
            dependent._predecessors.append(predecessor)
            self.invalidate()

    def set_earliest_start(self, node: AbstractTask, start: TimeLike) -> None:
        self.invalidate()
        node.earliest_start = self.trim(start)

    def reset_earliest_start(self, node: AbstractTask) -> None:
        self.invalidate()
        node.earliest_start = None

    # --- Scheduling ------------------------------------------------------------

    def validate_constraints(self) -> None:
        """Check dependencies and compute start times; cached until the next change."""
        if self._checked:
            return
        self._require_start()
        self._groups[:] = [group for group in self._groups if group._members]
        scheduling.check_dependencies(self._groups)
        scheduling.schedule(self._groups, self._start, self.duration_unit)
        self._groups[:] = scheduling.display_order(self._groups)
        for group in self._groups:
            group._sort()
        self._checked = True
        logger.debug("Project %r validated: %d groups, %d tasks", self.name, self.group_count, self.task_count)

    def stream_groups(self) -> Optional[Iterator[TaskGroup]]:
        """Iterate groups in display order, or ``None`` when the project is invalid."""
        if not self._validated():
            return None
        return iter(list(self._groups))

    def stream_tasks(self, group: TaskGroup) -> Optional[Iterator[Task]]:
        if not self._validated():
            return None
        return iter(list(group._members))

    def stream_dependencies(self, node: AbstractTask) -> Optional[Iterator[AbstractTask]]:
        if not self._validated():
            return None
        return iter(list(node._predecessors))

    # --- Rendering rows --------------------------------------------------------

    def row_of(self, task: Task) -> int:
        row = 0
        for group in self._groups:
            if group is task.group:
                return row + group._members.index(task)
            row += len(group._members)
        raise ChartError(f"Task '{task.name}' is not part of {self.name}")

    def task_axis_label(self, task: Task) -> str:
        return task.name

    def extra_task_axis_label(self, task: Task) -> str:
        if task.is_completed():
            return "Achieved" if task.is_milestone else "Completed"
        unit = self.duration_unit
        left = int((self.today - task.get_end()) / unit.delta)
        name = unit.label if abs(left) == 1 else unit.label + "s"
        if left > 0:
            return f"Late by {left} {name}"
        return f"{-left} {name} remaining"

    def _dependents(self, task: Task) -> str:
        rows = []
        for predecessor in task._predecessors:
            if predecessor.is_group:
                if not predecessor._members:
                    continue
                predecessor = predecessor._members[-1]
            rows.append([
                self.row_of(predecessor),
                self.encode_time(predecessor.render_start()),
                self.encode_time(predecessor.get_end()),
            ])
        return json.dumps({"d": rows}, separators=(",", ":")).replace('"', "^")

    def _dependency_row(self, task: Task, index: int) -> List[Any]:
        return [index, self.encode_time(task.render_start()), self.encode_time(task.get_end()), self._dependents(task)]

    def _axis_label_row(self, task: Task, index: int) -> List[Any]:
        last = task is task.group._members[-1]
        return [
            index,
            task.group.name,
            0 if last else 1,
            self.task_axis_label(task),
            self.extra_task_axis_label(task),
            task.color,
        ]

    def task_dependencies(self) -> ProviderData:
        return self._provider(DataType.OBJECT, self._dependency_row, lambda task: bool(task._predecessors))
