"""Gantt chart: a project drawn as custom-rendered series on a time/task grid."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .axes import Axis, XAxis, YAxis
from .charts import Chart, ChartType
from .components import DataZoom, Text
from .coordinates import RectangularCoordinate
from .data import DataProvider, DataType, InternalData
from .errors import ChartError
from .parts import Component, ComponentGroup, DataSet, PartCollector
from .project import AbstractProject

if TYPE_CHECKING:
    from .activities import ActivityList
    from .so_chart import SOChart

logger = logging.getLogger(__name__)


class _ProjectSeries(Chart):
    """A series whose rows come from the project and travel inline."""

    renderer = ""
    depth = 0
    encoding: Dict[str, Any] = {"x": -1, "y": 0}
    # Whether the series is bound to the explicit time and task axes.
    uses_axes = False

    def __init__(self, gantt: GanttChart, rows: DataProvider, *, name: Optional[str] = None) -> None:
        super().__init__(ChartType.LINE, name=name, registry=gantt.project.registry)
        self.custom_renderer = self.renderer
        self.z = self.depth
        self._rows = InternalData(rows)
        if self.uses_axes:
            self.plot_on(gantt.coordinate_system, gantt.time_axis, gantt.task_axis)
        else:
            self.plot_on(gantt.coordinate_system)

    def data_to_embed(self) -> Optional[DataProvider]:
        return self._rows

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["encode"] = dict(self.encoding)


class _TaskBands(_ProjectSeries):
    renderer = "HBand"
    depth = 1


class _Tasks(_ProjectSeries):
    renderer = "HBar"
    depth = 4
    encoding = {"x": [2, 3], "y": 0}
    uses_axes = True

    def __init__(self, gantt: GanttChart) -> None:
        project = gantt.project
        super().__init__(gantt, project.task_data(), name="Tasks")
        self.tooltip_labels = project.task_tooltip_labels()

    def declare_data(self, data_set: DataSet) -> None:
        super().declare_data(data_set)
        data_set.add(self.tooltip_labels)

    def add_parts(self, parts: PartCollector) -> None:
        super().add_parts(parts)
        parts.add(self.tooltip_labels)

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["tooltip"] = {"formatter": f"d{self.tooltip_labels.serial}"}


class _TaskAxisLabels(_ProjectSeries):
    renderer = "VAxisLabel"
    depth = 5


class _TaskDependencies(_ProjectSeries):
    renderer = "Dependency"
    depth = 2
    uses_axes = True


class _Today(_ProjectSeries):
    renderer = "VLine"
    depth = 6
    encoding = {"x": 0, "y": -1}


class GanttChart(ComponentGroup):
    """Draws a project as bands, bars, labels, dependency arrows and a today marker.

    When the project can not be scheduled (or has nothing to show) the
    chart contributes a single draggable text carrying the reason instead.
    The chart's default legend is left out while this group is added.
    """

    hides_default_legend = True

    def __init__(self, project: AbstractProject) -> None:
        self.project = project
        registry = project.registry
        self.time_axis = XAxis(DataType.DATE if project.duration_unit.date_based else DataType.TIME, registry=registry)
        self.time_axis.label_alignment = "center"
        self.time_axis.show_ticks = False
        self.time_axis.z = 7
        self.task_axis = YAxis(DataType.NUMBER, registry=registry)
        self.task_axis.show_label = False
        self.task_axis.show_ticks = False
        self.task_axis.min = 0
        self.coordinate_system = RectangularCoordinate(self.time_axis, self.task_axis, registry=registry)
        self.coordinate_system.position = {"top": 40, "bottom": 60, "left": 225, "right": 40}
        self.time_zoom = self._zoom(self.time_axis)
        self.task_zoom = self._zoom(self.task_axis)
        self.error = Text("", registry=registry)
        self.error.font.size = 16
        self.error.draggable = True
        self._series: List[_ProjectSeries] = []

    def _zoom(self, axis: Axis) -> DataZoom:
        zoom = DataZoom(self.coordinate_system, axis, registry=self.project.registry)
        zoom.filter_mode = "empty"
        zoom.show_detail = False
        zoom.z = 7
        return zoom

    def _build_series(self) -> List[_ProjectSeries]:
        project = self.project
        series: List[_ProjectSeries] = [
            _TaskBands(self, project.task_bands()),
            _Tasks(self),
            _TaskAxisLabels(self, project.task_axis_labels()),
        ]
        dependencies = project.task_dependencies()
        if dependencies is not None:
            series.append(_TaskDependencies(self, dependencies, name="Dependencies"))
        series.append(_Today(self, project.data_for_today()))
        return series

    def _fail(self, message: str) -> List[Component]:
        logger.warning("Gantt chart for %r not drawn: %s", self.project.name, message)
        self.error.text = message
        return [self.error]

    def components(self, so_chart: SOChart) -> List[Component]:
        try:
            self.project.validate_constraints()
        except ChartError as error:
            return self._fail(str(error))
        if self.project.is_empty():
            return self._fail(f"Empty project - {self.project.name}")
        if not self._series:
            self._series = self._build_series()
        self.task_axis.max = self.project.row_count
        return [self.coordinate_system, *self._series, self.time_zoom, self.task_zoom]


class ActivityChart(GanttChart):
    """Gantt chart of an :class:`~sochart.activities.ActivityList`; one row per activity group."""

    def __init__(self, activity_list: ActivityList) -> None:
        super().__init__(activity_list)

    @property
    def activity_axis(self) -> YAxis:
        return self.task_axis

    @property
    def activity_axis_zoom(self) -> DataZoom:
        return self.task_zoom
