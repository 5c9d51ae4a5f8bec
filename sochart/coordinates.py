"""Coordinate systems: shared axis lists plus the charts plotted on them."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .axes import AngleAxis, Axis, RadiusAxis, XAxis, YAxis
from .errors import ChartError
from .parts import Component, PartCollector, PartKind, display_name
from .registry import PartRegistry

if TYPE_CHECKING:
    from .charts import Chart


class CoordinateSystem(Component):
    """Base class; subclasses declare the axis kinds they require."""

    required_axes: Tuple[PartKind, ...] = ()

    def __init__(self, *axes: Axis, name: Optional[str] = None, registry: Optional[PartRegistry] = None) -> None:
        super().__init__(name=name, registry=registry)
        self._axes: List[Axis] = []
        self._charts: List[Chart] = []
        self.position: Dict[str, Any] = {}
        for axis in axes:
            self.add_axis(axis)

    @property
    def axes(self) -> List[Axis]:
        return list(self._axes)

    @property
    def charts(self) -> List[Chart]:
        return list(self._charts)

    def add_axis(self, axis: Optional[Axis]) -> None:
        if axis is None or axis in self._axes:
            return
        if axis.kind not in self.required_axes:
            raise ChartError(f"{axis.class_name()} can not be used in {self.class_name()}")
        self._axes.append(axis)

    def remove_axis(self, axis: Axis) -> None:
        if axis in self._axes:
            self._axes.remove(axis)

    def axes_of(self, kind: PartKind) -> List[Axis]:
        return [axis for axis in self._axes if axis.kind is kind]

    def add(self, *charts: Chart) -> None:
        for chart in charts:
            if chart is None:
                continue
            if chart.coordinate_system is not None and chart.coordinate_system is not self:
                chart.coordinate_system.remove(chart)
            if chart not in self._charts:
                self._charts.append(chart)
            chart.coordinate_system = self

    def remove(self, *charts: Chart) -> None:
        for chart in charts:
            if chart in self._charts:
                self._charts.remove(chart)
                chart.coordinate_system = None

    def validate(self) -> None:
        for kind in self.required_axes:
            if not self.axes_of(kind):
                raise ChartError(f"{display_name(kind.label)} not set for {self.class_name()}")

    def add_parts(self, parts: PartCollector) -> None:
        for axis in self._axes:
            parts.add(axis.wrap(self))
        for chart in self._charts:
            if chart not in parts:
                parts.add(chart)
                chart.add_parts(parts)

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out.update(self.position)


class RectangularCoordinate(CoordinateSystem):
    kind = PartKind.GRID
    required_axes = (PartKind.X_AXIS, PartKind.Y_AXIS)

    def __init__(
        self,
        x_axis: Optional[XAxis] = None,
        y_axis: Optional[YAxis] = None,
        *,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(name=name, registry=registry)
        self.add_axis(x_axis)
        self.add_axis(y_axis)


class PolarCoordinate(CoordinateSystem):
    kind = PartKind.POLAR
    required_axes = (PartKind.ANGLE_AXIS, PartKind.RADIUS_AXIS)

    def __init__(
        self,
        angle_axis: Optional[AngleAxis] = None,
        radius_axis: Optional[RadiusAxis] = None,
        *,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(name=name, registry=registry)
        self.add_axis(angle_axis)
        self.add_axis(radius_axis)
