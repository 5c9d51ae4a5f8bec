"""Series: charts that plot data providers on a coordinate system."""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .axes import Axis
from .data import DataProvider
from .errors import ChartError
from .parts import Component, DataSet, HasData, PartCollector, PartKind, display_name
from .registry import PartRegistry

if TYPE_CHECKING:
    from .coordinates import CoordinateSystem


class ChartType(Enum):
    """Series type: client type name, data slots, whether a coordinate system is needed."""

    LINE = ("line", ("x", "y"), True)
    BAR = ("bar", ("x", "y"), True)
    SCATTER = ("scatter", ("x", "y"), True)
    EFFECT_SCATTER = ("effectScatter", ("x", "y"), True)
    PIE = ("pie", ("itemName", "value"), False)
    FUNNEL = ("funnel", ("itemName", "value"), False)

    def __init__(self, type_name: str, axes: Tuple[str, ...], needs_coordinate_system: bool) -> None:
        self.type_name = type_name
        self.axes = axes
        self.needs_coordinate_system = needs_coordinate_system


_COORDINATE_SYSTEM_NAMES = {
    PartKind.GRID: "cartesian2d",
    PartKind.POLAR: "polar",
}


class Chart(Component, HasData):
    """A single series.

    Without explicit axes the chart uses the first axis of each kind in its
    coordinate system.
    """

    kind = PartKind.SERIES

    def __init__(
        self,
        chart_type: ChartType = ChartType.LINE,
        *data: Optional[DataProvider],
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(name=name, registry=registry)
        self.chart_type = chart_type
        self._data: List[Optional[DataProvider]] = list(data)
        self._axes: List[Axis] = []
        self.coordinate_system: Optional[CoordinateSystem] = None
        self.custom_renderer: Optional[str] = None
        self.z: Optional[int] = None

    # --- Data -----------------------------------------------------------------

    @property
    def data(self) -> List[Optional[DataProvider]]:
        return list(self._data)

    def set_data(self, *data: Optional[DataProvider]) -> None:
        self._data = list(data)

    def set_data_at(self, index: int, data: Optional[DataProvider]) -> None:
        while len(self._data) <= index:
            self._data.append(None)
        self._data[index] = data

    def data_to_embed(self) -> Optional[DataProvider]:
        """Provider whose values are written inline instead of referenced."""
        return None

    def declare_data(self, data_set: DataSet) -> None:
        data_set.add(*self._data)
        data_set.add(self.data_to_embed())

    # --- Axes -----------------------------------------------------------------

    @property
    def axes(self) -> List[Axis]:
        return list(self._axes)

    def plot_on(self, coordinate_system: Optional[CoordinateSystem], *axes: Axis) -> "Chart":
        if coordinate_system is None:
            if self.coordinate_system is not None:
                self.coordinate_system.remove(self)
            self._axes = []
            return self
        if self.chart_type.needs_coordinate_system or self.custom_renderer:
            coordinate_system.add(self)
        self._axes = [axis for axis in axes if axis is not None]
        return self

    def axis_for(self, kind: PartKind) -> Optional[Axis]:
        for axis in self._axes:
            if axis.kind is kind:
                return axis
        if self.coordinate_system is None:
            return None
        candidates = self.coordinate_system.axes_of(kind)
        return candidates[0] if candidates else None

    # --- Validation -------------------------------------------------------------

    def _needs_coordinate_system(self) -> bool:
        return self.chart_type.needs_coordinate_system or self.custom_renderer is not None

    def validate(self) -> None:
        slots = self.chart_type.axes
        if self.data_to_embed() is None:
            if not self._data and slots:
                raise ChartError(f"Data not set for {self.class_name()}")
            for index, slot in enumerate(slots):
                if index >= len(self._data) or self._data[index] is None:
                    raise ChartError(f"Data for {display_name(slot)} not set for {self.class_name()}")
        if self.coordinate_system is None:
            if self._needs_coordinate_system():
                raise ChartError(f"Coordinate system not set for {self.class_name()}")
            return
        members = self.coordinate_system.axes
        seen: Dict[PartKind, Axis] = {}
        for axis in self._axes:
            if axis not in members:
                label = axis.name or type(axis).__name__
                raise ChartError(f"Axis {label} does not belong to the coordinate system of {self.class_name()}")
            if axis.kind in seen:
                raise ChartError(f"More than one {type(axis).__name__} attached to {self.class_name()}")
            seen[axis.kind] = axis

    def validate_numbered(self) -> None:
        self.validate()
        if self.coordinate_system is not None and self.coordinate_system.serial < 0:
            raise ChartError(f"Coordinate system of {self.class_name()} is not part of the chart")

    # --- Encoding ---------------------------------------------------------------

    def add_parts(self, parts: PartCollector) -> None:
        cs = self.coordinate_system
        if cs is not None and cs not in parts:
            parts.add(cs)
            cs.add_parts(parts)
        parts.add(*self._data)
        parts.add(self.data_to_embed())

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        if self.custom_renderer:
            out["type"] = "custom"
            out["renderItem"] = self.custom_renderer
        else:
            out["type"] = self.chart_type.type_name
        if self.z is not None:
            out["z"] = self.z
        cs = self.coordinate_system
        if cs is not None:
            out["coordinateSystem"] = _COORDINATE_SYSTEM_NAMES.get(cs.kind, cs.kind.label)
            if cs.kind is PartKind.POLAR:
                out["polarIndex"] = cs.serial
            for kind in cs.required_axes:
                axis = self.axis_for(kind)
                wrapper = None if axis is None else cs.registry.find_wrapper(axis, cs)
                if wrapper is not None:
                    out[f"{kind.label}Index"] = wrapper.serial
        embedded = self.data_to_embed()
        if embedded is not None:
            out["data"] = embedded.encode()
            return
        out["encode"] = {
            slot: f"d{provider.serial}"
            for slot, provider in zip(self.chart_type.axes, self._data)
            if provider is not None
        }
