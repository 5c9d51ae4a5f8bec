"""Axes and the per-coordinate-system wrappers that render them."""
from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .data import DataProvider, DataType
from .errors import ChartError
from .parts import ComponentPart, PartKind
from .registry import PartRegistry

if TYPE_CHECKING:
    from .coordinates import CoordinateSystem


class Axis(ComponentPart):
    """A logical axis; may be shared by several coordinate systems.

    The axis itself is never numbered. Each coordinate system that uses it
    renders it through an :class:`AxisWrapper` with its own serial.
    """

    def __init__(
        self,
        data_type: Union[DataType, DataProvider] = DataType.NUMBER,
        *,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(name=name, registry=registry)
        if isinstance(data_type, DataProvider):
            data_type = data_type.data_type
        self.data_type = data_type
        self.min: Optional[Any] = None
        self.max: Optional[Any] = None
        self.visible = True
        self.show_label = True
        self.label_alignment: Optional[str] = None
        self.show_ticks = True
        self.z: Optional[int] = None

    @property
    def axis_type(self) -> str:
        return self.data_type.axis_type or DataType.CATEGORY.axis_type

    def wrap(self, coordinate_system: CoordinateSystem) -> AxisWrapper:
        return self.registry.wrapper_for(self, coordinate_system, lambda: AxisWrapper(self, coordinate_system))

    def wrappers(self) -> List[AxisWrapper]:
        return self.registry.wrappers_of(self)

    def encode_properties(self, out: Dict[str, Any]) -> None:
        out["type"] = self.axis_type
        if not self.visible:
            out["show"] = False
        if self.min is not None:
            out["min"] = self.min
        if self.max is not None:
            out["max"] = self.max
        if not self.show_label:
            out["axisLabel"] = {"show": False}
        elif self.label_alignment:
            out["axisLabel"] = {"align": self.label_alignment}
        if not self.show_ticks:
            out["axisTick"] = {"show": False}
        if self.z is not None:
            out["z"] = self.z


class XYAxis(Axis):
    """Axis of a rectangular coordinate system."""

    _opposite_position = ""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.opposite = False
        self.offset = 0

    def encode_properties(self, out: Dict[str, Any]) -> None:
        super().encode_properties(out)
        if self.opposite:
            out["position"] = self._opposite_position
        if self.offset > 0:
            out["offset"] = self.offset


class XAxis(XYAxis):
    kind = PartKind.X_AXIS
    _opposite_position = "top"


class YAxis(XYAxis):
    kind = PartKind.Y_AXIS
    _opposite_position = "right"


class AngleAxis(Axis):
    kind = PartKind.ANGLE_AXIS


class RadiusAxis(Axis):
    kind = PartKind.RADIUS_AXIS


class AxisWrapper(ComponentPart):
    """Renders ``axis`` inside ``coordinate_system``.

    Only a weak reference to the coordinate system is kept; the registry
    stores wrappers under that coordinate system as a weak key.
    """

    def __init__(self, axis: Axis, coordinate_system: CoordinateSystem) -> None:
        super().__init__(name=axis.name, registry=axis.registry)
        self.axis = axis
        self._coordinate_system = weakref.ref(coordinate_system)
        self.kind = axis.kind

    @property
    def coordinate_system(self) -> CoordinateSystem:
        coordinate_system = self._coordinate_system()
        if coordinate_system is None:
            raise ChartError(f"Coordinate system of {self.class_name()} no longer exists")
        return coordinate_system

    def class_name(self) -> str:
        return self.axis.class_name()

    def validate(self) -> None:
        if self.axis not in self.coordinate_system.axes:
            raise ChartError(f"{self.class_name()} is not part of {self.coordinate_system.class_name()}")

    def validate_numbered(self) -> None:
        self.validate()
        if self.coordinate_system.serial < 0:
            raise ChartError(f"Coordinate system of {self.class_name()} is not part of the chart")

    def encode_json(self, out: Dict[str, Any]) -> None:
        self.name = self.axis.name
        super().encode_json(out)
        self.axis.encode_properties(out)
        out[f"{self.coordinate_system.kind.label}Index"] = self.coordinate_system.serial
