"""Small top-level components: titles, legends, zooms and friends."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .axes import Axis
from .colors import ColorLike, color_name
from .coordinates import CoordinateSystem
from .errors import ChartError
from .parts import Component, ComponentPart, PartKind
from .registry import PartRegistry


@dataclass
class Font:
    """Font settings of a text-bearing part; unset fields are left to the client."""

    family: Optional[str] = None
    size: Optional[int] = None
    color: Optional[str] = None

    def encode(self, style: Dict[str, Any]) -> None:
        if self.family:
            style["fontFamily"] = self.family
        if self.size:
            style["fontSize"] = self.size
        if self.color:
            style["color"] = self.color


class Title(Component):
    kind = PartKind.TITLE

    def __init__(self, text: str, *, subtext: Optional[str] = None, registry: Optional[PartRegistry] = None) -> None:
        super().__init__(registry=registry)
        self.text = text
        self.subtext = subtext

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["text"] = self.text
        if self.subtext:
            out["subtext"] = self.subtext


class Legend(Component):
    kind = PartKind.LEGEND

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["show"] = True


class Tooltip(Component):
    kind = PartKind.TOOLTIP

    def __init__(self, trigger: str = "item", *, registry: Optional[PartRegistry] = None) -> None:
        super().__init__(registry=registry)
        self.trigger = trigger

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["trigger"] = self.trigger


class Text(Component):
    """Free-floating text drawn as a graphic element."""

    kind = PartKind.GRAPHIC

    def __init__(self, text: str = "", *, registry: Optional[PartRegistry] = None) -> None:
        super().__init__(registry=registry)
        self.text = text
        self.font = Font()
        self.draggable = False
        self.position: Dict[str, Any] = {"left": "center", "top": "middle"}

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["type"] = "text"
        out.update(self.position)
        style: Dict[str, Any] = {"text": self.text}
        self.font.encode(style)
        out["style"] = style
        if self.draggable:
            out["draggable"] = True


class DataZoom(Component):
    """Zooms one or more axes of a coordinate system.

    The coordinate system must be rendered by some other component; the
    zoom only references it.
    """

    kind = PartKind.DATA_ZOOM

    def __init__(
        self,
        coordinate_system: CoordinateSystem,
        *axes: Axis,
        inside: bool = False,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(registry=registry)
        self.coordinate_system = coordinate_system
        self.axes: List[Axis] = [axis for axis in axes if axis is not None]
        self.inside = inside
        self.filter_mode: Optional[str] = None
        self.show_detail = True
        self.z: Optional[int] = None

    def validate(self) -> None:
        if self.coordinate_system is None:
            raise ChartError(f"Coordinate system not set for {self.class_name()}")
        members = self.coordinate_system.axes
        for axis in self.axes:
            if axis not in members:
                label = axis.name or type(axis).__name__
                raise ChartError(f"Axis {label} does not belong to the coordinate system of {self.class_name()}")

    def validate_numbered(self) -> None:
        self.validate()
        if self.coordinate_system.serial < 0:
            raise ChartError(f"Coordinate system of {self.class_name()} is not part of the chart")

    def encode_json(self, out: Dict[str, Any]) -> None:
        super().encode_json(out)
        out["type"] = "inside" if self.inside else "slider"
        if self.filter_mode:
            out["filterMode"] = self.filter_mode
        if not self.show_detail:
            out["showDetail"] = False
        if self.z is not None:
            out["z"] = self.z
        indices: Dict[str, List[int]] = {}
        for axis in self.axes:
            wrapper = self.registry.find_wrapper(axis, self.coordinate_system)
            if wrapper is not None:
                indices.setdefault(f"{axis.kind.label}Index", []).append(wrapper.serial)
        out.update(indices)


class DefaultColors(ComponentPart):
    """Chart-wide color palette; merged into the top level of the option."""

    kind = PartKind.COLOR

    def __init__(self, colors: Sequence[ColorLike], *, registry: Optional[PartRegistry] = None) -> None:
        super().__init__(registry=registry)
        self.colors = [color_name(c) for c in colors]

    def encode_json(self, out: Dict[str, Any]) -> None:
        out["color"] = list(self.colors)


class TextStyle(ComponentPart):
    """Chart-wide default text style; merged into the top level of the option."""

    kind = PartKind.TEXT_STYLE

    def __init__(
        self,
        *,
        font_family: Optional[str] = None,
        font_size: Optional[int] = None,
        color: Optional[ColorLike] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(registry=registry)
        self.font = Font(font_family, font_size, None if color is None else color_name(color))

    def encode_json(self, out: Dict[str, Any]) -> None:
        style: Dict[str, Any] = {}
        self.font.encode(style)
        out["textStyle"] = style
