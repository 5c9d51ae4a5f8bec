"""Base classes for everything that ends up in the emitted chart option."""
from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .config import UNASSIGNED_SERIAL
from .registry import DEFAULT_REGISTRY, PartRegistry

if TYPE_CHECKING:
    from .data import DataProvider
    from .so_chart import SOChart


class PartKind(Enum):
    """Category of a part; selects its encoder group and output key."""

    TITLE = ("title", False)
    LEGEND = ("legend", False)
    TOOLBOX = ("toolbox", False)
    TOOLTIP = ("tooltip", False)
    DATASET = ("dataset", False)
    ANGLE_AXIS = ("angleAxis", False)
    RADIUS_AXIS = ("radiusAxis", False)
    X_AXIS = ("xAxis", False)
    Y_AXIS = ("yAxis", False)
    POLAR = ("polar", False)
    RADAR = ("radar", False)
    GRID = ("grid", False)
    SERIES = ("series", False)
    DATA_ZOOM = ("dataZoom", False)
    VISUAL_MAP = ("visualMap", False)
    GRAPHIC = ("graphic", False)
    COLOR = ("color", True)
    TEXT_STYLE = ("textStyle", True)

    def __init__(self, label: str, self_rendering: bool) -> None:
        self.label = label
        self.self_rendering = self_rendering


# Order in which encoder groups are numbered and written out. Data
# providers are numbered and written separately.
ENCODER_ORDER = tuple(kind for kind in PartKind if kind is not PartKind.DATASET)


def display_name(name: str) -> str:
    """Turn an identifier such as ``itemName`` into ``Item Name``."""
    if not name:
        return name
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", name)
    return words[0].upper() + words[1:]


class ComponentPart:
    """A node of the chart graph with a permanent id and a per-cycle serial."""

    kind: PartKind = PartKind.GRAPHIC

    def __init__(self, *, name: Optional[str] = None, registry: Optional[PartRegistry] = None) -> None:
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._id = self._registry.new_id()
        self._serial = UNASSIGNED_SERIAL
        self.name = name

    @property
    def id(self) -> int:
        return self._id

    @property
    def registry(self) -> PartRegistry:
        return self._registry

    @property
    def serial(self) -> int:
        return self.get_serial()

    def get_serial(self) -> int:
        return self._serial

    def set_serial(self, serial: int) -> None:
        self._serial = serial

    def validate(self) -> None:
        """Raise ChartError when the part is not usable as configured."""

    def validate_numbered(self) -> None:
        """Validation that may depend on serials; runs after numbering."""
        self.validate()

    def encode_json(self, out: Dict[str, Any]) -> None:
        if self.name:
            out["name"] = self.name
        out["id"] = self._id

    def class_name(self) -> str:
        label = type(self).__name__
        return f"{label} ({self.name})" if self.name else label

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentPart):
            return NotImplemented
        return self._id == other._id and self._registry is other._registry

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"<{self.class_name()} id={self._id} serial={self.get_serial()}>"


class HasData:
    """Mixin for parts that reference data providers without owning them."""

    def declare_data(self, data_set: "DataSet") -> None:
        raise NotImplementedError


class Component(ComponentPart):
    """A top-level part added directly to a chart."""

    def add_parts(self, parts: "PartCollector") -> None:
        """Contribute the sub-parts this component needs to be rendered."""


class ComponentGroup:
    """A pseudo-component that expands into several components per update.

    A group that sets ``hides_default_legend`` keeps the chart's default
    legend out of every update it takes part in.
    """

    hides_default_legend = False

    def validate(self) -> None:
        """Raise ChartError when the group cannot contribute anything."""

    def components(self, so_chart: "SOChart") -> List[Component]:
        raise NotImplementedError


class PartCollector:
    """Ordered, identity-deduplicated list of parts gathered in one cycle."""

    def __init__(self) -> None:
        self._parts: Dict[int, ComponentPart] = {}

    def add(self, *parts: Optional[ComponentPart]) -> None:
        for part in parts:
            if part is not None and part.id not in self._parts:
                self._parts[part.id] = part

    def extend(self, parts: Iterable[Optional[ComponentPart]]) -> None:
        self.add(*parts)

    def __contains__(self, part: object) -> bool:
        return isinstance(part, ComponentPart) and part.id in self._parts

    def __iter__(self):
        return iter(list(self._parts.values()))

    def __len__(self) -> int:
        return len(self._parts)


class DataSet:
    """Identity-deduplicated set of data providers declared by parts."""

    def __init__(self) -> None:
        self._data: Dict[int, DataProvider] = {}

    def add(self, *providers: Optional["DataProvider"]) -> None:
        for provider in providers:
            if provider is not None:
                self._data.setdefault(provider.identity(), provider)

    def __contains__(self, provider: object) -> bool:
        identity = getattr(provider, "identity", None)
        return identity is not None and identity() in self._data

    def __iter__(self):
        return iter(list(self._data.values()))

    def __len__(self) -> int:
        return len(self._data)
