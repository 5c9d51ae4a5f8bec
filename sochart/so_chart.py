"""The chart host: validates the part graph, numbers it and emits the option JSON."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from PyQt6.QtCore import QObject, pyqtSignal

from .colors import ColorLike, clear_palette, default_color, use_palette
from .components import DefaultColors, Legend, TextStyle, Tooltip
from .config import FIRST_DATA_SERIAL, PENDING_SERIAL, UNASSIGNED_SERIAL
from .data import DataProvider
from .errors import ChartContractError, ChartError
from .parts import (
    ENCODER_ORDER,
    Component,
    ComponentGroup,
    ComponentPart,
    DataSet,
    HasData,
    PartCollector,
)
from .registry import DEFAULT_REGISTRY, PartRegistry

logger = logging.getLogger(__name__)

Command = Tuple[str, Tuple[Any, ...]]


@dataclass(slots=True)
class _Cycle:
    """Working state of one update; remembers serials so a failure can be undone."""

    parts: List[ComponentPart] = field(default_factory=list)
    data: DataSet = field(default_factory=DataSet)
    outbox: List[Command] = field(default_factory=list)
    data_high: int = FIRST_DATA_SERIAL - 1
    _saved: Dict[int, Tuple[ComponentPart, int]] = field(default_factory=dict, repr=False)

    def set_serial(self, part: ComponentPart, serial: int) -> None:
        if part.id not in self._saved:
            self._saved[part.id] = (part, part.get_serial())
        part.set_serial(serial)

    def assign(self, part: ComponentPart, serial: int) -> None:
        self.set_serial(part, serial)
        if part.get_serial() != serial:
            raise ChartContractError(f"Serial number not properly set for {part.class_name()}")

    def restore(self) -> None:
        for part, serial in self._saved.values():
            part.set_serial(serial)


class SOChart(QObject):
    """Holds components and turns them into option documents for the client.

    Client commands are emitted through :attr:`command` as
    ``(function_name, params)``. Until the host calls :meth:`ready` they
    are queued, and they are queued again after :meth:`detach`.
    """

    command = pyqtSignal(str, object)

    def __init__(self, parent: Optional[QObject] = None, *, registry: Optional[PartRegistry] = None) -> None:
        super().__init__(parent)
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self._components: List[Component] = []
        self._groups: List[ComponentGroup] = []
        self._queue: Optional[List[Command]] = []
        self._legend: Optional[Legend] = Legend(registry=self.registry)
        self._tooltip: Optional[Tooltip] = Tooltip(registry=self.registry)
        self._default_colors: Optional[DefaultColors] = None
        self._default_text_style: Optional[TextStyle] = None
        self._never_updated = True
        self._numbered: List[ComponentPart] = []
        self._data_high = FIRST_DATA_SERIAL - 1
        self.json_customizer: Optional[Callable[[str], str]] = None

    # --- Content ---------------------------------------------------------------

    def add(self, *items: Union[Component, ComponentGroup, None]) -> None:
        for item in items:
            if isinstance(item, ComponentGroup):
                if item not in self._groups:
                    self._groups.append(item)
            elif item is not None and item not in self._components:
                self._components.append(item)

    def remove(self, *items: Union[Component, ComponentGroup, None]) -> None:
        for item in items:
            if item in self._groups:
                self._groups.remove(item)
            elif item in self._components:
                self._components.remove(item)

    def remove_all(self) -> None:
        self._components.clear()
        self._groups.clear()

    @property
    def components(self) -> List[Component]:
        return list(self._components)

    def disable_default_legend(self) -> None:
        self._legend = None

    def disable_default_tooltip(self) -> None:
        self._tooltip = None

    def set_colors(self, *colors: ColorLike) -> None:
        self._default_colors = DefaultColors(colors, registry=self.registry) if colors else None

    def set_default_text_style(self, text_style: Optional[TextStyle]) -> None:
        self._default_text_style = text_style

    def get_default_color(self, index: int) -> str:
        if self._default_colors is not None:
            colors = self._default_colors.colors
            return colors[index % len(colors)]
        return default_color(index)

    # --- Transport -------------------------------------------------------------

    def ready(self) -> None:
        """The client is listening; deliver everything queued so far."""
        queued, self._queue = self._queue or [], None
        for function, params in queued:
            self._emit(function, params)

    def detach(self) -> None:
        """The client went away; queue commands until the next :meth:`ready`."""
        if self._queue is None:
            self._queue = []

    def _js(self, function: str, *params: Any) -> None:
        if self._queue is None:
            self._emit(function, params)
        else:
            self._queue.append((function, params))

    def _emit(self, function: str, params: Tuple[Any, ...]) -> None:
        logger.debug("Sending %s with %d parameter(s)", function, len(params))
        self.command.emit(function, params)

    def clear(self) -> None:
        if self._never_updated:
            return
        self._js("clearChart")

    def customize_json(self, json_text: str) -> str:
        """Last chance to rewrite the option before it is sent."""
        if self.json_customizer is not None:
            return self.json_customizer(json_text)
        return json_text

    # --- Update cycle ------------------------------------------------------------

    def update(self, skip_data: bool = False) -> None:
        """Validate, number and transmit the whole chart.

        With ``skip_data`` only data the client has never seen is sent.
        Raises ChartError (or ChartContractError) without sending anything
        and with all serials restored when the graph is inconsistent.
        """
        if self._never_updated:
            skip_data = False
        cycle = _Cycle()
        if self._default_colors is not None:
            use_palette(self._default_colors.colors)
        try:
            for part in self._numbered:
                cycle.set_serial(part, UNASSIGNED_SERIAL)
            components = self._collect_components()
            if not components:
                self._numbered = []
                self.clear()
                return
            self._validate_components(cycle, components)
            self._collect_parts(cycle, components)
            self._extract_data(cycle)
            self._number_data(cycle, skip_data)
            self._number_parts(cycle)
            for part in cycle.parts:
                part.validate_numbered()
            json_text = self.customize_json(self._encode(cycle))
            cycle.outbox.append(("updateChart", (not skip_data, json_text)))
        except Exception:
            cycle.restore()
            logger.debug("Update aborted; serials restored", exc_info=True)
            raise
        finally:
            clear_palette()
        self._numbered = cycle.parts
        self._data_high = cycle.data_high
        for function, params in cycle.outbox:
            self._js(function, *params)
        self._never_updated = False

    def _collect_components(self) -> List[Component]:
        collected = PartCollector()
        collected.extend(self._components)
        for group in self._groups:
            group.validate()
            collected.extend(group.components(self))
        return list(collected)

    def _validate_components(self, cycle: _Cycle, components: Sequence[Component]) -> None:
        for component in components:
            component.validate()
        for component in components:
            cycle.set_serial(component, PENDING_SERIAL)

    def _collect_parts(self, cycle: _Cycle, components: Sequence[Component]) -> None:
        collected = PartCollector()
        for component in components:
            component.add_parts(collected)
        extras = [self._default_colors, self._default_text_style]
        kinds = {part.kind for part in [*collected, *components]}
        hidden = any(group.hides_default_legend for group in self._groups)
        if self._legend is not None and not hidden and Legend.kind not in kinds:
            extras.append(self._legend)
        if self._tooltip is not None and Tooltip.kind not in kinds:
            extras.append(self._tooltip)
        collected.extend(extras)
        top_level = {component.id for component in components}
        for part in collected:
            if part.id in top_level or isinstance(part, DataProvider):
                continue
            part.validate()
            cycle.set_serial(part, PENDING_SERIAL)
        collected.extend(components)
        cycle.parts = list(collected)

    def _extract_data(self, cycle: _Cycle) -> None:
        parts: List[ComponentPart] = []
        for part in cycle.parts:
            if isinstance(part, DataProvider):
                cycle.data.add(part)
                continue
            parts.append(part)
            if isinstance(part, HasData):
                part.declare_data(cycle.data)
        cycle.parts = parts

    def _number_data(self, cycle: _Cycle, skip_data: bool) -> None:
        # Serials never go below the highest one this chart has handed out, so
        # a provider that left the chart can not lose its serial to a newcomer.
        serial = max([self._data_high, *(p.serial for p in cycle.data if p.serial >= 0)])
        fresh = set()
        owners: Dict[int, int] = {}
        for provider in cycle.data:
            if provider.serial < 0:
                provider.validate()
                serial += 1
                cycle.assign(provider, serial)
                fresh.add(serial)
            owner = provider.origin().id
            if owners.setdefault(provider.serial, owner) != owner:
                raise ChartContractError(f"Data serial {provider.serial} is shared by two providers")
            if provider.internal or (skip_data and provider.serial not in fresh):
                continue
            cycle.outbox.append(("initData", (provider.serial, provider.message())))
        cycle.data_high = serial

    def _number_parts(self, cycle: _Cycle) -> None:
        for kind in ENCODER_ORDER:
            serial = 0
            for part in cycle.parts:
                if part.kind is not kind:
                    continue
                if part.get_serial() != PENDING_SERIAL:
                    raise ChartContractError(f"Serial number of {part.class_name()} was not reset")
                cycle.assign(part, serial)
                serial += 1

    def _encode(self, cycle: _Cycle) -> str:
        option: Dict[str, Any] = {}
        source = {f"d{p.serial}": p.serial for p in cycle.data if not p.internal}
        if source:
            option["dataset"] = {"source": source}
        for kind in ENCODER_ORDER:
            group = sorted((p for p in cycle.parts if p.kind is kind), key=lambda p: p.serial)
            if not group:
                continue
            if kind.self_rendering:
                for part in group:
                    part.encode_json(option)
                continue
            encoded = []
            for part in group:
                entry: Dict[str, Any] = {}
                part.encode_json(entry)
                encoded.append(entry)
            option[kind.label] = encoded
        return json.dumps(option, separators=(",", ":"))

    def update_data(self, provider: DataProvider) -> None:
        """Send the current values of a provider the client already knows."""
        if provider.internal:
            raise ChartError(f"{provider.class_name()} is internal and never transmitted")
        if provider.serial < 0:
            raise ChartError(f"{provider.class_name()} was never part of an update")
        self._js("updateData", provider.serial, provider.message())
