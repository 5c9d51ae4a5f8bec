"""Identity allocation and the axis-wrapper side table."""
from __future__ import annotations

import threading
import weakref
from typing import TYPE_CHECKING, Callable, Dict, List

if TYPE_CHECKING:
    from .axes import Axis, AxisWrapper
    from .coordinates import CoordinateSystem


class PartRegistry:
    """Hands out process-unique ids and tracks per-coordinate-system axis wrappers.

    Pass a private registry into part constructors to get reproducible ids
    in tests; everything else shares ``DEFAULT_REGISTRY``.

    The wrapper table is keyed weakly by coordinate system, so a grid that
    is no longer referenced anywhere else takes its wrappers with it.
    """

    def __init__(self, start: int = 0) -> None:
        self._last_id = start
        self._lock = threading.Lock()
        self._wrappers: weakref.WeakKeyDictionary[CoordinateSystem, Dict[int, AxisWrapper]] = (
            weakref.WeakKeyDictionary()
        )

    def new_id(self) -> int:
        with self._lock:
            self._last_id += 1
            return self._last_id

    @property
    def last_id(self) -> int:
        return self._last_id

    # --- Axis wrappers ----------------------------------------------------------

    def wrapper_for(
        self,
        axis: Axis,
        coordinate_system: CoordinateSystem,
        factory: Callable[[], AxisWrapper],
    ) -> AxisWrapper:
        """Return the wrapper of ``axis`` inside ``coordinate_system``, creating it on first use."""
        with self._lock:
            wrappers = self._wrappers.setdefault(coordinate_system, {})
        wrapper = wrappers.get(axis.id)
        if wrapper is None:
            wrapper = factory()
            wrappers[axis.id] = wrapper
        return wrapper

    def find_wrapper(self, axis: Axis, coordinate_system: CoordinateSystem) -> AxisWrapper | None:
        return self._wrappers.get(coordinate_system, {}).get(axis.id)

    def wrappers_of(self, axis: Axis) -> List[AxisWrapper]:
        found = []
        for wrappers in list(self._wrappers.values()):
            wrapper = wrappers.get(axis.id)
            if wrapper is not None:
                found.append(wrapper)
        return found

    def forget_wrappers(self, coordinate_system: CoordinateSystem) -> None:
        """Drop every wrapper created for ``coordinate_system``."""
        self._wrappers.pop(coordinate_system, None)

    def wrapper_count(self) -> int:
        return sum(len(wrappers) for wrappers in list(self._wrappers.values()))


DEFAULT_REGISTRY = PartRegistry()
