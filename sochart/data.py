"""Data providers: value sequences transmitted independently of the chart graph."""
from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from .parts import ComponentPart, PartKind
from .registry import PartRegistry


class DataType(Enum):
    """Value type of a provider; ``axis_type`` is the client's axis type name."""

    # The second element only keeps members with the same axis type distinct.
    NUMBER = ("value", 0)
    CATEGORY = ("category", 1)
    DATE = ("time", 2)
    TIME = ("time", 3)
    LOGARITHMIC = ("log", 4)
    OBJECT = ("", 5)

    def __init__(self, axis_type: str, _ordinal: int) -> None:
        self.axis_type = axis_type


def encode_value(value: Any) -> Any:
    """Convert a single value into something ``json.dumps`` accepts."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): encode_value(v) for k, v in value.items()}
    return str(value)


class DataProvider(ComponentPart):
    """Supplies a sequence of values plus their declared type.

    Providers keep their serial across update cycles: a provider with a
    non-negative serial is already known to the client.
    """

    kind = PartKind.DATASET
    internal = False

    def __init__(
        self,
        data_type: DataType = DataType.OBJECT,
        *,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(name=name, registry=registry)
        self.data_type = data_type

    def values(self) -> Iterable[Any]:
        raise NotImplementedError

    def identity(self) -> int:
        """Key used when deduplicating declared data."""
        return self.id

    def origin(self) -> DataProvider:
        """The provider that owns this provider's serial."""
        return self

    @property
    def axis_type(self) -> str:
        return self.data_type.axis_type

    def encode(self) -> List[Any]:
        return [encode_value(v) for v in self.values()]

    def encode_json(self, out: Dict[str, Any]) -> None:
        out[f"d{self.serial}"] = self.encode()

    def message(self) -> str:
        """Payload for the client's initData/updateData commands."""
        return json.dumps({"d": self.encode()}, separators=(",", ":"))


class Data(DataProvider):
    """List-backed provider."""

    def __init__(
        self,
        data_type: DataType,
        *values: Any,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(data_type, name=name, registry=registry)
        self._values: List[Any] = list(values)

    def values(self) -> Iterable[Any]:
        return self._values

    def append(self, value: Any) -> None:
        self._values.append(value)

    def extend(self, values: Iterable[Any]) -> None:
        self._values.extend(values)

    def clear(self) -> None:
        self._values.clear()

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index: int) -> Any:
        return self._values[index]


class ProviderData(DataProvider):
    """Provider whose values are produced on demand by a callable."""

    def __init__(
        self,
        data_type: DataType,
        source: Callable[[], Iterable[Any]],
        *,
        name: Optional[str] = None,
        registry: Optional[PartRegistry] = None,
    ) -> None:
        super().__init__(data_type, name=name, registry=registry)
        self._source = source

    def values(self) -> Iterable[Any]:
        return self._source()


class InternalData(DataProvider):
    """Wraps a provider that is used server-side only.

    The wrapper shares the wrapped provider's serial but is never part of
    the transmitted dataset.
    """

    internal = True

    def __init__(self, provider: DataProvider) -> None:
        super().__init__(provider.data_type, name=provider.name, registry=provider.registry)
        self.provider = provider

    def values(self) -> Iterable[Any]:
        return self.provider.values()

    def encode(self) -> List[Any]:
        return self.provider.encode()

    def origin(self) -> DataProvider:
        return self.provider.origin()

    def get_serial(self) -> int:
        return self.provider.get_serial()

    def set_serial(self, serial: int) -> None:
        self.provider.set_serial(serial)
