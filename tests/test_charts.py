import pytest

from sochart.axes import AngleAxis, XAxis, YAxis
from sochart.charts import Chart, ChartType
from sochart.components import DataZoom
from sochart.coordinates import RectangularCoordinate
from sochart.data import Data, DataType, InternalData, ProviderData
from sochart.errors import ChartError
from sochart.parts import display_name
from sochart.registry import PartRegistry


def _grid(registry: PartRegistry) -> RectangularCoordinate:
    return RectangularCoordinate(XAxis(DataType.CATEGORY, registry=registry), YAxis(registry=registry), registry=registry)


def test_second_data_slot_missing(registry: PartRegistry) -> None:
    chart = Chart(ChartType.BAR, Data(DataType.CATEGORY, "a", "b", registry=registry), name="Sales", registry=registry)
    chart.plot_on(_grid(registry))

    with pytest.raises(ChartError, match=r"Data for Y not set for Chart \(Sales\)"):
        chart.validate()


def test_no_data_at_all(registry: PartRegistry) -> None:
    chart = Chart(ChartType.LINE, registry=registry)
    chart.plot_on(_grid(registry))

    with pytest.raises(ChartError, match="Data not set for Chart"):
        chart.validate()


def test_pie_names_its_slots(registry: PartRegistry) -> None:
    chart = Chart(ChartType.PIE, Data(DataType.CATEGORY, "a", registry=registry), registry=registry)

    with pytest.raises(ChartError, match="Data for Value not set"):
        chart.validate()


def test_pie_needs_no_coordinate_system(registry: PartRegistry) -> None:
    names = Data(DataType.CATEGORY, "a", "b", registry=registry)
    values = Data(DataType.NUMBER, 1, 2, registry=registry)
    chart = Chart(ChartType.PIE, names, values, registry=registry)

    chart.validate()


def test_xy_chart_needs_coordinate_system(registry: PartRegistry) -> None:
    chart = Chart(
        ChartType.SCATTER,
        Data(DataType.NUMBER, 1, registry=registry),
        Data(DataType.NUMBER, 2, registry=registry),
        registry=registry,
    )

    with pytest.raises(ChartError, match="Coordinate system not set for Chart"):
        chart.validate()


def test_axis_from_another_coordinate_system(registry: PartRegistry) -> None:
    data = [Data(DataType.NUMBER, 1, registry=registry), Data(DataType.NUMBER, 2, registry=registry)]
    chart = Chart(ChartType.LINE, *data, registry=registry)
    stray = XAxis(name="Stray", registry=registry)
    chart.plot_on(_grid(registry), stray)

    with pytest.raises(ChartError, match="Axis Stray does not belong"):
        chart.validate()


def test_duplicate_axis_type(registry: PartRegistry) -> None:
    grid = _grid(registry)
    extra = XAxis(registry=registry)
    grid.add_axis(extra)
    data = [Data(DataType.NUMBER, 1, registry=registry), Data(DataType.NUMBER, 2, registry=registry)]
    chart = Chart(ChartType.LINE, *data, registry=registry)
    chart.plot_on(grid, grid.axes[0], extra)

    with pytest.raises(ChartError, match="More than one XAxis"):
        chart.validate()


def test_coordinate_system_requires_both_axes(registry: PartRegistry) -> None:
    grid = RectangularCoordinate(XAxis(registry=registry), registry=registry)

    with pytest.raises(ChartError, match="Y Axis not set for RectangularCoordinate"):
        grid.validate()


def test_coordinate_system_rejects_foreign_axis_kind(registry: PartRegistry) -> None:
    grid = RectangularCoordinate(registry=registry)

    with pytest.raises(ChartError):
        grid.add_axis(AngleAxis(registry=registry))


def test_chart_moves_between_coordinate_systems(registry: PartRegistry) -> None:
    first, second = _grid(registry), _grid(registry)
    chart = Chart(ChartType.LINE, registry=registry)

    chart.plot_on(first)
    chart.plot_on(second)

    assert chart.coordinate_system is second
    assert first.charts == []
    assert second.charts == [chart]


def test_data_zoom_checks_axes(registry: PartRegistry) -> None:
    grid = _grid(registry)
    zoom = DataZoom(grid, XAxis(name="Elsewhere", registry=registry), registry=registry)

    with pytest.raises(ChartError, match="Axis Elsewhere does not belong"):
        zoom.validate()


def test_internal_data_shares_serial(registry: PartRegistry) -> None:
    source = ProviderData(DataType.NUMBER, lambda: [1, 2, 3], registry=registry)
    hidden = InternalData(source)

    hidden.set_serial(4)

    assert source.serial == 4
    assert hidden.internal and not source.internal
    assert hidden.encode() == [1, 2, 3]


def test_data_message_is_compact(registry: PartRegistry) -> None:
    data = Data(DataType.CATEGORY, "x", None, 1.5, registry=registry)

    assert data.message() == '{"d":["x",null,1.5]}'


def test_display_name() -> None:
    assert display_name("itemName") == "Item Name"
    assert display_name("y") == "Y"
