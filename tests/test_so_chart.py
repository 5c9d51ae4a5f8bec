import json
from typing import Any, List, Tuple

import pytest

from sochart.axes import XAxis, YAxis
from sochart.charts import Chart, ChartType
from sochart.components import DataZoom, Font, TextStyle, Title
from sochart.config import UNASSIGNED_SERIAL
from sochart.coordinates import RectangularCoordinate
from sochart.data import Data, DataType, InternalData
from sochart.errors import ChartContractError, ChartError
from sochart.gantt import GanttChart
from sochart.project import Project
from sochart.registry import PartRegistry
from sochart.so_chart import SOChart

Sent = List[Tuple[str, Tuple[Any, ...]]]


class Sales:
    """Two series sharing the month axis data on one grid."""

    def __init__(self, registry: PartRegistry) -> None:
        self.x = XAxis(DataType.CATEGORY, registry=registry)
        self.y = YAxis(registry=registry)
        self.grid = RectangularCoordinate(self.x, self.y, registry=registry)
        self.months = Data(DataType.CATEGORY, "Jan", "Feb", registry=registry)
        self.sales = Data(DataType.NUMBER, 5, 7, registry=registry)
        self.costs = Data(DataType.NUMBER, 3, 4, registry=registry)
        self.bar = Chart(ChartType.BAR, self.months, self.sales, name="Sales", registry=registry)
        self.line = Chart(ChartType.LINE, self.months, self.costs, name="Costs", registry=registry)
        self.bar.plot_on(self.grid)
        self.line.plot_on(self.grid)


def _listen(chart: SOChart) -> Sent:
    sent: Sent = []
    chart.command.connect(lambda function, params: sent.append((function, params)))
    chart.ready()
    return sent


def _option(sent: Sent) -> dict:
    function, (full, text) = sent[-1]
    assert function == "updateChart"
    return json.loads(text)


@pytest.fixture
def sales(registry: PartRegistry) -> Sales:
    return Sales(registry)


@pytest.fixture
def chart(qapp, registry: PartRegistry, sales: Sales) -> SOChart:
    chart = SOChart(registry=registry)
    chart.add(sales.bar, sales.line)
    return chart


def test_full_update_sends_data_then_option(chart: SOChart, sales: Sales) -> None:
    sent = _listen(chart)

    chart.update()

    assert [function for function, _ in sent] == ["initData", "initData", "initData", "updateChart"]
    assert sent[0][1] == (1, '{"d":["Jan","Feb"]}')
    assert sent[-1][1][0] is True
    option = _option(sent)
    assert option["dataset"] == {"source": {"d1": 1, "d2": 2, "d3": 3}}
    assert [s["encode"] for s in option["series"]] == [{"x": "d1", "y": "d2"}, {"x": "d1", "y": "d3"}]
    assert [s["name"] for s in option["series"]] == ["Sales", "Costs"]
    assert option["series"][1]["xAxisIndex"] == 0
    assert option["series"][0]["coordinateSystem"] == "cartesian2d"
    assert option["xAxis"][0]["type"] == "category"
    assert option["xAxis"][0]["gridIndex"] == 0
    assert option["legend"][0]["show"] is True
    assert option["tooltip"][0]["trigger"] == "item"


def test_serials_are_contiguous_per_kind(chart: SOChart, sales: Sales, registry: PartRegistry) -> None:
    other_grid = RectangularCoordinate(XAxis(registry=registry), YAxis(registry=registry), registry=registry)
    scatter = Chart(ChartType.SCATTER, sales.sales, sales.costs, registry=registry)
    scatter.plot_on(other_grid)
    chart.add(scatter)

    chart.update()

    assert [sales.bar.serial, sales.line.serial, scatter.serial] == [0, 1, 2]
    assert [sales.grid.serial, other_grid.serial] == [0, 1]
    assert sales.x.wrap(sales.grid).serial == 0
    assert other_grid.axes[0].wrap(other_grid).serial == 1


def test_shared_data_is_sent_once(chart: SOChart, sales: Sales) -> None:
    sent = _listen(chart)

    chart.update()

    serials = [params[0] for function, params in sent if function == "initData"]
    assert serials == [1, 2, 3]
    assert sales.months.serial == 1


def test_repeated_full_update_gives_same_option(chart: SOChart) -> None:
    sent = _listen(chart)

    chart.update()
    first = sent[-1]
    chart.update()

    assert sent[-1] == first
    assert len(sent) == 8


def test_skip_data_sends_only_new_data(chart: SOChart, sales: Sales, registry: PartRegistry) -> None:
    sent = _listen(chart)
    chart.update()
    sent.clear()
    profit = Data(DataType.NUMBER, 2, 3, registry=registry)
    chart.add(Chart(ChartType.LINE, sales.months, profit, registry=registry).plot_on(sales.grid))

    chart.update(skip_data=True)

    assert sent[0] == ("initData", (4, '{"d":[2,3]}'))
    assert [function for function, _ in sent] == ["initData", "updateChart"]
    assert sent[-1][1][0] is False
    assert _option(sent)["dataset"]["source"]["d4"] == 4


def test_first_update_is_always_full(chart: SOChart) -> None:
    sent = _listen(chart)

    chart.update(skip_data=True)

    assert len(sent) == 4
    assert sent[-1][1][0] is True


def test_update_data_resends_values(chart: SOChart, sales: Sales) -> None:
    sent = _listen(chart)
    chart.update()
    sales.sales.append(9)

    chart.update_data(sales.sales)

    assert sent[-1] == ("updateData", (2, '{"d":[5,7,9]}'))


def test_update_data_rejects_unknown_and_internal(chart: SOChart, registry: PartRegistry) -> None:
    stranger = Data(DataType.NUMBER, 1, registry=registry)

    with pytest.raises(ChartError, match="never part of an update"):
        chart.update_data(stranger)
    with pytest.raises(ChartError, match="internal"):
        chart.update_data(InternalData(stranger))


def test_commands_wait_for_ready(chart: SOChart) -> None:
    sent: Sent = []
    chart.command.connect(lambda function, params: sent.append((function, params)))

    chart.update()
    assert sent == []

    chart.ready()
    assert len(sent) == 4

    chart.detach()
    chart.update()
    assert len(sent) == 4
    chart.ready()
    assert len(sent) == 8


def test_failed_update_restores_serials_and_sends_nothing(chart: SOChart, sales: Sales, registry: PartRegistry) -> None:
    sent = _listen(chart)
    chart.update()
    sent.clear()
    loose = RectangularCoordinate(XAxis(registry=registry), YAxis(registry=registry), registry=registry)
    fresh = Data(DataType.NUMBER, 1, registry=registry)
    extra = Chart(ChartType.LINE, sales.months, fresh, registry=registry).plot_on(sales.grid)
    zoom = DataZoom(loose, loose.axes[0], registry=registry)
    chart.add(extra, zoom)

    with pytest.raises(ChartError, match="is not part of the chart"):
        chart.update()

    assert sent == []
    assert fresh.serial == UNASSIGNED_SERIAL
    assert extra.serial == UNASSIGNED_SERIAL
    assert sales.line.serial == 1
    assert sales.months.serial == 1


def test_removed_coordinate_system_does_not_keep_its_serial(chart: SOChart, sales: Sales, registry: PartRegistry) -> None:
    chart.update()
    chart.remove(sales.bar, sales.line)
    chart.add(Title("Only a title", registry=registry), DataZoom(sales.grid, sales.x, registry=registry))

    with pytest.raises(ChartError, match="is not part of the chart"):
        chart.update()


def test_part_ignoring_serials_is_a_contract_error(chart: SOChart, registry: PartRegistry) -> None:
    class StubbornTitle(Title):
        def set_serial(self, serial: int) -> None:
            pass

    chart.add(StubbornTitle("Stubborn", registry=registry))

    with pytest.raises(ChartContractError):
        chart.update()


def test_colors_and_text_style_render_at_top_level(chart: SOChart, registry: PartRegistry) -> None:
    sent = _listen(chart)
    chart.set_colors("red", "#00ff00")
    chart.set_default_text_style(TextStyle(font_size=14, registry=registry))

    chart.update()

    option = _option(sent)
    assert option["color"] == ["#ff0000", "#00ff00"]
    assert option["textStyle"] == {"fontSize": 14}
    assert chart.get_default_color(3) == "#00ff00"


def test_default_legend_and_tooltip_can_be_disabled(chart: SOChart) -> None:
    sent = _listen(chart)
    chart.disable_default_legend()
    chart.disable_default_tooltip()

    chart.update()

    option = _option(sent)
    assert "legend" not in option
    assert "tooltip" not in option


def test_json_customizer_rewrites_option(chart: SOChart) -> None:
    sent = _listen(chart)
    chart.json_customizer = lambda text: text.replace('"Sales"', '"Revenue"')

    chart.update()

    assert [s["name"] for s in _option(sent)["series"]] == ["Revenue", "Costs"]


def test_clear_only_after_first_update(chart: SOChart) -> None:
    sent = _listen(chart)
    chart.clear()
    assert sent == []

    chart.update()
    chart.remove_all()
    chart.update()

    assert sent[-1] == ("clearChart", ())


def _line_on_own_grid(registry: PartRegistry, x: Data, y: Data) -> Chart:
    grid = RectangularCoordinate(XAxis(DataType.CATEGORY, registry=registry), YAxis(registry=registry), registry=registry)
    return Chart(ChartType.LINE, x, y, registry=registry).plot_on(grid)


def test_data_serials_are_not_reused_after_a_provider_leaves(qapp, registry: PartRegistry) -> None:
    months = Data(DataType.CATEGORY, "Jan", "Feb", registry=registry)
    sales = Data(DataType.NUMBER, 5, 7, registry=registry)
    costs = Data(DataType.NUMBER, 3, 4, registry=registry)
    first = _line_on_own_grid(registry, months, sales)
    second = _line_on_own_grid(registry, months, costs)
    chart = SOChart(registry=registry)
    sent = _listen(chart)

    chart.add(first)
    chart.update()
    chart.remove(first)
    chart.add(second)
    chart.update()
    chart.add(first)
    chart.update(skip_data=True)

    assert [months.serial, sales.serial, costs.serial] == [1, 2, 3]
    assert _option(sent)["dataset"]["source"] == {"d1": 1, "d2": 2, "d3": 3}
    encodes = [s["encode"] for s in _option(sent)["series"]]
    assert encodes == [{"x": "d1", "y": "d3"}, {"x": "d1", "y": "d2"}]


def test_two_providers_sharing_a_serial_is_a_contract_error(chart: SOChart, sales: Sales) -> None:
    sent = _listen(chart)
    chart.update()
    sent.clear()
    sales.costs.set_serial(sales.sales.serial)

    with pytest.raises(ChartContractError, match="shared by two providers"):
        chart.update()

    assert sent == []


def test_internal_wrapper_may_share_its_provider_serial(qapp, registry: PartRegistry, sales: Sales) -> None:
    hidden = InternalData(sales.costs)

    class Embedded(Chart):
        def data_to_embed(self):
            return hidden

    chart = SOChart(registry=registry)
    sent = _listen(chart)
    embedded = Embedded(ChartType.LINE, sales.months, sales.costs, registry=registry).plot_on(sales.grid)
    chart.add(sales.bar, embedded)

    chart.update()

    assert sales.costs.serial >= 1
    assert _option(sent)["dataset"]["source"][f"d{sales.costs.serial}"] == sales.costs.serial


def test_gantt_hides_default_legend_only_while_present(qapp, registry: PartRegistry, sales: Sales) -> None:
    chart = SOChart(registry=registry)
    sent = _listen(chart)
    gantt = GanttChart(Project(registry=registry, name="Empty"))
    chart.add(sales.bar, gantt)

    chart.update()
    assert "legend" not in _option(sent)

    chart.remove(gantt)
    chart.update()
    assert _option(sent)["legend"][0]["show"] is True


def test_text_style_keeps_its_font_as_a_value(chart: SOChart, registry: PartRegistry) -> None:
    sent = _listen(chart)
    style = TextStyle(font_family="Serif", color="red", registry=registry)
    chart.set_default_text_style(style)

    chart.update()

    assert style.font == Font("Serif", None, "#ff0000")
    assert _option(sent)["textStyle"] == {"fontFamily": "Serif", "color": "#ff0000"}
