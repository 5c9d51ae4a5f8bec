import gc
import threading
import weakref

from sochart.axes import XAxis, YAxis
from sochart.components import Title
from sochart.coordinates import RectangularCoordinate
from sochart.parts import PartCollector
from sochart.registry import PartRegistry


def test_private_registry_gives_reproducible_ids() -> None:
    first = [Title("t", registry=PartRegistry()).id for _ in range(2)]
    registry = PartRegistry()
    second = [Title("t", registry=registry).id, Title("u", registry=registry).id]

    assert first == [1, 1]
    assert second == [1, 2]
    assert registry.last_id == 2


def test_ids_stay_unique_across_threads() -> None:
    registry = PartRegistry()
    seen = []
    lock = threading.Lock()

    def worker() -> None:
        ids = [registry.new_id() for _ in range(500)]
        with lock:
            seen.extend(ids)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(seen)) == 2000
    assert registry.last_id == 2000


def test_parts_from_different_registries_are_not_equal() -> None:
    left = Title("a", registry=PartRegistry())
    right = Title("a", registry=PartRegistry())

    assert left.id == right.id
    assert left != right


def test_shared_axis_gets_one_wrapper_per_coordinate_system(registry: PartRegistry) -> None:
    x = XAxis(registry=registry)
    top = RectangularCoordinate(x, YAxis(registry=registry), registry=registry)
    bottom = RectangularCoordinate(x, YAxis(registry=registry), registry=registry)

    assert x.wrap(top) is x.wrap(top)
    assert x.wrap(top) is not x.wrap(bottom)
    assert registry.find_wrapper(x, bottom) is x.wrap(bottom)
    assert len(x.wrappers()) == 2

    registry.forget_wrappers(top)

    assert registry.find_wrapper(x, top) is None
    assert x.wrappers() == [x.wrap(bottom)]


def test_wrapper_table_lets_unused_grids_go(registry: PartRegistry) -> None:
    x = XAxis(registry=registry)
    grids = [RectangularCoordinate(x, YAxis(registry=registry), registry=registry) for _ in range(50)]
    for grid in grids:
        grid.add_parts(PartCollector())
    alive = [weakref.ref(grid) for grid in grids]
    assert registry.wrapper_count() == 100
    assert len(x.wrappers()) == 50

    del grids, grid
    gc.collect()

    assert [ref for ref in alive if ref() is not None] == []
    assert registry.wrapper_count() == 0
    assert x.wrappers() == []
