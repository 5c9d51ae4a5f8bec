import random
from datetime import date, datetime, timedelta

import networkx as nx
import pytest

from sochart import scheduling
from sochart.errors import ChartError
from sochart.project import DurationUnit, Project
from sochart.registry import PartRegistry


def _chain(project: Project, *durations: int):
    group = project.create_task_group("Chain")
    tasks = [group.create_task(f"T{i}", d) for i, d in enumerate(durations)]
    for earlier, later in zip(tasks, tasks[1:]):
        project.depends_on(later, earlier)
    return group, tasks


def test_chain_settles_regardless_of_creation_order(project: Project) -> None:
    group, tasks = _chain(project, 2, 2, 2, 2)
    # Reverse the member list so later tasks are relaxed before earlier ones.
    group._members.reverse()

    rounds = scheduling.schedule(project.groups, project.start, DurationUnit.DAYS)

    assert rounds <= project.task_count + project.group_count + 2
    assert [t.start.day for t in tasks] == [1, 4, 7, 10]


def test_every_edge_respects_the_gap(project: Project) -> None:
    alpha = project.create_task_group("Alpha")
    beta = project.create_task_group("Beta")
    a1 = alpha.create_task("a1", 3)
    a2 = alpha.create_task("a2", 0)
    b1 = beta.create_task("b1", 2)
    b2 = beta.create_task("b2", 4)
    project.depends_on(a2, a1)
    project.depends_on(b1, a2)
    project.depends_on(b2, alpha)
    project.depends_on(b2, b1)

    project.validate_constraints()

    day = DurationUnit.DAYS.delta
    for task in project.tasks():
        for predecessor in task.predecessors:
            gap = day
            if not predecessor.is_group and predecessor.is_milestone:
                gap = 0 * day
            assert task.get_start() >= predecessor.get_end() + gap
    assert b1.get_start() == a2.get_end()


def test_cycle_check_terminates_on_cycles_elsewhere(project: Project) -> None:
    group = project.create_task_group("G")
    x = group.create_task("X", 1)
    y = group.create_task("Y", 1)
    z = group.create_task("Z", 1)
    project.depends_on(z, x)
    project.depends_on(x, y)
    project.depends_on(y, x)

    with pytest.raises(ChartError, match="Circular dependency"):
        scheduling.check_dependencies(project.groups)


def test_acyclic_graph_passes_the_check(project: Project) -> None:
    group, _ = _chain(project, 1, 1, 1)

    scheduling.check_dependencies(project.groups)


def test_display_order_breaks_ties_by_order(project: Project) -> None:
    group = project.create_task_group("G")
    late = group.create_task("Late", 1)
    tie_b = group.create_task("TieB", 1)
    tie_a = group.create_task("TieA", 1)
    late.start = datetime(2024, 1, 5)
    tie_b.start = tie_a.start = datetime(2024, 1, 1)
    tie_a.order, tie_b.order = 1, 2

    assert scheduling.display_order(group.tasks) == [late, tie_a, tie_b]


def test_dependency_graph_has_implicit_edges_and_names_first_group_on_a_cycle(project: Project) -> None:
    first = project.create_task_group("First")
    second = project.create_task_group("Second")
    a = first.create_task("A", 1)
    b = second.create_task("B", 1)
    project.depends_on(b, first)

    graph = scheduling.dependency_graph(project.groups)

    assert graph.has_edge(b, first)
    assert graph.has_edge(first, a)
    assert graph.has_edge(second, b)
    assert nx.is_directed_acyclic_graph(graph)
    scheduling.check_dependencies(project.groups)

    project.depends_on(first, second)

    with pytest.raises(ChartError, match="Circular dependency: Task Group 'Second'"):
        scheduling.check_dependencies(project.groups)


def _random_plan(registry: PartRegistry, seed: int) -> Project:
    """Groups are created in dependency order, so every edge points backwards."""
    rng = random.Random(seed)
    project = Project(registry=registry, name=f"Random {seed}")
    project.set_start(date(2024, 1, 1))
    earlier = []
    for g in range(rng.randint(2, 5)):
        group = project.create_task_group(f"G{g}")
        members = []
        for t in range(rng.randint(1, 4)):
            task = group.create_task(f"G{g}T{t}", rng.randint(0, 4))
            for candidate in earlier + members:
                if rng.random() < 0.3:
                    project.depends_on(task, candidate)
            for other in project.groups:
                if other.name < group.name and rng.random() < 0.15:
                    project.depends_on(task, other)
            if rng.random() < 0.25:
                project.set_earliest_start(task, date(2024, 1, 1) + timedelta(days=rng.randint(0, 12)))
            members.append(task)
        for other in project.groups:
            if other.name < group.name and rng.random() < 0.2:
                project.depends_on(group, other)
        if rng.random() < 0.3:
            project.set_earliest_start(group, date(2024, 1, 1) + timedelta(days=rng.randint(0, 12)))
        earlier.extend(members)
    return project


def _ready_after(predecessor) -> datetime:
    if not predecessor.is_group and predecessor.is_milestone:
        return predecessor.get_end()
    return predecessor.get_end() + DurationUnit.DAYS.delta


@pytest.mark.parametrize("seed", range(12))
def test_random_dag_schedule_keeps_every_rule(registry: PartRegistry, seed: int) -> None:
    project = _random_plan(registry, seed)

    scheduling.check_dependencies(project.groups)
    scheduling.schedule(project.groups, project.start, DurationUnit.DAYS)

    starts = {}
    for task in project.tasks():
        group = task.group
        bounds = [project.start]
        bounds += [floor for floor in (task.earliest_start, group.earliest_start) if floor is not None]
        bounds += [_ready_after(p) for p in (*task.predecessors, *group.predecessors)]
        assert task.get_start() >= project.start
        for bound in bounds:
            assert task.get_start() >= bound
        assert task.get_start() == max(bounds)
        starts[task.name] = task.get_start()

    project._groups.reverse()
    for group in project.groups:
        group._members.reverse()
        for task in group.tasks:
            task.start = None
    scheduling.schedule(project.groups, project.start, DurationUnit.DAYS)

    assert {task.name: task.get_start() for task in project.tasks()} == starts
