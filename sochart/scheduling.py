"""Dependency validation and start-time propagation for task groups."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence

import networkx as nx

from .config import SCHEDULE_ROUND_SLACK
from .errors import ChartError

if TYPE_CHECKING:
    from .project import AbstractTask, DurationUnit, Task, TaskGroup

logger = logging.getLogger(__name__)

_PredecessorFilter = Callable[["AbstractTask"], bool]


def _depends_on(node: AbstractTask) -> List[AbstractTask]:
    """Nodes that must finish before ``node`` can finish.

    A task also waits for whatever its group waits for, and a group cannot
    finish before its members do.
    """
    if node.is_group:
        return list(node.predecessors) + list(node.tasks)
    return list(node.predecessors) + list(node.group.predecessors)


def _nodes(groups: Sequence[TaskGroup]) -> Iterable[AbstractTask]:
    for group in groups:
        yield group
        yield from group.tasks


def dependency_graph(groups: Sequence[TaskGroup]) -> nx.DiGraph:
    """Directed graph with an edge from every node to each node it waits for."""
    graph = nx.DiGraph()
    for node in _nodes(groups):
        graph.add_node(node)
        for required in _depends_on(node):
            graph.add_edge(node, required)
    return graph


def check_dependencies(groups: Sequence[TaskGroup]) -> None:
    """Raise ChartError naming the first task or group found on a cycle.

    Groups are visited before their tasks, in list order.
    """
    graph = dependency_graph(groups)
    if nx.is_directed_acyclic_graph(graph):
        return
    cyclic = set(nx.nodes_with_selfloops(graph))
    for component in nx.strongly_connected_components(graph):
        if len(component) > 1:
            cyclic.update(component)
    for node in _nodes(groups):
        if node in cyclic:
            kind = "Task Group" if node.is_group else "Task"
            logger.debug("Cycle detected at %s %r: %s", kind, node.name, nx.find_cycle(graph, source=node))
            raise ChartError(f"Circular dependency: {kind} '{node.name}'")


# --- Start propagation ---------------------------------------------------------


def _only_tasks(node: AbstractTask) -> bool:
    return not node.is_group


def _only_groups(node: AbstractTask) -> bool:
    return node.is_group


def _everything(node: AbstractTask) -> bool:
    return True


_PASSES: Sequence[_PredecessorFilter] = (_only_tasks, _only_groups, _everything)


def _latest(*values: Optional[datetime]) -> Optional[datetime]:
    present = [v for v in values if v is not None]
    return max(present) if present else None


class _Plan:
    """Committed start times of every task, updated one pass at a time."""

    def __init__(self, tasks: Sequence[Task], start: datetime, unit: DurationUnit) -> None:
        self.tasks = tasks
        self.unit = unit
        self.project_start = start
        self.starts: Dict[int, datetime] = {task.id: start for task in tasks}

    def end_of(self, node: AbstractTask) -> Optional[datetime]:
        if node.is_group:
            ends = [self.end_of(task) for task in node.tasks if task.id in self.starts]
            return _latest(*ends)
        start = self.starts.get(node.id)
        if start is None:
            return None
        return start + node.duration * self.unit.delta

    def ready_after(self, node: AbstractTask) -> Optional[datetime]:
        end = self.end_of(node)
        if end is None:
            return None
        if node.is_group or not node.is_milestone:
            end += self.unit.delta
        return end

    def floor(self, task: Task, accept: _PredecessorFilter) -> datetime:
        group = task.group
        floor = _latest(self.project_start, task.earliest_start, group.earliest_start)
        for predecessor in (*task.predecessors, *group.predecessors):
            if accept(predecessor):
                floor = _latest(floor, self.ready_after(predecessor))
        return floor

    def relax(self, accept: _PredecessorFilter) -> bool:
        """Compute next starts from the committed ones, then commit; True when anything moved."""
        proposed = {task.id: max(self.starts[task.id], self.floor(task, accept)) for task in self.tasks}
        changed = proposed != self.starts
        self.starts = proposed
        return changed


def schedule(groups: Sequence[TaskGroup], start: datetime, unit: DurationUnit) -> int:
    """Assign the earliest consistent start to every task; returns the rounds used.

    Dependencies must already be known to be acyclic.
    """
    tasks: List[Task] = [task for group in groups for task in group.tasks]
    plan = _Plan(tasks, start, unit)
    limit = len(tasks) + len(groups) + SCHEDULE_ROUND_SLACK
    rounds = 0
    while True:
        rounds += 1
        if rounds > limit:
            raise ChartError(f"Scheduling did not settle after {limit} rounds")
        moved = [plan.relax(accept) for accept in _PASSES]
        if not any(moved):
            break
    for task in tasks:
        task.start = plan.starts[task.id]
    logger.debug("Scheduled %d tasks in %d rounds", len(tasks), rounds)
    return rounds


def display_order(nodes: Iterable[AbstractTask]) -> List[AbstractTask]:
    """Latest start first; equal starts by ascending manual order."""
    ordered = sorted(nodes, key=lambda node: node.order)
    return sorted(ordered, key=lambda node: node.get_start() or datetime.min, reverse=True)
