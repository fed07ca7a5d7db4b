from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import networkx as nx

from .errors import (
    CyclicNetworkError,
    DuplicateEndNodeError,
    DuplicateStartNodeError,
    NoEndNodeError,
    NoStartNodeError,
    PertError,
)
from .models import Event, Task, TaskRow
from .network import PertNetwork

logger = logging.getLogger(__name__)

PertGraph = nx.MultiDiGraph

STRATEGIES = ("relaxation", "paths")


def build_graph(rows: Iterable[TaskRow]) -> PertGraph:
    """
    Build the event/task network.

    One node per distinct event label, in first-seen order, and one edge per
    row. The edge key is the row index so parallel tasks stay distinct.
    """
    rows = list(rows)
    graph = PertGraph()
    for row in rows:
        for label in (row.from_event, row.to_event):
            if label not in graph:
                graph.add_node(label, event=Event(label))

    for index, row in enumerate(rows):
        graph.add_edge(
            row.from_event, row.to_event, key=index, task=Task(row.name, row.duration)
        )
    return graph


def find_start(graph: PertGraph) -> int:
    """Return the single event without incoming tasks."""
    start_nodes = [n for n in graph.nodes if graph.in_degree(n) == 0]
    if not start_nodes:
        raise NoStartNodeError()
    if len(start_nodes) > 1:
        raise DuplicateStartNodeError(start_nodes)
    return start_nodes[0]


def find_end(graph: PertGraph) -> int:
    """Return the single event without outgoing tasks."""
    end_nodes = [n for n in graph.nodes if graph.out_degree(n) == 0]
    if not end_nodes:
        raise NoEndNodeError()
    if len(end_nodes) > 1:
        raise DuplicateEndNodeError(end_nodes)
    return end_nodes[0]


def ensure_acyclic(graph: PertGraph) -> None:
    try:
        cycle = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return
    raise CyclicNetworkError(edge[0] for edge in cycle)


def _duration(graph: PertGraph, u: int, v: int, key: int) -> int:
    return graph.edges[u, v, key]["task"].duration


def _longest_from(graph: PertGraph, source: int) -> Dict[int, int]:
    """Longest path length from ``source`` to every reachable node."""
    distance: Dict[int, int] = {source: 0}
    for node in nx.topological_sort(graph):
        if node not in distance:
            continue
        for _, succ, task in graph.out_edges(node, data="task"):
            candidate = distance[node] + task.duration
            if succ not in distance or candidate > distance[succ]:
                distance[succ] = candidate
    return distance


def _longest_to(graph: PertGraph, target: int) -> Dict[int, int]:
    """Longest path length from every node that reaches ``target``."""
    remaining: Dict[int, int] = {target: 0}
    for node in reversed(list(nx.topological_sort(graph))):
        if node not in remaining:
            continue
        for pred, _, task in graph.in_edges(node, data="task"):
            candidate = remaining[node] + task.duration
            if pred not in remaining or candidate > remaining[pred]:
                remaining[pred] = candidate
    return remaining


def _path_sums(graph: PertGraph, source: int, target: int) -> List[int]:
    return [
        sum(_duration(graph, u, v, k) for u, v, k in path)
        for path in nx.all_simple_edge_paths(graph, source, target)
    ]


def fastest_begin(graph: PertGraph, start: int, node: int, strategy: str = "relaxation") -> int:
    """
    Earliest occurrence of ``node``: the longest start-to-node path.

    Zero for the start node itself and for nodes unreachable from ``start``.
    """
    if node == start:
        return 0
    if strategy == "paths":
        return max(_path_sums(graph, start, node), default=0)
    return _longest_from(graph, start).get(node, 0)


def latest_finish(graph: PertGraph, node: int, end: int, strategy: str = "relaxation") -> int:
    """
    Latest occurrence of ``node``: project time minus the longest node-to-end path.

    Equal to the project time for the end node and for nodes that cannot
    reach ``end``.
    """
    total_time = graph.nodes[end]["event"].fastest_begin
    if node == end:
        return total_time
    if strategy == "paths":
        return min((total_time - s for s in _path_sums(graph, node, end)), default=total_time)
    remaining = _longest_to(graph, end)
    return total_time - remaining[node] if node in remaining else total_time


def forward_pass(graph: PertGraph, start: int, strategy: str = "relaxation", project_start: int = 0) -> None:
    """Set ``fastest_begin`` on every event."""
    if strategy == "paths":
        for node in graph.nodes:
            begin = fastest_begin(graph, start, node, strategy)
            graph.nodes[node]["event"].fastest_begin = project_start + begin
        return

    distance = _longest_from(graph, start)
    for node in graph.nodes:
        graph.nodes[node]["event"].fastest_begin = project_start + distance.get(node, 0)


def backward_pass(graph: PertGraph, end: int, strategy: str = "relaxation") -> None:
    """Set ``latest_finish`` on every event; requires a completed forward pass."""
    if strategy == "paths":
        for node in graph.nodes:
            graph.nodes[node]["event"].latest_finish = latest_finish(graph, node, end, strategy)
        return

    total_time = graph.nodes[end]["event"].fastest_begin
    remaining = _longest_to(graph, end)
    for node in graph.nodes:
        graph.nodes[node]["event"].latest_finish = total_time - remaining.get(node, 0)


def compute_floats(graph: PertGraph) -> None:
    """Write total and free float onto every task."""
    for u, v, task in graph.edges(data="task"):
        begin_event = graph.nodes[u]["event"]
        finish_event = graph.nodes[v]["event"]
        earliest_finish = begin_event.fastest_begin + task.duration
        task.total_float = finish_event.latest_finish - earliest_finish
        task.free_float = finish_event.fastest_begin - earliest_finish
        if task.total_float < 0 or task.free_float < 0:
            logger.warning(
                "Task %s (%s -> %s) has negative float: TF=%d FF=%d",
                task.name, u, v, task.total_float, task.free_float,
            )


class PertScheduler:
    """
    PERT/CPM scheduler for activity-on-arrow networks.

    Builds the network from task rows, validates its topology, runs the
    forward and backward passes over events and derives task floats.
    """

    def __init__(self, strategy: str = "relaxation", project_start: int = 0):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy '{strategy}'. Must be one of: {', '.join(STRATEGIES)}.")
        self.strategy = strategy
        self.project_start = project_start
        self.calculation_log: List[str] = []
        self.network: Optional[PertNetwork] = None

    def clear(self) -> None:
        """Clear the last network and its calculations."""
        self.calculation_log.clear()
        self.network = None

    def _log(self, message: str) -> None:
        self.calculation_log.append(message)

    def schedule(self, rows: Sequence[TaskRow]) -> PertNetwork:
        """Run the full computation; raises ``PertError`` on invalid input."""
        self.clear()
        self._log("=" * 70)
        self._log("PERT/CPM CALCULATION")
        self._log("Activity-on-Arrow network")
        self._log("=" * 70)

        graph = build_graph(rows)
        logger.info(
            "Built network with %d events and %d tasks",
            graph.number_of_nodes(), graph.number_of_edges(),
        )
        self._log(f"Events: {graph.number_of_nodes()}  Tasks: {graph.number_of_edges()}")

        start = find_start(graph)
        end = find_end(graph)
        ensure_acyclic(graph)
        self._log(f"Start event: {start}  End event: {end}")

        self._forward_pass(graph, start)
        self._backward_pass(graph, end)
        self._calculate_floats(graph)

        network = PertNetwork(graph, start, end)
        self.network = network

        self._log("")
        self._log("=" * 70)
        self._log("CALCULATION COMPLETE")
        self._log(f"Project Duration: {network.project_duration}")
        for idx, path in enumerate(network.critical_paths(), start=1):
            self._log(f"  {idx}. {' -> '.join(map(str, path))}")
        self._log("=" * 70)
        logger.info("Project duration %d, start %s, end %s", network.project_duration, start, end)
        return network

    def calculate(self, rows: Sequence[TaskRow]) -> Tuple[bool, str]:
        """Schedule ``rows`` and report the outcome as ``(success, message)``."""
        try:
            self.schedule(rows)
        except PertError as exc:
            self._log(f"ERROR: {exc}")
            logger.error("Calculation failed: %s", exc)
            return False, str(exc)
        return True, "Calculation completed successfully."

    def _forward_pass(self, graph: PertGraph, start: int) -> None:
        self._log("")
        self._log("FORWARD PASS (Fastest begin of each event)")
        self._log("-" * 50)
        forward_pass(graph, start, self.strategy, self.project_start)
        for node in graph.nodes:
            event = graph.nodes[node]["event"]
            if node == start:
                self._log(f"{node}: start event -> {event.fastest_begin}")
                continue
            candidates = [
                f"{graph.nodes[pred]['event'].fastest_begin}+{task.duration}"
                for pred, _, task in graph.in_edges(node, data="task")
            ]
            self._log(f"{node}: max({', '.join(candidates)}) = {event.fastest_begin}")

    def _backward_pass(self, graph: PertGraph, end: int) -> None:
        self._log("")
        self._log("BACKWARD PASS (Latest finish of each event)")
        self._log("-" * 50)
        backward_pass(graph, end, self.strategy)
        for node in graph.nodes:
            event = graph.nodes[node]["event"]
            if node == end:
                self._log(f"{node}: end event -> {event.latest_finish}")
                continue
            candidates = [
                f"{graph.nodes[succ]['event'].latest_finish}-{task.duration}"
                for _, succ, task in graph.out_edges(node, data="task")
            ]
            self._log(f"{node}: min({', '.join(candidates)}) = {event.latest_finish}")

    def _calculate_floats(self, graph: PertGraph) -> None:
        self._log("")
        self._log("FLOAT CALCULATIONS")
        self._log("-" * 50)
        compute_floats(graph)
        for u, v, task in graph.edges(data="task"):
            status = "CRITICAL" if task.is_critical_path() else "Not critical"
            if task.is_dummy_path():
                status += ", dummy"
            self._log(
                f"{task.name} ({u} -> {v}, d={task.duration}): "
                f"TF = {task.total_float}, FF = {task.free_float} -> {status}"
            )
