from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple

import networkx as nx
import pandas as pd

from .models import Event, Task


class PertNetwork:
    """
    A scheduled PERT network, read-only from here on.

    Exposes the events and tasks for display together with the two
    classification queries a renderer needs.
    """

    def __init__(self, graph: nx.MultiDiGraph, start: int, end: int):
        self.graph = graph
        self.start = start
        self.end = end

    @property
    def project_finish(self) -> int:
        return self.graph.nodes[self.end]["event"].fastest_begin

    @property
    def project_duration(self) -> int:
        return self.project_finish - self.graph.nodes[self.start]["event"].fastest_begin

    @staticmethod
    def is_critical_path(task: Task) -> bool:
        return task.is_critical_path()

    @staticmethod
    def is_dummy_path(task: Task) -> bool:
        return task.is_dummy_path()

    def event(self, label: int) -> Event:
        return self.graph.nodes[label]["event"]

    def events(self) -> Iterator[Event]:
        for node in self.graph.nodes:
            yield self.graph.nodes[node]["event"]

    def tasks(self) -> Iterator[Tuple[int, int, Task]]:
        """Yield ``(from_label, to_label, task)`` in input row order."""
        edges = sorted(self.graph.edges(keys=True, data="task"), key=lambda e: e[2])
        for u, v, _, task in edges:
            yield u, v, task

    def task(self, name: str) -> Task:
        """Return the first task called ``name``."""
        for _, _, task in self.tasks():
            if task.name == name:
                return task
        raise KeyError(name)

    def critical_tasks(self) -> List[Task]:
        return [task for _, _, task in self.tasks() if self.is_critical_path(task)]

    def critical_paths(self) -> List[List[int]]:
        """List every start-to-end event sequence made of critical tasks."""
        critical = nx.DiGraph()
        critical.add_nodes_from(self.graph.nodes)
        for u, v, task in self.tasks():
            if self.is_critical_path(task):
                critical.add_edge(u, v)

        paths: List[List[int]] = []

        def dfs(node: int, path: List[int]) -> None:
            new_path = path + [node]
            if node == self.end:
                paths.append(new_path)
                return
            for succ in sorted(critical.successors(node)):
                dfs(succ, new_path)

        dfs(self.start, [])
        return paths

    def get_events_dataframe(self) -> pd.DataFrame:
        """Get event times as a pandas DataFrame."""
        data = [
            {
                "Event": event.label,
                "Fastest Begin": event.fastest_begin,
                "Latest Finish": event.latest_finish,
                "Slack": event.slack,
            }
            for event in self.events()
        ]
        return pd.DataFrame(data, columns=["Event", "Fastest Begin", "Latest Finish", "Slack"])

    def get_results_dataframe(self) -> pd.DataFrame:
        """Get task schedule results as a pandas DataFrame."""
        columns = ["Task", "From", "To", "Duration", "ES", "EF", "LS", "LF", "TF", "FF", "Critical", "Dummy"]
        data = []
        for u, v, task in self.tasks():
            es = self.event(u).fastest_begin
            lf = self.event(v).latest_finish
            data.append(
                {
                    "Task": task.name,
                    "From": u,
                    "To": v,
                    "Duration": task.duration,
                    "ES": es,
                    "EF": es + task.duration,
                    "LS": lf - task.duration,
                    "LF": lf,
                    "TF": task.total_float,
                    "FF": task.free_float,
                    "Critical": "Yes" if self.is_critical_path(task) else "No",
                    "Dummy": "Yes" if self.is_dummy_path(task) else "No",
                }
            )
        return pd.DataFrame(data, columns=columns)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable summary of the schedule."""
        return {
            "start": self.start,
            "end": self.end,
            "project_duration": self.project_duration,
            "project_finish": self.project_finish,
            "events": [
                {
                    "label": e.label,
                    "fastest_begin": e.fastest_begin,
                    "latest_finish": e.latest_finish,
                }
                for e in self.events()
            ],
            "tasks": [
                {
                    "from": u,
                    "to": v,
                    "name": t.name,
                    "duration": t.duration,
                    "total_float": t.total_float,
                    "free_float": t.free_float,
                    "critical": self.is_critical_path(t),
                    "dummy": self.is_dummy_path(t),
                }
                for u, v, t in self.tasks()
            ],
            "critical_paths": self.critical_paths(),
        }
