"""
Graphviz DOT output for scheduled PERT networks.

Events become nodes labeled with their label and ``fastest..latest`` times,
tasks become edges labeled with name, duration and floats. Dummy tasks are
drawn dashed and critical tasks bold.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from .models import Event, Task
from .network import PertNetwork

INDENT = "    "


def escape_label(text: str) -> str:
    """Escape text for a double-quoted DOT label."""
    out: List[str] = []
    for char in text:
        if char in ('"', "\\"):
            out.append("\\" + char)
        elif char == "\n":
            # \l is a left justified line break
            out.append("\\l")
        else:
            out.append(char)
    return "".join(out)


def edge_style(network: PertNetwork, task: Task) -> Optional[str]:
    if network.is_dummy_path(task):
        return "dashed"
    if network.is_critical_path(task):
        return "bold"
    return None


class PertDot:
    """DOT formatting wrapper; ``verbose`` labels show the full ``repr``."""

    def __init__(self, network: PertNetwork, verbose: bool = False, name: str = "PERT"):
        self.network = network
        self.verbose = verbose
        self.name = name

    def _format(self) -> Callable[[object], str]:
        return repr if self.verbose else str

    def render(self) -> str:
        fmt = self._format()
        graph = self.network.graph
        index: Dict[int, int] = {node: i for i, node in enumerate(graph.nodes)}

        lines = [f"digraph {self.name} {{", f'{INDENT}graph [rankdir = "LR"];']

        for node in graph.nodes:
            event: Event = graph.nodes[node]["event"]
            lines.append(f'{INDENT}{index[node]} [label="{escape_label(fmt(event))}"]')

        for u, v, task in self.network.tasks():
            attrs = f'label="{escape_label(fmt(task))}"'
            style = edge_style(self.network, task)
            if style:
                attrs += f", style={style}"
            lines.append(f"{INDENT}{index[u]} -> {index[v]} [{attrs}]")

        lines.append("}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()

    def export(self, path: str) -> None:
        """Write a ``.dot`` file ready for Graphviz."""
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(self.render())


def to_dot(network: PertNetwork, verbose: bool = False) -> str:
    return PertDot(network, verbose=verbose).render()
