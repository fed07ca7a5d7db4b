from __future__ import annotations

from typing import Iterable, List, Optional, Sequence


class PertError(Exception):
    """Base class for every failure raised while scheduling a network."""


class MalformedRowError(PertError):
    """An input record does not decode to ``from,to,duration,name``."""

    def __init__(self, row_number: int, fields: Sequence[str], reason: str):
        self.row_number = row_number
        self.fields = list(fields)
        self.reason = reason
        super().__init__(f"Row {row_number} is malformed ({reason}): {','.join(self.fields)}")


class TopologyError(PertError):
    """The network does not have the shape a PERT schedule requires."""


class NoStartNodeError(TopologyError):
    def __init__(self) -> None:
        super().__init__("Start node does not exist.")


class DuplicateStartNodeError(TopologyError):
    def __init__(self, nodes: Iterable[int]):
        self.nodes: List[int] = list(nodes)
        super().__init__(f"Start node is duplicated: {', '.join(map(str, self.nodes))}")


class NoEndNodeError(TopologyError):
    def __init__(self) -> None:
        super().__init__("End node does not exist.")


class DuplicateEndNodeError(TopologyError):
    def __init__(self, nodes: Iterable[int]):
        self.nodes: List[int] = list(nodes)
        super().__init__(f"End node is duplicated: {', '.join(map(str, self.nodes))}")


class CyclicNetworkError(TopologyError):
    def __init__(self, cycle: Optional[Iterable[int]] = None):
        self.cycle: List[int] = list(cycle or [])
        path = " -> ".join(map(str, self.cycle + self.cycle[:1]))
        super().__init__(f"Circular dependency detected: {path}")
