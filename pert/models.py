from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class TaskRow(NamedTuple):
    """One input record: a task between two events."""

    from_event: int
    to_event: int
    duration: int
    name: str


@dataclass
class Event:
    """Represents a network event (milestone) with its occurrence times."""

    label: int

    # Forward pass result
    fastest_begin: int = 0  # Earliest occurrence

    # Backward pass result
    latest_finish: int = 0  # Latest occurrence

    @property
    def slack(self) -> int:
        return self.latest_finish - self.fastest_begin

    def __str__(self) -> str:
        return f"{self.label}\n{self.fastest_begin}..{self.latest_finish}"


@dataclass
class Task:
    """Represents a timed activity on the edge between two events."""

    name: str
    duration: int  # Zero for dummy dependencies

    # Float calculations
    total_float: int = 0  # Total Float (TF)
    free_float: int = 0   # Free Float (FF)

    def is_critical_path(self) -> bool:
        return self.total_float == 0

    def is_dummy_path(self) -> bool:
        return self.duration == 0

    def __str__(self) -> str:
        return (
            f"{self.name}({self.duration})\n"
            f"T: {self.total_float} / F: {self.free_float}"
        )
