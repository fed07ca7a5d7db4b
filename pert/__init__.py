"""PERT/CPM scheduling for activity-on-arrow networks."""

__version__ = "1.0.0"
