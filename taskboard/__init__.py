"""Taskboard: personal task planner core."""

__version__ = "1.0.0"
