"""Treadmill Coach: plan generation, scheduling, progress and session analytics."""

__version__ = "0.1.0"
