"""CLI helpers exposed for other modules."""

from .ui import StepTracker, confirm_or_cancel

__all__ = ["StepTracker", "confirm_or_cancel"]
