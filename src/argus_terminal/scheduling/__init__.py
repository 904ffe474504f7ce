"""Timer abstraction shared by the AutoPilot and the alert monitor."""

from .task import ScheduledTask, TickCallable

__all__ = ["ScheduledTask", "TickCallable"]
