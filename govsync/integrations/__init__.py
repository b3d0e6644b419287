"""External engine integrations (Temporal) and in-memory stand-ins."""

from govsync.integrations.schedule_control_inmemory import InMemoryScheduleControl
from govsync.integrations.temporal import TemporalClient, TemporalConfig, TemporalScheduleControl

__all__ = [
    "InMemoryScheduleControl",
    "TemporalClient",
    "TemporalConfig",
    "TemporalScheduleControl",
]
