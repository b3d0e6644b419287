"""govsync: declarative governance schedules on Temporal."""

__version__ = "0.1.0"
