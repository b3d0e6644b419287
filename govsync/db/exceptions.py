"""Database errors raised by govsync. Messages never include passwords."""


class DatabaseError(Exception):
    """Base exception for database operations."""


class ConfigurationError(DatabaseError):
    """Database URL missing or invalid."""


class LockTimeoutError(DatabaseError):
    """Taking or releasing an advisory lock did not finish in time."""

    def __init__(self, name: str, timeout_seconds: float) -> None:
        self.name = name
        self.timeout_seconds = timeout_seconds
        super().__init__(f"advisory lock {name!r} timed out after {timeout_seconds}s")
