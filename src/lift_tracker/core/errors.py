"""
Exception hierarchy for lift-tracker.

Every error the core raises derives from LiftTrackerError so the CLI can
report them uniformly.  Orphaned references (a log or cycle pointing at a
lift that no longer exists) are deliberately not an exception: read paths
skip or repair them.
"""


class LiftTrackerError(Exception):
    """Base class for all lift-tracker errors."""


class NotFoundError(LiftTrackerError, LookupError):
    """Raised when a lookup by id finds nothing."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"No {kind} found for id {entity_id!r}")


class CorruptStorageError(LiftTrackerError):
    """
    Raised when a stored table cannot be parsed.

    Fatal for that table: callers must not fall back to an empty table,
    since saving it would overwrite the user's data.
    """

    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"Stored table '{table}' is corrupt: {reason}")


class ValidationError(LiftTrackerError, ValueError):
    """Raised when caller-supplied values fall outside their allowed domain."""

    pass


class CycleCompleteError(LiftTrackerError):
    """Raised when asking for the next phase of a cycle that is already done."""

    pass
