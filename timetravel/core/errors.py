"""
Exception types for the time-travel core.
"""


class TimeTravelError(Exception):
    """Base class for all time-travel errors."""
    pass


class SnapshotImportError(TimeTravelError):
    """Raised when a snapshot is malformed or incompatible with the engine."""
    pass


class GraphTraversalError(TimeTravelError):
    """Raised when an ancestor walk starts from a version unknown to the engine."""
    pass


class IndexOutOfRange(TimeTravelError, IndexError):
    """Raised when a seek targets an index outside [-1, max_index]."""

    def __init__(self, index: int, max_index: int) -> None:
        super().__init__(f"index {index} out of range [-1, {max_index}]")
        self.index = index
        self.max_index = max_index


class DocumentError(TimeTravelError):
    """Raised when a document operation is invalid in its current state."""
    pass


class TraceFormatError(TimeTravelError):
    """Raised when an edit trace cannot be parsed."""
    pass
