"""Error kinds surfaced by the symptom store and its tools."""


class GutSafeError(Exception):
    """Base class for errors raised by GutSafe components."""


class InvalidDataFormatError(GutSafeError, ValueError):
    """An import payload does not have the expected shape."""

    def __init__(self, message: str = "Invalid data format") -> None:
        super().__init__(message)


class PersistenceError(GutSafeError, RuntimeError):
    """The backing store failed to save a change."""
