"""Exceptions raised by the datapack virtual filesystem."""


class DatapackError(Exception):
    """Base class for every datapack editor failure."""


class MalformedArchiveError(DatapackError):
    """The input blob cannot be read as a zip archive."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Failed to read '{filename}' as an archive: {reason}")
        self.filename = filename
        self.reason = reason


class EntryNotFoundError(DatapackError, LookupError):
    """A path is neither in the overlay nor in the original archive."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Entry not found: {path}")
        self.path = path


class ExportFailedError(DatapackError):
    """The output archive could not be produced.

    Parameters
    ----------
    cause : Exception
        The underlying error.
    path : str, optional
        The entry being processed when the failure happened.

    """

    def __init__(self, cause: Exception, path: str | None = None) -> None:
        where = f" at '{path}'" if path else ""
        super().__init__(f"Export failed{where}: {cause}")
        self.cause = cause
        self.path = path
