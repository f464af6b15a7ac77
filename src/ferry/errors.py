class FerryError(Exception):
    """Base class for errors that abort a regeneration pass."""


class OutputWriteError(FerryError):
    """The output directory could not be prepared or written."""


class SourceReadError(FerryError):
    """A source directory exists but could not be listed."""
