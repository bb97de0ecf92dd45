"""Custom exceptions for script loading and validation."""


class DataError(Exception):
    """Base exception for the data layer."""


class DataLoadError(DataError):
    """Raised when script files are missing or invalid JSON."""


class DataValidationError(DataError):
    """Raised when JSON content fails structural validation."""


class GraphIntegrityError(DataValidationError):
    """Raised when a script graph is malformed or an output index cannot be resolved."""


class AmbiguousEntryError(DataValidationError):
    """Raised when a script does not have exactly one entry node."""
