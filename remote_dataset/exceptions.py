"""
Custom exceptions for remotely backed datasets.

Every failure raised by the dataset derives from RemoteDatasetError
so callers can handle the whole family in one place.
"""


class RemoteDatasetError(Exception):
    """Base exception for all remote dataset errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RemoteDataAccessError(RemoteDatasetError):
    """Raised when the dataset is in a state that forbids remote access."""


class ObsoleteAccessError(RemoteDataAccessError):
    """Raised on any operation after the backing record was destroyed."""

    def __init__(self, operation: str | None = None):
        details = {}
        if operation:
            details["operation"] = operation
        super().__init__("This object was destroyed in a remote storage!", details)
        self.operation = operation


class UndeployedAccessError(RemoteDataAccessError):
    """Raised when fetching from a dataset that was never marked deployed."""

    def __init__(self, operation: str | None = None):
        details = {}
        if operation:
            details["operation"] = operation
        super().__init__("Cannot fetch undeployed object", details)
        self.operation = operation


class RemoteReadError(RemoteDatasetError):
    """Raised when one or more remote getters failed during a sync."""

    def __init__(self, cause: Exception, fields: list[str] | None = None):
        details: dict = {"cause": str(cause)}
        if fields:
            details["fields"] = fields
        super().__init__(f"Cannot sync remote data: {cause}", details)
        self.cause = cause
        self.fields = fields or []


class RemoteWriteError(RemoteDatasetError):
    """Raised when one or more remote setters failed during a flush.

    Setters issued in the same flush are committed independently, so the
    handles of the ones that did succeed are kept on ``handles``.
    """

    def __init__(
        self,
        causes: list[Exception],
        fields: list[str] | None = None,
        handles: list | None = None,
    ):
        details: dict = {"causes": [str(c) for c in causes]}
        if fields:
            details["fields"] = fields
        summary = "; ".join(str(c) for c in causes)
        super().__init__(f"Cannot update remote data: {summary}", details)
        self.causes = causes
        self.cause = causes[0] if causes else None
        self.fields = fields or []
        self.handles = handles or []


class UnknownFieldError(RemoteDatasetError, KeyError):
    """Raised when a field name was never bound to the dataset."""

    def __init__(self, field: str):
        super().__init__(f"Unknown field: {field}", {"field": field})
        self.field = field

    def __str__(self) -> str:
        return self.message


class DatasetBindingError(RemoteDatasetError):
    """Raised when binding fields to a dataset that is already bound."""

    def __init__(self, reason: str):
        super().__init__(f"Cannot bind fields: {reason}", {"reason": reason})
        self.reason = reason


class ConfigurationError(RemoteDatasetError):
    """Raised when dataset configuration is invalid."""

    def __init__(self, key: str, reason: str, value: str | None = None):
        details = {"key": key, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Invalid configuration for {key}: {reason}", details)
        self.key = key
        self.reason = reason
        self.value = value
