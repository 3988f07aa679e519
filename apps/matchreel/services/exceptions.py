"""
Domain exceptions shared by the adapters, repositories and actions.

Messages on these exceptions are user-facing and stable; the underlying
cause is chained (``raise ... from e``) and only ever shown in the logs.
"""


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing, before any network call."""


class ValidationError(ValueError):
    """Raised for bad input. The message names the offending field."""


class NotFoundError(ValueError):
    """Raised when a referenced record does not exist."""


class UploadNotCompleteError(ValidationError):
    """Raised when a confirmed upload is not actually present in storage."""


class StoreAccessError(Exception):
    """Raised when the spreadsheet cannot be read or written."""


class SheetNotFoundError(StoreAccessError):
    """Raised when a worksheet name does not resolve to a sheet."""


class StorageError(Exception):
    """Raised when the object store rejects or fails an operation."""


class RepositoryError(Exception):
    """Raised by the entity repositories for any non-validation failure."""


class CreateError(RepositoryError):
    """Raised when a record could not be appended."""


class PartialFailureError(RepositoryError):
    """Raised when storage was changed but the matching record write failed."""
