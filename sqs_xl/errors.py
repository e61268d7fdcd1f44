"""
Error taxonomy for the extended SQS client.

Everything raised by this package derives from ExtendedSQSError, so callers
can catch the whole family at once. Validation/configuration errors also
derive from ValueError, matching how the boto3 adapters report bad input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class ExtendedSQSError(Exception):
    """Base class for all extended-client errors."""


class ValidationError(ExtendedSQSError, ValueError):
    """Malformed caller input (missing body, queue url, receipt handle...)."""


class ConfigurationError(ExtendedSQSError, ValueError):
    """Large-payload support configured with missing or invalid values."""


class ExtensionDisabledError(ExtendedSQSError):
    """Operation needs S3 offloading but large-payload support is disabled."""


class QueueOperationError(ExtendedSQSError):
    """A queue call failed; wraps the collaborator error with context."""

    def __init__(self, operation: str, queue_url: Optional[str], cause: BaseException):
        self.operation = operation
        self.queue_url = queue_url
        self.cause = cause
        super().__init__(f"{operation} failed on {queue_url}: {type(cause).__name__}: {cause}")


class StoreError(ExtendedSQSError):
    """An S3 call failed."""

    operation = "store"

    def __init__(self, message: str, *, bucket: Optional[str] = None, key: Optional[str] = None):
        self.bucket = bucket
        self.key = key
        super().__init__(message)


class StoreUploadError(StoreError):
    operation = "put_object"


class StoreDownloadError(StoreError):
    operation = "get_object"


class MalformedUriError(StoreDownloadError, ValueError):
    """A pointer body is not a valid s3://<bucket>/<key> URI."""


class BlobNotFoundError(StoreError, FileNotFoundError):
    """The referenced S3 object does not exist."""


@dataclass(frozen=True)
class StoreCleanupWarning:
    """S3 cleanup trouble after a successful queue delete (reported, never raised)."""
    bucket: str
    key: str
    error: BaseException
    entry_id: Optional[str] = None

    def __str__(self) -> str:
        where = f" (entry {self.entry_id})" if self.entry_id else ""
        return f"failed to delete s3://{self.bucket}/{self.key}{where}: {self.error}"


__all__ = [
    "ExtendedSQSError", "ValidationError", "ConfigurationError",
    "ExtensionDisabledError", "QueueOperationError",
    "StoreError", "StoreUploadError", "StoreDownloadError",
    "MalformedUriError", "BlobNotFoundError", "StoreCleanupWarning",
]
