"""
sqs_xl – send SQS messages larger than 256 KiB by offloading bodies to S3.
"""

from .client import BlockingExtendedSQSClient, ExtendedSQSClient, WarningCollector
from .config import ExtendedConfig, ExtendedSettings, load_settings
from .constants import POINTER_SCHEME, RECEIPT_HANDLE_SEPARATOR, RESERVED_ATTRIBUTE_NAME
from .errors import (
    BlobNotFoundError,
    ConfigurationError,
    ExtendedSQSError,
    ExtensionDisabledError,
    MalformedUriError,
    QueueOperationError,
    StoreCleanupWarning,
    StoreDownloadError,
    StoreError,
    StoreUploadError,
    ValidationError,
)
from .io_s3 import S3BlobStore
from .io_sqs import SQSQueue

__version__ = "0.1.0"

__all__ = [
    "ExtendedSQSClient", "BlockingExtendedSQSClient", "WarningCollector",
    "ExtendedConfig", "ExtendedSettings", "load_settings",
    "SQSQueue", "S3BlobStore",
    "RESERVED_ATTRIBUTE_NAME", "RECEIPT_HANDLE_SEPARATOR", "POINTER_SCHEME",
    "ExtendedSQSError", "ValidationError", "ConfigurationError",
    "ExtensionDisabledError", "QueueOperationError", "StoreError",
    "StoreUploadError", "StoreDownloadError", "MalformedUriError",
    "BlobNotFoundError", "StoreCleanupWarning",
]
