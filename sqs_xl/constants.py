"""
constants.py – wire contract for extended (S3-backed) SQS messages.

Every value here is shared by the writer and the reader side. Changing one
breaks round-tripping against messages and blobs already in flight.
"""

# ============================================================================
# RESERVED WIRE CONSTANTS
# ============================================================================

# Message attribute marking a body that was moved to S3 (value = byte length)
RESERVED_ATTRIBUTE_NAME = "LargePayloadSize"
RESERVED_ATTRIBUTE_DATA_TYPE = "Number"

# Joins "<bucket>/<key>" and the original receipt handle
RECEIPT_HANDLE_SEPARATOR = "-..SEPARATOR..-"

# Pointer bodies look like s3://<bucket>/<key>
POINTER_SCHEME = "s3"
POINTER_PREFIX = f"{POINTER_SCHEME}://"

# ============================================================================
# DEFAULTS
# ============================================================================

SQS_MAX_BODY_BYTES = 256 * 1024
DEFAULT_SIZE_THRESHOLD = SQS_MAX_BODY_BYTES

# Receive requests must ask for these or SQS strips the marker attribute
ALL_ATTRIBUTES_SELECTORS = ("All", ".*")

# S3 error codes meaning "object is already gone"
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")

# Transient AWS error codes retried inside the adapters
RETRIABLE_ERROR_CODES = {
    "Throttling", "ThrottlingException", "ServiceUnavailable",
    "RequestThrottled", "InternalError", "InternalFailure",
    "RequestTimeout", "SlowDown",
    "500", "502", "503", "504",
}

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_CONFIG_PATH = "SQS_XL_CONFIG"
ENV_BUCKET = "SQS_XL_BUCKET"
ENV_REGION = "AWS_REGION"
ENV_ENDPOINT_URL = "SQS_XL_ENDPOINT_URL"
ENV_SIZE_THRESHOLD = "SQS_XL_SIZE_THRESHOLD"
ENV_ALWAYS_THROUGH_S3 = "SQS_XL_ALWAYS_THROUGH_S3"
ENV_PREFIX_KEY_WITH_QUEUE = "SQS_XL_PREFIX_KEY_WITH_QUEUE"
ENV_LOG_LEVEL = "SQS_XL_LOG_LEVEL"


__all__ = [
    "RESERVED_ATTRIBUTE_NAME", "RESERVED_ATTRIBUTE_DATA_TYPE",
    "RECEIPT_HANDLE_SEPARATOR", "POINTER_SCHEME", "POINTER_PREFIX",
    "SQS_MAX_BODY_BYTES", "DEFAULT_SIZE_THRESHOLD", "ALL_ATTRIBUTES_SELECTORS",
    "NOT_FOUND_CODES", "RETRIABLE_ERROR_CODES",
]
