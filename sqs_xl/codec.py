"""
Pointer and receipt-handle codec.

Pure functions, no I/O:
- needs_extension(): should this body go through S3?
- compose_store_key() / build_pointer_body() / parse_store_uri()
- encode_ack_token() / decode_ack_token(): composite receipt handles
  "<bucket>/<key>-..SEPARATOR..-<original receipt handle>"

Known limitation: a real receipt handle containing the separator exactly once
decodes as a composite one. The separator is chosen so SQS never emits it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from .constants import (
    POINTER_PREFIX,
    POINTER_SCHEME,
    RECEIPT_HANDLE_SEPARATOR,
    RESERVED_ATTRIBUTE_DATA_TYPE,
    RESERVED_ATTRIBUTE_NAME,
)
from .errors import MalformedUriError


Body = Union[str, bytes, bytearray]


@dataclass(frozen=True)
class StoreLocation:
    """Where a blob lives: (bucket, key)."""
    container: str
    key: str

    @property
    def uri(self) -> str:
        return build_pointer_body(self.container, self.key)


@dataclass(frozen=True)
class DecodedAckToken:
    """Result of decode_ack_token(); container/key are None for plain handles."""
    container: Optional[str]
    key: Optional[str]
    original_token: str

    @property
    def is_extended(self) -> bool:
        return bool(self.container and self.key)

    @property
    def location(self) -> Optional[StoreLocation]:
        if not self.is_extended:
            return None
        return StoreLocation(self.container, self.key)


# ============================================================================
# SIZE POLICY
# ============================================================================

def byte_length(body: Body) -> int:
    """UTF-8 byte length of a message body."""
    if isinstance(body, (bytes, bytearray)):
        return len(body)
    return len(body.encode("utf-8"))


def needs_extension(body: Body, config: Any) -> bool:
    """True if the body must be offloaded (strictly over threshold, or forced)."""
    if config.is_always_through_store():
        return True
    return byte_length(body) > config.get_size_threshold()


# ============================================================================
# KEYS & URIS
# ============================================================================

def compose_store_key(queue_id: Optional[str], config: Any) -> str:
    """Fresh uuid4 key, prefixed with the queue id when the policy asks for it."""
    random_id = str(uuid.uuid4())
    if config.is_prefix_key_with_queue_id() and queue_id:
        return f"{queue_id}/{random_id}"
    return random_id


def build_pointer_body(container_name: str, key: str) -> str:
    """s3://<bucket>/<key>"""
    return f"{POINTER_PREFIX}{container_name}/{key}"


def parse_store_uri(uri: str) -> StoreLocation:
    """Parse s3://bucket/key → StoreLocation. Raises MalformedUriError."""
    if not isinstance(uri, str):
        raise MalformedUriError(f"Invalid S3 URI (not a string): {uri!r}")

    uri = uri.strip()
    scheme, sep, rest = uri.partition("://")
    if not sep or scheme.lower() != POINTER_SCHEME:
        raise MalformedUriError(f"Invalid S3 path {uri!r}; expected {POINTER_PREFIX}<bucket>/<key>")

    container, _, key = rest.partition("/")
    if not container:
        raise MalformedUriError(f"Invalid S3 URI (empty bucket): {uri}")
    if not key:
        raise MalformedUriError(f"Invalid S3 URI (empty key): {uri}", bucket=container)

    return StoreLocation(container, key)


# ============================================================================
# POINTER ATTRIBUTE
# ============================================================================

def pointer_attribute(size: int) -> Dict[str, str]:
    """SQS MessageAttributeValue for the reserved size attribute."""
    return {"DataType": RESERVED_ATTRIBUTE_DATA_TYPE, "StringValue": str(size)}


def is_pointer_message(message: Mapping[str, Any]) -> bool:
    attrs = message.get("MessageAttributes") or {}
    return RESERVED_ATTRIBUTE_NAME in attrs


# ============================================================================
# COMPOSITE RECEIPT HANDLES
# ============================================================================

def encode_ack_token(
    container: str,
    key: str,
    original_token: str,
    separator: str = RECEIPT_HANDLE_SEPARATOR,
) -> str:
    return f"{container}/{key}{separator}{original_token}"


def decode_ack_token(token: str, separator: str = RECEIPT_HANDLE_SEPARATOR) -> DecodedAckToken:
    """
    Split a (possibly composite) receipt handle.

    Exactly two parts → composite; anything else is a plain handle and is
    returned untouched. The location part may also be a full s3:// URI, the
    form written by older clients.
    """
    parts = token.split(separator)
    if len(parts) != 2:
        return DecodedAckToken(None, None, token)

    location, original = parts
    if location.startswith(POINTER_PREFIX):
        parsed = parse_store_uri(location)
        return DecodedAckToken(parsed.container, parsed.key, original)

    container, _, key = location.partition("/")
    if not container or not key:
        return DecodedAckToken(None, None, token)
    return DecodedAckToken(container, key, original)


__all__ = [
    "StoreLocation", "DecodedAckToken",
    "byte_length", "needs_extension",
    "compose_store_key", "build_pointer_body", "parse_store_uri",
    "pointer_attribute", "is_pointer_message",
    "encode_ack_token", "decode_ack_token",
]
