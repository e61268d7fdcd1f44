"""
Receive path: dequeue a batch, rehydrate pointer messages from S3.

All-or-nothing: if any pointer message cannot be rehydrated the whole call
fails and no partially rewritten batch is returned. The messages stay in the
queue and come back after their visibility timeout.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from . import codec
from .constants import ALL_ATTRIBUTES_SELECTORS, RESERVED_ATTRIBUTE_NAME
from .contracts import BlobStoreProto, QueueProto, SQSParams, SQSResponse
from .errors import (
    ExtensionDisabledError,
    QueueOperationError,
    StoreDownloadError,
    ValidationError,
)
from .logging import get_logger

_logger = get_logger("receive")


def with_reserved_attribute(params: SQSParams) -> SQSParams:
    """Copy of params that asks SQS to return the reserved size attribute."""
    names = list(params.get("MessageAttributeNames") or [])
    if RESERVED_ATTRIBUTE_NAME in names or any(n in ALL_ATTRIBUTES_SELECTORS for n in names):
        return dict(params)
    return {**params, "MessageAttributeNames": names + [RESERVED_ATTRIBUTE_NAME]}


def rehydrate(message: Dict[str, Any], body: str) -> Dict[str, Any]:
    """New message dict with the S3 payload as body and a composite receipt handle."""
    location = codec.parse_store_uri(message["Body"])
    attributes = {
        k: v for k, v in (message.get("MessageAttributes") or {}).items()
        if k != RESERVED_ATTRIBUTE_NAME
    }
    out = {
        **message,
        "Body": body,
        "ReceiptHandle": codec.encode_ack_token(location.container, location.key, message["ReceiptHandle"]),
    }
    # Attributes changed, so the SQS checksum over them no longer holds
    out.pop("MD5OfMessageAttributes", None)
    if attributes:
        out["MessageAttributes"] = attributes
    else:
        out.pop("MessageAttributes", None)
    return out


async def _download(store: BlobStoreProto, message: Dict[str, Any]) -> str:
    """Fetch and decode the payload behind a pointer message."""
    location = codec.parse_store_uri(message.get("Body", ""))
    try:
        payload = await store.get_object(location.container, location.key)
    except Exception as e:
        raise StoreDownloadError(
            f"receive_message: download of {location.uri} failed "
            f"(message {message.get('MessageId')}): {e}",
            bucket=location.container, key=location.key,
        ) from e
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise StoreDownloadError(
            f"receive_message: payload at {location.uri} is not valid UTF-8 "
            f"(message {message.get('MessageId')}): {e}",
            bucket=location.container, key=location.key,
        ) from e


def _consume_exception(task: "asyncio.Task") -> None:
    # Downloads still running after a fail-fast join finish in the background
    if not task.cancelled():
        task.exception()


async def receive_message(
    queue: QueueProto,
    params: SQSParams,
    config: Any,
    logger=None,
) -> SQSResponse:
    """Receive up to N messages, replacing pointer bodies with their S3 payloads."""
    if not isinstance(params, dict) or not params.get("QueueUrl"):
        raise ValidationError("receive_message: QueueUrl required")
    log = (logger or _logger).bind(queue_url=params["QueueUrl"])

    try:
        response = await queue.receive_message(with_reserved_attribute(params))
    except Exception as e:
        raise QueueOperationError("receive_message", params.get("QueueUrl"), e) from e

    messages: List[Dict[str, Any]] = list(response.get("Messages") or [])
    pointer_idx = [i for i, m in enumerate(messages) if codec.is_pointer_message(m)]
    if not pointer_idx:
        return response

    if not config.is_large_payload_support_enabled():
        raise ExtensionDisabledError(
            f"receive_message: {len(pointer_idx)} message(s) refer to S3 objects "
            "but large payload support is disabled"
        )

    tasks = [asyncio.ensure_future(_download(config.store, messages[i])) for i in pointer_idx]
    for t in tasks:
        t.add_done_callback(_consume_exception)
    try:
        bodies = await asyncio.gather(*tasks)
    except StoreDownloadError as e:
        log.error("Payload download failed; batch not delivered", {
            "bucket": e.bucket, "key": e.key, "error": str(e),
        })
        raise

    for i, body in zip(pointer_idx, bodies):
        messages[i] = rehydrate(messages[i], body)

    log.info(f"Rehydrated {len(pointer_idx)} message(s) from S3", {"batch_size": len(messages)})
    return {**response, "Messages": messages}


__all__ = ["receive_message", "with_reserved_attribute", "rehydrate"]
