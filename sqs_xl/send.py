"""
Send path: offload oversized bodies to S3, then enqueue a pointer message.

Upload strictly precedes enqueue. If the upload fails nothing is sent, so a
pointer message never exists without its blob.
"""

from __future__ import annotations

from typing import Any

from . import codec
from .constants import RESERVED_ATTRIBUTE_NAME
from .contracts import QueueProto, SQSParams, SQSResponse
from .errors import (
    ExtensionDisabledError,
    QueueOperationError,
    StoreUploadError,
    ValidationError,
)
from .logging import get_logger

_logger = get_logger("send")


def validate_send_params(params: SQSParams) -> None:
    if not isinstance(params, dict):
        raise ValidationError("send_message: params must be a dict")
    body = params.get("MessageBody")
    if not isinstance(body, str) or not body:
        raise ValidationError("send_message: MessageBody required (non-empty string)")
    if not params.get("QueueUrl"):
        raise ValidationError("send_message: QueueUrl required")
    if RESERVED_ATTRIBUTE_NAME in (params.get("MessageAttributes") or {}):
        raise ValidationError(
            f"send_message: message attribute {RESERVED_ATTRIBUTE_NAME!r} is reserved"
        )


def build_pointer_params(params: SQSParams, container: str, key: str) -> SQSParams:
    """Copy of params with the body swapped for an S3 pointer and the size attribute set."""
    size = codec.byte_length(params["MessageBody"])
    attributes = dict(params.get("MessageAttributes") or {})
    attributes[RESERVED_ATTRIBUTE_NAME] = codec.pointer_attribute(size)
    return {
        **params,
        "MessageAttributes": attributes,
        "MessageBody": codec.build_pointer_body(container, key),
    }


async def send_message(
    queue: QueueProto,
    params: SQSParams,
    config: Any,
    logger=None,
) -> SQSResponse:
    """Send one message, moving its body to S3 first when needed."""
    validate_send_params(params)
    log = (logger or _logger).bind(queue_url=params["QueueUrl"])

    if not codec.needs_extension(params["MessageBody"], config):
        return await _enqueue(queue, params)

    if not config.is_large_payload_support_enabled():
        if config.is_always_through_store():
            raise ExtensionDisabledError(
                "send_message: always_through_store is set but large payload support is disabled"
            )
        # Oversized with support off: behave like the plain client (SQS enforces its limit)
        log.debug("Large payload support disabled; sending inline", {
            "size": codec.byte_length(params["MessageBody"]),
        })
        return await _enqueue(queue, params)

    container = config.container_name
    key = codec.compose_store_key(params["QueueUrl"], config)
    body = params["MessageBody"].encode("utf-8")

    try:
        await config.store.put_object(container, key, body)
    except Exception as e:
        log.error("Payload upload failed; message not sent", {"bucket": container, "key": key, "error": str(e)})
        raise StoreUploadError(
            f"send_message: upload to s3://{container}/{key} failed: {e}",
            bucket=container, key=key,
        ) from e

    log.info("Payload offloaded to S3", {"bucket": container, "key": key, "size": len(body)})
    try:
        return await _enqueue(queue, build_pointer_params(params, container, key))
    except QueueOperationError:
        await _discard_orphan(config.store, container, key, log)
        raise


async def _discard_orphan(store: Any, container: str, key: str, log) -> None:
    """Best-effort removal of a blob whose pointer message was never enqueued."""
    try:
        await store.delete_object(container, key)
    except Exception as e:
        log.warning("Could not remove orphaned payload", {"bucket": container, "key": key, "error": str(e)})


async def _enqueue(queue: QueueProto, params: SQSParams) -> SQSResponse:
    try:
        return await queue.send_message(params)
    except Exception as e:
        raise QueueOperationError("send_message", params.get("QueueUrl"), e) from e


__all__ = ["send_message", "validate_send_params", "build_pointer_params"]
