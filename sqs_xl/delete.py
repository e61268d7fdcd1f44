"""
Delete path (single + batch).

Order is queue first, S3 second. A message still in the queue with a missing
blob surfaces as a receive error; a blob without a message only leaks
storage. S3 cleanup is best effort: NoSuchKey is ignored, anything else is
reported as a StoreCleanupWarning (logged + optional callback) and never
changes the queue response.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from . import codec
from .codec import DecodedAckToken
from .contracts import BlobStoreProto, QueueProto, SQSParams, SQSResponse
from .errors import (
    BlobNotFoundError,
    ExtensionDisabledError,
    QueueOperationError,
    StoreCleanupWarning,
    ValidationError,
)
from .logging import get_logger

_logger = get_logger("delete")

WarningCallback = Callable[[StoreCleanupWarning], None]


# ============================================================================
# VALIDATION & DECODING
# ============================================================================

def _decode_checked(token: str, config: Any, operation: str) -> DecodedAckToken:
    decoded = codec.decode_ack_token(token)
    if decoded.is_extended and not config.is_large_payload_support_enabled():
        raise ExtensionDisabledError(
            f"{operation}: receipt handle refers to an S3 object but large payload support is disabled"
        )
    return decoded


def validate_delete_params(params: SQSParams) -> None:
    if not isinstance(params, dict) or not params.get("QueueUrl"):
        raise ValidationError("delete_message: QueueUrl required")
    handle = params.get("ReceiptHandle")
    if not isinstance(handle, str) or not handle.strip():
        raise ValidationError("delete_message: ReceiptHandle required")


def validate_delete_batch_params(params: SQSParams) -> None:
    if not isinstance(params, dict) or not params.get("QueueUrl"):
        raise ValidationError("delete_message_batch: QueueUrl required")
    entries = params.get("Entries")
    if not entries or not isinstance(entries, (list, tuple)):
        raise ValidationError("delete_message_batch: Entries required (non-empty list)")
    seen = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError(f"delete_message_batch: entry must be a dict, got {type(entry).__name__}")
        if not entry.get("Id"):
            raise ValidationError("delete_message_batch: every entry needs an Id")
        if entry["Id"] in seen:
            raise ValidationError(f"delete_message_batch: duplicate entry Id {entry['Id']!r}")
        seen.add(entry["Id"])
        handle = entry.get("ReceiptHandle")
        if not isinstance(handle, str) or not handle.strip():
            raise ValidationError(f"delete_message_batch: entry {entry['Id']!r} missing ReceiptHandle")


# ============================================================================
# S3 CLEANUP
# ============================================================================

async def _delete_blob(store: BlobStoreProto, location: codec.StoreLocation) -> None:
    try:
        await store.delete_object(location.container, location.key)
    except BlobNotFoundError:
        pass  # already gone


async def cleanup_blobs(
    store: BlobStoreProto,
    targets: Sequence[Tuple[Optional[str], codec.StoreLocation]],
    log,
    on_warning: Optional[WarningCallback] = None,
) -> List[StoreCleanupWarning]:
    """Delete blobs concurrently; wait for all, collect failures as warnings."""
    if not targets:
        return []

    results = await asyncio.gather(
        *(_delete_blob(store, location) for _, location in targets),
        return_exceptions=True,
    )

    warnings: List[StoreCleanupWarning] = []
    for (entry_id, location), result in zip(targets, results):
        if not isinstance(result, BaseException):
            continue
        if not isinstance(result, Exception):
            raise result  # CancelledError / KeyboardInterrupt
        warning = StoreCleanupWarning(location.container, location.key, result, entry_id)
        warnings.append(warning)
        log.warning("S3 payload cleanup failed; queue delete already succeeded", {
            "bucket": location.container,
            "key": location.key,
            "entry_id": entry_id,
            "error": f"{type(result).__name__}: {result}",
        })
        if on_warning is not None:
            try:
                on_warning(warning)
            except Exception as cb_error:
                log.error("Cleanup warning callback raised", {"error": str(cb_error)})

    deleted = len(targets) - len(warnings)
    if deleted:
        log.info(f"Removed {deleted} S3 payload(s)")
    return warnings


# ============================================================================
# DELETE OPERATIONS
# ============================================================================

async def delete_message(
    queue: QueueProto,
    params: SQSParams,
    config: Any,
    logger=None,
    on_warning: Optional[WarningCallback] = None,
) -> SQSResponse:
    """Delete one message; remove its S3 payload afterwards if it has one."""
    validate_delete_params(params)
    log = (logger or _logger).bind(queue_url=params["QueueUrl"])

    decoded = _decode_checked(params["ReceiptHandle"], config, "delete_message")
    queue_params = {**params, "ReceiptHandle": decoded.original_token}

    try:
        response = await queue.delete_message(queue_params)
    except Exception as e:
        raise QueueOperationError("delete_message", params.get("QueueUrl"), e) from e

    if decoded.is_extended:
        await cleanup_blobs(config.store, [(None, decoded.location)], log, on_warning)
    return response


async def delete_message_batch(
    queue: QueueProto,
    params: SQSParams,
    config: Any,
    logger=None,
    on_warning: Optional[WarningCallback] = None,
) -> SQSResponse:
    """Batch delete; only entries SQS reports as deleted get their payload removed."""
    validate_delete_batch_params(params)
    log = (logger or _logger).bind(queue_url=params["QueueUrl"])

    # Decode everything before touching the queue: no partial deletes
    decoded: Dict[str, DecodedAckToken] = {
        entry["Id"]: _decode_checked(entry["ReceiptHandle"], config, "delete_message_batch")
        for entry in params["Entries"]
    }
    queue_params = {
        **params,
        "Entries": [
            {**entry, "ReceiptHandle": decoded[entry["Id"]].original_token}
            for entry in params["Entries"]
        ],
    }

    try:
        response = await queue.delete_message_batch(queue_params)
    except Exception as e:
        raise QueueOperationError("delete_message_batch", params.get("QueueUrl"), e) from e

    failed_ids = {f.get("Id") for f in response.get("Failed") or []}
    succeeded_ids = {s.get("Id") for s in response.get("Successful") or []}
    targets = [
        (entry_id, d.location)
        for entry_id, d in decoded.items()
        if d.is_extended and entry_id in succeeded_ids and entry_id not in failed_ids
    ]
    skipped = sum(1 for entry_id, d in decoded.items() if d.is_extended and entry_id in failed_ids)
    if skipped:
        log.debug(f"Skipping S3 cleanup for {skipped} entry(ies) SQS failed to delete")

    if targets:
        await cleanup_blobs(config.store, targets, log, on_warning)
    return response


__all__ = [
    "delete_message", "delete_message_batch", "cleanup_blobs",
    "validate_delete_params", "validate_delete_batch_params",
]
