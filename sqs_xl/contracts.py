# sqs_xl/contracts.py
"""
Collaborator contracts.
- No business logic here.
- Just the duck-typed interfaces the send/receive/delete paths rely on.

The boto3-backed adapters (io_sqs.SQSQueue, io_s3.S3BlobStore) implement them;
tests plug in in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

# ---------------------------
# Public type aliases
# ---------------------------

SQSParams = Dict[str, Any]    # boto3-shaped request dict (QueueUrl, MessageBody, ...)
SQSResponse = Dict[str, Any]  # boto3-shaped response dict


# ---------------------------
# IO & Logger protocols (duck-typed)
# ---------------------------

@runtime_checkable
class QueueProto(Protocol):
    """Queue service: the four SQS calls the extended client wraps."""
    async def send_message(self, params: SQSParams) -> SQSResponse: ...
    async def receive_message(self, params: SQSParams) -> SQSResponse: ...
    async def delete_message(self, params: SQSParams) -> SQSResponse: ...
    async def delete_message_batch(self, params: SQSParams) -> SQSResponse: ...


@runtime_checkable
class BlobStoreProto(Protocol):
    """Object store. get/delete raise errors.BlobNotFoundError for missing keys."""
    async def put_object(self, bucket: str, key: str, body: bytes) -> None: ...
    async def get_object(self, bucket: str, key: str) -> bytes: ...
    async def delete_object(self, bucket: str, key: str) -> None: ...


__all__ = ["SQSParams", "SQSResponse", "QueueProto", "BlobStoreProto"]
