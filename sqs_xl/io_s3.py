"""
S3 blob store adapter.

Modular design:
- S3BlobStore class: async put/get/delete by (bucket, key) with retries
- ClientError codes mapped to the package error taxonomy
- Easy to test: inject a stubbed boto3 client (botocore Stubber)
- Blocking boto3 calls run on worker threads via asyncio.to_thread
"""

from __future__ import annotations

import asyncio
import random
import time
from typing import Callable, Optional

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .constants import NOT_FOUND_CODES, RETRIABLE_ERROR_CODES
from .errors import BlobNotFoundError
from .logging import get_logger


# ============================================================================
# S3 BLOB STORE CLASS
# ============================================================================

class S3BlobStore:
    """
    Async S3 adapter implementing contracts.BlobStoreProto.

    Only the three calls the extended client needs: put, get and delete.
    Missing objects surface as BlobNotFoundError (a FileNotFoundError).
    """

    def __init__(
        self,
        s3_client=None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        max_retries: int = 3,
        logger=None,
    ):
        """
        Args:
            s3_client: boto3 S3 client (if None, creates default)
            region: AWS region (used if creating default client)
            endpoint_url: custom endpoint (MinIO/LocalStack)
            max_retries: Number of attempts for transient errors
            logger: StructuredLogger instance (if None, creates default)
        """
        self._s3 = s3_client
        self._region = region
        self._endpoint_url = endpoint_url
        self.max_retries = max(1, int(max_retries))
        self.logger = logger or get_logger("io_s3")
        self._network_exceptions = (
            EndpointConnectionError, ReadTimeoutError,
            ConnectionClosedError, ConnectTimeoutError,
        )

    @property
    def s3(self):
        """Lazy-load S3 client."""
        if self._s3 is None:
            import boto3
            self._s3 = boto3.client("s3", region_name=self._region, endpoint_url=self._endpoint_url)
        return self._s3

    # ------------------------------------------------------------------------
    # BLOB OPERATIONS
    # ------------------------------------------------------------------------

    async def put_object(self, bucket: str, key: str, body: bytes) -> None:
        if not isinstance(body, (bytes, bytearray)):
            raise TypeError("put_object() expects bytes or bytearray")
        await asyncio.to_thread(self._put, bucket, key, bytes(body))

    async def get_object(self, bucket: str, key: str) -> bytes:
        return await asyncio.to_thread(self._get, bucket, key)

    async def delete_object(self, bucket: str, key: str) -> None:
        await asyncio.to_thread(self._delete, bucket, key)

    # ------------------------------------------------------------------------
    # BLOCKING IMPLEMENTATIONS (run on worker threads)
    # ------------------------------------------------------------------------

    def _put(self, bucket: str, key: str, body: bytes) -> None:
        uri = f"s3://{bucket}/{key}"
        self.logger.debug("Uploading object", {"uri": uri, "size": len(body)})
        self._retry("PUT", uri, lambda: self.s3.put_object(Bucket=bucket, Key=key, Body=body))
        self.logger.info("Uploaded object", {"uri": uri, "size": len(body)})

    def _get(self, bucket: str, key: str) -> bytes:
        uri = f"s3://{bucket}/{key}"
        self.logger.debug("Downloading object", {"uri": uri})

        def fetch() -> bytes:
            resp = self.s3.get_object(Bucket=bucket, Key=key)
            stream = resp["Body"]
            try:
                return stream.read()
            finally:
                stream.close()

        data = self._retry("GET", uri, fetch)
        self.logger.info("Downloaded object", {"uri": uri, "size": len(data)})
        return data

    def _delete(self, bucket: str, key: str) -> None:
        uri = f"s3://{bucket}/{key}"
        self.logger.debug("Deleting object", {"uri": uri})
        self._retry("DELETE", uri, lambda: self.s3.delete_object(Bucket=bucket, Key=key))
        self.logger.info("Deleted object", {"uri": uri})

    # ------------------------------------------------------------------------
    # PRIVATE HELPERS
    # ------------------------------------------------------------------------

    def _retry(self, op: str, uri: str, func: Callable):
        for attempt in range(self.max_retries):
            try:
                return func()
            except ClientError as e:
                if not self._should_retry(e, attempt):
                    self.logger.debug(f"{op} failed: {uri}", {"error": str(e), "attempt": attempt + 1})
                    self._raise_mapped_error(e, uri)
                self.logger.warning(f"{op} retry {attempt + 1}/{self.max_retries}", {"uri": uri})
                time.sleep(self._backoff(attempt))
            except self._network_exceptions:
                if attempt < self.max_retries - 1:
                    self.logger.warning(f"Network error on {op} (retry {attempt + 1})", {"uri": uri})
                    time.sleep(self._backoff(attempt))
                    continue
                raise

        raise RuntimeError(f"Failed to {op} after {self.max_retries} attempts: {uri}")

    def _should_retry(self, error: ClientError, attempt: int) -> bool:
        """Check if error is transient and we have retries left."""
        code = error.response.get("Error", {}).get("Code", "")
        return code in RETRIABLE_ERROR_CODES and attempt < self.max_retries - 1

    @staticmethod
    def _raise_mapped_error(error: ClientError, uri: str) -> None:
        """Map ClientError to package / builtin exceptions."""
        code = error.response.get("Error", {}).get("Code", "")
        bucket, _, key = uri[len("s3://"):].partition("/")

        if code in NOT_FOUND_CODES:
            raise BlobNotFoundError(f"Object not found: {uri}", bucket=bucket, key=key) from error
        if code == "NoSuchBucket":
            raise BlobNotFoundError(f"Bucket not found: {uri}", bucket=bucket, key=key) from error
        if code in ("AccessDenied", "403"):
            raise PermissionError(f"Access denied: {uri}") from error

        raise error

    @staticmethod
    def _backoff(attempt: int) -> float:
        """Exponential backoff with jitter."""
        return (2 ** attempt) * 0.25 + random.uniform(0, 0.25)


__all__ = ["S3BlobStore"]
