"""
SQS queue adapter.

Modular design:
- SQSQueue class: async facade over a boto3 SQS client with retries
- Requests/responses keep the boto3 dict shapes untouched
- Easy to test: inject a stubbed boto3 client (botocore Stubber)
- Blocking boto3 calls run on worker threads via asyncio.to_thread
"""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .constants import RETRIABLE_ERROR_CODES
from .logging import get_logger


RETRY_ATTEMPTS = 5


# ============================================================================
# SQS QUEUE CLASS
# ============================================================================

class SQSQueue:
    """
    Async SQS adapter implementing contracts.QueueProto.

    Each call takes the same keyword dict boto3 takes (QueueUrl, MessageBody,
    Entries, ...) and returns the raw boto3 response.
    """

    def __init__(
        self,
        sqs_client=None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        max_retries: int = RETRY_ATTEMPTS,
        logger=None,
    ):
        """
        Args:
            sqs_client: boto3 SQS client (if None, creates default)
            region: AWS region (used if creating default client)
            endpoint_url: custom endpoint (LocalStack/ElasticMQ)
            max_retries: Number of attempts for transient errors
            logger: StructuredLogger instance (if None, creates default)
        """
        self._sqs = sqs_client
        self._region = region
        self._endpoint_url = endpoint_url
        self.max_retries = max(1, int(max_retries))
        self.logger = logger or get_logger("io_sqs")

    @property
    def sqs(self):
        """Lazy-load SQS client with long-polling config."""
        if self._sqs is None:
            self._sqs = boto3.client(
                "sqs",
                region_name=self._region,
                endpoint_url=self._endpoint_url,
                config=Config(
                    retries={"max_attempts": 6},
                    read_timeout=70,     # > 20s long-poll
                    connect_timeout=3,
                ),
            )
        return self._sqs

    # ------------------------------------------------------------------------
    # QUEUE OPERATIONS
    # ------------------------------------------------------------------------

    async def send_message(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.debug("Sending message", {"queue_url": params.get("QueueUrl")})
        resp = await self._call(self.sqs.send_message, params)
        self.logger.info("Sent message", {
            "queue_url": params.get("QueueUrl"),
            "message_id": resp.get("MessageId", ""),
        })
        return resp

    async def receive_message(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.debug("Receiving messages", {
            "queue_url": params.get("QueueUrl"),
            "max_messages": params.get("MaxNumberOfMessages", 1),
        })
        resp = await self._call(self.sqs.receive_message, params)
        messages = resp.get("Messages", [])
        if messages:
            self.logger.info(f"Received {len(messages)} message(s)", {"queue_url": params.get("QueueUrl")})
        return resp

    async def delete_message(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call(self.sqs.delete_message, params)

    async def delete_message_batch(self, params: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._call(self.sqs.delete_message_batch, params)
        for f in resp.get("Failed", []):
            self.logger.warning("Batch delete entry failed", {
                "queue_url": params.get("QueueUrl"),
                "entry_id": f.get("Id"),
                "code": f.get("Code"),
                "message": f.get("Message"),
            })
        return resp

    # ------------------------------------------------------------------------
    # PRIVATE HELPERS
    # ------------------------------------------------------------------------

    async def _call(self, func: Callable, params: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._retry, func, **params)

    def _retry(self, func: Callable, *args, **kwargs):
        """Retry a boto3 call with exponential backoff on retriable errors."""
        delay = 0.25
        for attempt in range(1, self.max_retries + 1):
            try:
                return func(*args, **kwargs)
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code", "")
                if code in RETRIABLE_ERROR_CODES and attempt < self.max_retries:
                    self.logger.warning(f"SQS retry {attempt}/{self.max_retries}", {"code": code})
                    time.sleep(delay + random.uniform(0, 0.25))
                    delay = min(delay * 2, 5.0)
                    continue
                raise
            except BotoCoreError:
                if attempt < self.max_retries:
                    time.sleep(delay + random.uniform(0, 0.25))
                    delay = min(delay * 2, 5.0)
                    continue
                raise
        raise RuntimeError(f"Failed after {self.max_retries} attempts")


__all__ = ["SQSQueue"]
