"""
Extended SQS client.

ExtendedSQSClient wraps any QueueProto (normally io_sqs.SQSQueue) and exposes
the same four calls with the same request/response dicts, offloading large
bodies to S3 transparently:

    store = S3BlobStore()
    config = ExtendedConfig()
    config.enable_large_payload_support(store, "my-bucket")
    client = ExtendedSQSClient(SQSQueue(), config)

    await client.send_message({"QueueUrl": url, "MessageBody": big_body})
    resp = await client.receive_message({"QueueUrl": url})
    for m in resp.get("Messages", []):
        await client.delete_message({"QueueUrl": url, "ReceiptHandle": m["ReceiptHandle"]})

BlockingExtendedSQSClient runs the same async core to completion for callers
without an event loop.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from . import delete as delete_path
from . import receive as receive_path
from . import send as send_path
from .config import ExtendedConfig, ExtendedSettings, load_settings
from .contracts import QueueProto, SQSParams, SQSResponse
from .errors import StoreCleanupWarning
from .io_s3 import S3BlobStore
from .io_sqs import SQSQueue
from .logging import get_logger


class ExtendedSQSClient:
    """
    Same surface as the wrapped queue: send_message, receive_message,
    delete_message, delete_message_batch.

    Args:
        queue: queue adapter (QueueProto)
        config: large-payload policy (default: fresh, disabled)
        logger: StructuredLogger (default: get_logger("client"))
        on_cleanup_warning: called with each StoreCleanupWarning raised
            while removing S3 payloads after a successful delete
    """

    def __init__(
        self,
        queue: QueueProto,
        config: Optional[ExtendedConfig] = None,
        logger=None,
        on_cleanup_warning: Optional[Callable[[StoreCleanupWarning], None]] = None,
    ):
        self.queue = queue
        self.config = config if config is not None else ExtendedConfig()
        self.logger = logger or get_logger("client")
        self.on_cleanup_warning = on_cleanup_warning

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ExtendedSettings] = None,
        *,
        sqs_client=None,
        s3_client=None,
        **kwargs,
    ) -> "ExtendedSQSClient":
        """Build boto3-backed adapters from settings (default: load_settings())."""
        settings = settings or load_settings()
        logger = kwargs.pop("logger", None) or get_logger("client", settings.log_level)
        queue = SQSQueue(sqs_client, region=settings.region, endpoint_url=settings.endpoint_url)
        store = S3BlobStore(s3_client, region=settings.region, endpoint_url=settings.endpoint_url)
        config = ExtendedConfig.from_settings(settings, store if settings.bucket else None)
        logger.info("Extended SQS client configured", {
            "large_payload_support": config.is_large_payload_support_enabled(),
            "bucket": config.container_name,
            "threshold": config.get_size_threshold(),
        })
        return cls(queue, config, logger=logger, **kwargs)

    # ------------------------------------------------------------------------
    # QUEUE SURFACE
    # ------------------------------------------------------------------------

    async def send_message(self, params: SQSParams) -> SQSResponse:
        return await send_path.send_message(self.queue, params, self.config, self.logger)

    async def receive_message(self, params: SQSParams) -> SQSResponse:
        return await receive_path.receive_message(self.queue, params, self.config, self.logger)

    async def delete_message(self, params: SQSParams) -> SQSResponse:
        return await delete_path.delete_message(
            self.queue, params, self.config, self.logger, self.on_cleanup_warning
        )

    async def delete_message_batch(self, params: SQSParams) -> SQSResponse:
        return await delete_path.delete_message_batch(
            self.queue, params, self.config, self.logger, self.on_cleanup_warning
        )

    def __repr__(self) -> str:
        return f"ExtendedSQSClient(queue={type(self.queue).__name__}, config={self.config!r})"


class BlockingExtendedSQSClient:
    """
    Synchronous adapter over ExtendedSQSClient.

    Each call runs in its own event loop (asyncio.run), so it must not be used
    from inside a running loop; await ExtendedSQSClient there instead.
    """

    def __init__(self, client: ExtendedSQSClient):
        self.client = client

    @property
    def config(self) -> ExtendedConfig:
        return self.client.config

    def send_message(self, params: SQSParams) -> SQSResponse:
        return asyncio.run(self.client.send_message(params))

    def receive_message(self, params: SQSParams) -> SQSResponse:
        return asyncio.run(self.client.receive_message(params))

    def delete_message(self, params: SQSParams) -> SQSResponse:
        return asyncio.run(self.client.delete_message(params))

    def delete_message_batch(self, params: SQSParams) -> SQSResponse:
        return asyncio.run(self.client.delete_message_batch(params))


class WarningCollector:
    """on_cleanup_warning sink that keeps every warning (handy for batch jobs and tests)."""

    def __init__(self):
        self.warnings: List[StoreCleanupWarning] = []

    def __call__(self, warning: StoreCleanupWarning) -> None:
        self.warnings.append(warning)


__all__ = ["ExtendedSQSClient", "BlockingExtendedSQSClient", "WarningCollector"]
