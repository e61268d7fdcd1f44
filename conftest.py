"""Pytest configuration: in-memory SQS/S3 fakes and Hypothesis profiles."""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional, Set

import pytest
from hypothesis import settings

from sqs_xl import ExtendedConfig, ExtendedSQSClient, WarningCollector
from sqs_xl.errors import BlobNotFoundError

settings.register_profile("ci", max_examples=200)
settings.register_profile("dev", max_examples=50)
settings.load_profile("dev")

QUEUE_URL = "Q1"
BUCKET = "bucket"


class FakeQueue:
    """In-memory stand-in for SQSQueue; records every call."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.messages: List[Dict[str, Any]] = []
        self.fail_batch_ids: Set[str] = set()
        self.error: Optional[Exception] = None
        self._ids = itertools.count(1)

    def _record(self, op: str, params: Dict[str, Any]) -> None:
        self.calls.append((op, params))
        if self.error is not None:
            raise self.error

    def calls_for(self, op: str) -> List[Dict[str, Any]]:
        return [p for name, p in self.calls if name == op]

    async def send_message(self, params):
        self._record("send_message", params)
        n = next(self._ids)
        msg = {
            "MessageId": f"m{n}",
            "ReceiptHandle": f"rh-{n}",
            "Body": params["MessageBody"],
        }
        if params.get("MessageAttributes"):
            msg["MessageAttributes"] = dict(params["MessageAttributes"])
        self.messages.append(msg)
        return {"MessageId": msg["MessageId"]}

    async def receive_message(self, params):
        self._record("receive_message", params)
        limit = params.get("MaxNumberOfMessages", 10)
        batch = [dict(m) for m in self.messages[:limit]]
        return {"Messages": batch} if batch else {}

    async def delete_message(self, params):
        self._record("delete_message", params)
        self.messages = [m for m in self.messages if m["ReceiptHandle"] != params["ReceiptHandle"]]
        return {}

    async def delete_message_batch(self, params):
        self._record("delete_message_batch", params)
        ok, failed = [], []
        for entry in params["Entries"]:
            if entry["Id"] in self.fail_batch_ids:
                failed.append({"Id": entry["Id"], "SenderFault": True, "Code": "ReceiptHandleIsInvalid"})
            else:
                ok.append({"Id": entry["Id"]})
        return {"Successful": ok, "Failed": failed}


class FakeStore:
    """In-memory stand-in for S3BlobStore."""

    def __init__(self):
        self.objects: Dict[tuple, bytes] = {}
        self.calls: List[tuple] = []
        self.put_error: Optional[Exception] = None
        self.get_errors: Dict[str, Exception] = {}
        self.delete_errors: Dict[str, Exception] = {}

    def __bool__(self):
        return True

    def calls_for(self, op: str) -> List[tuple]:
        return [c[1:] for c in self.calls if c[0] == op]

    async def put_object(self, bucket, key, body):
        self.calls.append(("put", bucket, key, body))
        if self.put_error is not None:
            raise self.put_error
        self.objects[(bucket, key)] = bytes(body)

    async def get_object(self, bucket, key):
        self.calls.append(("get", bucket, key))
        if key in self.get_errors:
            raise self.get_errors[key]
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise BlobNotFoundError(f"Object not found: s3://{bucket}/{key}", bucket=bucket, key=key)

    async def delete_object(self, bucket, key):
        self.calls.append(("delete", bucket, key))
        if key in self.delete_errors:
            raise self.delete_errors[key]
        if (bucket, key) not in self.objects:
            raise BlobNotFoundError(f"Object not found: s3://{bucket}/{key}", bucket=bucket, key=key)
        del self.objects[(bucket, key)]


@pytest.fixture
def queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def config(store) -> ExtendedConfig:
    cfg = ExtendedConfig()
    cfg.enable_large_payload_support(store, BUCKET)
    return cfg


@pytest.fixture
def warnings_sink() -> WarningCollector:
    return WarningCollector()


@pytest.fixture
def client(queue, config, warnings_sink) -> ExtendedSQSClient:
    return ExtendedSQSClient(queue, config, on_cleanup_warning=warnings_sink)
