from dataclasses import replace
from typing import Callable, List

import httpx
import pytest

from gcsview.config import StorageConfig
from gcsview.gcs.client import GcsClient


class RecordingTransport(httpx.MockTransport):
    def __init__(self, handler: Callable | None = None):
        self.requests: List[httpx.Request] = []
        self._respond = handler or (lambda request: httpx.Response(200))
        super().__init__(self._record)

    def _record(self, request: httpx.Request):
        self.requests.append(request)
        return self._respond(request)

    @property
    def methods(self) -> List[str]:
        return [r.method for r in self.requests]


def list_response(
    keys=(),
    *,
    prefixes=(),
    truncated: bool = False,
    token: str | None = None,
    sizes=None,
) -> httpx.Response:
    sizes = sizes or {}
    contents = "".join(
        f"<Contents><Key>{key}</Key><Size>{sizes.get(key, 10)}</Size>"
        "<LastModified>2026-01-01T00:00:00.000Z</LastModified></Contents>"
        for key in keys
    )
    common = "".join(
        f"<CommonPrefixes><Prefix>{p}</Prefix></CommonPrefixes>" for p in prefixes
    )
    next_token = (
        f"<NextContinuationToken>{token}</NextContinuationToken>" if token else ""
    )
    body = (
        "<?xml version='1.0' encoding='UTF-8'?>"
        '<ListBucketResult xmlns="http://doc.s3.amazonaws.com/2006-03-01">'
        "<Name>test-bucket</Name>"
        f"<IsTruncated>{'true' if truncated else 'false'}</IsTruncated>"
        f"{contents}{common}{next_token}"
        "</ListBucketResult>"
    )
    return httpx.Response(200, content=body.encode())


@pytest.fixture
def config() -> StorageConfig:
    return StorageConfig(
        service_url="https://storage.example.com/",
        bucket_name="test-bucket",
        access_id="TESTID",
        secret="TESTSECRET",
        timeout=30000,
    )


@pytest.fixture
def make_client(config):
    def make(handler: Callable | None = None, **overrides):
        transport = RecordingTransport(handler)
        client = GcsClient(
            replace(config, **overrides), transport=transport
        )
        return client, transport

    return make
