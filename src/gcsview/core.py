import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from httpx import AsyncBaseTransport, AsyncClient, HTTPError, Response, Timeout
from httpx import InvalidURL, TimeoutException
from structlog import get_logger

from .auth import (canonicalize_extension_headers, get_http_date,
                   get_signature, get_string_to_sign)
from .config import StorageConfig
from .enums import Method
from .exceptions import HttpError, RequestError, RequestTimeoutError
from .gcs.utils import encode_key

logger = get_logger()

Body = bytes | AsyncIterator[bytes]

# Absence is the expected outcome for these, not a failure
_NOT_FOUND_OK = {Method.DELETE.value, Method.HEAD.value}


class StorageClient:
    def __init__(
        self,
        config: StorageConfig,
        *,
        transport: AsyncBaseTransport | None = None,
    ):
        self.config = config.normalized()
        self._transport = transport

    @property
    def bucket_url(self) -> str:
        return f"{self.config.service_url}{self.config.bucket_name}/"

    @property
    def bucket_resource(self) -> str:
        return f"/{self.config.bucket_name}/"

    def object_url(self, key: str) -> str:
        return f"{self.bucket_url}{encode_key(key)}"

    def object_resource(self, key: str) -> str:
        return f"{self.bucket_resource}{encode_key(key)}"

    def sign_request(
        self,
        method: str,
        canonical_resource: str,
        content_hash: str = "",
        content_type: str = "",
        date: str | None = None,
        extension_headers: str | None = None,
    ) -> str:
        """
        Build an `Authorization` value of the form `AWS <access-id>:<signature>`.

        `extension_headers` is the canonicalized block (see
        `canonicalize_extension_headers`). When `date` is omitted the current
        time is used, in which case the caller can't send a matching `Date`
        header, so `send_request` always passes one.
        """
        string_to_sign = get_string_to_sign(
            method=method,
            canonical_resource=canonical_resource,
            content_hash=content_hash,
            content_type=content_type,
            date=date or get_http_date(),
            extension_headers=extension_headers,
        )
        signature = get_signature(
            secret=self.config.secret, string_to_sign=string_to_sign
        )

        return f"AWS {self.config.access_id}:{signature}"

    def _build_headers(
        self,
        *,
        method: str,
        canonical_resource: str,
        body: Body | None,
        content_type: str,
        extension_headers: Dict[str, str] | None,
    ) -> Dict[str, str]:
        date = get_http_date()
        if body is None:
            content_type = ""

        authorization = self.sign_request(
            method,
            canonical_resource,
            content_type=content_type,
            date=date,
            extension_headers=canonicalize_extension_headers(extension_headers),
        )

        headers = {"Authorization": authorization, "Date": date}
        if extension_headers:
            headers.update(extension_headers)
        if content_type:
            headers["Content-Type"] = content_type

        return headers

    @asynccontextmanager
    async def open_request(
        self,
        method: str,
        url: str,
        canonical_resource: str,
        body: Body | None = None,
        content_type: str = "",
        extension_headers: Dict[str, str] | None = None,
        *,
        content_length: int | None = None,
    ) -> AsyncIterator[Response]:
        """
        Send one signed request and yield the response with its body unread.

        Every call uses its own client, nothing is pooled between requests.
        The configured timeout covers everything up to the response headers;
        body reads are bounded per read by the same value.
        """
        headers = self._build_headers(
            method=method,
            canonical_resource=canonical_resource,
            body=body,
            content_type=content_type,
            extension_headers=extension_headers,
        )
        if content_length is not None:
            headers["Content-Length"] = str(content_length)

        timeout_seconds = self.config.timeout / 1000

        async with AsyncClient(
            timeout=Timeout(timeout_seconds), transport=self._transport
        ) as client:
            try:
                request = client.build_request(
                    method=method, url=url, headers=headers, content=body
                )
                res = await asyncio.wait_for(
                    client.send(request, stream=True), timeout_seconds
                )
            except (asyncio.TimeoutError, TimeoutException):
                raise RequestTimeoutError(
                    method, canonical_resource, self.config.timeout
                )
            except (HTTPError, InvalidURL) as e:
                raise RequestError(method, canonical_resource, str(e)) from e

            logger.debug(
                "Request sent",
                method=method,
                resource=canonical_resource,
                status_code=res.status_code,
            )

            try:
                await self._check_response(method, canonical_resource, res)
                yield res
            except TimeoutException:
                raise RequestTimeoutError(
                    method, canonical_resource, self.config.timeout
                )
            except HTTPError as e:
                raise RequestError(method, canonical_resource, str(e)) from e
            finally:
                await res.aclose()

    async def send_request(
        self,
        method: str,
        url: str,
        canonical_resource: str,
        body: Body | None = None,
        content_type: str = "",
        extension_headers: Dict[str, str] | None = None,
        *,
        content_length: int | None = None,
    ) -> Response:
        async with self.open_request(
            method,
            url,
            canonical_resource,
            body,
            content_type,
            extension_headers,
            content_length=content_length,
        ) as res:
            await res.aread()

        return res

    async def _check_response(self, method: str, resource: str, res: Response):
        if res.is_success:
            return
        if res.status_code == 404 and method in _NOT_FOUND_OK:
            return

        try:
            await res.aread()
            context = res.text
        except HTTPError:
            context = ""

        logger.error(
            "HttpRequest error",
            method=method,
            resource=resource,
            status_code=res.status_code,
            reason=res.reason_phrase,
        )
        raise HttpError(method, resource, res.status_code, res.reason_phrase, context)
