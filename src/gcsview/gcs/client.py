from typing import AsyncIterator, Callable, List

from bs4 import BeautifulSoup, Tag
from structlog import get_logger

from gcsview.core import StorageClient
from gcsview.enums import Method
from gcsview.exceptions import GcsviewError, TruncatedListingError

from .models import GcsObject, ListResult
from .utils import encode_component, is_folder_key, parse_size, remap_key

logger = get_logger()

MAX_PAGE_SIZE = 1000
DEFAULT_CONTENT_TYPE = "application/octet-stream"
FOLDER_CONTENT_TYPE = "application/x-directory"
UPLOAD_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int, int], None]


def _child_text(el: Tag, name: str) -> str | None:
    child = el.find(name, recursive=False)
    if not isinstance(child, Tag):
        return None
    return child.text


def _parse_objects(root: Tag) -> List[GcsObject]:
    gcs_objects = []
    for content_el in root.find_all("Contents", recursive=False):
        gcs_object = GcsObject(
            key=_child_text(content_el, "Key") or "",
            size=parse_size(_child_text(content_el, "Size")),
            last_modified=_child_text(content_el, "LastModified") or "",
        )
        gcs_objects.append(gcs_object)

    return gcs_objects


class GcsClient(StorageClient):
    async def _list_page(self, params: List[str]) -> Tag | None:
        query = "&".join(params)
        res = await self.send_request(
            Method.GET.value, f"{self.bucket_url}?{query}", self.bucket_resource
        )
        soup = BeautifulSoup(res.content, "xml")
        root = soup.find("ListBucketResult")
        if not isinstance(root, Tag):
            return None
        return root

    async def list_items(
        self, prefix: str | None = None, page_size: int = MAX_PAGE_SIZE
    ) -> List[GcsObject]:
        """
        List every object under `prefix`, following continuation tokens until
        the listing is no longer truncated.
        """
        if page_size <= 0 or page_size > MAX_PAGE_SIZE:
            page_size = MAX_PAGE_SIZE

        gcs_objects = []
        continuation_token = None
        pages = 0

        while True:
            params = ["list-type=2", f"max-keys={page_size}"]
            if prefix:
                params.append(f"prefix={encode_component(prefix)}")
            if continuation_token:
                params.append(
                    f"continuation-token={encode_component(continuation_token)}"
                )

            root = await self._list_page(params)
            if root is None:
                break
            pages += 1
            gcs_objects.extend(_parse_objects(root))

            is_truncated = (_child_text(root, "IsTruncated") or "").strip()
            if is_truncated.lower() != "true":
                break

            continuation_token = _child_text(root, "NextContinuationToken")
            if not continuation_token:
                raise TruncatedListingError(prefix)

        logger.debug(
            "Listed items", prefix=prefix, pages=pages, count=len(gcs_objects)
        )

        return gcs_objects

    async def list_folders(self, prefix: str | None = None) -> ListResult:
        """
        List the objects and sub-folders directly under `prefix`.

        Only the first page is fetched, so a folder holding more than 1000
        direct entries comes back incomplete.
        """
        params = ["list-type=2", f"max-keys={MAX_PAGE_SIZE}", "delimiter=/"]
        if prefix:
            params.append(f"prefix={encode_component(prefix)}")

        root = await self._list_page(params)
        if root is None:
            return ListResult()

        # The folder's own placeholder marker isn't content
        gcs_objects = [o for o in _parse_objects(root) if o.key != prefix]

        folders = []
        for prefix_el in root.find_all("CommonPrefixes", recursive=False):
            folder = _child_text(prefix_el, "Prefix")
            if folder:
                folders.append(folder)

        return ListResult(objects=gcs_objects, folders=folders)

    async def upload_item(
        self, key: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE
    ):
        await self.send_request(
            Method.PUT.value,
            self.object_url(key),
            self.object_resource(key),
            data,
            content_type or DEFAULT_CONTENT_TYPE,
        )

    async def upload_item_with_progress(
        self,
        key: str,
        data: bytes,
        on_progress: ProgressCallback,
        content_type: str = DEFAULT_CONTENT_TYPE,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ):
        total = len(data)

        async def chunks() -> AsyncIterator[bytes]:
            for start in range(0, total, chunk_size):
                chunk = data[start : start + chunk_size]
                yield chunk
                on_progress(start + len(chunk), total)

        await self.send_request(
            Method.PUT.value,
            self.object_url(key),
            self.object_resource(key),
            chunks() if total else data,
            content_type or DEFAULT_CONTENT_TYPE,
            content_length=total,
        )
        if not total:
            on_progress(0, 0)

    async def download_item(self, key: str) -> bytes:
        res = await self.send_request(
            Method.GET.value, self.object_url(key), self.object_resource(key)
        )
        return res.content

    async def download_item_with_progress(
        self, key: str, on_progress: ProgressCallback
    ) -> bytes:
        """
        Download `key`, calling `on_progress(loaded, total)` after every chunk.

        Without a usable `Content-Length` the body is read in one go and
        `on_progress` is called exactly once with `(size, size)`.
        """
        async with self.open_request(
            Method.GET.value, self.object_url(key), self.object_resource(key)
        ) as res:
            total = parse_size(res.headers.get("content-length"))
            if not total:
                content = await res.aread()
                on_progress(len(content), len(content))
                return content

            chunks = []
            loaded = 0
            async for chunk in res.aiter_bytes():
                chunks.append(chunk)
                loaded += len(chunk)
                on_progress(loaded, total)

        return b"".join(chunks)

    async def delete_item(self, key: str):
        await self.send_request(
            Method.DELETE.value, self.object_url(key), self.object_resource(key)
        )

    async def copy_item(self, source_key: str, dest_key: str):
        """
        Server-side copy, no object data passes through the client.
        """
        await self.send_request(
            Method.PUT.value,
            self.object_url(dest_key),
            self.object_resource(dest_key),
            extension_headers={"x-amz-copy-source": self.object_resource(source_key)},
        )

    async def copy_folder(self, source_key: str, dest_key: str):
        gcs_objects = await self.list_items(source_key)
        for gcs_object in gcs_objects:
            new_key = remap_key(
                gcs_object.key, source_prefix=source_key, dest_prefix=dest_key
            )
            await self.copy_item(gcs_object.key, new_key)

        try:
            await self.copy_item(source_key, dest_key)
        except GcsviewError as e:
            logger.debug("Folder marker not copied", key=source_key, error=str(e))

        logger.info(
            "Copied folder", source=source_key, dest=dest_key, count=len(gcs_objects)
        )

    async def move_item(self, source_key: str, dest_key: str):
        """
        Copy then delete. Not atomic: a failure part way through a folder
        leaves the objects handled so far at their new location.
        """
        if not is_folder_key(source_key):
            await self.copy_item(source_key, dest_key)
            await self.delete_item(source_key)
            return

        gcs_objects = await self.list_items(source_key)
        for gcs_object in gcs_objects:
            new_key = remap_key(
                gcs_object.key, source_prefix=source_key, dest_prefix=dest_key
            )
            await self.copy_item(gcs_object.key, new_key)
            await self.delete_item(gcs_object.key)

        try:
            await self.copy_item(source_key, dest_key)
            await self.delete_item(source_key)
        except GcsviewError as e:
            logger.debug("Folder marker not moved", key=source_key, error=str(e))

        logger.info(
            "Moved folder", source=source_key, dest=dest_key, count=len(gcs_objects)
        )

    async def delete_folder(self, prefix: str):
        gcs_objects = await self.list_items(prefix)
        for gcs_object in gcs_objects:
            await self.delete_item(gcs_object.key)
        # Covered by the listing when the marker exists; 404 is fine otherwise
        if prefix not in {o.key for o in gcs_objects}:
            await self.delete_item(prefix)

        logger.info("Deleted folder", prefix=prefix, count=len(gcs_objects))

    async def create_folder(self, key: str):
        if not is_folder_key(key):
            raise ValueError(f"Folder key must end with '/': {key!r}")
        await self.upload_item(key, b"", FOLDER_CONTENT_TYPE)

    async def file_exists(self, key: str) -> bool:
        try:
            res = await self.send_request(
                Method.HEAD.value, self.object_url(key), self.object_resource(key)
            )
        except Exception as e:
            logger.debug("Existence check failed", key=key, error=str(e))
            return False

        return res.status_code == 200
