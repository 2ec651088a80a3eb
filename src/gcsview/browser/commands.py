from typing import Any, Callable, Dict

import aiofiles
from httpx import AsyncBaseTransport
from structlog import get_logger

from gcsview.config import StorageConfig
from gcsview.enums import ProgressKind
from gcsview.exceptions import GcsviewError, NotConnectedError
from gcsview.gcs.client import GcsClient
from gcsview.gcs.models import ListResult
from gcsview.gcs.utils import is_folder_key

from .models import ConnectResult, ProgressEvent
from .utils import get_display_name, get_duplicate_key, guess_content_type

logger = get_logger()

ProgressListener = Callable[[ProgressEvent], None]


class BrowserCommands:
    """
    The command surface the file browser UI drives. One instance holds at
    most one connected `GcsClient`; every command besides `connect` requires
    it.
    """

    def __init__(
        self,
        *,
        on_progress: ProgressListener | None = None,
        transport: AsyncBaseTransport | None = None,
    ):
        self.on_progress = on_progress
        self._transport = transport
        self._client: GcsClient | None = None

    @property
    def client(self) -> GcsClient:
        if self._client is None:
            raise NotConnectedError()
        return self._client

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _emit(self, kind: ProgressKind, key: str) -> Callable[[int, int], None]:
        def report(loaded: int, total: int):
            if self.on_progress is None:
                return
            self.on_progress(
                ProgressEvent(
                    kind=kind,
                    key=key,
                    name=get_display_name(key),
                    loaded=loaded,
                    total=total,
                )
            )

        return report

    async def connect(self, config: StorageConfig | Dict[str, Any]) -> ConnectResult:
        """
        Build a client and prove the credentials by listing the base path.
        Failures are reported in the result, never raised.
        """
        self._client = None
        try:
            if not isinstance(config, StorageConfig):
                config = StorageConfig.from_dict(config)
            client = GcsClient(config, transport=self._transport)
            await client.list_folders(config.root_prefix)
        except GcsviewError as e:
            logger.warning("Connection failed", error=str(e))
            return ConnectResult(success=False, error=str(e))

        self._client = client
        logger.info(
            "Connected",
            service_url=client.config.service_url,
            bucket=client.config.bucket_name,
        )
        return ConnectResult(success=True)

    async def list(self, prefix: str = "") -> ListResult:
        return await self.client.list_folders(prefix or None)

    async def upload(self, key: str, file_path: str):
        client = self.client
        async with aiofiles.open(file_path, "rb") as f:
            data = await f.read()

        await client.upload_item_with_progress(
            key,
            data,
            self._emit(ProgressKind.UPLOAD, key),
            content_type=guess_content_type(file_path),
        )
        logger.info("Uploaded", key=key, size=len(data))

    async def download(self, key: str, dest_path: str):
        data = await self.client.download_item_with_progress(
            key, self._emit(ProgressKind.DOWNLOAD, key)
        )
        async with aiofiles.open(dest_path, "wb") as f:
            await f.write(data)

        logger.info("Downloaded", key=key, size=len(data))

    async def delete(self, key: str):
        if is_folder_key(key):
            await self.client.delete_folder(key)
        else:
            await self.client.delete_item(key)

    async def move(self, source_key: str, dest_key: str):
        await self.client.move_item(source_key, dest_key)

    async def copy(self, source_key: str, dest_key: str):
        if is_folder_key(source_key):
            await self.client.copy_folder(source_key, dest_key)
        else:
            await self.client.copy_item(source_key, dest_key)

    async def duplicate(self, key: str) -> str:
        dest_key = get_duplicate_key(key)
        await self.copy(key, dest_key)
        return dest_key

    async def exists(self, key: str) -> bool:
        return await self.client.file_exists(key)

    async def create_folder(self, key: str):
        await self.client.create_folder(key)
