from .browser.commands import BrowserCommands
from .config import StorageConfig
from .core import StorageClient
from .gcs.client import GcsClient

__all__ = ["BrowserCommands", "GcsClient", "StorageClient", "StorageConfig"]
