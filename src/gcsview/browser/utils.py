from pathlib import PurePath

from gcsview.gcs.client import DEFAULT_CONTENT_TYPE
from gcsview.gcs.utils import is_folder_key

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "html": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "csv": "text/csv",
    "zip": "application/zip",
    "mp4": "video/mp4",
    "mp3": "audio/mpeg",
}


def guess_content_type(file_path: str) -> str:
    ext = PurePath(file_path).suffix.lstrip(".").lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def get_display_name(key: str) -> str:
    return key.rstrip("/").split("/")[-1]


def get_duplicate_key(key: str) -> str:
    """
    Sibling key for a copy of `key`: `path/photo.jpg` -> `path/photo (copy).jpg`,
    `path/docs/` -> `path/docs (copy)/`. Dotfiles and extensionless names get
    the suffix at the end.
    """
    is_folder = is_folder_key(key)
    parent, _, name = key.rstrip("/").rpartition("/")
    parent = f"{parent}/" if parent else ""

    dot_index = name.rfind(".")
    if not is_folder and dot_index > 0:
        new_name = f"{name[:dot_index]} (copy){name[dot_index:]}"
    else:
        new_name = f"{name} (copy)"

    return parent + new_name + ("/" if is_folder else "")
