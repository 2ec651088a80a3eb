import base64
import hashlib
import hmac
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Dict


def get_http_date(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return format_datetime(now.astimezone(timezone.utc), usegmt=True)


def canonicalize_extension_headers(headers: Dict[str, str] | None) -> str | None:
    if not headers:
        return None

    lines = sorted((k.lower(), v) for k, v in headers.items())
    return "\n".join(f"{k}:{v}" for k, v in lines)


def get_string_to_sign(
    *,
    method: str,
    canonical_resource: str,
    content_hash: str = "",
    content_type: str = "",
    date: str,
    extension_headers: str | None = None,
):
    parts = [method, content_hash, content_type, date]
    # The extension line is left out entirely, not sent empty, when absent
    if extension_headers:
        parts.append(extension_headers)
    parts.append(canonical_resource)

    return "\n".join(parts)


def get_signature(*, secret: str, string_to_sign: str):
    digest = hmac.new(
        secret.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha1
    ).digest()

    return base64.b64encode(digest).decode("ascii")
