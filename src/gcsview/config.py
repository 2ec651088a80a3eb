import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict

from .exceptions import ConfigError

DEFAULT_TIMEOUT_MS = 30000

_FIELD_ALIASES = {
    "service_url": "serviceUrl",
    "bucket_name": "bucketName",
    "access_id": "accessId",
    "secret": "secret",
    "base_path": "basePath",
    "timeout": "timeout",
}
_REQUIRED = ("service_url", "bucket_name", "access_id", "secret")


@dataclass(frozen=True)
class StorageConfig:
    service_url: str
    bucket_name: str
    access_id: str
    secret: str = field(repr=False)
    base_path: str = ""
    timeout: int = DEFAULT_TIMEOUT_MS

    def normalized(self) -> "StorageConfig":
        if self.service_url.endswith("/"):
            return self
        return replace(self, service_url=self.service_url + "/")

    @property
    def root_prefix(self) -> str | None:
        if not self.base_path:
            return None
        return self.base_path + "/"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageConfig":
        """
        Build a config from the payload the UI sends. Both the camelCase keys
        (`serviceUrl`, `bucketName`, ...) and the snake_case field names are
        accepted.
        """
        values = {}
        for name, alias in _FIELD_ALIASES.items():
            value = data.get(alias, data.get(name))
            if value is None:
                continue
            values[name] = value

        for name in _REQUIRED:
            if not values.get(name):
                raise ConfigError(name, "missing")

        if "timeout" in values:
            try:
                values["timeout"] = int(values["timeout"])
            except (TypeError, ValueError):
                raise ConfigError("timeout", f"not an integer: {values['timeout']!r}")
            if values["timeout"] <= 0:
                raise ConfigError("timeout", "must be positive")

        return cls(**values)

    @classmethod
    def from_env(cls, prefix: str = "GCSVIEW_") -> "StorageConfig":
        data = {}
        for name in _FIELD_ALIASES:
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                data[name] = value.strip()

        return cls.from_dict(data)
