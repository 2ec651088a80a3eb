class GcsviewError(Exception):
    pass


class ConfigError(GcsviewError):
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason

    def __str__(self):
        return f"Invalid config field '{self.field}': {self.reason}"


class NotConnectedError(GcsviewError):
    def __str__(self):
        return "Not connected"


class RequestError(GcsviewError):
    def __init__(self, method: str, resource: str, reason: str):
        self.method = method
        self.resource = resource
        self.reason = reason

    def __str__(self):
        return f"Request {self.method} {self.resource} failed: {self.reason}"


class RequestTimeoutError(RequestError):
    def __init__(self, method: str, resource: str, timeout: int):
        super().__init__(method, resource, f"timed out after {timeout}ms")
        self.timeout = timeout


class HttpError(RequestError):
    def __init__(
        self, method: str, resource: str, status: int, reason: str, context: str
    ):
        super().__init__(method, resource, reason)
        self.status = status
        self.context = context

    def __str__(self):
        return f"HTTP {self.status}: {self.reason}\n{self.context}"


class TruncatedListingError(GcsviewError):
    def __init__(self, prefix: str | None):
        self.prefix = prefix

    def __str__(self):
        return (
            "Response is truncated but no NextContinuationToken was provided. "
            f"Prefix: {self.prefix!r}"
        )
