from enum import Enum


class Method(Enum):
    GET = "GET"
    PUT = "PUT"
    HEAD = "HEAD"
    DELETE = "DELETE"


class ProgressKind(Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
