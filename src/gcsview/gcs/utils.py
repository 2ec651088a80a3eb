import urllib.parse as urllib

# Characters encodeURIComponent leaves alone on top of quote()'s unreserved set
_COMPONENT_SAFE = "!~*'()"


def encode_component(value: str) -> str:
    return urllib.quote(value, safe=_COMPONENT_SAFE)


def encode_key(key: str) -> str:
    """
    Percent-encode an object key one path segment at a time, keeping "/" as a
    literal separator. The result is used for both the request URL and the
    canonical resource that gets signed, so the two can never disagree.
    """
    return "/".join(encode_component(segment) for segment in key.split("/"))


def is_folder_key(key: str) -> bool:
    return key.endswith("/")


def remap_key(key: str, *, source_prefix: str, dest_prefix: str) -> str:
    assert key.startswith(source_prefix), f"{key!r} is not under {source_prefix!r}"
    return dest_prefix + key[len(source_prefix) :]


def parse_size(value: str | None) -> int:
    try:
        size = int(value or 0)
    except ValueError:
        return 0
    return max(size, 0)
