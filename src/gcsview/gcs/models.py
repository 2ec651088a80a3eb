from dataclasses import dataclass, field
from typing import List


@dataclass
class GcsObject:
    key: str
    size: int
    last_modified: str


@dataclass
class ListResult:
    objects: List[GcsObject] = field(default_factory=list)
    folders: List[str] = field(default_factory=list)
