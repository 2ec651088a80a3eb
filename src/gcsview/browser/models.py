from dataclasses import dataclass

from gcsview.enums import ProgressKind


@dataclass
class ConnectResult:
    success: bool
    error: str | None = None


@dataclass
class ProgressEvent:
    kind: ProgressKind
    key: str
    name: str
    loaded: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        # Halves round up
        return min(max(int(self.loaded / self.total * 100 + 0.5), 0), 100)
