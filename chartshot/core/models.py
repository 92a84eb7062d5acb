from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple, Union

from .errors import ErrorKind

FORMATS = ("png", "jpg")
WIDTH_RANGE = (800, 3840)
HEIGHT_RANGE = (600, 2160)


@dataclass(frozen=True)
class CaptureOptions:
    width: int = 1920
    height: int = 1080
    format: str = "png"             # "png" | "jpg"
    include_base64: bool = False
    persist: bool = False           # grava no storage configurado

    @property
    def content_type(self) -> str:
        return "image/jpeg" if self.format == "jpg" else "image/png"


@dataclass(frozen=True)
class CaptureTask:
    symbol: str
    timeframe: str                  # valor bruto do request (ex.: "240")
    platform: str
    options: CaptureOptions = field(default_factory=CaptureOptions)

    @property
    def label(self) -> str:
        return f"{self.symbol} {self.timeframe}"


@dataclass(frozen=True)
class PlatformDescriptor:
    name: str
    url_builder: Callable[[str, str], str]
    chart_selector: str
    cleanup_selectors: Tuple[str, ...]
    wait_timeout_ms: int
    render_delay_ms: int


@dataclass
class CaptureSuccess:
    symbol: str
    timeframe: str
    platform: str
    image_bytes: bytes
    size_bytes: int
    captured_at: datetime
    duration_ms: int
    width: int = 1920
    height: int = 1080
    base64: Optional[str] = None        # data URI quando include_base64
    storage_ref: Optional[str] = None   # URL/caminho quando persistido

    ok = True


@dataclass
class CaptureFailure:
    symbol: str
    timeframe: str
    reason: ErrorKind
    message: str

    ok = False


CaptureResult = Union[CaptureSuccess, CaptureFailure]


@dataclass
class BatchSummary:
    total_requested: int
    successful: int
    failed: int
    total_duration_ms: int


@dataclass
class BatchResult:
    platform: str
    results: List[CaptureResult]        # ordem de conclusão, não de expansão
    summary: BatchSummary
    expansion_order: List[CaptureResult] = field(default_factory=list)   # mesmo conteúdo, na ordem símbolo x timeframe

    @property
    def successes(self) -> List[CaptureSuccess]:
        return [r for r in self.results if r.ok]

    @property
    def failures(self) -> List[CaptureFailure]:
        return [r for r in self.results if not r.ok]


@dataclass(frozen=True)
class SessionConfig:
    width: int
    height: int
    headless: bool = True
