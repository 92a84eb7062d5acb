from enum import Enum
from typing import Iterable


class ErrorKind(str, Enum):
    UNSUPPORTED_PLATFORM = "UnsupportedPlatform"
    UNSUPPORTED_SYMBOL = "UnsupportedSymbol"
    NAVIGATION_TIMEOUT = "NavigationTimeout"
    CHART_NOT_READY = "ChartNotReady"
    CAPTURE_FAILED = "CaptureFailed"        # qualquer outro erro dentro de uma tentativa
    CAPTURE_EXHAUSTED = "CaptureExhausted"
    PERSISTENCE_FAILED = "PersistenceFailed"


class CaptureError(Exception):
    kind: ErrorKind = ErrorKind.CAPTURE_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedPlatform(CaptureError):
    kind = ErrorKind.UNSUPPORTED_PLATFORM

    def __init__(self, platform: str, supported: Iterable[str]):
        self.platform = platform
        self.supported = sorted(supported)
        super().__init__(
            f"Plataforma '{platform}' não suportada. Plataformas disponíveis: {', '.join(self.supported)}"
        )


class UnsupportedSymbol(CaptureError):
    kind = ErrorKind.UNSUPPORTED_SYMBOL

    def __init__(self, symbol: str, platform: str, supported: Iterable[str]):
        self.symbol = symbol
        self.platform = platform
        self.supported = sorted(supported)
        super().__init__(
            f"Símbolo {symbol} não suportado em {platform}. Símbolos disponíveis: {', '.join(self.supported)}"
        )


class NavigationTimeout(CaptureError):
    kind = ErrorKind.NAVIGATION_TIMEOUT


class ChartNotReady(CaptureError):
    kind = ErrorKind.CHART_NOT_READY


class CaptureExhausted(CaptureError):
    kind = ErrorKind.CAPTURE_EXHAUSTED


class PersistenceFailed(CaptureError):
    kind = ErrorKind.PERSISTENCE_FAILED
