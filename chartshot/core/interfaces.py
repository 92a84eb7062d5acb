from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

from .models import PlatformDescriptor, SessionConfig


class PlatformStrategy(ABC):
    name: str = ""

    @abstractmethod
    def build_url(self, symbol: str, timeframe: str) -> str:
        ...

    @abstractmethod
    def chart_selector(self) -> str:
        ...

    @abstractmethod
    def elements_to_strip(self) -> Tuple[str, ...]:
        ...

    @abstractmethod
    def wait_timeout_ms(self) -> int:
        ...

    @abstractmethod
    def render_delay_ms(self) -> int:
        ...

    @abstractmethod
    def map_symbol(self, symbol: str) -> str:
        ...

    @abstractmethod
    def map_timeframe(self, timeframe: str) -> str:
        ...

    def supported_symbols(self) -> Dict[str, str]:
        return {}

    def descriptor(self) -> PlatformDescriptor:
        return PlatformDescriptor(
            name=self.name,
            url_builder=self.build_url,
            chart_selector=self.chart_selector(),
            cleanup_selectors=tuple(self.elements_to_strip()),
            wait_timeout_ms=self.wait_timeout_ms(),
            render_delay_ms=self.render_delay_ms(),
        )


class BrowserSession(ABC):
    """Uma página de navegador isolada, válida por uma única tentativa."""

    @abstractmethod
    def navigate(self, url: str, timeout_ms: int) -> None:
        ...

    @abstractmethod
    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        ...

    @abstractmethod
    def remove_elements(self, selectors: Sequence[str]) -> None:
        ...

    @abstractmethod
    def capture_image(self, format: str) -> bytes:
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class BrowserDriver(ABC):
    @abstractmethod
    def launch(self, config: SessionConfig) -> BrowserSession:
        ...


class Storage(ABC):
    @abstractmethod
    def store(self, filename: str, data: bytes, content_type: str) -> Optional[str]:
        """Retorna a referência gravada, ou None quando nada foi persistido."""
        ...
