from typing import Dict, Iterable, Optional, Set

from chartshot.core.errors import UnsupportedPlatform
from chartshot.core.interfaces import PlatformStrategy
from chartshot.core.models import PlatformDescriptor

from .investing import InvestingStrategy
from .tradingview import TradingViewStrategy


class PlatformRegistry:
    def __init__(self, strategies: Optional[Iterable[PlatformStrategy]] = None):
        self._strategies: Dict[str, PlatformStrategy] = {}
        for s in strategies or ():
            self.register(s)

    def register(self, strategy: PlatformStrategy) -> None:
        key = strategy.name.strip().lower()
        if not key:
            raise ValueError("Estratégia de plataforma sem 'name'.")
        self._strategies[key] = strategy

    def resolve(self, platform_id: str) -> PlatformStrategy:
        key = (platform_id or "").strip().lower()
        if key not in self._strategies:
            raise UnsupportedPlatform(platform_id, self._strategies)
        return self._strategies[key]

    def descriptor(self, platform_id: str) -> PlatformDescriptor:
        return self.resolve(platform_id).descriptor()

    def list_supported(self) -> Set[str]:
        return set(self._strategies)


def default_registry() -> PlatformRegistry:
    return PlatformRegistry([TradingViewStrategy(), InvestingStrategy()])
