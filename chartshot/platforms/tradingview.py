from typing import Dict, Tuple

from chartshot.core.errors import UnsupportedSymbol
from chartshot.core.interfaces import PlatformStrategy


class TradingViewStrategy(PlatformStrategy):
    """
    TradingView: símbolo e intervalo vão direto na URL do gráfico.
    Ex.: https://www.tradingview.com/chart/?symbol=OANDA:XAUUSD&interval=240
    """

    name = "tradingview"
    base_url = "https://www.tradingview.com/chart/"

    # símbolo padrão -> EXCHANGE:TICKER
    SYMBOLS: Dict[str, str] = {
        "XAUUSD": "OANDA:XAUUSD",
        "XAGUSD": "OANDA:XAGUSD",
        "EURUSD": "OANDA:EURUSD",
        "GBPUSD": "OANDA:GBPUSD",
        "USDJPY": "OANDA:USDJPY",
        "AUDUSD": "OANDA:AUDUSD",
        "USDCAD": "OANDA:USDCAD",
        "NZDUSD": "OANDA:NZDUSD",
        "USDCHF": "OANDA:USDCHF",
        "EURGBP": "OANDA:EURGBP",
        "EURJPY": "OANDA:EURJPY",
        "BTCUSD": "BITSTAMP:BTCUSD",
        "ETHUSD": "BITSTAMP:ETHUSD",
    }

    TIMEFRAMES: Dict[str, str] = {
        "1": "1",
        "5": "5",
        "15": "15",
        "30": "30",
        "60": "60",
        "240": "240",
        "1D": "1D",
        "D": "1D",
    }

    def build_url(self, symbol: str, timeframe: str) -> str:
        return f"{self.base_url}?symbol={self.map_symbol(symbol)}&interval={self.map_timeframe(timeframe)}"

    def chart_selector(self) -> str:
        return ".chart-container"

    def elements_to_strip(self) -> Tuple[str, ...]:
        # toolbar superior, sidebar esquerda, toasts e popups
        return (
            ".header-toolbar",
            ".left-toolbar",
            ".toast-container",
            ".banner",
            ".popup",
        )

    def wait_timeout_ms(self) -> int:
        return 15000

    def render_delay_ms(self) -> int:
        return 3000

    def map_symbol(self, symbol: str) -> str:
        mapped = self.SYMBOLS.get(symbol.strip().upper())
        if mapped is None:
            raise UnsupportedSymbol(symbol, self.name, self.SYMBOLS)
        return mapped

    def map_timeframe(self, timeframe: str) -> str:
        # valores desconhecidos seguem crus: o TradingView aceita intervalos livres
        return self.TIMEFRAMES.get(timeframe, timeframe)

    def supported_symbols(self) -> Dict[str, str]:
        return dict(self.SYMBOLS)
