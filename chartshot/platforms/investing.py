from typing import Dict, Tuple

from chartshot.core.errors import UnsupportedSymbol
from chartshot.core.interfaces import PlatformStrategy


class InvestingStrategy(PlatformStrategy):
    """
    Investing.com: a URL só carrega o símbolo (slug); o timeframe não vai na URL,
    ele é trocado pela barra de ferramentas do gráfico (ver timeframe_selectors).
    Página mais pesada (publicidade), por isso timeouts maiores que o TradingView.
    """

    name = "investing"
    base_url = "https://www.investing.com/currencies"

    SYMBOLS: Dict[str, str] = {
        "XAUUSD": "xau-usd",
        "EURUSD": "eur-usd",
        "GBPUSD": "gbp-usd",
        "USDJPY": "usd-jpy",
        "AUDUSD": "aud-usd",
        "USDCAD": "usd-cad",
        "NZDUSD": "nzd-usd",
        "USDCHF": "usd-chf",
        "EURGBP": "eur-gbp",
        "EURJPY": "eur-jpy",
    }

    TIMEFRAMES: Dict[str, str] = {
        "5": "5",
        "15": "15",
        "30": "30",
        "60": "60",
        "300": "300",   # 5 horas
        "1D": "1D",
        "D": "1D",
    }

    def build_url(self, symbol: str, timeframe: str) -> str:
        return f"{self.base_url}/{self.map_symbol(symbol)}-chart"

    def chart_selector(self) -> str:
        return "#chart, .chart-wrapper"

    def elements_to_strip(self) -> Tuple[str, ...]:
        return (
            ".adPlaceholder",
            ".banner",
            ".cookiePolicy",
            ".topBar",
            ".sidebar",
            ".footer",
            '[class*="ad"]',
            '[class*="Ad"]',
            ".popup",
        )

    def wait_timeout_ms(self) -> int:
        return 20000

    def render_delay_ms(self) -> int:
        return 5000

    def map_symbol(self, symbol: str) -> str:
        slug = self.SYMBOLS.get(symbol.strip().upper())
        if slug is None:
            raise UnsupportedSymbol(symbol, self.name, self.SYMBOLS)
        return slug

    def map_timeframe(self, timeframe: str) -> str:
        return self.TIMEFRAMES.get(timeframe, timeframe)

    def supported_symbols(self) -> Dict[str, str]:
        return dict(self.SYMBOLS)

    def timeframe_selectors(self) -> Dict[str, str]:
        return {
            "5": '[data-test="timeframe-5M"]',
            "15": '[data-test="timeframe-15M"]',
            "30": '[data-test="timeframe-30M"]',
            "60": '[data-test="timeframe-1H"]',
            "300": '[data-test="timeframe-5H"]',
            "1D": '[data-test="timeframe-1D"]',
        }
