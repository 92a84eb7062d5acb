from __future__ import annotations

try:
    from playwright.sync_api import sync_playwright, TimeoutError as PWTimeoutError
except Exception:
    sync_playwright = None

import logging
import sys
from typing import Sequence

from chartshot.core.errors import ChartNotReady, NavigationTimeout
from chartshot.core.interfaces import BrowserDriver, BrowserSession
from chartshot.core.models import SessionConfig

logger = logging.getLogger(__name__)

# remove todos os nós de cada seletor; seletor inválido não interrompe os demais
_STRIP_JS = """(selectors) => {
    for (const sel of selectors) {
        try { document.querySelectorAll(sel).forEach((el) => el.remove()); } catch (e) {}
    }
}"""


class PlaywrightSession(BrowserSession):
    """
    Uma instância própria de Playwright + Chromium + contexto por sessão.
    O Playwright síncrono não pode ser compartilhado entre threads, então cada
    tentativa de captura (que roda numa thread do pool) sobe o seu.
    """

    def __init__(self, config: SessionConfig, launch_args: Sequence[str] = ()):
        self._pw = sync_playwright().start()
        try:
            self._browser = self._pw.chromium.launch(headless=config.headless, args=list(launch_args))
            self._context = self._browser.new_context(
                viewport={"width": config.width, "height": config.height},
                locale="en-US",
            )
            self.page = self._context.new_page()
        except Exception:
            self._pw.stop()
            raise

    def navigate(self, url: str, timeout_ms: int) -> None:
        try:
            self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PWTimeoutError as e:
            raise NavigationTimeout(f"Timeout ({timeout_ms}ms) carregando {url}") from e

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        try:
            self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PWTimeoutError as e:
            raise ChartNotReady(f"Gráfico não renderizou ({selector}) em {timeout_ms}ms") from e

    def remove_elements(self, selectors: Sequence[str]) -> None:
        self.page.evaluate(_STRIP_JS, list(selectors))

    def capture_image(self, format: str) -> bytes:
        # Playwright chama de "jpeg" o que o request chama de "jpg"
        kind = "jpeg" if format == "jpg" else "png"
        return self.page.screenshot(type=kind, full_page=False)

    def close(self) -> None:
        try:
            self._context.close()
        finally:
            try:
                self._browser.close()
            finally:
                self._pw.stop()


class PlaywrightDriver(BrowserDriver):
    def __init__(self, extra_args: Sequence[str] = ()):
        # flags necessárias em Linux/CI/containers
        args = []
        if sys.platform.startswith("linux"):
            args = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage", "--disable-gpu"]
        self.launch_args = args + list(extra_args)

    def launch(self, config: SessionConfig) -> PlaywrightSession:
        if sync_playwright is None:
            raise RuntimeError("Playwright não está instalado no ambiente.")
        logger.debug("Abrindo Chromium %dx%d (headless=%s)", config.width, config.height, config.headless)
        return PlaywrightSession(config, self.launch_args)
