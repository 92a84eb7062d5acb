# chartshot/core/executor.py
import base64
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, Optional

from .errors import (
    CaptureError,
    CaptureExhausted,
    ErrorKind,
    PersistenceFailed,
    UnsupportedPlatform,
    UnsupportedSymbol,
)
from .interfaces import BrowserDriver, BrowserSession, Storage
from .models import CaptureFailure, CaptureResult, CaptureSuccess, CaptureTask, SessionConfig

logger = logging.getLogger(__name__)

# espera do seletor do gráfico, independente do timeout de navegação da plataforma
SELECTOR_TIMEOUT_MS = 10000

# erros de request: repetir não muda o resultado
STRUCTURAL = (ErrorKind.UNSUPPORTED_PLATFORM, ErrorKind.UNSUPPORTED_SYMBOL)


class AttemptState(str, Enum):
    INIT = "Init"
    NAVIGATE_LOADED = "NavigateLoaded"
    CHART_READY = "ChartReady"
    CLEANED = "Cleaned"
    CAPTURED = "Captured"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_ms: int = 1000

    def backoff_ms(self, attempt: int) -> int:
        """Espera antes da tentativa attempt+1 (1s, 2s, ...)."""
        return self.base_delay_ms * 2 ** (attempt - 1)


@contextmanager
def browser_session(driver: BrowserDriver, config: SessionConfig) -> Iterator[BrowserSession]:
    session = driver.launch(config)
    try:
        yield session
    finally:
        try:
            session.close()
        except Exception as e:
            # falha ao fechar não pode mascarar o resultado da captura
            logger.debug("Falha ao fechar sessão do navegador (ignorada): %s", e)


class CaptureExecutor:
    """
    Executa o protocolo de captura de uma task:
      resolve plataforma -> abre sessão -> navega -> espera gráfico -> delay de render
      -> remove poluição visual -> screenshot -> fecha sessão -> persiste/base64.
    Cada tentativa usa uma sessão nova; nada é reaproveitado entre tentativas.
    """

    def __init__(
        self,
        registry,
        driver: BrowserDriver,
        storage: Optional[Storage] = None,
        retry: Optional[RetryPolicy] = None,
        headless: bool = True,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.registry = registry
        self.driver = driver
        self.storage = storage
        self.retry = retry or RetryPolicy()
        self.headless = headless
        self.sleep = sleep or time.sleep

    # ---------------------- retry ----------------------
    def execute(self, task: CaptureTask) -> CaptureResult:
        last: Optional[CaptureFailure] = None
        for n in range(1, self.retry.max_attempts + 1):
            result = self.attempt(task, n)
            if result.ok:
                return result
            last = result
            if result.reason in STRUCTURAL:
                return result
            logger.warning(
                "Tentativa %d/%d falhou para %s: %s",
                n, self.retry.max_attempts, task.label, result.message,
            )
            if n < self.retry.max_attempts:
                self.sleep(self.retry.backoff_ms(n) / 1000.0)

        message = (
            f"Erro capturando screenshot de {task.label} depois de "
            f"{self.retry.max_attempts} tentativas: {last.message if last else 'sem detalhes'}"
        )
        logger.error(message)
        return CaptureFailure(
            symbol=task.symbol,
            timeframe=task.timeframe,
            reason=ErrorKind.CAPTURE_EXHAUSTED,
            message=message,
        )

    def capture_single(self, task: CaptureTask) -> CaptureSuccess:
        """Captura avulsa: sem resultado parcial, então a exaustão sobe como erro."""
        strategy = self.registry.resolve(task.platform)
        strategy.map_symbol(task.symbol)
        result = self.execute(task)
        if not result.ok:
            raise CaptureExhausted(result.message)
        return result

    # ---------------------- protocolo ----------------------
    def attempt(self, task: CaptureTask, attempt_number: int) -> CaptureResult:
        started = time.monotonic()
        state = AttemptState.INIT

        try:
            strategy = self.registry.resolve(task.platform)
            descriptor = strategy.descriptor()
            url = descriptor.url_builder(task.symbol, task.timeframe)
        except (UnsupportedPlatform, UnsupportedSymbol) as e:
            return self._failure(task, e.kind, e.message)

        logger.debug("[%s #%d] URL gerada: %s", task.label, attempt_number, url)
        opts = task.options
        config = SessionConfig(width=opts.width, height=opts.height, headless=self.headless)

        try:
            with browser_session(self.driver, config) as session:
                session.navigate(url, timeout_ms=descriptor.wait_timeout_ms)
                state = AttemptState.NAVIGATE_LOADED

                session.wait_for_selector(descriptor.chart_selector, timeout_ms=SELECTOR_TIMEOUT_MS)
                state = AttemptState.CHART_READY

                if descriptor.render_delay_ms:
                    self.sleep(descriptor.render_delay_ms / 1000.0)

                try:
                    session.remove_elements(descriptor.cleanup_selectors)
                except Exception as e:
                    logger.debug("[%s] limpeza de UI falhou (ignorada): %s", task.label, e)
                state = AttemptState.CLEANED

                image = session.capture_image(opts.format)
                state = AttemptState.CAPTURED
        except CaptureError as e:
            logger.debug("[%s #%d] falhou após %s: %s", task.label, attempt_number, state.value, e)
            return self._failure(task, e.kind, e.message)
        except Exception as e:
            logger.debug("[%s #%d] falhou após %s: %s", task.label, attempt_number, state.value, e)
            return self._failure(task, ErrorKind.CAPTURE_FAILED, str(e) or type(e).__name__)

        captured_at = datetime.now(timezone.utc)
        success = CaptureSuccess(
            symbol=task.symbol,
            timeframe=task.timeframe,
            platform=descriptor.name,
            image_bytes=image,
            size_bytes=len(image),
            captured_at=captured_at,
            duration_ms=0,
            width=opts.width,
            height=opts.height,
        )

        if opts.persist:
            success.storage_ref = self._persist(task, image, captured_at)
        if opts.include_base64:
            encoded = base64.b64encode(image).decode("ascii")
            success.base64 = f"data:{opts.content_type};base64,{encoded}"

        success.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("Screenshot capturado: %s (%d bytes, %d ms)", task.label, success.size_bytes, success.duration_ms)
        return success

    def _persist(self, task: CaptureTask, image: bytes, captured_at: datetime) -> Optional[str]:
        if self.storage is None:
            logger.debug("[%s] persist=true mas nenhum storage configurado.", task.label)
            return None
        stamp = int(captured_at.timestamp() * 1000)
        filename = f"{task.symbol}_{task.timeframe}_{stamp}.{task.options.format}"
        try:
            ref = self.storage.store(filename, image, task.options.content_type)
        except PersistenceFailed as e:
            logger.error("[%s] %s: %s", task.label, e.kind.value, e.message)
            return None
        except Exception as e:
            # erro cru do backend: a captura continua válida, só fica sem referência
            logger.error("[%s] %s: %s", task.label, ErrorKind.PERSISTENCE_FAILED.value, e)
            return None
        if ref:
            logger.debug("[%s] screenshot gravado: %s", task.label, ref)
        return ref

    @staticmethod
    def _failure(task: CaptureTask, reason: ErrorKind, message: str) -> CaptureFailure:
        return CaptureFailure(symbol=task.symbol, timeframe=task.timeframe, reason=reason, message=message)
