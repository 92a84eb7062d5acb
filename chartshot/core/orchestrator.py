# chartshot/core/orchestrator.py
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import ErrorKind
from .executor import CaptureExecutor
from .models import BatchResult, BatchSummary, CaptureFailure, CaptureOptions, CaptureResult, CaptureTask
from .validators import validate_options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorConfig:
    max_concurrency: int = 3
    max_batch_size: int = 20


def expand_tasks(symbols: Sequence[str], timeframes: Sequence[str], platform: str,
                 options: CaptureOptions) -> List[CaptureTask]:
    # símbolo por fora, timeframe por dentro: a ordem do array padrão depende disso
    return [
        CaptureTask(symbol=s, timeframe=tf, platform=platform, options=options)
        for s in symbols
        for tf in timeframes
    ]


class BatchOrchestrator:
    def __init__(self, executor: CaptureExecutor, config: Optional[OrchestratorConfig] = None):
        self.executor = executor
        self.config = config or OrchestratorConfig()
        if self.config.max_concurrency < 1:
            raise ValueError("max_concurrency deve ser >= 1")

    def run_batch(self, symbols: Sequence[str], timeframes: Sequence[str],
                  platform: str = "tradingview", options: Optional[CaptureOptions] = None) -> BatchResult:
        options = validate_options(options or CaptureOptions())
        # plataforma inválida derruba o batch inteiro antes de abrir qualquer navegador
        strategy = self.executor.registry.resolve(platform)

        tasks = expand_tasks(symbols, timeframes, strategy.name, options)
        if len(tasks) > self.config.max_batch_size:
            raise ValueError(
                f"Batch com {len(tasks)} capturas excede o limite de {self.config.max_batch_size}."
            )

        started = time.monotonic()
        logger.info(
            "Iniciando batch: %d símbolos x %d timeframes = %d screenshots (%s, concorrência=%d)",
            len(symbols), len(timeframes), len(tasks), strategy.name, self.config.max_concurrency,
        )

        results: List[CaptureResult] = []
        ordered: List[Optional[CaptureResult]] = [None] * len(tasks)
        successful = failed = 0

        # o pool é o semáforo: no máximo max_concurrency tasks ativas, despachadas na ordem de expansão
        with ThreadPoolExecutor(max_workers=self.config.max_concurrency,
                                thread_name_prefix="capture") as pool:
            futures = {pool.submit(self.executor.execute, t): i for i, t in enumerate(tasks)}
            for fut in as_completed(futures):
                i = futures[fut]
                result = self._collect(fut, tasks[i])
                results.append(result)
                ordered[i] = result
                # contadores só mudam aqui, na thread do orquestrador
                if result.ok:
                    successful += 1
                else:
                    failed += 1

        summary = BatchSummary(
            total_requested=len(tasks),
            successful=successful,
            failed=failed,
            total_duration_ms=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            "Batch concluído: %d sucesso(s), %d falha(s) em %.2fs",
            summary.successful, summary.failed, summary.total_duration_ms / 1000.0,
        )
        return BatchResult(platform=strategy.name, results=results, summary=summary,
                           expansion_order=ordered)

    @staticmethod
    def _collect(fut, task: CaptureTask) -> CaptureResult:
        try:
            return fut.result()
        except Exception as e:
            # execute() já converte falhas em CaptureFailure; isto cobre bugs inesperados
            logger.exception("Erro inesperado capturando %s", task.label)
            return CaptureFailure(
                symbol=task.symbol,
                timeframe=task.timeframe,
                reason=ErrorKind.CAPTURE_FAILED,
                message=str(e),
            )
