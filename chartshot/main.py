import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import yaml

from chartshot.config import Settings, build_storage, load_settings
from chartshot.core.assembler import build_response, build_single_response
from chartshot.core.errors import CaptureError, UnsupportedPlatform, UnsupportedSymbol
from chartshot.core.executor import CaptureExecutor
from chartshot.core.interfaces import BrowserDriver
from chartshot.core.models import CaptureTask
from chartshot.core.orchestrator import BatchOrchestrator, OrchestratorConfig
from chartshot.core.validators import load_batch_request, load_single_request
from chartshot.platforms.registry import default_registry

logger = logging.getLogger("chartshot")


def build_orchestrator(settings: Settings, driver: Optional[BrowserDriver] = None) -> BatchOrchestrator:
    if driver is None:
        from chartshot.browsers.playwright_browser import PlaywrightDriver
        driver = PlaywrightDriver()
    executor = CaptureExecutor(
        registry=default_registry(),
        driver=driver,
        storage=build_storage(settings.storage),
        headless=settings.headless,
    )
    return BatchOrchestrator(
        executor,
        OrchestratorConfig(max_concurrency=settings.max_concurrency, max_batch_size=settings.max_batch_size),
    )


def load_request(args) -> Dict[str, Any]:
    """
    Request vem de um arquivo YAML/JSON (--request) ou das flags da linha de comando.
    Flags explícitas sobrescrevem o arquivo.
    """
    payload: Dict[str, Any] = {}
    if args.request:
        with open(args.request, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
        if not isinstance(payload, dict):
            raise TypeError("O arquivo de request deve conter um objeto (dict).")

    if args.symbols:
        payload["symbols"] = args.symbols
    if args.timeframes:
        payload["timeframes"] = args.timeframes
    if args.platform:
        payload["platform"] = args.platform
    for key, value in (("width", args.width), ("height", args.height), ("format", args.format)):
        if value is not None:
            payload[key] = value
    if args.base64:
        payload["includeBase64"] = True
    if args.persist:
        payload["persist"] = True

    if args.single:
        # captura avulsa usa o primeiro símbolo/timeframe
        payload.setdefault("symbol", (payload.get("symbols") or [None])[0])
        payload.setdefault("timeframe", (payload.get("timeframes") or [None])[0])
        if payload["symbol"] is None:
            payload.pop("symbol")
        if payload["timeframe"] is None:
            payload.pop("timeframe")
    return payload


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Captura de gráficos (TradingView / Investing.com)")
    default_cfg = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config.yaml")
    ap.add_argument("--config", "-c", default=default_cfg,
                    help=f"Caminho para o config.yaml (default: {default_cfg})")
    ap.add_argument("--request", "-r", help="Arquivo YAML/JSON com o request de captura")
    ap.add_argument("--symbols", "-s", nargs="+", help="Ex.: XAUUSD EURUSD")
    ap.add_argument("--timeframes", "-t", nargs="+", help="Ex.: 240 60 5")
    ap.add_argument("--platform", "-p", help="tradingview | investing")
    ap.add_argument("--width", type=int)
    ap.add_argument("--height", type=int)
    ap.add_argument("--format", choices=["png", "jpg"])
    ap.add_argument("--base64", action="store_true", help="Incluir imagens em base64 na resposta")
    ap.add_argument("--persist", action="store_true", help="Gravar imagens no storage configurado")
    ap.add_argument("--mode", choices=["array", "map"], default="array",
                    help="array (lista) ou map (chaves SIMBOLO_TIMEFRAME)")
    ap.add_argument("--single", action="store_true", help="Captura avulsa (um símbolo, um timeframe)")
    ap.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    return ap.parse_args(argv)


def run(args, driver: Optional[BrowserDriver] = None) -> int:
    cfg_path = os.path.abspath(args.config)
    try:
        settings = load_settings(cfg_path)
        payload = load_request(args)
        orchestrator = build_orchestrator(settings, driver)
    except (yaml.YAMLError, KeyError, TypeError, ValueError, OSError) as e:
        logger.error("Config/request inválido: %s", e)
        return 2

    if args.single:
        try:
            symbol, timeframe, platform, options = load_single_request(payload)
            task = CaptureTask(symbol=symbol, timeframe=timeframe, platform=platform, options=options)
            success = orchestrator.executor.capture_single(task)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Request inválido: %s", e)
            return 2
        except (UnsupportedPlatform, UnsupportedSymbol) as e:
            logger.error("%s: %s", e.kind.value, e.message)
            return 2
        except CaptureError as e:
            logger.error("%s: %s", e.kind.value, e.message)
            return 1
        print(json.dumps(build_single_response(success), ensure_ascii=False, indent=2))
        return 0

    try:
        symbols, timeframes, platform, options = load_batch_request(payload)
        batch = orchestrator.run_batch(symbols, timeframes, platform, options)
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Request inválido: %s", e)
        return 2
    except CaptureError as e:
        logger.error("%s: %s", e.kind.value, e.message)
        return 2

    print(json.dumps(build_response(batch, args.mode), ensure_ascii=False, indent=2))
    return 1 if batch.summary.failed else 0


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="[%(levelname)s] %(message)s", stream=sys.stderr)
    logger.info("Usando config: %s", os.path.abspath(args.config))
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
