import re
from typing import Any, Dict, List

from .models import BatchResult, CaptureSuccess

DISPLAY_TIMEFRAMES = {
    "1": "1M",
    "5": "5M",
    "15": "15M",
    "30": "30M",
    "60": "1H",
    "240": "4H",
    "1D": "1D",
    "D": "1D",
}

_LABEL_RE = re.compile(r"^(\d+)([MHDW])$")


def display_timeframe(timeframe: str) -> str:
    return DISPLAY_TIMEFRAMES.get(timeframe, timeframe)


def result_key(symbol: str, timeframe: str) -> str:
    """XAUUSD + 240 -> XAUUSD_H4 (rótulo de exibição com a unidade na frente)."""
    label = display_timeframe(timeframe)
    m = _LABEL_RE.match(label)
    if m:
        label = f"{m.group(2)}{m.group(1)}"
    return f"{symbol.upper()}_{label}"


def render_success(s: CaptureSuccess) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "symbol": s.symbol,
        "timeframe": display_timeframe(s.timeframe),
        "platform": s.platform,
        "metadata": {
            "capturedAt": s.captured_at.isoformat(),
            "fileSize": f"{s.size_bytes / 1024:.2f}KB",
            "sizeBytes": s.size_bytes,
            "dimensions": f"{s.width}x{s.height}",
            "durationMs": s.duration_ms,
        },
    }
    if s.storage_ref:
        out["imageUrl"] = s.storage_ref
    if s.base64:
        out["base64"] = s.base64
    return out


def as_array(batch: BatchResult) -> List[Dict[str, Any]]:
    return [render_success(s) for s in batch.successes]


def as_map(batch: BatchResult) -> Dict[str, Dict[str, Any]]:
    # chaves colidem quando símbolo ou timeframe diferem só na grafia (xauusd/XAUUSD, D/1D):
    # vale o primeiro na ordem de expansão, independente de quem terminou antes
    out: Dict[str, Dict[str, Any]] = {}
    for r in batch.expansion_order or batch.results:
        if r is None or not r.ok:
            continue
        key = result_key(r.symbol, r.timeframe)
        if key not in out:
            out[key] = render_success(r)
    return out


def build_response(batch: BatchResult, mode: str = "array") -> Dict[str, Any]:
    if mode not in ("array", "map"):
        raise ValueError(f"Modo de resposta inválido: {mode}")
    screenshots = as_map(batch) if mode == "map" else as_array(batch)
    summary = batch.summary
    return {
        "success": True,
        "data": {
            "totalImages": summary.total_requested,
            "platform": batch.platform,
            "screenshots": screenshots,
            "summary": {
                "totalRequested": summary.total_requested,
                "successful": summary.successful,
                "failed": summary.failed,
                "totalDurationMs": summary.total_duration_ms,
                "totalTime": f"{summary.total_duration_ms / 1000:.2f}s",
            },
        },
    }


def build_single_response(s: CaptureSuccess) -> Dict[str, Any]:
    return {"success": True, "data": render_success(s)}
