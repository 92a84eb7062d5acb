from typing import Any, Dict, List, Tuple

from .models import FORMATS, HEIGHT_RANGE, WIDTH_RANGE, CaptureOptions


def validate_range(value: Any, bounds: Tuple[int, int]):
    lo, hi = bounds
    ok = isinstance(value, int) and not isinstance(value, bool) and lo <= value <= hi
    return ok, {"range": [lo, hi], "got": value}


def validate_choice(value: Any, choices: Tuple[str, ...]):
    ok = value in choices
    return ok, {"choices": list(choices), "got": value}


def validate_flag(value: Any, _=None):
    return isinstance(value, bool), {"got": value}


# campo -> (validador, parâmetro)
OPTION_RULES = {
    "width": (validate_range, WIDTH_RANGE),
    "height": (validate_range, HEIGHT_RANGE),
    "format": (validate_choice, FORMATS),
    "include_base64": (validate_flag, None),
    "persist": (validate_flag, None),
}


def validate_options(options: CaptureOptions) -> CaptureOptions:
    errors = []
    for name, (fn, param) in OPTION_RULES.items():
        ok, meta = fn(getattr(options, name), param)
        if not ok:
            errors.append(f"{name}: {meta}")
    if errors:
        raise ValueError("Opções de captura inválidas: " + "; ".join(errors))
    return options


def _string_list(payload: Dict[str, Any], key: str) -> List[str]:
    if key not in payload:
        raise KeyError(f"Request sem a chave obrigatória: {key}")
    values = payload[key]
    if not isinstance(values, list):
        raise TypeError(f"'{key}' deve ser uma lista de strings.")
    if not values:
        raise ValueError(f"Deve informar ao menos um item em '{key}'.")
    out = []
    for v in values:
        # YAML transforma 240 em int; aceitamos e normalizamos para string
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise TypeError(f"'{key}' contém valor inválido: {v!r}")
        s = str(v).strip()
        if not s:
            raise ValueError(f"'{key}' contém string vazia.")
        out.append(s)
    return out


def options_from_payload(payload: Dict[str, Any]) -> CaptureOptions:
    # aceita camelCase (contrato HTTP) e snake_case (YAML)
    defaults = CaptureOptions()
    opts = CaptureOptions(
        width=payload.get("width", defaults.width),
        height=payload.get("height", defaults.height),
        format=payload.get("format", defaults.format),
        include_base64=payload.get("includeBase64", payload.get("include_base64", defaults.include_base64)),
        persist=payload.get("persist", payload.get("saveToStorage", defaults.persist)),
    )
    return validate_options(opts)


def load_batch_request(payload: Dict[str, Any]) -> Tuple[List[str], List[str], str, CaptureOptions]:
    """
    Valida o request de batch antes de chegar no orquestrador.
    Requests malformados (listas vazias, opções fora do intervalo) são rejeitados aqui.
    """
    if not isinstance(payload, dict):
        raise TypeError("Request deve ser um objeto (dict).")
    symbols = _string_list(payload, "symbols")
    timeframes = _string_list(payload, "timeframes")
    platform = payload.get("platform") or "tradingview"
    if not isinstance(platform, str):
        raise TypeError("'platform' deve ser string.")
    return symbols, timeframes, platform, options_from_payload(payload)


def load_single_request(payload: Dict[str, Any]) -> Tuple[str, str, str, CaptureOptions]:
    if not isinstance(payload, dict):
        raise TypeError("Request deve ser um objeto (dict).")
    for key in ("symbol", "timeframe"):
        if key not in payload:
            raise KeyError(f"Request sem a chave obrigatória: {key}")
    symbol = _string_list({"symbol": [payload["symbol"]]}, "symbol")[0]
    timeframe = _string_list({"timeframe": [payload["timeframe"]]}, "timeframe")[0]
    platform = payload.get("platform") or "tradingview"
    if not isinstance(platform, str):
        raise TypeError("'platform' deve ser string.")
    return symbol, timeframe, platform, options_from_payload(payload)
