import pytest

from chartshot.core.models import CaptureOptions
from chartshot.core.validators import (
    load_batch_request,
    load_single_request,
    validate_options,
    validate_range,
)


def test_range():
    ok, meta = validate_range(1920, (800, 3840))
    assert ok
    assert not validate_range(True, (0, 10))[0]
    assert not validate_range(799, (800, 3840))[0]


@pytest.mark.parametrize("opts", [
    CaptureOptions(width=799),
    CaptureOptions(width=3841),
    CaptureOptions(height=599),
    CaptureOptions(height=2161),
    CaptureOptions(format="gif"),
    CaptureOptions(persist="yes"),
])
def test_invalid_options(opts):
    with pytest.raises(ValueError):
        validate_options(opts)


def test_bounds_are_inclusive():
    validate_options(CaptureOptions(width=800, height=600))
    validate_options(CaptureOptions(width=3840, height=2160, format="jpg"))


def test_batch_request_defaults():
    symbols, timeframes, platform, opts = load_batch_request({"symbols": ["XAUUSD"], "timeframes": [240, "60"]})
    assert symbols == ["XAUUSD"]
    assert timeframes == ["240", "60"]
    assert platform == "tradingview"
    assert opts == CaptureOptions()


def test_batch_request_camel_case_options():
    _, _, platform, opts = load_batch_request({
        "symbols": ["EURUSD"], "timeframes": ["5"], "platform": "investing",
        "width": 2560, "height": 1440, "format": "jpg", "includeBase64": True, "saveToStorage": True,
    })
    assert platform == "investing"
    assert opts == CaptureOptions(2560, 1440, "jpg", True, True)


@pytest.mark.parametrize("payload,error", [
    ({"symbols": [], "timeframes": ["60"]}, ValueError),
    ({"symbols": ["XAUUSD"]}, KeyError),
    ({"symbols": "XAUUSD", "timeframes": ["60"]}, TypeError),
    ({"symbols": ["XAUUSD", None], "timeframes": ["60"]}, TypeError),
    ({"symbols": ["  "], "timeframes": ["60"]}, ValueError),
    ({"symbols": ["XAUUSD"], "timeframes": ["60"], "width": 100}, ValueError),
    (["XAUUSD"], TypeError),
])
def test_malformed_batch_requests(payload, error):
    with pytest.raises(error):
        load_batch_request(payload)


def test_single_request():
    assert load_single_request({"symbol": "XAUUSD", "timeframe": 240})[:3] == ("XAUUSD", "240", "tradingview")
    with pytest.raises(KeyError):
        load_single_request({"symbol": "XAUUSD"})
