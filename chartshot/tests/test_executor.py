import re

import pytest

from chartshot.core.errors import (
    CaptureExhausted,
    ChartNotReady,
    ErrorKind,
    NavigationTimeout,
    PersistenceFailed,
    UnsupportedPlatform,
    UnsupportedSymbol,
)
from chartshot.core.executor import SELECTOR_TIMEOUT_MS, RetryPolicy
from chartshot.core.models import CaptureOptions, CaptureTask

from conftest import PNG, FakeDriver, FakeStorage, fails_on


def task(symbol="XAUUSD", timeframe="240", platform="tradingview", **opts):
    return CaptureTask(symbol=symbol, timeframe=timeframe, platform=platform, options=CaptureOptions(**opts))


def test_backoff_schedule():
    policy = RetryPolicy()
    assert [policy.backoff_ms(n) for n in (1, 2)] == [1000, 2000]


def test_success_on_first_attempt(make_executor, sleeps):
    driver = FakeDriver()
    result = make_executor(driver).execute(task(width=2560, height=1440))

    assert result.ok
    assert result.image_bytes == PNG
    assert result.size_bytes == len(PNG)
    assert result.platform == "tradingview"
    assert result.captured_at.tzinfo is not None
    assert result.base64 is None and result.storage_ref is None
    assert (driver.launches, driver.closes, driver.open) == (1, 1, 0)
    assert (driver.configs[0].width, driver.configs[0].height) == (2560, 1440)
    # só o delay de render do TradingView
    assert sleeps == [3.0]


def test_navigation_and_selector_timeouts(make_executor):
    driver = FakeDriver()
    make_executor(driver).execute(task(platform="investing"))
    assert driver.navigations[0][1] == 20000
    assert driver.selector_waits[0] == ("#chart, .chart-wrapper", SELECTOR_TIMEOUT_MS)


def test_exhausts_after_three_attempts_with_backoff(make_executor, sleeps):
    driver = FakeDriver(fail=fails_on("navigate", lambda: NavigationTimeout("timeout")))
    result = make_executor(driver).execute(task())

    assert not result.ok
    assert result.reason == ErrorKind.CAPTURE_EXHAUSTED
    assert "3 tentativas" in result.message
    assert driver.launches == 3
    assert driver.closes == 3 and driver.open == 0
    assert sleeps == [1.0, 2.0]


def test_recovers_on_third_attempt(make_executor, sleeps):
    driver = FakeDriver(fail=fails_on("selector", lambda: ChartNotReady("no chart"), times=2))
    result = make_executor(driver).execute(task())

    assert result.ok
    assert driver.launches == 3 and driver.open == 0
    assert sleeps == [1.0, 2.0, 3.0]


@pytest.mark.parametrize("step", ["navigate", "selector", "capture"])
def test_session_released_on_any_failing_step(make_executor, step):
    driver = FakeDriver(fail=fails_on(step, lambda: RuntimeError("boom")))
    executor = make_executor(driver)
    for _ in range(5):
        assert not executor.execute(task()).ok
    assert driver.launches == 15
    assert driver.closes == 15
    assert driver.open == 0
    assert driver.double_closes == 0


def test_attempt_reports_step_error_kind(make_executor):
    driver = FakeDriver(fail=fails_on("selector", lambda: ChartNotReady("no chart")))
    result = make_executor(driver).attempt(task(), 1)
    assert result.reason == ErrorKind.CHART_NOT_READY

    driver = FakeDriver(fail=fails_on("capture", lambda: RuntimeError("")))
    result = make_executor(driver).attempt(task(), 1)
    assert result.reason == ErrorKind.CAPTURE_FAILED
    assert result.message == "RuntimeError"


def test_cleanup_failure_is_ignored(make_executor):
    driver = FakeDriver(fail=fails_on("strip", lambda: RuntimeError("bad selector")))
    assert make_executor(driver).execute(task()).ok
    assert driver.launches == 1


def test_close_failure_does_not_mask_success(make_executor):
    driver = FakeDriver(fail=fails_on("close", lambda: RuntimeError("already dead")))
    assert make_executor(driver).execute(task()).ok


def test_launch_failure_is_retried(make_executor, sleeps):
    class BrokenDriver(FakeDriver):
        def launch(self, config):
            self.launches += 1
            raise RuntimeError("chromium not found")

    driver = BrokenDriver()
    result = make_executor(driver).execute(task())
    assert result.reason == ErrorKind.CAPTURE_EXHAUSTED
    assert driver.launches == 3
    assert sleeps == [1.0, 2.0]


def test_unsupported_symbol_never_opens_a_session(make_executor, sleeps):
    driver = FakeDriver()
    result = make_executor(driver).execute(task(symbol="DOGEUSD", platform="investing"))
    assert result.reason == ErrorKind.UNSUPPORTED_SYMBOL
    assert driver.launches == 0
    assert sleeps == []


def test_persist_writes_through_storage(make_executor):
    storage = FakeStorage()
    result = make_executor(FakeDriver(), storage).execute(task(persist=True, format="jpg"))

    filename, data, content_type = storage.saved[0]
    assert re.match(r"^XAUUSD_240_\d+\.jpg$", filename)
    assert data == PNG
    assert content_type == "image/jpeg"
    assert result.storage_ref == f"/screenshots/{filename}"


def test_persist_disabled_skips_storage(make_executor):
    storage = FakeStorage()
    make_executor(FakeDriver(), storage).execute(task())
    assert storage.saved == []


def test_persistence_failure_is_not_fatal(make_executor):
    storage = FakeStorage(error=PersistenceFailed("disk full"))
    result = make_executor(FakeDriver(), storage).execute(task(persist=True))
    assert result.ok
    assert result.storage_ref is None


def test_unexpected_storage_error_is_not_fatal(make_executor):
    driver = FakeDriver()
    storage = FakeStorage(error=RuntimeError("bucket gone"))
    result = make_executor(driver, storage).execute(task(persist=True))
    assert result.ok
    assert result.storage_ref is None
    assert driver.launches == 1


def test_base64_data_uri(make_executor):
    result = make_executor(FakeDriver()).execute(task(include_base64=True))
    assert result.base64.startswith("data:image/png;base64,")


def test_single_capture_raises_when_exhausted(make_executor):
    driver = FakeDriver(fail=fails_on("navigate", lambda: NavigationTimeout("timeout")))
    with pytest.raises(CaptureExhausted):
        make_executor(driver).capture_single(task())
    assert driver.open == 0


def test_single_capture_structural_errors(make_executor):
    driver = FakeDriver()
    with pytest.raises(UnsupportedSymbol):
        make_executor(driver).capture_single(task(symbol="NOPE"))
    with pytest.raises(UnsupportedPlatform):
        make_executor(driver).capture_single(task(platform="bloomberg"))
    assert driver.launches == 0


def test_single_capture_success(make_executor):
    result = make_executor(FakeDriver()).capture_single(task(symbol="eurusd", timeframe="60"))
    assert result.ok and result.symbol == "eurusd"
