import threading
import time

import pytest

from chartshot.core.executor import CaptureExecutor
from chartshot.core.interfaces import BrowserDriver, BrowserSession, Storage
from chartshot.core.orchestrator import BatchOrchestrator, OrchestratorConfig
from chartshot.platforms.registry import default_registry

PNG = b"\x89PNG\r\n\x1a\nfake-chart"


class FakeSession(BrowserSession):
    def __init__(self, driver, config):
        self.driver = driver
        self.config = config
        self.url = None
        self.closed = False

    def _step(self, step):
        err = self.driver.fail(self.url, step)
        if err is not None:
            raise err

    def navigate(self, url, timeout_ms):
        self.url = url
        self.driver.navigations.append((url, timeout_ms))
        if self.driver.hold:
            time.sleep(self.driver.hold)
        self._step("navigate")

    def wait_for_selector(self, selector, timeout_ms):
        self.driver.selector_waits.append((selector, timeout_ms))
        self._step("selector")

    def remove_elements(self, selectors):
        self._step("strip")

    def capture_image(self, format):
        self._step("capture")
        return self.driver.image

    def close(self):
        with self.driver.lock:
            if self.closed:
                self.driver.double_closes += 1
                return
            self.closed = True
            self.driver.open -= 1
            self.driver.closes += 1
        self._step("close")


class FakeDriver(BrowserDriver):
    """Conta sessões abertas ao mesmo tempo; fail(url, step) decide qual passo quebra."""

    def __init__(self, fail=None, hold=0.0, image=PNG):
        self.fail = fail or (lambda url, step: None)
        self.hold = hold
        self.image = image
        self.lock = threading.Lock()
        self.open = 0
        self.max_open = 0
        self.launches = 0
        self.closes = 0
        self.double_closes = 0
        self.configs = []
        self.navigations = []
        self.selector_waits = []

    def launch(self, config):
        with self.lock:
            self.launches += 1
            self.open += 1
            self.max_open = max(self.max_open, self.open)
            self.configs.append(config)
        return FakeSession(self, config)


class FakeStorage(Storage):
    def __init__(self, error=None):
        self.error = error
        self.saved = []

    def store(self, filename, data, content_type):
        if self.error is not None:
            raise self.error
        self.saved.append((filename, data, content_type))
        return f"/screenshots/{filename}"


def fails_on(step, error_factory, symbol=None, times=None):
    """Falha no passo indicado (opcionalmente só para um símbolo e só nas N primeiras vezes)."""
    counter = {"n": 0}
    lock = threading.Lock()

    def _fail(url, current):
        if current != step:
            return None
        if symbol is not None and (url is None or symbol not in url):
            return None
        with lock:
            counter["n"] += 1
            if times is not None and counter["n"] > times:
                return None
        return error_factory()

    return _fail


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_executor(sleeps):
    def _make(driver, storage=None):
        return CaptureExecutor(default_registry(), driver, storage=storage, sleep=sleeps.append)
    return _make


@pytest.fixture
def make_orchestrator(make_executor):
    def _make(driver, cap=3, storage=None, max_batch_size=20):
        return BatchOrchestrator(
            make_executor(driver, storage),
            OrchestratorConfig(max_concurrency=cap, max_batch_size=max_batch_size),
        )
    return _make
