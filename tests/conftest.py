import pytest

from loadbench.browser_source import JS_GAME_READY, JS_LOAD_STARTED

GOOD_METRICS = {
    "gameHtmlStart": 10.0,
    "gameLoadStart": 52.0,
    "gameReadyAt": 900.0,
    "firstFrameAt": 940.0,
    "firstFrameDelta": 16.0,
    "firstFps": None,
    "chunkLoadingTime": 450.0,
    "renderCaching5": 380.0,
    "avgChunkLoad": 12.5,
}


class FakePage:
    """Stands in for a Playwright page; `fail_on` names the wait that times out."""

    def __init__(self, metrics=None, fail_on=None, user_agent="FakeChromium/1.0"):
        self.metrics = dict(GOOD_METRICS if metrics is None else metrics)
        self.fail_on = fail_on
        self.user_agent = user_agent
        self.calls = []
        self.closed = False
        self.handlers = {}

    def on(self, event, handler):
        self.handlers[event] = handler

    def _step(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise TimeoutError(f"Timeout 100ms exceeded.\nwaiting for {name}")

    async def goto(self, url, wait_until=None, timeout=None):
        self._step("goto")

    async def evaluate(self, script):
        if "navigator.userAgent" in script:
            self._step("user_agent")
            return self.user_agent
        self._step("read_metrics")
        return dict(self.metrics)

    async def wait_for_function(self, script, timeout=None):
        if script == JS_LOAD_STARTED:
            self._step("load_start")
        elif script == JS_GAME_READY:
            self._step("game_ready")
        else:
            self._step("first_frame")

    async def wait_for_selector(self, selector, timeout=None):
        self._step("start_enabled")

    async def click(self, selector, timeout=None):
        self._step("click")

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, pages):
        self._pages = list(pages)
        self.opened = []

    async def new_page(self):
        page = self._pages.pop(0)
        self.opened.append(page)
        return page


@pytest.fixture
def good_metrics():
    return dict(GOOD_METRICS)
