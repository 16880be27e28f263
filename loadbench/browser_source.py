"""
Live run source: drives one Playwright page per run against the game page.

Page contract:
  window.gameLoadStart      number, set when loading begins
  window.gameReady          true once the game has initialized
  #start-button             enabled once ready; click starts the render loop
  window.droneforgeMetrics  marker object read at the end of the run
"""

import logging

from .metrics import RunResult, compute_run

logger = logging.getLogger("loadbench.browser")

START_BUTTON_SELECTOR = "#start-button"

JS_LOAD_STARTED = "() => typeof window.gameLoadStart === 'number'"
JS_GAME_READY = "() => window.gameReady === true"
JS_FIRST_FRAME = """
    () => {
        const metrics = window.droneforgeMetrics;
        if (!metrics) return false;
        return typeof metrics.firstFrameAt === 'number'
            && typeof metrics.firstFrameDelta === 'number';
    }
"""
JS_READ_METRICS = """
    () => {
        const metrics = window.droneforgeMetrics || {};
        return {
            gameHtmlStart: metrics.gameHtmlStart ?? null,
            gameLoadStart: metrics.gameLoadStart ?? null,
            gameReadyAt: metrics.gameReadyAt ?? null,
            firstFrameAt: metrics.firstFrameAt ?? null,
            firstFrameDelta: metrics.firstFrameDelta ?? null,
            firstFps: metrics.firstFps ?? null,
            chunkLoadingTime: metrics.chunkLoadingTime ?? null,
            renderCaching5: metrics.renderCaching5 ?? null,
            avgChunkLoad: metrics.avgChunkLoad ?? null,
        };
    }
"""


class BrowserRunSource:
    """
    Collects one RunResult per call from a shared browser context.

    The context is owned by the Orchestrator; each run opens its own page and
    always closes it before returning. Failures are returned as error
    results so the remaining runs still execute.
    """

    mode = "playwright"

    def __init__(self, context, url: str, nav_timeout_ms: int):
        self._context = context
        self._url = url
        self._timeout = nav_timeout_ms
        self.user_agent: str | None = None

    async def collect(self, run_index: int) -> RunResult:
        page = None
        try:
            page = await self._context.new_page()
            page.on("console", lambda msg: logger.debug(f"[Run {run_index}] console.{msg.type}: {msg.text}"))
            page.on("pageerror", lambda err: logger.debug(f"[Run {run_index}] pageerror: {err}"))
            raw = await self._drive(page)
            return compute_run(run_index, raw)
        except Exception as e:
            logger.warning(f"[Run {run_index}] failed: {_first_line(e)}")
            return RunResult.failed(run_index, str(e) or type(e).__name__)
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.warning(f"[Run {run_index}] page close failed: {_first_line(e)}")

    async def _drive(self, page) -> dict:
        timeout = self._timeout
        await page.goto(self._url, wait_until="networkidle", timeout=timeout)

        if self.user_agent is None:
            self.user_agent = await page.evaluate("() => navigator.userAgent")

        await page.wait_for_function(JS_LOAD_STARTED, timeout=timeout)
        await page.wait_for_function(JS_GAME_READY, timeout=timeout)
        await page.wait_for_selector(f"{START_BUTTON_SELECTOR}:not([disabled])", timeout=timeout)
        await page.click(START_BUTTON_SELECTOR, timeout=timeout)
        await page.wait_for_function(JS_FIRST_FRAME, timeout=timeout)

        return await page.evaluate(JS_READ_METRICS)


def _first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__
