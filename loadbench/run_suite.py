#!/usr/bin/env python3
"""
Droneforge load benchmark: N sequential runs, aggregated into JSON + Markdown.

Live mode builds the WASM crate, serves web/ with a static file server and
drives headless Chromium through Playwright. Mock mode (--mock or
DF_BENCH_MOCK=1) synthesizes deterministic runs instead.

Usage:
    loadbench --mock --runs 5
    loadbench --runs 10 --port 8005 --root-dir ~/src/droneforge
    loadbench --skip-prepare --url http://127.0.0.1:8080/
"""
import asyncio
import logging

from .browser_source import BrowserRunSource
from .config import BenchConfig, parse_args
from .environment import collect_environment
from .mock_source import SyntheticRunSource
from .orchestrator import OrchestrationError, Orchestrator
from .progress import render_progress
from .report import build_payload, write_reports
from .stats import build_aggregates

logger = logging.getLogger("loadbench")


async def run_trials(source, runs: int, progress=render_progress) -> list:
    """Run 1..N strictly one after another; a failed run keeps its slot."""
    per_run = []
    progress(0, runs)
    for run_index in range(1, runs + 1):
        per_run.append(await source.collect(run_index))
        progress(run_index, runs)
    return per_run


async def _run_mock(cfg: BenchConfig):
    source = SyntheticRunSource()
    per_run = await run_trials(source, cfg.runs)
    return per_run, {"name": source.browser_name, "version": source.browser_version,
                     "userAgent": source.user_agent}


async def _run_live(cfg: BenchConfig, orch: Orchestrator):
    try:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import async_playwright
    except ImportError as e:
        raise OrchestrationError(
            "Playwright is not installed. Run `pip install playwright && playwright install chromium`."
        ) from e

    async with async_playwright() as pw:
        try:
            context = await orch.launch_browser(pw, headless=cfg.headless)
        except PlaywrightError as e:
            raise OrchestrationError(f"browser launch failed: {e}") from e
        try:
            source = BrowserRunSource(context, cfg.url, cfg.timeout_ms)
            per_run = await run_trials(source, cfg.runs)
        finally:
            await orch.close_browser()

    return per_run, {"name": orch.browser_name, "version": orch.browser_version,
                     "userAgent": source.user_agent}


def run_benchmark(cfg: BenchConfig, orch: Orchestrator | None = None) -> dict:
    """Prepare, run and aggregate; returns the payload. Raises OrchestrationError."""
    orch = orch or Orchestrator(cfg.root_dir, cfg.port)
    environment = collect_environment(cfg.url)
    try:
        if cfg.mock:
            per_run, browser = asyncio.run(_run_mock(cfg))
        else:
            if cfg.prepare:
                orch.prepare()
            per_run, browser = asyncio.run(_run_live(cfg, orch))
    finally:
        orch.teardown()

    environment["browser"].update(browser)
    return build_payload(
        mode=cfg.mode,
        runs=cfg.runs,
        url=cfg.url,
        environment=environment,
        per_run=per_run,
        aggregates=build_aggregates(per_run),
    )


def main(argv=None) -> int:
    cfg = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if cfg.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.debug(f"[Args] {cfg}")
    logger.info(f"[LoadBench] mode={cfg.mode} runs={cfg.runs} url={cfg.url}")

    try:
        payload = run_benchmark(cfg)
    except OrchestrationError as e:
        logger.error(f"[LoadBench] Benchmark run failed: {e}")
        return 1

    json_path, md_path = write_reports(payload, cfg.output_dir)

    per_run = payload["metrics"]["perRun"]
    ok = sum(1 for r in per_run if not r.get("error"))
    fps = payload["aggregates"]["firstFps"]
    boot = payload["aggregates"]["loadingScreen"]
    print(f"\n{'='*60}")
    print(f"[LoadBench] RESULT: {ok}/{len(per_run)} runs OK")
    if boot["count"]:
        print(f"[LoadBench] Loading screen: mean={boot['mean']:.0f}ms p95={boot['p95']:.0f}ms")
    if fps["count"]:
        print(f"[LoadBench] First frame FPS: median={fps['median']:.1f}")
    print(f"[LoadBench] JSON: {json_path}")
    print(f"[LoadBench] Report: {md_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
