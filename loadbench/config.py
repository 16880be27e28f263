"""
Command-line / environment configuration for the load benchmark.

Every option falls back to a DF_BENCH_* environment variable, then to a
built-in default.
"""

import argparse
import os
from dataclasses import dataclass

from .environment import normalize_target_url

DEFAULT_RUNS = 10
DEFAULT_TIMEOUT_MS = 120000
DEFAULT_PORT = 8005
DEFAULT_OUTPUT_DIR = os.path.join("benchmark", "results")


@dataclass
class BenchConfig:
    url: str
    runs: int = DEFAULT_RUNS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    mock: bool = False
    prepare: bool = True
    port: int = DEFAULT_PORT
    root_dir: str = "."
    output_dir: str = DEFAULT_OUTPUT_DIR
    headless: bool = True
    verbose: bool = False

    @property
    def mode(self) -> str:
        return "mock" if self.mock else "playwright"

    def default_url(self) -> str:
        return f"http://127.0.0.1:{self.port}/index.html"


def _int_or(raw, default: int) -> int:
    """Parse a positive int; anything else falls back to the default."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _truthy(raw) -> bool:
    return str(raw or "").strip().lower() not in ("", "0", "false", "no", "off")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Droneforge load-time benchmark (Playwright or mock)")
    p.add_argument("target", nargs="?", default=None, help="target URL (same as --url)")
    p.add_argument("--url", default=None, help="page under test [DF_BENCH_URL]")
    p.add_argument("--runs", default=None, help=f"number of runs (default {DEFAULT_RUNS}) [DF_BENCH_RUNS]")
    p.add_argument("--timeout", default=None,
                   help=f"per-wait timeout in ms (default {DEFAULT_TIMEOUT_MS}) [DF_BENCH_TIMEOUT]")
    p.add_argument("--mock", action="store_true", help="synthetic runs, no browser [DF_BENCH_MOCK]")
    p.add_argument("--skip-prepare", action="store_true",
                   help="skip wasm build + static server [DF_BENCH_SKIP_PREPARE]")
    p.add_argument("--port", default=None, help=f"static server port (default {DEFAULT_PORT}) [DF_BENCH_PORT]")
    p.add_argument("--root-dir", default=None, help="workspace root with Cargo.toml and web/ [DF_BENCH_ROOT]")
    p.add_argument("--output-dir", default=None,
                   help=f"report directory (default {DEFAULT_OUTPUT_DIR}) [DF_BENCH_OUTPUT]")
    p.add_argument("--headless", type=int, default=None, help="1=headless, 0=visible browser [DF_BENCH_HEADLESS]")
    p.add_argument("--verbose", action="store_true", help="debug logging [DF_DEBUG_ARGS]")
    return p


def parse_args(argv=None, env=None) -> BenchConfig:
    env = os.environ if env is None else env
    args = build_parser().parse_args(argv)

    port = _int_or(args.port or env.get("DF_BENCH_PORT"), DEFAULT_PORT)
    explicit_url = args.url or args.target or env.get("DF_BENCH_URL")
    headless_raw = args.headless if args.headless is not None else env.get("DF_BENCH_HEADLESS", "1")

    cfg = BenchConfig(
        url="",
        runs=_int_or(args.runs or env.get("DF_BENCH_RUNS"), DEFAULT_RUNS),
        timeout_ms=_int_or(args.timeout or env.get("DF_BENCH_TIMEOUT"), DEFAULT_TIMEOUT_MS),
        mock=args.mock or _truthy(env.get("DF_BENCH_MOCK")),
        prepare=not (args.skip_prepare or _truthy(env.get("DF_BENCH_SKIP_PREPARE"))),
        port=port,
        root_dir=args.root_dir or env.get("DF_BENCH_ROOT") or ".",
        output_dir=args.output_dir or env.get("DF_BENCH_OUTPUT") or DEFAULT_OUTPUT_DIR,
        headless=_truthy(headless_raw),
        verbose=args.verbose or env.get("DF_DEBUG_ARGS") == "1",
    )
    cfg.url = normalize_target_url(explicit_url or cfg.default_url())
    return cfg
