"""
JSON + Markdown rendering of the benchmark payload.

Both renderers are pure functions of the payload dict.
"""

import os
from datetime import datetime, timezone

from .common import is_number, write_json, write_text
from .metrics import METRIC_DEFS, METRIC_KEYS

JSON_REPORT_NAME = "load-benchmark.json"
MD_REPORT_NAME = "load-benchmark.md"


def _utc_now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_payload(mode: str, runs: int, url: str, environment: dict,
                  per_run: list, aggregates: dict,
                  generated_at: str | None = None) -> dict:
    return {
        "generatedAt": generated_at or _utc_now_iso(),
        "mode": mode,
        "runs": runs,
        "url": url,
        "environment": environment,
        "metrics": {
            "perRun": [r if isinstance(r, dict) else r.to_dict() for r in per_run],
        },
        "aggregates": aggregates,
    }


def format_number(value) -> str:
    if not is_number(value):
        return "-"
    return f"{value:.2f}"


def _cell(text: str) -> str:
    return " ".join(str(text).split()).replace("|", "\\|")


def _os_line(os_info: dict) -> str:
    version = f" ({os_info['version']})" if os_info.get("version") else ""
    return f"{os_info.get('platform')} {os_info.get('release')}{version} {os_info.get('arch')}"


def _browser_line(browser: dict) -> str:
    line = str(browser.get("name"))
    if browser.get("version"):
        line += f" {browser['version']}"
    if browser.get("userAgent"):
        line += f" | {browser['userAgent']}"
    return line


def _cpu_line(cpu: dict) -> str:
    line = cpu.get("model") or "unknown"
    if cpu.get("cores"):
        line += f" ({cpu['cores']} cores)"
    return line


def render_markdown(payload: dict) -> str:
    env = payload.get("environment") or {}
    lines = [
        "# Droneforge load benchmark",
        "",
        f"- Mode: {payload['mode']}",
        f"- Runs: {payload['runs']}",
        f"- URL: {payload['url']}",
        f"- Generated: {payload['generatedAt']}",
        f"- OS: {_os_line(env.get('os') or {})}",
        f"- Browser: {_browser_line(env.get('browser') or {})}",
        f"- Processor: {_cpu_line(env.get('cpu') or {})}",
        "",
        "## Aggregated metrics (ms unless noted)",
        "| metric | mean | median | p95 | min | max | unit |",
        "| --- | --- | --- | --- | --- | --- | --- |",
    ]
    aggregates = payload.get("aggregates") or {}
    for meta in METRIC_DEFS:
        agg = aggregates.get(meta.key) or {}
        cols = [format_number(agg.get(k)) for k in ("mean", "median", "p95", "min", "max")]
        lines.append(f"| {meta.label} | {' | '.join(cols)} | {meta.unit} |")

    lines += [
        "",
        "## Per-run metrics",
        f"| run | {' | '.join(METRIC_KEYS)} |",
        "| --- |" + " --- |" * len(METRIC_KEYS),
    ]
    for run in payload["metrics"]["perRun"]:
        if run.get("error"):
            cols = [f"error: {_cell(run['error'])}"] + ["-"] * (len(METRIC_KEYS) - 1)
        else:
            values = run.get("values") or {}
            cols = [format_number(values.get(k)) for k in METRIC_KEYS]
        lines.append(f"| {run['run']} | {' | '.join(cols)} |")

    lines += [
        "",
        "Values are in milliseconds except `firstFps`, which is frames per second. "
        "Results are generated by `loadbench`.",
    ]
    return "\n".join(lines) + "\n"


def write_reports(payload: dict, output_dir: str) -> tuple[str, str]:
    json_path = os.path.join(output_dir, JSON_REPORT_NAME)
    md_path = os.path.join(output_dir, MD_REPORT_NAME)
    write_json(json_path, payload)
    write_text(md_path, render_markdown(payload))
    return json_path, md_path
