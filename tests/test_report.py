import json

from loadbench.metrics import METRIC_DEFS, RunResult, compute_run
from loadbench.report import build_payload, format_number, render_markdown, write_reports
from loadbench.stats import build_aggregates, summarize


def _environment():
    return {
        "url": "http://127.0.0.1:8005/index.html",
        "os": {"platform": "linux", "release": "6.8.0", "arch": "x86_64", "version": None},
        "browser": {"name": "chromium", "version": "120.0", "userAgent": "Mozilla/5.0 Test"},
        "cpu": {"model": "Test CPU", "speedMHz": 3000, "cores": 8},
    }


def _payload(per_run, aggregates=None):
    return build_payload(
        mode="playwright",
        runs=len(per_run),
        url="http://127.0.0.1:8005/index.html",
        environment=_environment(),
        per_run=per_run,
        aggregates=aggregates if aggregates is not None else build_aggregates(per_run),
        generated_at="2026-01-01T00:00:00.000Z",
    )


def test_format_number():
    assert format_number(42.123) == "42.12"
    assert format_number(40) == "40.00"
    assert format_number(None) == "-"
    assert format_number(float("nan")) == "-"


def test_payload_key_order(good_metrics):
    payload = _payload([compute_run(1, good_metrics)])
    assert list(payload) == ["generatedAt", "mode", "runs", "url", "environment",
                             "metrics", "aggregates"]
    assert payload["metrics"]["perRun"][0]["run"] == 1


def test_aggregate_row_formatting():
    aggregates = {m.key: summarize([], m.unit) for m in METRIC_DEFS}
    aggregates["loadScreenBoot"] = {"unit": "ms", "count": 3, "mean": 42.123, "median": 40,
                                    "p95": 55, "min": 38, "max": 60, "stddev": None}
    md = render_markdown(_payload([], aggregates))

    assert "| Load screen boot | 42.12 | 40.00 | 55.00 | 38.00 | 60.00 | ms |" in md
    assert "| First frame FPS | - | - | - | - | - | fps |" in md


def test_markdown_environment_lines(good_metrics):
    md = render_markdown(_payload([compute_run(1, good_metrics)]))
    assert md.startswith("# Droneforge load benchmark\n")
    assert "- Mode: playwright" in md
    assert "- OS: linux 6.8.0 x86_64" in md
    assert "- Browser: chromium 120.0 | Mozilla/5.0 Test" in md
    assert "- Processor: Test CPU (8 cores)" in md


def test_per_run_rows(good_metrics):
    runs = [compute_run(1, good_metrics),
            RunResult.failed(2, "Timeout 120000ms exceeded.\n=== logs ===\n| waiting")]
    md = render_markdown(_payload(runs))
    lines = md.splitlines()

    header = next(l for l in lines if l.startswith("| run |"))
    assert header.count("|") == 10
    ok_row = next(l for l in lines if l.startswith("| 1 |"))
    assert "| 42.00 | 848.00 | 40.00 |" in ok_row
    err_row = next(l for l in lines if l.startswith("| 2 |"))
    assert err_row == ("| 2 | error: Timeout 120000ms exceeded. === logs === \\| waiting "
                       "| - | - | - | - | - | - | - |")


def test_write_reports_overwrites(tmp_path, good_metrics):
    payload = _payload([compute_run(1, good_metrics)])
    (tmp_path / "load-benchmark.json").write_text("stale")

    json_path, md_path = write_reports(payload, str(tmp_path))

    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)
    assert list(data) == list(payload)
    assert data["aggregates"]["loadingScreen"]["mean"] == 848.0
    assert data["metrics"]["perRun"][0]["values"]["firstFps"] == 62.5
    with open(md_path, encoding="utf-8") as f:
        assert f.read() == render_markdown(payload)
