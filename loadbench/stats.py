"""
Summary statistics across runs.

Conventions are fixed so results stay comparable with earlier reports:
linear-interpolation percentiles and population standard deviation.
"""

import numpy as np

from .common import is_number, to_number
from .metrics import METRIC_DEFS


def percentile(sorted_values, rank: float) -> float | None:
    """Linear-interpolation percentile of ascending values, rank in [0, 1]."""
    if len(sorted_values) == 0:
        return None
    arr = np.asarray(sorted_values, dtype=np.float64)
    return to_number(float(np.percentile(arr, rank * 100.0, method="linear")))


def _empty_summary(unit: str) -> dict:
    return {"unit": unit, "count": 0, "mean": None, "median": None, "p95": None,
            "min": None, "max": None, "stddev": None}


def summarize(values, unit: str) -> dict:
    """Compute count/mean/median/p95/min/max/stddev over the finite values."""
    finite = sorted(float(v) for v in values if is_number(v))
    if not finite:
        return _empty_summary(unit)
    arr = np.array(finite, dtype=np.float64)
    # sums of values near float max overflow; report those stats as absent
    with np.errstate(over="ignore", invalid="ignore"):
        mean, median, stddev = np.mean(arr), np.median(arr), np.std(arr)
    return {
        "unit": unit,
        "count": len(finite),
        "mean": to_number(float(mean)),
        "median": to_number(float(median)),
        "p95": percentile(finite, 0.95),
        "min": finite[0],
        "max": finite[-1],
        "stddev": to_number(float(stddev)),
    }


def _run_values(run) -> dict:
    if isinstance(run, dict):
        return run.get("values") or {}
    return run.values or {}


def build_aggregates(runs) -> dict:
    aggregates = {}
    for meta in METRIC_DEFS:
        series = [_run_values(r).get(meta.key) for r in runs]
        aggregates[meta.key] = summarize(series, meta.unit)
    return aggregates
