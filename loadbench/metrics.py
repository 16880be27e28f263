"""
Metric registry and per-run derivation.

compute_run() turns the raw markers reported by a run (synthetic or live
browser) into the fixed set of derived metrics. Any absent or non-finite
marker yields None for every metric that depends on it.
"""

from dataclasses import dataclass, field

from .common import is_number, to_number


@dataclass(frozen=True)
class MetricDefinition:
    key: str
    label: str
    unit: str  # "ms" | "fps"


# ── Derived metrics, in report order ──
METRIC_DEFS = (
    MetricDefinition("loadScreenBoot", "Load screen boot", "ms"),
    MetricDefinition("loadingScreen", "Loading screen", "ms"),
    MetricDefinition("loadingFirstFrame", "Loading to first frame", "ms"),
    MetricDefinition("chunkLoadingTime", "Chunk cache build", "ms"),
    MetricDefinition("renderCaching5", "Render cache ±5", "ms"),
    MetricDefinition("avgChunkLoad", "Average chunk load", "ms"),
    MetricDefinition("firstFrameDelta", "First frame delta", "ms"),
    MetricDefinition("firstFps", "First frame FPS", "fps"),
)

METRIC_KEYS = tuple(m.key for m in METRIC_DEFS)

POINT_KEYS = ("gameHtmlStart", "gameLoadStart", "gameReadyAt", "firstFrameAt")

# Everything the page exposes on window.droneforgeMetrics
RAW_METRIC_KEYS = POINT_KEYS + (
    "firstFrameDelta",
    "firstFps",
    "chunkLoadingTime",
    "renderCaching5",
    "avgChunkLoad",
)


@dataclass(frozen=True)
class RunResult:
    run: int
    points: dict = field(default_factory=dict)
    values: dict = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def failed(cls, run_index: int, message: str) -> "RunResult":
        return cls(run=run_index, points={}, values={}, error=message)

    def to_dict(self) -> dict:
        out = {"run": self.run}
        if self.error is not None:
            out["error"] = self.error
        out["points"] = dict(self.points)
        out["values"] = dict(self.values)
        return out


def diff(a, b) -> float | None:
    return to_number(float(a - b)) if is_number(a) and is_number(b) else None


def _first_fps(reported, frame_delta) -> float | None:
    fps = to_number(reported)
    if fps:
        return fps
    if is_number(frame_delta) and frame_delta > 0:
        return 1000.0 / frame_delta
    return None


def compute_run(run_index: int, raw: dict) -> RunResult:
    """Derive the metric values for one run from its raw markers."""
    points = {k: to_number(raw.get(k)) for k in POINT_KEYS}
    frame_delta = to_number(raw.get("firstFrameDelta"))

    values = {
        "loadScreenBoot": diff(points["gameLoadStart"], points["gameHtmlStart"]),
        "loadingScreen": diff(points["gameReadyAt"], points["gameLoadStart"]),
        "loadingFirstFrame": diff(points["firstFrameAt"], points["gameReadyAt"]),
        "firstFrameDelta": frame_delta,
        "firstFps": _first_fps(raw.get("firstFps"), frame_delta),
        "chunkLoadingTime": to_number(raw.get("chunkLoadingTime")),
        "renderCaching5": to_number(raw.get("renderCaching5")),
        "avgChunkLoad": to_number(raw.get("avgChunkLoad")),
    }
    return RunResult(run=run_index, points=points, values=values)
