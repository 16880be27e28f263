"""
Synthetic runs for benchmarking without a browser.

Each run is seeded from its index, so run N always produces the same raw
markers. Values are in the same shape the live page reports and go through
the same compute_run() as real runs.
"""

from .metrics import RunResult, compute_run

MOCK_SEED_BASE = 42

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def mulberry32(seed: int):
    """mulberry32 PRNG; returns a callable yielding floats in [0, 1)."""
    state = seed & _MASK32

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = _imul(state ^ (state >> 15), 1 | state)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296.0

    return next_float


def generate_mock_metrics(run_index: int) -> dict:
    rng = mulberry32(MOCK_SEED_BASE + run_index)

    def jitter(base: float, spread: float) -> float:
        return base + rng() * spread

    # draw order matters for reproducibility
    load_screen_boot = jitter(40, 25)
    loading_screen = jitter(800, 200)
    loading_first_frame = jitter(40, 25)
    chunk_loading_time = jitter(450, 80)
    render_caching5 = jitter(380, 90)
    avg_chunk_load = jitter(12, 6)
    first_frame_delta = jitter(16, 4)
    first_fps = 1000.0 / first_frame_delta if first_frame_delta > 0 else None

    game_html_start = 0.0
    game_load_start = game_html_start + load_screen_boot
    game_ready_at = game_load_start + loading_screen
    first_frame_at = game_ready_at + loading_first_frame

    return {
        "gameHtmlStart": game_html_start,
        "gameLoadStart": game_load_start,
        "gameReadyAt": game_ready_at,
        "firstFrameAt": first_frame_at,
        "firstFrameDelta": first_frame_delta,
        "firstFps": first_fps,
        "chunkLoadingTime": chunk_loading_time,
        "renderCaching5": render_caching5,
        "avgChunkLoad": avg_chunk_load,
    }


class SyntheticRunSource:
    """Run source that fabricates deterministic markers per run index."""

    mode = "mock"
    browser_name = "mock"
    browser_version = "mock"
    user_agent = None

    async def collect(self, run_index: int) -> RunResult:
        return compute_run(run_index, generate_mock_metrics(run_index))
