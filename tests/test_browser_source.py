import pytest

from loadbench.browser_source import BrowserRunSource
from loadbench.run_suite import run_trials
from loadbench.stats import build_aggregates
from tests.conftest import FakeContext, FakePage

FULL_SEQUENCE = ["goto", "user_agent", "load_start", "game_ready", "start_enabled",
                 "click", "first_frame", "read_metrics"]


def _silent_progress(current, total):
    pass


async def test_collect_success_follows_protocol():
    page = FakePage()
    source = BrowserRunSource(FakeContext([page]), "http://127.0.0.1:8005/index.html", 1000)

    result = await source.collect(1)

    assert result.error is None
    assert result.values["loadingScreen"] == 848.0
    assert result.values["firstFps"] == pytest.approx(62.5)
    assert page.calls == FULL_SEQUENCE
    assert page.closed
    assert source.user_agent == "FakeChromium/1.0"


async def test_user_agent_read_only_once():
    pages = [FakePage(user_agent="first"), FakePage(user_agent="second")]
    source = BrowserRunSource(FakeContext(pages), "http://x/index.html", 1000)

    await source.collect(1)
    await source.collect(2)

    assert source.user_agent == "first"
    assert "user_agent" not in pages[1].calls


async def test_game_never_ready_is_recorded_as_error():
    page = FakePage(fail_on="game_ready")
    source = BrowserRunSource(FakeContext([page]), "http://x/index.html", 100)

    result = await source.collect(4)

    assert result.run == 4
    assert "Timeout 100ms exceeded" in result.error
    assert result.points == {}
    assert result.values == {}
    assert page.closed
    assert "click" not in page.calls


@pytest.mark.parametrize("step", FULL_SEQUENCE)
async def test_any_step_failure_closes_page(step):
    page = FakePage(fail_on=step)
    result = await BrowserRunSource(FakeContext([page]), "http://x/", 100).collect(1)
    assert result.error
    assert page.closed


async def test_close_failure_does_not_escape():
    page = FakePage()

    async def broken_close():
        raise RuntimeError("Target closed")

    page.close = broken_close
    result = await BrowserRunSource(FakeContext([page]), "http://x/", 100).collect(1)
    assert result.error is None


async def test_failed_run_does_not_abort_remaining_runs():
    pages = [FakePage(), FakePage(fail_on="game_ready"), FakePage()]
    context = FakeContext(pages)
    source = BrowserRunSource(context, "http://x/index.html", 100)

    per_run = await run_trials(source, 3, progress=_silent_progress)

    assert [r.run for r in per_run] == [1, 2, 3]
    assert per_run[1].error
    assert per_run[0].error is None and per_run[2].error is None
    assert all(p.closed for p in context.opened)
    aggregates = build_aggregates(per_run)
    assert aggregates["loadingScreen"]["count"] == 2
    assert aggregates["firstFrameDelta"]["count"] == 2


async def test_new_page_failure_is_recorded():
    class BrokenContext:
        async def new_page(self):
            raise RuntimeError("Browser has been closed")

    result = await BrowserRunSource(BrokenContext(), "http://x/", 100).collect(2)
    assert result.run == 2
    assert result.error == "Browser has been closed"
