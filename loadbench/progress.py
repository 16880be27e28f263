import sys

BAR_WIDTH = 24


def render_progress(current: int, total: int, stream=None) -> None:
    """Redraw `Runs [####----] i/N` in place; newline once complete."""
    stream = stream or sys.stdout
    if total <= 0:
        return
    clamped = max(0, min(current, total))
    filled = round(clamped / total * BAR_WIDTH)
    bar = "[" + "#" * filled + "-" * (BAR_WIDTH - filled) + "]"
    stream.write(f"\rRuns {bar} {clamped}/{total}")
    if clamped == total:
        stream.write("\n")
    stream.flush()
