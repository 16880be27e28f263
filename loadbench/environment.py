import os
import platform
import sys
from urllib.parse import urlsplit, urlunsplit


def _cpu_info() -> dict:
    model = None
    speed = None
    if os.path.exists("/proc/cpuinfo"):
        with open("/proc/cpuinfo", "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                key, _, value = line.partition(":")
                key = key.strip()
                if key == "model name" and model is None:
                    model = value.strip()
                elif key == "cpu MHz" and speed is None:
                    try:
                        speed = round(float(value))
                    except ValueError:
                        pass
                if model is not None and speed is not None:
                    break
    return {
        "model": model or platform.processor() or None,
        "speedMHz": speed,
        "cores": os.cpu_count(),
    }


def collect_environment(url: str) -> dict:
    """Host/browser metadata for the report; browser fields are filled later."""
    return {
        "url": url,
        "os": {
            "platform": sys.platform,
            "release": platform.release(),
            "arch": platform.machine(),
            "version": platform.version() or None,
        },
        "browser": {
            "name": "chromium",
            "version": None,
            "userAgent": None,
        },
        "cpu": _cpu_info(),
    }


def normalize_target_url(raw_url: str) -> str:
    """Point directory-style URLs at their index.html."""
    if not raw_url:
        return raw_url
    try:
        parts = urlsplit(raw_url)
    except ValueError:
        return raw_url
    if not parts.scheme or not parts.netloc:
        return raw_url

    path = parts.path
    last = [s for s in path.split("/") if s][-1:] or [""]
    if path.endswith("/"):
        path = f"{path}index.html"
    elif "." not in last[0]:
        path = f"{path}/index.html"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))
