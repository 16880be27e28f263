"""
Environment setup and teardown for live benchmark runs.

Build the WASM artifact, free the serving port, start a static file server
over the web directory and launch the shared Chromium instance. The
Orchestrator owns the server process and the browser; run_suite releases
both from finally blocks.
"""

import logging
import os
import shutil
import signal
import subprocess
import sys
import time
from pathlib import Path

import requests

logger = logging.getLogger("loadbench.orchestrator")

TARGET_TRIPLE = "wasm32-unknown-unknown"
SERVER_SETTLE_S = 1.0
SERVER_PROBE_ATTEMPTS = 5
SERVER_PROBE_INTERVAL_S = 0.5
SERVER_STOP_GRACE_S = 5

CHROMIUM_ARGS = ["--disable-gpu", "--disable-dev-shm-usage"]
VIEWPORT = {"width": 1280, "height": 720}


class OrchestrationError(RuntimeError):
    """Fatal setup failure; no runs are attempted after this."""


# ── Port freeing: one strategy per host platform ──

def _kill_port_windows(port: int) -> None:
    script = (f"Get-NetTCPConnection -State Listen -LocalPort {port} | "
              f"ForEach-Object {{ Stop-Process -Id $_.OwningProcess -Force }}")
    subprocess.run(["powershell", "-NoProfile", "-Command", script],
                   capture_output=True, check=True)


def _kill_port_posix(port: int) -> None:
    subprocess.run(["sh", "-c", f"lsof -ti tcp:{port} | xargs -r kill -9"],
                   capture_output=True, check=True)


PORT_KILLERS = {
    "windows": _kill_port_windows,
    "posix": _kill_port_posix,
}


def port_killer_for(platform: str = sys.platform):
    return PORT_KILLERS["windows" if platform.startswith("win") else "posix"]


def free_port(port: int, killer=None) -> None:
    """Best effort: kill whatever listens on the port; never raises."""
    killer = killer or port_killer_for()
    try:
        killer(port)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"[Port] could not free {port}: {e}")


class Orchestrator:
    def __init__(self, root_dir: str, port: int, crate: str = "droneforge-web",
                 web_dir: str | None = None,
                 server_cmd: list[str] | None = None,
                 settle_s: float = SERVER_SETTLE_S):
        self.root_dir = Path(root_dir)
        self.port = port
        self.crate = crate
        self.web_dir = Path(web_dir) if web_dir else self.root_dir / "web"
        self.server_cmd = server_cmd or ["simple-http-server", ".", "-p", str(port)]
        self.settle_s = settle_s

        self.server: subprocess.Popen | None = None
        self.browser = None
        self.context = None
        self.browser_name = "chromium"
        self.browser_version: str | None = None

    @property
    def artifact_name(self) -> str:
        return f"{self.crate}.wasm"

    @property
    def artifact_path(self) -> Path:
        return self.root_dir / "target" / TARGET_TRIPLE / "release" / self.artifact_name

    @property
    def server_url(self) -> str:
        return f"http://127.0.0.1:{self.port}/index.html"

    # ── Build ──

    def build_artifact(self) -> Path:
        cmd = ["cargo", "build", "-p", self.crate, "--release", "--target", TARGET_TRIPLE]
        logger.info(f"[Build] {' '.join(cmd)}")
        try:
            subprocess.run(cmd, cwd=self.root_dir, check=True)
        except FileNotFoundError as e:
            raise OrchestrationError(f"build command not found: {cmd[0]}") from e
        except subprocess.CalledProcessError as e:
            raise OrchestrationError(f"{cmd[0]} exited with code {e.returncode}") from e

        if not self.artifact_path.exists():
            raise OrchestrationError(f"WASM build output not found at {self.artifact_path}")
        return self.artifact_path

    # ── Server ──

    def start_server(self) -> subprocess.Popen:
        self.web_dir.mkdir(parents=True, exist_ok=True)
        dest = self.web_dir / self.artifact_name
        shutil.copyfile(self.artifact_path, dest)
        logger.info(f"[Server] copied wasm to {dest}")

        logger.info(f"[Server] ensuring port {self.port} is free")
        free_port(self.port)

        logger.info(f"[Server] starting {' '.join(self.server_cmd)} in {self.web_dir}")
        popen_kwargs = {"cwd": self.web_dir}
        if os.name == "posix":
            popen_kwargs["start_new_session"] = True
        try:
            self.server = subprocess.Popen(self.server_cmd, **popen_kwargs)
        except FileNotFoundError as e:
            raise OrchestrationError(f"server command not found: {self.server_cmd[0]}") from e

        time.sleep(self.settle_s)
        self._check_server()
        return self.server

    def _check_server(self) -> None:
        last_error = None
        for _ in range(SERVER_PROBE_ATTEMPTS):
            rc = self.server.poll()
            if rc is not None:
                raise OrchestrationError(f"server exited with code {rc}")
            try:
                requests.get(self.server_url, timeout=5)
                return
            except requests.RequestException as e:
                last_error = e
                time.sleep(SERVER_PROBE_INTERVAL_S)
        raise OrchestrationError(f"server not reachable at {self.server_url}: {last_error}")

    def prepare(self) -> None:
        self.build_artifact()
        self.start_server()

    def stop_server(self) -> None:
        proc, self.server = self.server, None
        if proc is None or proc.poll() is not None:
            return
        logger.info(f"[Server] stopping pid={proc.pid}")
        _signal_group(proc, signal.SIGTERM)
        try:
            proc.wait(timeout=SERVER_STOP_GRACE_S)
        except subprocess.TimeoutExpired:
            _signal_group(proc, getattr(signal, "SIGKILL", signal.SIGTERM))
            proc.wait()

    # ── Browser ──

    async def launch_browser(self, playwright, headless: bool = True):
        chromium = playwright.chromium
        self.browser = await chromium.launch(headless=headless, args=CHROMIUM_ARGS)
        self.browser_name = chromium.name
        self.browser_version = self.browser.version
        self.context = await self.browser.new_context(viewport=VIEWPORT, bypass_csp=True)
        logger.info(f"[Browser] {self.browser_name} {self.browser_version} launched")
        return self.context

    async def close_browser(self) -> None:
        browser, self.browser, self.context = self.browser, None, None
        if browser is not None:
            await browser.close()

    def teardown(self) -> None:
        self.stop_server()


def _signal_group(proc: subprocess.Popen, sig) -> None:
    try:
        if os.name == "posix":
            os.killpg(os.getpgid(proc.pid), sig)
        else:
            proc.send_signal(sig)
    except (ProcessLookupError, PermissionError) as e:
        logger.debug(f"[Server] signal {sig} to pid={proc.pid} failed: {e}")
