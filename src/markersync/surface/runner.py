from __future__ import annotations

import logging
import os
import socket
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import uvicorn

from .api import create_app
from .store import STORE, MarkerStore

if TYPE_CHECKING:
    from ..transport.http import HttpTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurfaceServer:
    host: str
    port: int
    url: str

    def transport(self, *, timeout_s: float = 1.0) -> "HttpTransport":
        """Transport that publishes into this server."""
        from ..transport.http import HttpTransport

        return HttpTransport(self.url, timeout_s=timeout_s)


def _pick_port(host: str) -> int:
    # Bind to port 0 and let the OS choose; released before uvicorn binds it.
    with socket.create_server((host, 0)) as probe:
        return int(probe.getsockname()[1])


def normalize_base_url(url: str) -> str:
    """`host:port`, `http://host:port/` and friends all become `scheme://host:port`."""

    url = url.strip().rstrip("/")
    if url and "://" not in url:
        url = f"http://{url}"
    return url


def is_server_alive(base_url: str, *, timeout_s: float = 0.2) -> bool:
    try:
        res = httpx.get(f"{base_url}/healthz", timeout=timeout_s)
        return res.status_code == 200 and res.json() == {"ok": True}
    except (httpx.HTTPError, ValueError):
        return False


def serve(
    *,
    host: str = "127.0.0.1",
    port: int = 0,
    store: MarkerStore | None = None,
    log_level: str = "info",
    access_log: bool = False,
    startup_timeout_s: float = 5.0,
) -> SurfaceServer:
    """Start a marker surface in a background thread.

    `port=0` picks a free port. Returns once uvicorn reports startup (or
    `startup_timeout_s` passes). The uvicorn access log is off unless asked
    for, since publishers post on every tick.
    """

    if port == 0:
        port = _pick_port(host)

    app = create_app(store if store is not None else STORE)
    config = uvicorn.Config(app, host=host, port=port, log_level=log_level, access_log=access_log)
    server = uvicorn.Server(config)

    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + startup_timeout_s
    while not server.started and thread.is_alive() and time.monotonic() < deadline:
        time.sleep(0.01)
    if not server.started:
        logger.warning("surface on %s:%d did not report startup", host, port)

    return SurfaceServer(host=host, port=port, url=f"http://{host}:{port}")


def connect_or_serve(*, host: str = "127.0.0.1", port: int = 0, connect_timeout_s: float = 0.2) -> SurfaceServer:
    """Attach to MARKERSYNC_URL (or host:port) when a surface is already running, else start one."""

    env_url = normalize_base_url(os.getenv("MARKERSYNC_URL", ""))
    if env_url and is_server_alive(env_url, timeout_s=connect_timeout_s):
        u = httpx.URL(env_url)
        return SurfaceServer(host=u.host, port=int(u.port or 80), url=env_url)

    if port != 0:
        url = normalize_base_url(f"{host}:{port}")
        if is_server_alive(url, timeout_s=connect_timeout_s):
            return SurfaceServer(host=host, port=port, url=url)

    return serve(host=host, port=port)
