from __future__ import annotations
import asyncio
from typing import Any, Dict, Optional

from prometheus_client import start_http_server

from openvpn_exporter_mcp.core.capability_base import Capability, CapabilityContext


class MetricsHttpCapability:
    """
    Prometheus exposition endpoint.

    Serves the shared registry, so every HTTP scrape runs one status scrape
    through the shared exporter. Tools:
      start_metrics_http
      stop_metrics_http
    """

    name = "metrics_http"

    def __init__(self, host: str = "0.0.0.0", port: int = 9176):
        self._ctx: Optional[CapabilityContext] = None
        self._server: Any = None
        self._thread: Any = None
        self._running = False

        self._host = host
        self._port = int(port)

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        self._ctx = ctx
        if ctx.config is not None:
            self._host = ctx.config.metrics_host
            self._port = int(ctx.config.metrics_port)
        if mcp is None:
            return

        @mcp.tool()
        async def start_metrics_http(host: str = self._host, port: int = self._port) -> str:
            return await self.start(host, port)

        @mcp.tool()
        async def stop_metrics_http() -> str:
            return await self.stop()

    async def start(self, host: str, port: int) -> str:
        if self._running:
            return "already running"
        if not self._ctx:
            return "not registered"

        self._host = host
        self._port = int(port)
        self._server, self._thread = await asyncio.to_thread(
            start_http_server, self._port, addr=self._host, registry=self._ctx.registry
        )
        # Port 0 asks the OS for a free port.
        self._port = int(self._server.server_address[1])
        self._running = True
        self._ctx.log(f"metrics endpoint listening on {self._host}:{self._port}")
        return f"metrics endpoint started on {self._host}:{self._port}"

    async def stop(self) -> str:
        if not self._running:
            return "not running"

        await asyncio.to_thread(self._server.shutdown)
        self._server.server_close()
        self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        self._running = False
        return "stopped"

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "running": self._running,
            "host": self._host,
            "port": self._port,
        }


def build_capability() -> Capability:
    return MetricsHttpCapability()
