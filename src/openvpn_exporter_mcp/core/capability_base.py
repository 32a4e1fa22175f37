from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol


@dataclass
class CapabilityContext:
    """
    Shared runtime objects provided by the core server to each capability.

    exporter
      Shared StatusExporter. Capabilities scrape through it so the server
      location and geo cache are shared.

    registry
      prometheus_client CollectorRegistry with the status collector
      registered on it.

    resolver
      The caching GeoResolver used by the exporter.

    config
      ExporterConfig the server was started with.

    log
      Logging function bound to the server logger.
    """

    exporter: Any
    registry: Any
    resolver: Any
    config: Any
    log: Callable[[str], None]


class Capability(Protocol):
    """
    Required interface for a capability plugin.

    A capability is responsible for
    1. Registering MCP tools
    2. Exposing the shared exporter in some way (HTTP, lookups, ...)

    The core server never imports specific capabilities directly.
    It loads them via registry using import paths.
    """

    name: str

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        """
        Called once at server startup. Capabilities should register tools here.
        """
        ...

    def status(self) -> Dict[str, Any]:
        """
        Return quick health and counters. Must be fast and side effect free.
        """
        ...
