from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from prometheus_client import CollectorRegistry

from .capability_base import CapabilityContext
from .collector import StatusCollector
from .config import ExporterConfig
from .exporter import StatusExporter
from .geo import CachingResolver, GeoResolver, IpApiResolver
from .registry import CapabilityRegistry

logger = logging.getLogger(__name__)


class ExporterMCPServer:
    """
    MCP server around one OpenVPN status exporter.

    Responsibilities:
      Build the caching geo resolver and the exporter
      Register the status collector on a Prometheus registry
      Load configured capabilities and register their tools
      Expose core scrape tools
    """

    def __init__(self, config: ExporterConfig, resolver: Optional[GeoResolver] = None):
        self.config = config
        self.resolver = CachingResolver(
            resolver or IpApiResolver(base_url=config.geo_url, timeout=config.geo_timeout)
        )
        self.exporter = StatusExporter(config.status_path, self.resolver, dedupe_mode=config.dedupe_mode)

        self.metrics_registry = CollectorRegistry()
        self.metrics_registry.register(StatusCollector(self.exporter))

        self.registry = CapabilityRegistry()
        self.mcp = FastMCP("openvpn_exporter_mcp")

        self._load_capabilities(config.capabilities)
        self._register_core_tools()

    def _log(self, msg: str) -> None:
        logger.info(msg)

    def context(self) -> CapabilityContext:
        return CapabilityContext(
            exporter=self.exporter,
            registry=self.metrics_registry,
            resolver=self.resolver,
            config=self.config,
            log=self._log,
        )

    def _load_capabilities(self, imports: List[str]) -> None:
        self.registry.load_from_import_paths(imports)
        ctx = self.context()
        paths = self.registry.import_paths()

        for name in self.registry.list():
            cap = self.registry.get(name)
            cap.register_tools(self.mcp, ctx)
            logger.info("Loaded capability %s from %s", name, paths[name])

    def _register_core_tools(self) -> None:
        @self.mcp.tool()
        def list_capabilities() -> List[str]:
            return self.registry.list()

        @self.mcp.tool()
        def capability_status(name: str) -> Dict[str, Any]:
            cap = self.registry.get(name)
            return cap.status()

        @self.mcp.tool()
        def scrape_status() -> Dict[str, Any]:
            return self.exporter.scrape().as_dict()

        @self.mcp.tool()
        def exporter_status() -> Dict[str, Any]:
            return self.exporter.status()

        @self.mcp.tool()
        def server_location() -> Dict[str, Any]:
            return asdict(self.exporter.server_location)

    def run(self) -> None:
        self.mcp.run()
