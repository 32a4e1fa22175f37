from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from openvpn_exporter_mcp.core.capability_base import Capability, CapabilityContext
from openvpn_exporter_mcp.core.errors import GeoResolveError
from openvpn_exporter_mcp.core.geo import haversine_distance
from openvpn_exporter_mcp.core.parser import address_ip


class GeoLookupCapability:
    """
    Ad hoc geo lookups through the exporter's caching resolver.

    Lets an operator check what a client address resolves to, and how far
    it is from the server, without waiting for the next scrape. Results land
    in the same cache the scrapes use.
    """

    name = "geo_lookup"

    def __init__(self) -> None:
        self._ctx: Optional[CapabilityContext] = None
        self._lookups = 0
        self._errors = 0

    def resolve_location(self, address: str) -> Dict[str, Any]:
        if not self._ctx:
            return {"ok": False, "error": "not registered"}

        self._lookups += 1
        ip = address_ip(address) if address else ""
        try:
            loc = self._ctx.resolver.resolve(ip)
        except GeoResolveError as exc:
            self._errors += 1
            return {"ok": False, "address": ip, "error": str(exc)}

        server = self._ctx.exporter.server_location
        distance = 0.0
        if server.has_coordinates():
            distance = haversine_distance(loc.latitude, loc.longitude, server.latitude, server.longitude)

        return {"ok": True, "address": ip, "location": asdict(loc), "distance_from_server_m": distance}

    def geo_cache(self) -> Dict[str, Any]:
        if not self._ctx:
            return {}
        return {addr: asdict(loc) for addr, loc in self._ctx.resolver.cached().items()}

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        self._ctx = ctx
        if mcp is None:
            return

        @mcp.tool()
        def resolve_location(address: str) -> Dict[str, Any]:
            return self.resolve_location(address)

        @mcp.tool()
        def geo_cache() -> Dict[str, Any]:
            return self.geo_cache()

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "lookups": self._lookups,
            "errors": self._errors,
            "cached": len(self._ctx.resolver) if self._ctx else 0,
        }


def build_capability() -> Capability:
    return GeoLookupCapability()
