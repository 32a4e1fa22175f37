"""
openvpn_exporter_mcp

OpenVPN server status exporter with an MCP control surface.

Core ideas
1. The parser turns one status snapshot into labeled MetricSample objects
2. The exporter wraps each scrape with the openvpn_up success signal
3. Capabilities expose the exporter (Prometheus HTTP, geo lookups) as MCP tools
"""

__all__ = ["core", "capabilities", "cli"]
