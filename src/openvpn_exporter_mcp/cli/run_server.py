from __future__ import annotations
import logging
import sys

from openvpn_exporter_mcp.core.config import ConfigError, ExporterConfig
from openvpn_exporter_mcp.core.server import ExporterMCPServer


def main() -> None:
    """
    Build the exporter from environment variables and run the MCP server.

    Example:
      export OPENVPN_STATUS_PATH=/run/openvpn/server.status
      export OPENVPN_CAPABILITIES='[
        "openvpn_exporter_mcp.capabilities.metrics_http.capability:build_capability",
        "openvpn_exporter_mcp.capabilities.geo_lookup.capability:build_capability"
      ]'
      python -m openvpn_exporter_mcp.cli.run_server
    """
    try:
        config = ExporterConfig.from_env()
    except ConfigError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    # MCP stdio transport owns stdout, so logs go to stderr.
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    server = ExporterMCPServer(config)
    server.run()


if __name__ == "__main__":
    main()
