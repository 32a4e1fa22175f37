import asyncio

import pytest

from conftest import BERLIN
from openvpn_exporter_mcp.cli.run_server import main
from openvpn_exporter_mcp.core.config import ExporterConfig
from openvpn_exporter_mcp.core.server import ExporterMCPServer

CAPS = [
    "openvpn_exporter_mcp.capabilities.metrics_http.capability:build_capability",
    "openvpn_exporter_mcp.capabilities.geo_lookup.capability:build_capability",
]


def test_server_wires_exporter_and_capabilities(status_file, fake_resolver):
    config = ExporterConfig(status_path=str(status_file), capabilities=CAPS, metrics_port=0)
    server = ExporterMCPServer(config, resolver=fake_resolver)

    assert server.registry.list() == ["geo_lookup", "metrics_http"]
    assert server.exporter.server_location == BERLIN
    assert server.metrics_registry.get_sample_value("openvpn_server_connected_clients", {
        "server_geohash": BERLIN.geohash,
        "server_city": "Berlin",
        "server_country": "Germany",
        "server_region": "Land Berlin",
        "server_public_ip": "192.0.2.1",
    }) == 2.0

    tools = {t.name for t in asyncio.run(server.mcp.list_tools())}
    assert {
        "list_capabilities",
        "capability_status",
        "scrape_status",
        "exporter_status",
        "server_location",
        "start_metrics_http",
        "stop_metrics_http",
        "resolve_location",
        "geo_cache",
    } <= tools


def test_cli_rejects_bad_config(monkeypatch, capsys):
    monkeypatch.setenv("OPENVPN_DEDUPE_MODE", "fuzzy")
    with pytest.raises(SystemExit) as exc:
        main()
    assert exc.value.code == 1
    assert "FATAL" in capsys.readouterr().err
