import pytest

from openvpn_exporter_mcp.core.config import DEFAULT_STATUS_PATH, ConfigError, ExporterConfig


def test_defaults():
    cfg = ExporterConfig.from_env({})
    assert cfg.status_path == DEFAULT_STATUS_PATH
    assert cfg.capabilities == []
    assert cfg.dedupe_mode == "exact"
    assert cfg.geo_url == "http://ip-api.com/json/"
    assert cfg.metrics_port == 9176
    assert cfg.log_level == "INFO"


def test_env_overrides():
    cfg = ExporterConfig.from_env(
        {
            "OPENVPN_STATUS_PATH": "/run/openvpn/server.status",
            "OPENVPN_CAPABILITIES": '["a.b:build_capability"]',
            "OPENVPN_DEDUPE_MODE": "Subset",
            "OPENVPN_GEO_TIMEOUT": "1.5",
            "OPENVPN_METRICS_HOST": "127.0.0.1",
            "OPENVPN_METRICS_PORT": "9000",
            "LOG_LEVEL": "debug",
        }
    )
    assert cfg.status_path == "/run/openvpn/server.status"
    assert cfg.capabilities == ["a.b:build_capability"]
    assert cfg.dedupe_mode == "subset"
    assert cfg.geo_timeout == 1.5
    assert cfg.metrics_host == "127.0.0.1"
    assert cfg.metrics_port == 9000
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"OPENVPN_CAPABILITIES": "not json"},
        {"OPENVPN_CAPABILITIES": '{"a": 1}'},
        {"OPENVPN_CAPABILITIES": "[1, 2]"},
        {"OPENVPN_DEDUPE_MODE": "fuzzy"},
        {"OPENVPN_METRICS_PORT": "http"},
        {"OPENVPN_GEO_TIMEOUT": "soon"},
    ],
)
def test_invalid_values(env):
    with pytest.raises(ConfigError):
        ExporterConfig.from_env(env)
