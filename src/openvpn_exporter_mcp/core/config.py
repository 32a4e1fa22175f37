from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .dedupe import DEDUPE_MODES

DEFAULT_STATUS_PATH = "/etc/openvpn/server/openvpn-status.log"


class ConfigError(ValueError):
    pass


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class ExporterConfig:
    """
    Runtime settings, read from the environment by from_env.

    Example:
      export OPENVPN_STATUS_PATH=/run/openvpn/server.status
      export OPENVPN_CAPABILITIES='[
        "openvpn_exporter_mcp.capabilities.metrics_http.capability:build_capability",
        "openvpn_exporter_mcp.capabilities.geo_lookup.capability:build_capability"
      ]'
    """

    status_path: str = DEFAULT_STATUS_PATH
    capabilities: List[str] = field(default_factory=list)
    dedupe_mode: str = "exact"
    geo_url: str = "http://ip-api.com/json/"
    geo_timeout: float = 5.0
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9176
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ExporterConfig":
        env = os.environ if env is None else env

        raw_caps = env.get("OPENVPN_CAPABILITIES", "[]")
        try:
            capabilities = json.loads(raw_caps)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"OPENVPN_CAPABILITIES must be a JSON list, got {raw_caps!r}") from exc
        if not isinstance(capabilities, list) or not all(isinstance(c, str) for c in capabilities):
            raise ConfigError("OPENVPN_CAPABILITIES must be a JSON list of import strings")

        dedupe_mode = env.get("OPENVPN_DEDUPE_MODE", "exact").lower()
        if dedupe_mode not in DEDUPE_MODES:
            raise ConfigError(f"OPENVPN_DEDUPE_MODE must be one of {DEDUPE_MODES}, got {dedupe_mode!r}")

        return cls(
            status_path=env.get("OPENVPN_STATUS_PATH", DEFAULT_STATUS_PATH),
            capabilities=capabilities,
            dedupe_mode=dedupe_mode,
            geo_url=env.get("OPENVPN_GEO_URL", "http://ip-api.com/json/"),
            geo_timeout=_float_env(env, "OPENVPN_GEO_TIMEOUT", 5.0),
            metrics_host=env.get("OPENVPN_METRICS_HOST", "0.0.0.0"),
            metrics_port=_int_env(env, "OPENVPN_METRICS_PORT", 9176),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
