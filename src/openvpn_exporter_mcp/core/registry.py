from __future__ import annotations
import importlib
import logging
from dataclasses import dataclass
from typing import Dict, List
from .capability_base import Capability

logger = logging.getLogger(__name__)


@dataclass
class LoadedCapability:
    import_path: str
    instance: Capability


class CapabilityRegistry:
    """
    Capabilities the exporter server was configured with, by name.

    Entries come from OPENVPN_CAPABILITIES, one "module:factory" string each:
      "openvpn_exporter_mcp.capabilities.metrics_http.capability:build_capability"
      "openvpn_exporter_mcp.capabilities.geo_lookup.capability:build_capability"

    The factory is called without arguments. Shared objects (exporter,
    metrics registry, resolver) reach the capability later through
    register_tools.
    """

    def __init__(self):
        self._caps: Dict[str, LoadedCapability] = {}

    def register(self, cap: Capability, import_path: str = "") -> None:
        if cap.name in self._caps:
            raise ValueError(f"duplicate capability name {cap.name}")
        self._caps[cap.name] = LoadedCapability(import_path=import_path, instance=cap)

    def get(self, name: str) -> Capability:
        if name not in self._caps:
            raise KeyError(f"capability not loaded {name}, loaded: {self.list()}")
        return self._caps[name].instance

    def list(self) -> List[str]:
        return sorted(self._caps.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._caps

    def import_paths(self) -> Dict[str, str]:
        return {name: loaded.import_path for name, loaded in self._caps.items()}

    def load_from_import_paths(self, import_paths: List[str]) -> None:
        for path in import_paths:
            module_path, sep, factory_name = path.partition(":")
            if not sep or not factory_name:
                raise ValueError(f"import path must look like module:factory, got {path!r}")
            module = importlib.import_module(module_path)
            factory = getattr(module, factory_name)
            cap = factory()
            self.register(cap, import_path=path)
            logger.debug("Capability %s built from %s", cap.name, path)
