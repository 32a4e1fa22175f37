"""
Capabilities are pluggable modules that can be loaded at runtime.

Each capability must expose a build_capability factory in its capability module.
"""

__all__ = [
    "metrics_http",
    "geo_lookup",
]
