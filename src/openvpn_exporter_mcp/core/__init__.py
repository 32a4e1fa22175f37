"""
Core modules: status parsing, geo context and the exporter.

Keep MCP and HTTP exposure concerns in capabilities.
"""

from .models import Location, MetricIdentity, MetricSample, RecordType, ValueKind
from .parser import StatusParser, detect_format
from .exporter import ScrapeResult, StatusExporter
from .geo import CachingResolver, IpApiResolver, haversine_distance
from .server import ExporterMCPServer

__all__ = [
    "Location",
    "MetricIdentity",
    "MetricSample",
    "RecordType",
    "ValueKind",
    "StatusParser",
    "detect_format",
    "ScrapeResult",
    "StatusExporter",
    "CachingResolver",
    "IpApiResolver",
    "haversine_distance",
    "ExporterMCPServer",
]
