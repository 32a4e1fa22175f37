from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class ValueKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


class RecordType(str, Enum):
    """
    Repeating row categories in a server status snapshot.

    Values are the keywords that lead each row, so a raw field can be
    compared or looked up directly.
    """

    CLIENT_LIST = "CLIENT_LIST"
    ROUTING_TABLE = "ROUTING_TABLE"


@dataclass(frozen=True)
class Location:
    """
    Geographic context for one IP address.

    Used for both the exporter's own public address and every observed
    client address. An empty Location() means the lookup never succeeded.

    Fields:
      ip
        Address the lookup answered for, as reported by the resolver.

      country, region, city
        Human readable names, possibly empty.

      latitude, longitude
        Decimal degrees. Both exactly 0.0 means "unknown".

      geohash
        Geohash of (latitude, longitude).
    """

    ip: str = ""
    country: str = ""
    region: str = ""
    city: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    geohash: str = ""

    def server_labels(self) -> Tuple[str, str, str, str, str]:
        """
        Label values prefixed to every exported metric, in SERVER_LABEL_NAMES order.
        """
        return (self.geohash, self.city, self.country, self.region, self.ip)

    def has_coordinates(self) -> bool:
        return not (self.latitude == 0 and self.longitude == 0)


SERVER_LABEL_NAMES: Tuple[str, ...] = (
    "server_geohash",
    "server_city",
    "server_country",
    "server_region",
    "server_public_ip",
)


@dataclass(frozen=True)
class MetricIdentity:
    name: str
    documentation: str
    label_names: Tuple[str, ...]
    kind: ValueKind


@dataclass(frozen=True)
class MetricSample:
    """
    One labeled value produced by a scrape.

    labels holds the values only, aligned with identity.label_names.
    """

    identity: MetricIdentity
    value: float
    labels: Tuple[str, ...]

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def kind(self) -> ValueKind:
        return self.identity.kind

    def label_map(self) -> Dict[str, str]:
        return dict(zip(self.identity.label_names, self.labels))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "value": self.value,
            "labels": self.label_map(),
        }
