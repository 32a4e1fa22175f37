from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

from .models import SERVER_LABEL_NAMES, MetricIdentity, RecordType, ValueKind

# Column names as written by OpenVPN in HEADER lines (status-version 2 and 3),
# plus columns the parser synthesizes from geo lookups.
COMMON_NAME = "Common Name"
REAL_ADDRESS = "Real Address"
VIRTUAL_ADDRESS = "Virtual Address"
USERNAME = "Username"
CONNECTED_SINCE = "Connected Since (time_t)"
BYTES_RECEIVED = "Bytes Received"
BYTES_SENT = "Bytes Sent"
LAST_REF = "Last Ref (time_t)"

GEOHASH = "Geohash"
CITY = "City"
COUNTRY = "Country"
REGION = "Region"
DISTANCE = "Distance From Server"

NAMESPACE = "openvpn"


@dataclass(frozen=True)
class MetricField:
    column: str
    identity: MetricIdentity


@dataclass(frozen=True)
class RecordSchema:
    """
    What a record type contributes to a scrape.

    label_columns
      Columns turned into labels, in label order, after the server labels.

    fields
      Columns turned into individual metrics.
    """

    record_type: RecordType
    label_columns: Tuple[str, ...]
    fields: Tuple[MetricField, ...]


def _name(subsystem: str, name: str) -> str:
    return "_".join(p for p in (NAMESPACE, subsystem, name) if p)


def _server_metric(name: str, documentation: str) -> MetricIdentity:
    return MetricIdentity(_name("", name), documentation, SERVER_LABEL_NAMES, ValueKind.GAUGE)


UP = _server_metric("up", "Whether scraping OpenVPN's metrics was successful.")
STATUS_UPDATE_TIME = _server_metric(
    "status_update_time_seconds",
    "UNIX timestamp at which the OpenVPN statistics were updated.",
)
CONNECTED_CLIENTS = _server_metric("server_connected_clients", "Number Of Connected Clients")

SCRAPE_DURATION = MetricIdentity(
    _name("exporter", "scrape_duration_seconds"),
    "Duration of the last status scrape in seconds.",
    (),
    ValueKind.GAUGE,
)

CLIENT_LABEL_COLUMNS = (
    COMMON_NAME,
    CONNECTED_SINCE,
    REAL_ADDRESS,
    VIRTUAL_ADDRESS,
    USERNAME,
    GEOHASH,
    CITY,
    COUNTRY,
    REGION,
)
CLIENT_LABEL_NAMES = SERVER_LABEL_NAMES + (
    "common_name",
    "connection_time",
    "real_address",
    "virtual_address",
    "username",
    "geohash",
    "city",
    "country",
    "region",
)

ROUTING_LABEL_COLUMNS = (
    COMMON_NAME,
    REAL_ADDRESS,
    VIRTUAL_ADDRESS,
    USERNAME,
    GEOHASH,
    CITY,
    COUNTRY,
    REGION,
)
ROUTING_LABEL_NAMES = SERVER_LABEL_NAMES + (
    "common_name",
    "real_address",
    "virtual_address",
    "username",
    "geohash",
    "city",
    "country",
    "region",
)


def _field(column: str, name: str, documentation: str, labels: Tuple[str, ...], kind: ValueKind) -> MetricField:
    return MetricField(column=column, identity=MetricIdentity(_name("server", name), documentation, labels, kind))


# Built once at import. Keyed by the row keyword.
SCHEMAS: Mapping[RecordType, RecordSchema] = MappingProxyType(
    {
        RecordType.CLIENT_LIST: RecordSchema(
            record_type=RecordType.CLIENT_LIST,
            label_columns=CLIENT_LABEL_COLUMNS,
            fields=(
                _field(
                    BYTES_RECEIVED,
                    "client_received_bytes_total",
                    "Amount of data received over a connection on the VPN server, in bytes.",
                    CLIENT_LABEL_NAMES,
                    ValueKind.COUNTER,
                ),
                _field(
                    BYTES_SENT,
                    "client_sent_bytes_total",
                    "Amount of data sent over a connection on the VPN server, in bytes.",
                    CLIENT_LABEL_NAMES,
                    ValueKind.COUNTER,
                ),
                _field(
                    DISTANCE,
                    "client_distance",
                    "Distance from server to client, in meters",
                    CLIENT_LABEL_NAMES,
                    ValueKind.GAUGE,
                ),
            ),
        ),
        RecordType.ROUTING_TABLE: RecordSchema(
            record_type=RecordType.ROUTING_TABLE,
            label_columns=ROUTING_LABEL_COLUMNS,
            fields=(
                _field(
                    LAST_REF,
                    "route_last_reference_time_seconds",
                    "Time at which a route was last referenced, in seconds.",
                    ROUTING_LABEL_NAMES,
                    ValueKind.GAUGE,
                ),
            ),
        ),
    }
)


def lookup(keyword: str, schemas: Mapping[RecordType, RecordSchema] = SCHEMAS) -> RecordSchema | None:
    """
    Schema for a row keyword, or None when the keyword is not a record type.
    """
    try:
        return schemas.get(RecordType(keyword))
    except ValueError:
        return None


def all_identities() -> Tuple[MetricIdentity, ...]:
    out = [UP, STATUS_UPDATE_TIME, CONNECTED_CLIENTS]
    for schema in SCHEMAS.values():
        out.extend(f.identity for f in schema.fields)
    return tuple(out)
