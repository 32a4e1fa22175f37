"""
OpenVPN server status parser.

Turns one status snapshot (status-version 2 or 3) into MetricSample objects.

Snapshot layout, version 2 shown, version 3 uses tabs:

  TITLE,OpenVPN 2.6.8 x86_64-pc-linux-gnu ...
  TIME,2024-01-01 10:00:00,1704103200
  HEADER,CLIENT_LIST,Common Name,Real Address,Virtual Address,...
  CLIENT_LIST,alice,203.0.113.7:51514,10.8.0.2,...
  HEADER,ROUTING_TABLE,Virtual Address,Common Name,Real Address,Last Ref,Last Ref (time_t)
  ROUTING_TABLE,10.8.0.2,alice,203.0.113.7:51514,...
  GLOBAL_STATS,Max bcast/mcast queue length,0
  END

HEADER lines work like flow templates: they declare the column order for
the rows of one record type, and rows can only be decoded once their
HEADER was seen in the same snapshot.
"""
from __future__ import annotations

import ipaddress
import logging
from enum import Enum
from typing import BinaryIO, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from . import schema
from .dedupe import LabelDeduper
from .errors import (
    ColumnCountError,
    GeoResolveError,
    InvalidValueError,
    MissingHeaderError,
    StatusReadError,
    UnknownRecordError,
    UnrecognizedFormatError,
    UnsupportedFormatError,
)
from .geo import GeoResolver, haversine_distance
from .models import Location, MetricIdentity, MetricSample, RecordType
from .schema import RecordSchema

logger = logging.getLogger(__name__)

PEEK_SIZE = 18
READ_CHUNK = 64 * 1024

UNDEF = "UNDEF"
UNKNOWN = "Unknown"


class StatusFormat(Enum):
    SERVER_V2 = ","
    SERVER_V3 = "\t"

    @property
    def separator(self) -> str:
        return self.value


def detect_format(prefix: bytes) -> StatusFormat:
    """
    Pick the status format from the first bytes of a snapshot.

    Client mode snapshots start with "OpenVPN STATISTICS" and are rejected.
    """
    if prefix.startswith(b"TITLE,"):
        return StatusFormat.SERVER_V2
    if prefix.startswith(b"TITLE\t"):
        # Version 3 only differs from version 2 by its separator.
        return StatusFormat.SERVER_V3
    if prefix.startswith(b"OpenVPN STATISTICS"):
        raise UnsupportedFormatError("client status not supported")
    raise UnrecognizedFormatError(f"unexpected file contents: {prefix!r}")


def address_ip(real_address: str) -> str:
    """
    Strip the port from a Real Address column value.

    Handles host:port, [v6]:port and bare addresses.
    """
    value = real_address.strip()
    if value.startswith("["):
        host, _, _ = value[1:].partition("]")
        return host
    if value.count(":") > 1:
        # More than one colon is an IPv6 address, maybe with a trailing port.
        try:
            return str(ipaddress.ip_address(value))
        except ValueError:
            return value.rpartition(":")[0]
    return value.partition(":")[0]


def _split_lines(head: bytes, stream: BinaryIO) -> Iterator[str]:
    pending = head
    while True:
        try:
            chunk = stream.read(READ_CHUNK)
        except OSError as exc:
            raise StatusReadError(f"reading status failed: {exc}") from exc
        if not chunk:
            break
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for raw in lines:
            yield _decode(raw)
    if pending:
        yield _decode(pending)


def _decode(raw: bytes) -> str:
    return raw.rstrip(b"\r").decode("utf-8", errors="replace")


class _Scrape:
    """
    State for a single pass over one snapshot.
    """

    def __init__(self, dedupe_mode: str):
        self.headers: Dict[RecordType, List[str]] = {}
        self.connected_clients = 0
        self.deduper = LabelDeduper(mode=dedupe_mode)


class StatusParser:
    """
    Snapshot parser and metric reducer.

    server_location
      The exporter's own location. Its five label values prefix every
      sample, and its coordinates anchor client distances.

    resolver
      GeoResolver used for client addresses. Wrap it in CachingResolver
      so each address is looked up once per process.

    dedupe_mode
      "exact" or "subset", see LabelDeduper.

    The parser keeps no state between calls to iter_metrics.
    """

    def __init__(
        self,
        server_location: Location,
        resolver: GeoResolver,
        dedupe_mode: str = "exact",
        schemas: Mapping[RecordType, RecordSchema] = schema.SCHEMAS,
    ):
        self.server_location = server_location
        self.resolver = resolver
        self.dedupe_mode = dedupe_mode
        self.schemas = schemas

        self._handlers: Dict[str, Callable[[_Scrape, List[str]], Iterator[MetricSample]]] = {
            "END": self._on_end,
            "GLOBAL_STATS": self._on_ignored,
            "HEADER": self._on_header,
            "TIME": self._on_time,
            "TITLE": self._on_title,
        }

    def iter_metrics(self, stream: BinaryIO) -> Iterator[MetricSample]:
        """
        Yield samples for one snapshot, ending with the connected clients gauge.

        Raises a StatusError subclass on the first fatal problem. Samples
        yielded before that point stay valid.
        """
        try:
            head = stream.read(PEEK_SIZE)
        except OSError as exc:
            raise StatusReadError(f"reading status failed: {exc}") from exc

        fmt = detect_format(head)
        state = _Scrape(self.dedupe_mode)

        for line in _split_lines(head, stream):
            fields = line.split(fmt.separator)
            yield from self._dispatch(state, fields)

        yield self._server_sample(schema.CONNECTED_CLIENTS, float(state.connected_clients))

    def parse(self, stream: BinaryIO) -> List[MetricSample]:
        return list(self.iter_metrics(stream))

    def _dispatch(self, state: _Scrape, fields: List[str]) -> Iterator[MetricSample]:
        keyword = fields[0]
        handler = self._handlers.get(keyword)
        if handler is not None:
            return handler(state, fields)

        record_schema = schema.lookup(keyword, self.schemas)
        if record_schema is not None:
            return self._on_record(state, record_schema, fields)

        raise UnknownRecordError(f"unsupported key: {keyword!r}")

    def _on_end(self, state: _Scrape, fields: List[str]) -> Iterator[MetricSample]:
        if len(fields) != 1:
            raise UnknownRecordError(f"unsupported key: {fields[0]!r} with {len(fields)} fields")
        return iter(())

    def _on_ignored(self, state: _Scrape, fields: List[str]) -> Iterator[MetricSample]:
        return iter(())

    def _on_header(self, state: _Scrape, fields: List[str]) -> Iterator[MetricSample]:
        if len(fields) < 2:
            raise UnknownRecordError("HEADER without a record type")
        try:
            record_type = RecordType(fields[1])
        except ValueError:
            # Headers for record types we do not export are harmless.
            logger.debug("Ignoring HEADER for %s", fields[1])
            return iter(())
        state.headers[record_type] = fields[2:]
        return iter(())

    def _on_time(self, state: _Scrape, fields: List[str]) -> Iterator[MetricSample]:
        if len(fields) != 3:
            raise UnknownRecordError(f"TIME expects 3 fields, got {len(fields)}")
        try:
            updated = float(fields[2])
        except ValueError as exc:
            raise InvalidValueError(f"TIME value {fields[2]!r} is not a number") from exc
        return iter((self._server_sample(schema.STATUS_UPDATE_TIME, updated),))

    def _on_title(self, state: _Scrape, fields: List[str]) -> Iterator[MetricSample]:
        if len(fields) != 2:
            raise UnknownRecordError(f"TITLE expects 2 fields, got {len(fields)}")
        return iter(())

    def _on_record(self, state: _Scrape, record_schema: RecordSchema, fields: List[str]) -> Iterator[MetricSample]:
        record_type = record_schema.record_type

        columns = state.headers.get(record_type)
        if columns is None:
            raise MissingHeaderError(f"{record_type.value} should be preceded by HEADER")
        if len(fields) != len(columns) + 1:
            raise ColumnCountError(
                f"HEADER for {record_type.value} describes {len(columns)} columns, row has {len(fields) - 1}"
            )

        values: Dict[str, str] = {column: "" for column in record_schema.label_columns}
        values.update(zip(columns, fields[1:]))

        common_name = values.get(schema.COMMON_NAME, "")
        if common_name in ("", UNDEF):
            return iter(())

        if record_type is RecordType.CLIENT_LIST:
            state.connected_clients += 1

        if values.get(schema.REAL_ADDRESS):
            self._add_geo_columns(values, values[schema.REAL_ADDRESS])

        labels = self.server_location.server_labels() + tuple(
            values.get(column, "") for column in record_schema.label_columns
        )

        return self._emit_fields(state, record_schema, values, labels)

    def _emit_fields(
        self,
        state: _Scrape,
        record_schema: RecordSchema,
        values: Dict[str, str],
        labels: Tuple[str, ...],
    ) -> Iterator[MetricSample]:
        for field in record_schema.fields:
            raw = values.get(field.column)
            if raw is None:
                continue

            key = (record_schema.record_type, field.column)
            if state.deduper.seen(key, labels):
                logger.warning("Metric entry with same labels: %s, %s", field.column, labels)
                continue

            try:
                value = float(raw)
            except ValueError as exc:
                raise InvalidValueError(
                    f"{record_schema.record_type.value} column {field.column!r} value {raw!r} is not a number"
                ) from exc

            state.deduper.record(key, labels)
            yield MetricSample(identity=field.identity, value=value, labels=labels)

    def _add_geo_columns(self, values: Dict[str, str], real_address: str) -> None:
        ip = address_ip(real_address)
        try:
            geo = self.resolver.resolve(ip)
        except GeoResolveError as exc:
            logger.warning("Error resolving GeoIP for %s: %s", ip, exc)
            return

        values[schema.GEOHASH] = geo.geohash
        values[schema.CITY] = geo.city or UNKNOWN
        values[schema.REGION] = geo.region or UNKNOWN
        values[schema.COUNTRY] = geo.country or UNKNOWN
        values[schema.DISTANCE] = f"{self._distance_to(geo):f}"

    def _distance_to(self, geo: Location) -> float:
        server = self.server_location
        if not server.has_coordinates():
            # Server location never resolved, a distance would be meaningless.
            return 0.0
        return haversine_distance(geo.latitude, geo.longitude, server.latitude, server.longitude)

    def _server_sample(self, identity: MetricIdentity, value: float) -> MetricSample:
        return MetricSample(identity=identity, value=value, labels=self.server_location.server_labels())


def parse_status(
    stream: BinaryIO,
    resolver: GeoResolver,
    server_location: Optional[Location] = None,
    dedupe_mode: str = "exact",
) -> List[MetricSample]:
    """
    Convenience wrapper for one-off parsing.
    """
    parser = StatusParser(server_location or Location(), resolver, dedupe_mode=dedupe_mode)
    return parser.parse(stream)
