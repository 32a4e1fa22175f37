from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional

from . import schema
from .errors import GeoResolveError, StatusError
from .geo import GeoResolver
from .models import Location, MetricSample
from .parser import StatusParser

logger = logging.getLogger(__name__)


@dataclass
class ScrapeResult:
    """
    Outcome of one scrape.

    samples always ends with openvpn_up. On failure it also holds whatever
    the parser produced before the error.
    """

    ok: bool
    samples: List[MetricSample] = field(default_factory=list)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def up(self) -> float:
        return 1.0 if self.ok else 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "up": self.up(),
            "error": self.error,
            "duration_seconds": self.duration_seconds,
            "sample_count": len(self.samples),
            "samples": [s.as_dict() for s in self.samples],
        }


def resolve_server_location(resolver: GeoResolver) -> Location:
    """
    Look up the exporter's own public address.

    A failure is logged and yields an empty Location: server labels are
    then empty strings and client distances are reported as 0.
    """
    try:
        return resolver.resolve("")
    except GeoResolveError as exc:
        logger.error("Error getting server geo: %s", exc)
        return Location()


class StatusExporter:
    """
    Scrapes one OpenVPN status file.

    Responsibilities:
      Resolve the server location once, at construction
      Open the status file and run the parser
      Turn any scrape error into openvpn_up = 0
      Keep simple counters for the MCP status tools
    """

    def __init__(
        self,
        status_path: str,
        resolver: GeoResolver,
        dedupe_mode: str = "exact",
        server_location: Optional[Location] = None,
    ):
        self.status_path = status_path
        self.resolver = resolver
        self.server_location = server_location if server_location is not None else resolve_server_location(resolver)
        self.parser = StatusParser(self.server_location, resolver, dedupe_mode=dedupe_mode)

        self._lock = threading.Lock()
        self._scrapes = 0
        self._failures = 0
        self._last_error: Optional[str] = None
        self._last_duration = 0.0

    def scrape(self) -> ScrapeResult:
        started = time.monotonic()
        try:
            with open(self.status_path, "rb") as stream:
                return self._run(stream, started)
        except OSError as exc:
            return self._finish([], started, f"opening {self.status_path} failed: {exc}")

    def scrape_stream(self, stream: BinaryIO) -> ScrapeResult:
        return self._run(stream, time.monotonic())

    def _run(self, stream: BinaryIO, started: float) -> ScrapeResult:
        samples: List[MetricSample] = []
        error: Optional[str] = None
        try:
            for sample in self.parser.iter_metrics(stream):
                samples.append(sample)
        except (StatusError, OSError) as exc:
            error = str(exc)
        return self._finish(samples, started, error)

    def _finish(self, samples: List[MetricSample], started: float, error: Optional[str]) -> ScrapeResult:
        ok = error is None
        if not ok:
            logger.error("Failed to scrape %s: %s", self.status_path, error)

        up = MetricSample(
            identity=schema.UP,
            value=1.0 if ok else 0.0,
            labels=self.server_location.server_labels(),
        )
        duration = time.monotonic() - started

        with self._lock:
            self._scrapes += 1
            if not ok:
                self._failures += 1
                self._last_error = error
            self._last_duration = duration

        return ScrapeResult(ok=ok, samples=samples + [up], error=error, duration_seconds=duration)

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "status_path": self.status_path,
                "dedupe_mode": self.parser.dedupe_mode,
                "scrapes": self._scrapes,
                "failures": self._failures,
                "last_error": self._last_error,
                "last_duration_seconds": self._last_duration,
            }
