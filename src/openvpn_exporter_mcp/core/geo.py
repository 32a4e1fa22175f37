from __future__ import annotations

import logging
import math
import threading
from typing import Any, Dict, Optional, Protocol

import pygeohash
import requests

from .errors import GeoResolveError
from .models import Location

logger = logging.getLogger(__name__)

# Earth radius in meters, as used for client distance.
EARTH_RADIUS_M = 6378100.0

GEOHASH_PRECISION = 12


def _hsin(theta: float) -> float:
    return math.sin(theta / 2) ** 2


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in meters between two points given in degrees.
    """
    la1 = math.radians(lat1)
    lo1 = math.radians(lon1)
    la2 = math.radians(lat2)
    lo2 = math.radians(lon2)

    h = _hsin(la2 - la1) + math.cos(la1) * math.cos(la2) * _hsin(lo2 - lo1)
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


class GeoResolver(Protocol):
    """
    Anything that turns an address into a Location.

    An empty address asks for the caller's own public address.
    Implementations raise GeoResolveError on any failure.
    """

    def resolve(self, address: str) -> Location:
        ...


class IpApiResolver:
    """
    Resolver backed by the ip-api.com JSON endpoint.

    Response fields used:
      query, country, regionName, city, lat, lon, status, message
    """

    def __init__(
        self,
        base_url: str = "http://ip-api.com/json/",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = float(timeout)
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "openvpn-exporter-mcp"})

    def resolve(self, address: str) -> Location:
        logger.info("Resolving %r", address)
        try:
            resp = self._session.get(self.base_url + address, timeout=self.timeout)
            resp.raise_for_status()
            data: Dict[str, Any] = resp.json()
        except requests.RequestException as exc:
            raise GeoResolveError(f"lookup of {address!r} failed: {exc}") from exc
        except ValueError as exc:
            raise GeoResolveError(f"lookup of {address!r} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise GeoResolveError(f"lookup of {address!r} returned {type(data).__name__}, expected an object")

        if data.get("status") == "fail":
            raise GeoResolveError(f"lookup of {address!r} failed: {data.get('message', 'unknown')}")

        try:
            lat = float(data.get("lat", 0.0))
            lon = float(data.get("lon", 0.0))
        except (TypeError, ValueError) as exc:
            raise GeoResolveError(f"lookup of {address!r} returned bad coordinates") from exc

        return Location(
            ip=str(data.get("query", address)),
            country=str(data.get("country", "")),
            region=str(data.get("regionName", "")),
            city=str(data.get("city", "")),
            latitude=lat,
            longitude=lon,
            geohash=pygeohash.encode(lat, lon, precision=GEOHASH_PRECISION),
        )


class CachingResolver:
    """
    Memoizes successful lookups by exact address string.

    Entries live for the process lifetime and are never evicted. Failures
    are not cached, so a later scrape retries them. A lock guards the map
    because concurrent scrape requests may share one resolver.
    """

    def __init__(self, resolver: GeoResolver):
        self._resolver = resolver
        self._cache: Dict[str, Location] = {}
        self._lock = threading.Lock()

    def resolve(self, address: str) -> Location:
        with self._lock:
            hit = self._cache.get(address)
        if hit is not None:
            return hit

        loc = self._resolver.resolve(address)

        with self._lock:
            # First writer wins if two scrapes resolved the same address.
            return self._cache.setdefault(address, loc)

    def cached(self) -> Dict[str, Location]:
        with self._lock:
            return dict(self._cache)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
