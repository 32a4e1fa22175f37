import io
from typing import Dict, List

import pytest
from prometheus_client import CollectorRegistry

from openvpn_exporter_mcp.core.capability_base import CapabilityContext
from openvpn_exporter_mcp.core.collector import StatusCollector
from openvpn_exporter_mcp.core.config import ExporterConfig
from openvpn_exporter_mcp.core.errors import GeoResolveError
from openvpn_exporter_mcp.core.exporter import StatusExporter
from openvpn_exporter_mcp.core.geo import CachingResolver
from openvpn_exporter_mcp.core.models import Location
from openvpn_exporter_mcp.core.parser import StatusParser

BERLIN = Location(
    ip="192.0.2.1",
    country="Germany",
    region="Land Berlin",
    city="Berlin",
    latitude=52.52,
    longitude=13.405,
    geohash="u33dc0cppjs7",
)

PARIS = Location(
    ip="203.0.113.7",
    country="France",
    region="Ile-de-France",
    city="Paris",
    latitude=48.8566,
    longitude=2.3522,
    geohash="u09tvw0f64r7",
)

# Resolves, but the service knows nothing beyond coordinates.
NOWHERE = Location(ip="198.18.0.5", latitude=10.0, longitude=10.0, geohash="s1z0gs3y0zh2")

SERVER_V2 = """\
TITLE,OpenVPN 2.6.8 x86_64-pc-linux-gnu [SSL (OpenSSL)] [LZO] [LZ4] [EPOLL] [PKCS11] [MH/PKTINFO] [AEAD]
TIME,2024-01-01 10:00:00,1704103200
HEADER,CLIENT_LIST,Common Name,Real Address,Virtual Address,Virtual IPv6 Address,Bytes Received,Bytes Sent,Connected Since,Connected Since (time_t),Username,Client ID,Peer ID,Data Channel Cipher
CLIENT_LIST,alice,203.0.113.7:51514,10.8.0.2,,3871,3924,2024-01-01 09:00:00,1704099600,alice,0,0,AES-256-GCM
CLIENT_LIST,bob,198.51.100.23:40000,10.8.0.3,,1000,2000,2024-01-01 09:30:00,1704101400,UNDEF,1,1,AES-256-GCM
CLIENT_LIST,UNDEF,192.0.2.10:5555,,,0,0,2024-01-01 09:59:00,1704103140,UNDEF,2,2,AES-256-GCM
HEADER,ROUTING_TABLE,Virtual Address,Common Name,Real Address,Last Ref,Last Ref (time_t)
ROUTING_TABLE,10.8.0.2,alice,203.0.113.7:51514,2024-01-01 09:59:58,1704103198
ROUTING_TABLE,10.8.0.3,bob,198.51.100.23:40000,2024-01-01 09:59:50,1704103190
GLOBAL_STATS,Max bcast/mcast queue length,0
END
"""


class FakeResolver:
    """
    In memory GeoResolver. Unknown addresses fail like a real lookup would.
    """

    def __init__(self, table: Dict[str, Location]):
        self.table = dict(table)
        self.calls: List[str] = []

    def resolve(self, address: str) -> Location:
        self.calls.append(address)
        if address not in self.table:
            raise GeoResolveError(f"no data for {address!r}")
        return self.table[address]


def snapshot(text: str, sep: str = ",") -> io.BytesIO:
    """
    Build a snapshot stream. Text is written comma separated; sep swaps it
    for tab separated (status-version 3) output.
    """
    if sep != ",":
        text = text.replace(",", sep)
    return io.BytesIO(text.encode("utf-8"))


@pytest.fixture
def fake_resolver():
    return FakeResolver({"": BERLIN, "203.0.113.7": PARIS, "198.18.0.5": NOWHERE})


@pytest.fixture
def resolver(fake_resolver):
    return CachingResolver(fake_resolver)


@pytest.fixture
def parser(resolver):
    return StatusParser(BERLIN, resolver)


@pytest.fixture
def status_file(tmp_path):
    path = tmp_path / "openvpn-status.log"
    path.write_text(SERVER_V2, encoding="utf-8")
    return path


@pytest.fixture
def exporter(status_file, resolver):
    return StatusExporter(str(status_file), resolver)


@pytest.fixture
def ctx(exporter, resolver, status_file):
    registry = CollectorRegistry()
    registry.register(StatusCollector(exporter))

    def log(msg: str) -> None:
        pass

    config = ExporterConfig(status_path=str(status_file), metrics_host="127.0.0.1", metrics_port=0)
    return CapabilityContext(exporter=exporter, registry=registry, resolver=resolver, config=config, log=log)
