import logging

from conftest import BERLIN, FakeResolver, snapshot
from openvpn_exporter_mcp.core.exporter import StatusExporter, resolve_server_location
from openvpn_exporter_mcp.core.models import Location


def _up(result):
    last = result.samples[-1]
    assert last.name == "openvpn_up"
    return last.value


def test_scrape_ok(exporter):
    result = exporter.scrape()

    assert result.ok
    assert result.error is None
    assert _up(result) == 1.0
    assert len(result.samples) == 10
    assert result.samples[-1].labels == BERLIN.server_labels()
    assert result.duration_seconds >= 0


def test_server_location_resolved_once_at_start(exporter, fake_resolver):
    exporter.scrape()
    exporter.scrape()
    assert exporter.server_location == BERLIN
    assert fake_resolver.calls.count("") == 1


def test_missing_file_reports_down(tmp_path, resolver, caplog):
    exporter = StatusExporter(str(tmp_path / "nope.log"), resolver)
    with caplog.at_level(logging.ERROR):
        result = exporter.scrape()

    assert not result.ok
    assert "nope.log" in result.error
    assert [s.name for s in result.samples] == ["openvpn_up"]
    assert _up(result) == 0.0
    assert "Failed to scrape" in caplog.text


def test_client_status_reports_down(exporter):
    result = exporter.scrape_stream(snapshot("OpenVPN STATISTICS\nUpdated,2024-01-01\nEND\n"))
    assert not result.ok
    assert "client status not supported" in result.error
    assert _up(result) == 0.0


def test_partial_samples_kept_on_failure(exporter):
    text = "TITLE,OpenVPN\nTIME,x,1704103200\nCLIENT_LIST,alice,1,2\n"
    result = exporter.scrape_stream(snapshot(text))

    assert not result.ok
    assert [s.name for s in result.samples] == ["openvpn_status_update_time_seconds", "openvpn_up"]


def test_server_geo_failure_leaves_empty_labels(status_file, caplog):
    with caplog.at_level(logging.ERROR):
        exporter = StatusExporter(str(status_file), FakeResolver({}))
    assert exporter.server_location == Location()
    assert "Error getting server geo" in caplog.text

    result = exporter.scrape()
    assert result.ok
    assert result.samples[-1].labels == ("", "", "", "", "")


def test_explicit_server_location_skips_lookup(status_file):
    resolver = FakeResolver({})
    exporter = StatusExporter(str(status_file), resolver, server_location=BERLIN)
    assert exporter.server_location is BERLIN
    assert "" not in resolver.calls


def test_resolve_server_location(fake_resolver):
    assert resolve_server_location(fake_resolver) == BERLIN
    assert resolve_server_location(FakeResolver({})) == Location()


def test_status_counters(exporter):
    exporter.scrape()
    exporter.scrape_stream(snapshot("garbage"))

    st = exporter.status()
    assert st["scrapes"] == 2
    assert st["failures"] == 1
    assert "unexpected file contents" in st["last_error"]
    assert st["dedupe_mode"] == "exact"


def test_as_dict(exporter):
    d = exporter.scrape().as_dict()
    assert d["ok"] is True
    assert d["up"] == 1.0
    assert d["sample_count"] == len(d["samples"])
    assert d["samples"][-1] == {
        "name": "openvpn_up",
        "kind": "gauge",
        "value": 1.0,
        "labels": {
            "server_geohash": BERLIN.geohash,
            "server_city": "Berlin",
            "server_country": "Germany",
            "server_region": "Land Berlin",
            "server_public_ip": "192.0.2.1",
        },
    }
