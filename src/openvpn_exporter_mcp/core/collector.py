from __future__ import annotations

from typing import Dict, Iterator, List

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from . import schema
from .exporter import StatusExporter
from .models import MetricIdentity, MetricSample, ValueKind


def _family(identity: MetricIdentity) -> Metric:
    cls = CounterMetricFamily if identity.kind is ValueKind.COUNTER else GaugeMetricFamily
    return cls(identity.name, identity.documentation, labels=list(identity.label_names))


def to_families(samples: List[MetricSample]) -> List[Metric]:
    """
    Group samples into metric families, keeping first-seen order.
    """
    families: Dict[MetricIdentity, Metric] = {}
    for sample in samples:
        fam = families.get(sample.identity)
        if fam is None:
            fam = families[sample.identity] = _family(sample.identity)
        fam.add_metric(list(sample.labels), sample.value)
    return list(families.values())


class StatusCollector:
    """
    Prometheus collector that scrapes the status file on every collect.

    Register it on a CollectorRegistry. Nothing is cached between scrapes.
    """

    def __init__(self, exporter: StatusExporter):
        self.exporter = exporter

    def collect(self) -> Iterator[Metric]:
        result = self.exporter.scrape()
        yield from to_families(result.samples)

        duration = _family(schema.SCRAPE_DURATION)
        duration.add_metric([], result.duration_seconds)
        yield duration

    def describe(self) -> Iterator[Metric]:
        # Every other family depends on the snapshot contents.
        yield _family(schema.UP)
