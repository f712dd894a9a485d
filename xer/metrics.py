"""Prometheus instrumentation shared by every set worker.

All families are registered exactly once into one explicit registry. Workers
receive the same :class:`Instrumentation` handle and only ever increment,
set or observe, which prometheus_client synchronizes internally.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from prometheus_client import CollectorRegistry, Counter, Gauge, Summary

from xer.errors import ConfigError
from xer.models import CollectionSet

_INVALID_METRIC_CHARS = re.compile(r"[^A-Za-z0-9_:]")


def metric_fragment(name: str) -> str:
    return _INVALID_METRIC_CHARS.sub("_", name)


def endpoint_metric_name(endpoint_name: str) -> str:
    return f"xer_ep_{metric_fragment(endpoint_name)}"


def set_metric_name(set_name: str) -> str:
    return f"xer_set_{metric_fragment(set_name)}"


@dataclass
class Instrumentation:
    registry: CollectorRegistry
    polls: Counter
    poll_errors: Counter
    send_errors: Counter
    runs: Counter
    scrape_time: Summary
    send_time: Summary
    endpoint_gauges: dict[str, Gauge] = field(default_factory=dict)
    set_gauges: dict[str, Gauge] = field(default_factory=dict)

    @classmethod
    def register(
        cls,
        sets: Iterable[CollectionSet],
        registry: CollectorRegistry | None = None,
    ) -> "Instrumentation":
        sets = list(sets)
        target = registry if registry is not None else CollectorRegistry()
        try:
            handle = cls(
                registry=target,
                polls=Counter("xer_total_ep_polls", "Total endpoint polls", ["set"], registry=target),
                poll_errors=Counter(
                    "xer_total_set_ep_poll_errors", "Total endpoint polling errors", ["set"], registry=target
                ),
                send_errors=Counter(
                    "xer_total_send_poll_errors", "Total errors sending set results", ["set"], registry=target
                ),
                runs=Counter("xer_total_set_runs", "Total set runs", ["set"], registry=target),
                scrape_time=Summary(
                    "xer_set_scrapetime", "Seconds spent polling a set's endpoints", ["set"], registry=target
                ),
                send_time=Summary(
                    "xer_set_sendtime", "Seconds spent sending a set's results", ["set"], registry=target
                ),
            )

            # one family per distinct numeric endpoint name, shared across sets
            for xset in sets:
                for endpoint in xset.numeric_endpoints:
                    if endpoint.name in handle.endpoint_gauges:
                        continue
                    help_text = endpoint.description or f"Latest value of endpoint {endpoint.name} by set"
                    handle.endpoint_gauges[endpoint.name] = Gauge(
                        endpoint_metric_name(endpoint.name), help_text, ["set"], registry=target
                    )

            derived: dict[str, str] = {}
            for xset in sets:
                metric_name = set_metric_name(xset.name)
                if metric_name in derived:
                    raise ConfigError(
                        f"sets {derived[metric_name]!r} and {xset.name!r} both map to metric {metric_name}"
                    )
                derived[metric_name] = xset.name
                handle.set_gauges[xset.name] = Gauge(
                    metric_name, f"Latest numeric endpoint values for set {xset.name}", ["ep"], registry=target
                )
        except ValueError as exc:
            raise ConfigError(f"metric registration failed: {exc}") from exc

        for xset in sets:
            for family in (
                handle.polls,
                handle.poll_errors,
                handle.send_errors,
                handle.runs,
                handle.scrape_time,
                handle.send_time,
            ):
                family.labels(set=xset.name)
        return handle

    def record_run(self, set_name: str) -> None:
        self.runs.labels(set=set_name).inc()

    def record_poll(self, set_name: str) -> None:
        self.polls.labels(set=set_name).inc()

    def record_poll_error(self, set_name: str) -> None:
        self.poll_errors.labels(set=set_name).inc()

    def record_send_error(self, set_name: str) -> None:
        self.send_errors.labels(set=set_name).inc()

    def observe_scrape(self, set_name: str, seconds: float) -> None:
        self.scrape_time.labels(set=set_name).observe(seconds)

    def observe_send(self, set_name: str, seconds: float) -> None:
        self.send_time.labels(set=set_name).observe(seconds)

    def set_value(self, set_name: str, endpoint_name: str, value: float) -> None:
        self.endpoint_gauges[endpoint_name].labels(set=set_name).set(value)
        self.set_gauges[set_name].labels(ep=endpoint_name).set(value)
