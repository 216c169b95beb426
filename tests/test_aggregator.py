"""Tests for the health run aggregator."""

import time
from unittest.mock import MagicMock

import pytest

from service_health.monitoring.aggregator import EXIT_CRITICAL, EXIT_OK, HealthAggregator, Report
from service_health.monitoring.evaluator import Verdict, VerdictStatus
from service_health.monitoring.prober import FailureKind, ProbeFailure, ProbeSuccess, Prober
from service_health.monitoring.registry import (
    ServiceRegistry,
    ServiceTarget,
    database_proxy_target,
)


def _verdicts(healthy=0, warning=0, error=0):
    statuses = (
        [VerdictStatus.HEALTHY] * healthy
        + [VerdictStatus.WARNING] * warning
        + [VerdictStatus.ERROR] * error
    )
    return [Verdict(f"svc{i}", status) for i, status in enumerate(statuses)]


class FakeProber:
    """Returns canned outcomes per URL, optionally after a delay."""

    def __init__(self, outcomes, delays=None):
        self.outcomes = outcomes
        self.delays = delays or {}
        self.calls = []

    def probe(self, url):
        self.calls.append(url)
        time.sleep(self.delays.get(url, 0))
        return self.outcomes[url]


class RecordingListener:
    def __init__(self):
        self.events = []

    def service_started(self, target):
        self.events.append(("started", target.name))

    def service_checked(self, target, verdict):
        self.events.append(("checked", target.name, verdict.status))


@pytest.fixture
def registry():
    return ServiceRegistry(
        targets=[
            ServiceTarget("A", "http://a", critical=True),
            ServiceTarget("B", "http://b", critical=True),
            ServiceTarget("C", "http://c", critical=False),
        ],
        proxy_check=database_proxy_target("http://a/stats"),
    )


@pytest.fixture
def outcomes():
    return {
        "http://a": ProbeSuccess(200),
        "http://b": ProbeSuccess(503),
        "http://c": ProbeFailure(FailureKind.CONNECTION_REFUSED, "Connection refused"),
        "http://a/stats": ProbeSuccess(200),
    }


class TestReport:
    """Counts and exit code derivation."""

    def test_warnings_do_not_fail(self):
        report = Report(verdicts=_verdicts(healthy=2, warning=2))

        assert (report.healthy, report.warning, report.error) == (2, 2, 0)
        assert report.exit_code == EXIT_OK
        assert report.overall == "degraded"

    def test_any_error_fails(self):
        report = Report(verdicts=_verdicts(healthy=3, error=1))

        assert report.exit_code == EXIT_CRITICAL
        assert report.overall == "critical"

    def test_all_healthy(self):
        report = Report(verdicts=_verdicts(healthy=4))

        assert report.exit_code == EXIT_OK
        assert report.overall == "healthy"

    def test_empty_report_is_healthy(self):
        assert Report().exit_code == EXIT_OK

    def test_non_critical_error_still_fails(self):
        """Criticality is display-only; any unreachable service fails the gate."""
        report = Report(verdicts=[
            Verdict("API", VerdictStatus.HEALTHY, critical=True),
            Verdict("Frontend", VerdictStatus.ERROR, critical=False),
        ])

        assert report.exit_code == EXIT_CRITICAL

    def test_to_dict(self):
        report = Report(verdicts=_verdicts(healthy=1, error=1))
        data = report.to_dict()

        assert data["summary"] == {"healthy": 1, "warning": 0, "error": 1}
        assert data["exit_code"] == 1
        assert [s["status"] for s in data["services"]] == ["healthy", "error"]


class TestHealthAggregator:
    """Running the cycle."""

    def test_mixed_scenario(self, registry, outcomes):
        aggregator = HealthAggregator(registry, prober=FakeProber(outcomes))
        report = aggregator.run()

        assert [v.service_name for v in report.verdicts] == ["A", "B", "C", "Database"]
        assert [v.status for v in report.verdicts] == [
            VerdictStatus.HEALTHY,
            VerdictStatus.WARNING,
            VerdictStatus.ERROR,
            VerdictStatus.HEALTHY,
        ]
        assert (report.healthy, report.warning, report.error) == (2, 1, 1)
        assert report.exit_code == 1
        assert report.duration_seconds is not None

    def test_failure_does_not_stop_later_checks(self, registry, outcomes):
        prober = FakeProber(outcomes)
        HealthAggregator(registry, prober=prober).run()

        assert prober.calls == ["http://a", "http://b", "http://c", "http://a/stats"]

    def test_sequential_listener_order(self, registry, outcomes):
        listener = RecordingListener()
        HealthAggregator(registry, prober=FakeProber(outcomes)).run(listener)

        assert listener.events[0] == ("started", "A")
        assert listener.events[1] == ("checked", "A", VerdictStatus.HEALTHY)
        assert listener.events[-1] == ("checked", "Database", VerdictStatus.HEALTHY)
        assert len(listener.events) == 8

    def test_parallel_preserves_registry_order(self, registry, outcomes):
        """Test slow early probes still report first."""
        delays = {"http://a": 0.3, "http://b": 0.2, "http://c": 0.1}
        listener = RecordingListener()
        aggregator = HealthAggregator(
            registry, prober=FakeProber(outcomes, delays), parallel=True
        )

        report = aggregator.run(listener)

        assert [v.service_name for v in report.verdicts] == ["A", "B", "C", "Database"]
        checked = [e[1] for e in listener.events if e[0] == "checked"]
        assert checked == ["A", "B", "C", "Database"]

    def test_parallel_latency_bounded_by_slowest(self, registry, outcomes):
        delays = {url: 0.3 for url in outcomes}
        aggregator = HealthAggregator(
            registry, prober=FakeProber(outcomes, delays), parallel=True
        )

        started = time.monotonic()
        aggregator.run()

        assert time.monotonic() - started < 1.0

    def test_empty_registry(self):
        report = HealthAggregator(ServiceRegistry(), prober=MagicMock(), parallel=True).run()

        assert report.verdicts == []
        assert report.exit_code == 0


class TestEndToEnd:
    """Real HTTP against the local stub server."""

    def test_scenario_against_stub_server(self, http_server, closed_port_url):
        registry = ServiceRegistry(
            targets=[
                ServiceTarget("A", f"{http_server}/health", critical=True),
                ServiceTarget("B", f"{http_server}/unavailable", critical=True),
                ServiceTarget("C", closed_port_url, critical=False),
            ],
            proxy_check=database_proxy_target(f"{http_server}/text"),
        )

        for parallel in (False, True):
            report = HealthAggregator(
                registry, prober=Prober(timeout_seconds=2), parallel=parallel
            ).run()

            assert [v.status for v in report.verdicts] == [
                VerdictStatus.HEALTHY,
                VerdictStatus.WARNING,
                VerdictStatus.ERROR,
                VerdictStatus.HEALTHY,
            ]
            assert report.verdicts[0].metadata["version"] == "1.4.2"
            assert report.verdicts[2].suggestion == "Make sure C is running"
            assert report.exit_code == 1
