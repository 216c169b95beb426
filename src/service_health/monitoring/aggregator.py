"""Run a full health cycle and derive the process exit code."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from .evaluator import ServiceEvaluator, Verdict, VerdictStatus
from .prober import Prober
from .registry import ServiceRegistry, ServiceTarget

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CRITICAL = 1


class ProgressListener(Protocol):
    """Receives per-service progress in report order."""

    def service_started(self, target: ServiceTarget) -> None: ...

    def service_checked(self, target: ServiceTarget, verdict: Verdict) -> None: ...


@dataclass
class Report:
    """Ordered verdicts of one run."""

    verdicts: List[Verdict] = field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def _count(self, status: VerdictStatus) -> int:
        return sum(1 for v in self.verdicts if v.status == status)

    @property
    def healthy(self) -> int:
        return self._count(VerdictStatus.HEALTHY)

    @property
    def warning(self) -> int:
        return self._count(VerdictStatus.WARNING)

    @property
    def error(self) -> int:
        return self._count(VerdictStatus.ERROR)

    @property
    def exit_code(self) -> int:
        """1 when anything is unreachable; warnings never fail the gate."""
        return EXIT_CRITICAL if self.error > 0 else EXIT_OK

    @property
    def overall(self) -> str:
        """Single-word run status: critical, degraded or healthy."""
        if self.error > 0:
            return "critical"
        if self.warning > 0:
            return "degraded"
        return "healthy"

    @property
    def duration_seconds(self) -> Optional[float]:
        """Calculate total duration in seconds."""
        if self.started_at and self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "overall": self.overall,
            "exit_code": self.exit_code,
            "summary": {
                "healthy": self.healthy,
                "warning": self.warning,
                "error": self.error,
            },
            "services": [v.to_dict() for v in self.verdicts],
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": self.duration_seconds,
        }


class HealthAggregator:
    """Probes every registered target and collects the verdicts.

    Sequential mode reports each service as soon as it is checked. Parallel
    mode probes everything at once and replays progress in registry order
    after all probes have finished, so output order never depends on
    completion order.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        prober: Optional[Prober] = None,
        evaluator: Optional[ServiceEvaluator] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ):
        self.registry = registry
        self.prober = prober or Prober()
        self.evaluator = evaluator or ServiceEvaluator()
        self.parallel = parallel
        self.max_workers = max_workers

    def check(self, target: ServiceTarget) -> Verdict:
        """Probe and evaluate a single target."""
        logger.info(f"Probing {target.name} at {target.url}")
        outcome = self.prober.probe(target.url)
        verdict = self.evaluator.evaluate(target, outcome)
        logger.info(f"{target.name}: {verdict.status.value} ({verdict.response_time_ms:.0f} ms)")
        return verdict

    def run(self, listener: Optional[ProgressListener] = None) -> Report:
        """Run one full health cycle.

        Args:
            listener: Optional progress receiver (usually a reporter)

        Returns:
            Report with one verdict per target, database proxy check last
        """
        targets = self.registry.all_targets()
        report = Report(started_at=datetime.now())
        logger.info(f"Running {len(targets)} health checks ({'parallel' if self.parallel else 'sequential'})")

        if self.parallel and targets:
            workers = self.max_workers or len(targets)
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self.check, target) for target in targets]
                verdicts = [future.result() for future in futures]

            for target, verdict in zip(targets, verdicts):
                if listener:
                    listener.service_started(target)
                    listener.service_checked(target, verdict)
                report.verdicts.append(verdict)
        else:
            for target in targets:
                if listener:
                    listener.service_started(target)
                verdict = self.check(target)
                if listener:
                    listener.service_checked(target, verdict)
                report.verdicts.append(verdict)

        report.ended_at = datetime.now()
        logger.info(
            f"Health check complete: {report.overall} "
            f"(healthy={report.healthy}, warning={report.warning}, error={report.error})"
        )
        return report
