"""Monitoring module: probe, evaluate and report on dependent services."""

from .prober import (
    FailureKind,
    ProbeFailure,
    ProbeOutcome,
    ProbeSuccess,
    Prober,
)
from .registry import (
    RegistryError,
    ServiceRegistry,
    ServiceTarget,
    build_registry,
    default_registry,
    load_registry,
)
from .evaluator import (
    ServiceEvaluator,
    Verdict,
    VerdictStatus,
)
from .aggregator import (
    EXIT_CRITICAL,
    EXIT_OK,
    HealthAggregator,
    Report,
)
from .reporter import (
    ConsoleReporter,
    JsonReporter,
)

__all__ = [
    # Probing
    "FailureKind",
    "ProbeFailure",
    "ProbeOutcome",
    "ProbeSuccess",
    "Prober",
    # Registry
    "RegistryError",
    "ServiceRegistry",
    "ServiceTarget",
    "build_registry",
    "default_registry",
    "load_registry",
    # Evaluation
    "ServiceEvaluator",
    "Verdict",
    "VerdictStatus",
    # Aggregation
    "EXIT_CRITICAL",
    "EXIT_OK",
    "HealthAggregator",
    "Report",
    # Rendering
    "ConsoleReporter",
    "JsonReporter",
]
