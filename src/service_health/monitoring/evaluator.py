"""Turn probe outcomes into verdicts."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .prober import FailureKind, ProbeFailure, ProbeOutcome, ProbeSuccess
from .registry import ServiceTarget

# Keys copied from a JSON health body for display
METADATA_KEYS = ("status", "services", "version")

SUGGESTIONS = {
    FailureKind.CONNECTION_REFUSED: "Make sure {name} is running",
    FailureKind.TIMED_OUT: "Service may be slow to respond or overloaded",
}


class VerdictStatus(Enum):
    """Tri-state health verdict."""

    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Verdict:
    """Classified outcome for one target in one run."""

    service_name: str
    status: VerdictStatus
    code: Optional[int] = None
    detail: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    suggestion: Optional[str] = None
    critical: bool = False
    proxy: bool = False
    response_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "service": self.service_name,
            "status": self.status.value,
            "code": self.code,
            "detail": self.detail,
            "metadata": self.metadata,
            "suggestion": self.suggestion,
            "critical": self.critical,
            "response_time_ms": round(self.response_time_ms, 1),
        }


def extract_metadata(body: bytes) -> Optional[Dict[str, Any]]:
    """Pull display fields out of a JSON health body.

    Plain-text and malformed bodies are common on health endpoints and
    simply yield no metadata.
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(data, dict):
        return None

    metadata = {key: data[key] for key in METADATA_KEYS if data.get(key)}
    return metadata or None


class ServiceEvaluator:
    """Maps raw probe outcomes onto the healthy/warning/error scale.

    Criticality is carried onto the verdict for rendering only; it never
    changes the status tier.
    """

    def evaluate(self, target: ServiceTarget, outcome: ProbeOutcome) -> Verdict:
        """Classify one outcome.

        Args:
            target: The probed service
            outcome: What the prober returned

        Returns:
            Verdict for the target
        """
        if isinstance(outcome, ProbeSuccess):
            if 200 <= outcome.status_code < 300:
                status = VerdictStatus.HEALTHY
            else:
                status = VerdictStatus.WARNING

            return Verdict(
                service_name=target.name,
                status=status,
                code=outcome.status_code,
                metadata=extract_metadata(outcome.body),
                critical=target.critical,
                proxy=target.proxy,
                response_time_ms=outcome.elapsed_ms,
            )

        if isinstance(outcome, ProbeFailure):
            return Verdict(
                service_name=target.name,
                status=VerdictStatus.ERROR,
                detail=outcome.message,
                suggestion=self.suggest(target, outcome.kind),
                critical=target.critical,
                proxy=target.proxy,
                response_time_ms=outcome.elapsed_ms,
            )

        raise TypeError(f"Unknown probe outcome: {outcome!r}")

    @staticmethod
    def suggest(target: ServiceTarget, kind: FailureKind) -> Optional[str]:
        """Advisory remediation text for a failure kind."""
        if target.failure_hint:
            return target.failure_hint

        template = SUGGESTIONS.get(kind)
        if template is None:
            return None
        return template.format(name=target.name)
