"""Human-readable and JSON rendering of health runs."""

import json
from typing import Optional, TextIO

import click
from rich.console import Console
from rich.text import Text

from .aggregator import Report
from .evaluator import Verdict, VerdictStatus
from .registry import ServiceTarget

TITLE = "Analytics Dashboard Health Check"

REMEDIATION_HINTS = [
    "Start AI query service: cd apps/services/vanna && python -m uvicorn app.main:app --port 8000",
    "Start API backend: cd apps/api && npm run dev",
    "Start web frontend: cd apps/web && npm run dev",
    "Check environment variables in .env files",
    "Ensure PostgreSQL database is running",
]


class ConsoleReporter:
    """Line-oriented colored report, one block per service then a summary."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _line(self, text: str = "", style: str = "") -> None:
        self.console.print(Text(text, style=style))

    def header(self) -> None:
        self._line(f"=== {TITLE} ===", "blue")
        self._line()

    def service_started(self, target: ServiceTarget) -> None:
        label = "Database Connection" if target.proxy else target.name
        self._line(f"Checking {label}...", "blue")

    def service_checked(self, target: ServiceTarget, verdict: Verdict) -> None:
        if target.proxy:
            self._render_proxy(verdict)
        else:
            self._render_service(verdict)
        self._line()

    def _render_service(self, verdict: Verdict) -> None:
        name = verdict.service_name

        if verdict.status == VerdictStatus.HEALTHY:
            self._line(f"✓ {name} is healthy ({verdict.code})", "green")
            metadata = verdict.metadata or {}
            if "status" in metadata:
                self._line(f"  Status: {metadata['status']}")
            if "services" in metadata:
                self._line(f"  Services: {json.dumps(metadata['services'])}")
            if "version" in metadata:
                self._line(f"  Version: {metadata['version']}")

        elif verdict.status == VerdictStatus.WARNING:
            self._line(f"⚠ {name} returned {verdict.code}", "yellow")

        else:
            # Criticality only changes how loud the error is
            if verdict.critical:
                self._line(f"✗ {name} is not accessible", "red")
            else:
                self._line(f"⚠ {name} is not accessible", "yellow")
            self._render_failure(verdict)

    def _render_proxy(self, verdict: Verdict) -> None:
        name = verdict.service_name

        if verdict.status == VerdictStatus.HEALTHY:
            self._line(f"✓ {name} connection is working", "green")
        elif verdict.status == VerdictStatus.WARNING:
            self._line(
                f"⚠ {name} connection may have issues (API returned {verdict.code})", "yellow"
            )
        else:
            self._line(f"✗ {name} connection failed", "red")
            self._render_failure(verdict)

    def _render_failure(self, verdict: Verdict) -> None:
        self._line(f"  Error: {verdict.detail}")
        if verdict.suggestion:
            self._line(f"  Suggestion: {verdict.suggestion}")

    def summary(self, report: Report) -> None:
        self._line("=== Summary ===", "blue")
        self._line(f"Healthy: {report.healthy}", "green")
        self._line(f"Warnings: {report.warning}", "yellow")
        self._line(f"Errors: {report.error}", "red")
        self._line()

        if report.error > 0:
            self._line("Critical issues detected. Please check the services above.", "red")
            self._line()
            self._line("Common solutions:")
            for i, hint in enumerate(REMEDIATION_HINTS, 1):
                self._line(f"{i}. {hint}")
        elif report.warning > 0:
            self._line(
                "Some services have warnings. The system may still work "
                "but with limited functionality.",
                "yellow",
            )
        else:
            self._line("All systems are healthy! 🎉", "green")

    def error(self, message: str) -> None:
        self._line(message, "red")


class JsonReporter:
    """Machine-readable report written once the run is complete."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def header(self) -> None:
        pass

    def service_started(self, target: ServiceTarget) -> None:
        pass

    def service_checked(self, target: ServiceTarget, verdict: Verdict) -> None:
        pass

    def summary(self, report: Report) -> None:
        click.echo(json.dumps(report.to_dict(), indent=2), file=self.stream)

    def error(self, message: str) -> None:
        click.echo(json.dumps({"overall": "error", "exit_code": 1, "error": message}), file=self.stream)
