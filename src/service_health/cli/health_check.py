"""CLI for the service health gate.

Exit codes: 0 when nothing is unreachable (warnings allowed), 1 when any
check errored or the run itself failed.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import requests
from rich.console import Console

from ..config import get_settings
from ..monitoring import (
    EXIT_CRITICAL,
    ConsoleReporter,
    HealthAggregator,
    JsonReporter,
    Prober,
    build_registry,
)
from ..notifications import send_health_alert
from ..utils import setup_logging

logger = logging.getLogger(__name__)


def run_health_check(
    timeout: Optional[float] = None,
    parallel: Optional[bool] = None,
    config_path: Optional[Path] = None,
    as_json: bool = False,
    notify: bool = False,
    console: Optional[Console] = None,
    verbose: bool = False,
) -> int:
    """Run one probe cycle inside a single error boundary.

    Any unexpected exception, including invalid settings or a broken services
    file, is logged and reported, and the run ends with exit code 1.

    Args:
        timeout: Per-probe timeout in seconds. Defaults to settings.
        parallel: Probe concurrently. Defaults to settings.
        config_path: YAML services file. Defaults to settings.
        as_json: Emit a JSON report instead of colored text
        notify: Send a Discord alert when the stack is not fully healthy
        console: Console for text output
        verbose: Log at DEBUG level

    Returns:
        Process exit code
    """
    reporter = JsonReporter() if as_json else ConsoleReporter(console or Console(soft_wrap=True))

    try:
        settings = get_settings()
        setup_logging(level="DEBUG" if verbose else None)

        overrides = {}
        if timeout is not None:
            overrides["probe_timeout_seconds"] = timeout
        if parallel is not None:
            overrides["parallel_probes"] = parallel
        if config_path is not None:
            overrides["services_file"] = Path(config_path)
        if overrides:
            settings = settings.model_copy(update=overrides)

        aggregator = HealthAggregator(
            registry=build_registry(settings),
            prober=Prober(timeout_seconds=settings.probe_timeout_seconds),
            parallel=settings.parallel_probes,
        )

        reporter.header()
        report = aggregator.run(reporter)
        reporter.summary(report)

    except Exception as e:
        logger.error(f"Health check aborted: {type(e).__name__}: {e}")
        logger.debug("Traceback", exc_info=True)
        reporter.error(f"Unexpected error: {e}")
        return EXIT_CRITICAL

    if notify and report.overall != "healthy":
        try:
            send_health_alert(report)
        except requests.exceptions.RequestException as e:
            logger.error(f"Could not deliver health alert: {e}")

    return report.exit_code


@click.command()
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-probe timeout in seconds (default: 5)",
)
@click.option(
    "--parallel/--sequential",
    default=None,
    help="Probe all services concurrently",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file listing the services to probe",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print a JSON report",
)
@click.option(
    "--notify",
    is_flag=True,
    help="Send a Discord alert when any service is not healthy",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Verbose output",
)
def main(timeout, parallel, config_path, as_json, notify, verbose):
    """Check the dashboard services and exit non-zero if any is unreachable."""
    code = run_health_check(
        timeout=timeout,
        parallel=parallel,
        config_path=config_path,
        as_json=as_json,
        notify=notify,
        verbose=verbose,
    )
    sys.exit(code)


if __name__ == "__main__":
    main()
