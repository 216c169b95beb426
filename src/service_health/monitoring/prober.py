"""Single bounded-timeout HTTP probes.

A probe never raises: every network failure is turned into a ProbeFailure
so one unreachable service cannot stop the rest of the health run. This
layer does not log; rendering and logging belong to the aggregator and
reporter.
"""

import errno
import socket
import threading
import time
from contextlib import suppress
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

import requests
from urllib3.exceptions import ReadTimeoutError

DEFAULT_TIMEOUT_SECONDS = 5.0
CHUNK_SIZE = 8192


class FailureKind(Enum):
    """Why a probe got no HTTP response."""

    TIMED_OUT = "timed_out"
    CONNECTION_REFUSED = "connection_refused"
    OTHER = "other"


@dataclass(frozen=True)
class ProbeSuccess:
    """A complete HTTP response, whatever its status code."""

    status_code: int
    body: bytes = b""
    headers: dict = field(default_factory=dict)
    elapsed_ms: float = 0.0


@dataclass(frozen=True)
class ProbeFailure:
    """No HTTP response was obtained."""

    kind: FailureKind
    message: str
    elapsed_ms: float = 0.0


ProbeOutcome = Union[ProbeSuccess, ProbeFailure]


def _is_connection_refused(exc: BaseException) -> bool:
    """Walk the exception chain looking for a refused connection.

    requests wraps urllib3's MaxRetryError which wraps NewConnectionError
    which is raised from the socket's ConnectionRefusedError.
    """
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, ConnectionRefusedError):
            return True
        if isinstance(current, OSError) and current.errno == errno.ECONNREFUSED:
            return True

        pending.append(current.__cause__)
        pending.append(current.__context__)
        pending.append(getattr(current, "reason", None))
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))

    return "connection refused" in str(exc).lower()


class _Attempt:
    """State shared between a probe and its worker thread."""

    def __init__(self):
        self.done = threading.Event()
        self.response: Optional[requests.Response] = None
        self.result: Optional[ProbeSuccess] = None
        self.error: Optional[Exception] = None


def _classify(exc: Exception) -> Tuple[FailureKind, str]:
    if isinstance(exc, requests.exceptions.Timeout):
        return FailureKind.TIMED_OUT, "Request timeout"
    if isinstance(exc, requests.exceptions.ConnectionError):
        # urllib3 reports read timeouts during body streaming as ConnectionError
        if exc.args and isinstance(exc.args[0], ReadTimeoutError):
            return FailureKind.TIMED_OUT, "Request timeout"
        if _is_connection_refused(exc):
            return FailureKind.CONNECTION_REFUSED, "Connection refused"
    return FailureKind.OTHER, str(exc) or type(exc).__name__


class Prober:
    """Issues one GET per call and classifies the result.

    Each request runs on its own daemon thread. When the deadline passes the
    probe returns TIMED_OUT and shuts down whatever socket the request holds,
    so a peer trickling bytes cannot stall the run.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.session = session

    def probe(self, url: str) -> ProbeOutcome:
        """Probe a URL.

        The timeout is an overall deadline measured from the start of the
        request, covering connect, headers and body.

        Args:
            url: Target URL

        Returns:
            ProbeSuccess with status, headers and raw body, or ProbeFailure
        """
        started = time.monotonic()
        attempt = _Attempt()
        worker = threading.Thread(
            target=self._fetch, args=(url, attempt), name=f"probe {url}", daemon=True
        )
        worker.start()
        finished = attempt.done.wait(self.timeout_seconds)
        elapsed_ms = (time.monotonic() - started) * 1000

        if not finished:
            self._abort(attempt)
            return ProbeFailure(FailureKind.TIMED_OUT, "Request timeout", elapsed_ms)

        if attempt.error is not None:
            kind, message = _classify(attempt.error)
            return ProbeFailure(kind, message, elapsed_ms)

        return replace(attempt.result, elapsed_ms=elapsed_ms)

    def _fetch(self, url: str, attempt: _Attempt) -> None:
        session = self.session or requests.Session()
        try:
            response = session.get(url, timeout=self.timeout_seconds, stream=True)
            attempt.response = response
            with response:
                body = b"".join(response.iter_content(chunk_size=CHUNK_SIZE))
                attempt.result = ProbeSuccess(
                    status_code=response.status_code,
                    body=body,
                    headers=dict(response.headers),
                )
        except Exception as e:
            attempt.error = e
        finally:
            if self.session is None:
                session.close()
            attempt.done.set()

    @staticmethod
    def _abort(attempt: _Attempt) -> None:
        """Cut the connection of a request that overran its deadline.

        Once headers have arrived the socket is shut down, which wakes the
        blocked read. Before that the worker is abandoned; it is a daemon
        and its per-read timeout still applies.
        """
        response = attempt.response
        if response is None:
            return
        connection = getattr(response.raw, "connection", None)
        sock = getattr(connection, "sock", None)
        with suppress(OSError):
            if sock is not None:
                sock.shutdown(socket.SHUT_RDWR)
            response.close()
