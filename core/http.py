# =============================================================================
# core/http.py  —  Minimal synchronous HTTP transport
# =============================================================================
#
# The session cache and the batch executor never touch urllib directly; they
# call transport.send(...).  Anything with the same method can stand in for
# UrllibTransport, which is how the test suite runs without a network.
#
# Error statuses (4xx/5xx) come back as an HttpResponse so the caller can map
# them to the right error class.  Only connection-level failures raise here.
# =============================================================================

import logging
import socket
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional

from core.errors import TransportError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Status line and raw body of one HTTP exchange."""

    status: int
    reason: str
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class UrllibTransport:
    """Blocking HTTP client built on urllib.request."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[bytes] = None,
    ) -> HttpResponse:
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        log.debug("%s %s (%d bytes)", method, url, len(body or b""))
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return HttpResponse(
                    status=response.status,
                    reason=response.reason or "",
                    body=response.read(),
                )
        except urllib.error.HTTPError as e:
            # HTTPError is also a response object: keep its status and body.
            try:
                payload = e.read()
            finally:
                e.close()
            return HttpResponse(status=e.code, reason=str(e.reason or ""), body=payload or b"")
        except urllib.error.URLError as e:
            raise TransportError(f"{method} {url} failed: {e.reason}") from e
        except (socket.timeout, TimeoutError) as e:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s") from e
