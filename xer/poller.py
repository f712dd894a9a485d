from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import httpx

from xer.errors import PollError, PollErrorKind
from xer.models import Endpoint

logger = logging.getLogger("xer.poller")

DEFAULT_POLL_TIMEOUT = 2.0


@dataclass
class PollResult:
    endpoint: Endpoint
    value: float | str | None = None
    error: PollError | None = None
    close_error: PollError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_number(text: str) -> float:
    cleaned = text.strip()
    # float() accepts digit separators; endpoint bodies must be plain numbers
    if "_" in cleaned:
        raise ValueError(f"invalid number {cleaned!r}")
    value = float(cleaned)
    # NaN and infinities cannot be forwarded as JSON numbers
    if not math.isfinite(value):
        raise ValueError(f"non-finite number {cleaned!r}")
    return value


class Poller:
    """Fetches endpoint values for one collection set."""

    def __init__(
        self,
        set_name: str,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.set_name = set_name
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def poll(self, endpoint: Endpoint) -> PollResult:
        result = PollResult(endpoint=endpoint)
        try:
            request = self._client.build_request("GET", endpoint.url)
            response = self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            result.error = self._error(PollErrorKind.TRANSPORT, endpoint, exc)
            return result

        chunks: list[bytes] = []
        try:
            # the response closes itself once the body is exhausted, so a
            # StreamError here comes from closing, after every chunk arrived
            for chunk in response.iter_bytes():
                chunks.append(chunk)
        except httpx.HTTPError as exc:
            result.error = self._error(PollErrorKind.TRANSPORT, endpoint, exc)
        except httpx.StreamError as exc:
            result.close_error = self._error(PollErrorKind.BODY_CLOSE, endpoint, exc)
        finally:
            try:
                response.close()
            except (httpx.HTTPError, httpx.StreamError) as exc:
                result.close_error = self._error(PollErrorKind.BODY_CLOSE, endpoint, exc)

        if result.error is not None:
            return result

        body = b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
        if endpoint.is_numeric:
            try:
                result.value = parse_number(body)
            except ValueError as exc:
                result.error = self._error(PollErrorKind.PARSE, endpoint, exc)
        else:
            result.value = body
        return result

    def _error(self, kind: PollErrorKind, endpoint: Endpoint, exc: Exception) -> PollError:
        logger.debug("poll failed set=%s endpoint=%s kind=%s", self.set_name, endpoint.name, kind.value)
        return PollError(kind, self.set_name, endpoint.name, f"{exc.__class__.__name__}: {exc}")
