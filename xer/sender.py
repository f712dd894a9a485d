from __future__ import annotations

import logging

import httpx

from xer.errors import SendError, SendErrorKind

logger = logging.getLogger("xer.sender")

DEFAULT_SEND_TIMEOUT = 1.0


class Forwarder:
    """Delivers serialized result bundles for one collection set. Failed sends are not retried."""

    def __init__(
        self,
        set_name: str,
        timeout: float = DEFAULT_SEND_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.set_name = set_name
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def send(self, method: str, url: str, body: bytes) -> None:
        try:
            request = self._client.build_request(
                method, url, content=body, headers={"Content-Type": "application/json"}
            )
            response = self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SendError(SendErrorKind.TRANSPORT, self.set_name, f"{exc.__class__.__name__}: {exc}") from exc

        status = response.status_code
        try:
            response.close()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            if status == 200:
                raise SendError(
                    SendErrorKind.BODY_CLOSE, self.set_name, f"{exc.__class__.__name__}: {exc}", status=status
                ) from exc
            logger.warning("closing response failed set=%s reason=%s", self.set_name, exc)

        if status != 200:
            raise SendError(
                SendErrorKind.BAD_STATUS, self.set_name, f"non-200 response from server, got {status}", status=status
            )
