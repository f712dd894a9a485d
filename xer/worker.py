from __future__ import annotations

import logging
import threading
import time

import httpx

from xer.errors import PollErrorKind, SendError, SerializationError, StreamClosedError
from xer.events import EventStream
from xer.metrics import Instrumentation
from xer.models import CollectionSet, Endpoint, ResultBundle
from xer.poller import DEFAULT_POLL_TIMEOUT, Poller
from xer.sender import DEFAULT_SEND_TIMEOUT, Forwarder
from xer.serialization import encode_bundle

logger = logging.getLogger("xer.worker")


class SetWorker:
    """Polls one collection set forever: poll, record, forward, wait, repeat.

    Errors never end the loop. Each one is counted under the set's label and
    emitted on the error stream; the next cycle is the only retry.
    """

    def __init__(
        self,
        collection_set: CollectionSet,
        instrumentation: Instrumentation,
        messages: EventStream[str],
        errors: EventStream[Exception],
        stop_event: threading.Event | None = None,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.set = collection_set
        self.instrumentation = instrumentation
        self.messages = messages
        self.errors = errors
        self.stop_event = stop_event or threading.Event()
        self.bundle = ResultBundle(name=collection_set.name)
        self.poller = Poller(collection_set.name, timeout=poll_timeout, transport=transport)
        self.forwarder = Forwarder(collection_set.name, timeout=send_timeout, transport=transport)
        self.cycles = 0

    def _message(self, text: str) -> None:
        self.messages.put(text, stop_event=self.stop_event)

    def _error(self, error: Exception) -> None:
        self.errors.put(error, stop_event=self.stop_event)

    def _poll_endpoint(self, endpoint: Endpoint) -> bool:
        """Poll one endpoint; returns False when the rest of the cycle must be skipped."""
        name = self.set.name
        self.instrumentation.record_poll(name)
        result = self.poller.poll(endpoint)

        if result.close_error is not None:
            self.instrumentation.record_poll_error(name)
            self._error(result.close_error)

        if result.error is not None:
            self.instrumentation.record_poll_error(name)
            self._error(result.error)
            # a bad number abandons the remaining endpoints for this cycle
            return result.error.kind != PollErrorKind.PARSE

        value = result.value
        if value is None:
            return True
        self.bundle.results[endpoint.name] = value
        if isinstance(value, float):
            self.instrumentation.set_value(name, endpoint.name, value)
        return True

    def _forward(self) -> None:
        name = self.set.name
        dest = self.set.dest
        try:
            body = encode_bundle(self.bundle)
        except SerializationError as exc:
            logger.warning("skipping send set=%s reason=%s", name, exc.detail)
            if dest.enabled:
                self.instrumentation.record_send_error(name)
            self._error(exc)
            return

        if not dest.enabled:
            return

        start = time.monotonic()
        try:
            self.forwarder.send(dest.method, dest.url, body)
        except SendError as exc:
            self.instrumentation.record_send_error(name)
            self._error(exc)
        finally:
            self.instrumentation.observe_send(name, time.monotonic() - start)

    def run_cycle(self) -> None:
        name = self.set.name
        start = time.monotonic()
        self._message(f"Running {name}")
        self.instrumentation.record_run(name)

        for endpoint in self.set.endpoints:
            if not self._poll_endpoint(endpoint):
                break
        self.instrumentation.observe_scrape(name, time.monotonic() - start)

        self._forward()
        self.cycles += 1
        self._message(f"Ran {name} and now waiting {self.set.frequency} seconds.")

    def run(self) -> None:
        try:
            while not self.stop_event.is_set():
                try:
                    self.run_cycle()
                except StreamClosedError:
                    logger.warning("event streams closed, stopping set=%s", self.set.name)
                    break
                except Exception as exc:
                    logger.exception("unexpected cycle failure set=%s", self.set.name)
                    self._error(exc)
                if self.set.frequency > 0:
                    self.stop_event.wait(timeout=self.set.frequency)
        finally:
            self.close()

    def close(self) -> None:
        self.poller.close()
        self.forwarder.close()
