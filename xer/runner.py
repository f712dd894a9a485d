from __future__ import annotations

import logging
import threading
from pathlib import Path

import httpx
from prometheus_client import CollectorRegistry

from xer.config import load_sets
from xer.events import EventStream
from xer.metrics import Instrumentation
from xer.models import CollectionSet
from xer.poller import DEFAULT_POLL_TIMEOUT
from xer.sender import DEFAULT_SEND_TIMEOUT
from xer.worker import SetWorker

logger = logging.getLogger("xer.runner")


class Runner:
    """Runs every collection set in its own worker thread."""

    def __init__(
        self,
        sets: list[CollectionSet],
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        registry: CollectorRegistry | None = None,
        event_capacity: int = 1,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.sets = list(sets)
        self.poll_timeout = poll_timeout
        self.send_timeout = send_timeout
        self.registry = registry if registry is not None else CollectorRegistry()
        self.event_capacity = event_capacity
        self.transport = transport
        self.instrumentation: Instrumentation | None = None
        self.workers: list[SetWorker] = []
        self._threads: list[threading.Thread] = []
        self._launcher: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._started = False

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        registry: CollectorRegistry | None = None,
        event_capacity: int = 1,
        transport: httpx.BaseTransport | None = None,
    ) -> "Runner":
        return cls(
            load_sets(config_path),
            poll_timeout=poll_timeout,
            send_timeout=send_timeout,
            registry=registry,
            event_capacity=event_capacity,
            transport=transport,
        )

    def run(self, stop_event: threading.Event | None = None) -> tuple[EventStream[str], EventStream[Exception]]:
        """Start one worker per set and return the (messages, errors) streams.

        Both streams must be consumed continuously: workers block on a full
        stream. They close only once every worker has exited, which without
        a stop request happens only when no sets are configured.
        """
        if self._started:
            raise RuntimeError("runner already started")
        self._started = True
        if stop_event is not None:
            self._stop_event = stop_event

        self.instrumentation = Instrumentation.register(self.sets, registry=self.registry)
        messages: EventStream[str] = EventStream(self.event_capacity)
        errors: EventStream[Exception] = EventStream(self.event_capacity)

        if not self.sets:
            messages.close()
            errors.close()
            return messages, errors

        for xset in self.sets:
            worker = SetWorker(
                xset,
                self.instrumentation,
                messages,
                errors,
                stop_event=self._stop_event,
                poll_timeout=self.poll_timeout,
                send_timeout=self.send_timeout,
                transport=self.transport,
            )
            self.workers.append(worker)
            self._threads.append(threading.Thread(target=worker.run, name=f"xer-set-{xset.name}", daemon=True))

        def _launch() -> None:
            for xset, thread in zip(self.sets, self._threads):
                messages.put(f"Run: {xset.name}", stop_event=self._stop_event)
                thread.start()
            messages.put(f"Done launching {len(self._threads)} sets.", stop_event=self._stop_event)
            for thread in self._threads:
                thread.join()
            logger.info("all set workers exited")
            messages.close()
            errors.close()

        self._launcher = threading.Thread(target=_launch, name="xer-runner", daemon=True)
        self._launcher.start()
        return messages, errors

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._launcher is not None:
            self._launcher.join(timeout=timeout)

    @property
    def running(self) -> bool:
        return self._launcher is not None and self._launcher.is_alive()
