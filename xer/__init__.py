"""Collection engine: polls endpoint sets, records metrics, forwards result bundles."""

from xer.config import load_sets
from xer.errors import (
    ConfigError,
    PollError,
    PollErrorKind,
    SendError,
    SendErrorKind,
    SerializationError,
    StreamClosedError,
    XerError,
)
from xer.events import EventStream
from xer.metrics import Instrumentation
from xer.models import CollectionSet, Destination, Endpoint, EndpointType, ResultBundle
from xer.runner import Runner

__all__ = [
    "CollectionSet",
    "Destination",
    "Endpoint",
    "EndpointType",
    "ResultBundle",
    "Instrumentation",
    "EventStream",
    "Runner",
    "load_sets",
    "XerError",
    "ConfigError",
    "PollError",
    "PollErrorKind",
    "SendError",
    "SendErrorKind",
    "SerializationError",
    "StreamClosedError",
]
