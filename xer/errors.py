from __future__ import annotations

from enum import Enum


class XerError(Exception):
    """Base class for collection engine errors."""


class ConfigError(XerError):
    """Raised when collection sets cannot be loaded or registered."""


class StreamClosedError(XerError):
    """Raised when reading from or writing to a closed event stream."""


class PollErrorKind(str, Enum):
    TRANSPORT = "transport"
    PARSE = "parse"
    BODY_CLOSE = "body_close"


class SendErrorKind(str, Enum):
    TRANSPORT = "transport"
    BAD_STATUS = "bad_status"
    BODY_CLOSE = "body_close"


class PollError(XerError):
    def __init__(self, kind: PollErrorKind, set_name: str, endpoint: str, detail: str) -> None:
        self.kind = kind
        self.set_name = set_name
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"poll {kind.value} error set={set_name} endpoint={endpoint}: {detail}")


class SendError(XerError):
    def __init__(self, kind: SendErrorKind, set_name: str, detail: str, status: int | None = None) -> None:
        self.kind = kind
        self.set_name = set_name
        self.detail = detail
        self.status = status
        super().__init__(f"send {kind.value} error set={set_name}: {detail}")


class SerializationError(XerError):
    def __init__(self, set_name: str, detail: str) -> None:
        self.set_name = set_name
        self.detail = detail
        super().__init__(f"serialization error set={set_name}: {detail}")
