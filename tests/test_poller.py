from __future__ import annotations

import httpx
import pytest

from xer.errors import PollErrorKind
from xer.models import Endpoint
from xer.poller import Poller, parse_number



def _endpoint(kind: str = "number") -> Endpoint:
    return Endpoint(name="temp", url="http://svc/temp", type=kind)


def test_number_body_is_parsed(fake_http) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, text="21.5"))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())

    assert result.ok
    assert result.value == 21.5
    assert result.close_error is None


def test_number_tolerates_surrounding_whitespace(fake_http) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, text="  42\n"))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())
    assert result.value == 42.0


def test_text_body_is_kept_raw(fake_http) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, text="v1.2.3\n"))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint("text"))

    assert result.ok
    assert result.value == "v1.2.3\n"


def test_unparseable_number_is_parse_error(fake_http) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, text="not-a-number"))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())

    assert result.value is None
    assert result.error is not None
    assert result.error.kind == PollErrorKind.PARSE
    assert result.error.set_name == "svc-a"
    assert result.error.endpoint == "temp"


def test_connection_failure_is_transport_error(fake_http) -> None:
    request = httpx.Request("GET", "http://svc/temp")
    fake_http.route("GET", "http://svc/temp", httpx.ConnectError("connection refused", request=request))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())

    assert result.error is not None
    assert result.error.kind == PollErrorKind.TRANSPORT
    assert "connection refused" in str(result.error)


def test_timeout_is_transport_error(fake_http) -> None:
    request = httpx.Request("GET", "http://svc/temp")
    fake_http.route("GET", "http://svc/temp", httpx.ReadTimeout("timed out", request=request))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())

    assert result.error is not None
    assert result.error.kind == PollErrorKind.TRANSPORT


def test_non_200_body_is_still_recorded(fake_http) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(503, text="busy"))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint("text"))
    assert result.value == "busy"


@pytest.mark.parametrize("raw", ["", "1_000", "abc", "1.2.3"])
def test_parse_number_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_number(raw)


def test_close_failure_keeps_value_and_reports_body_close(fake_http, failing_close_stream) -> None:
    stream = failing_close_stream(b"21.5")
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, stream=stream))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())

    assert result.ok
    assert result.value == 21.5
    assert result.close_error is not None
    assert result.close_error.kind == PollErrorKind.BODY_CLOSE
    assert stream.close_calls == 1


def test_close_failure_on_text_endpoint_keeps_body(fake_http, failing_close_stream) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, stream=failing_close_stream(b"v2")))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint("text"))

    assert result.value == "v2"
    assert result.close_error is not None


@pytest.mark.parametrize("raw", ["NaN", "nan", "inf", "-Infinity"])
def test_non_finite_number_is_parse_error(fake_http, raw: str) -> None:
    fake_http.route("GET", "http://svc/temp", httpx.Response(200, text=raw))
    result = Poller("svc-a", transport=fake_http.transport).poll(_endpoint())

    assert result.value is None
    assert result.error is not None
    assert result.error.kind == PollErrorKind.PARSE
