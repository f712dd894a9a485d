from __future__ import annotations

import json

import httpx
import pytest

from xer.errors import SendError, SendErrorKind
from xer.sender import Forwarder



def test_send_uses_configured_method_and_json_body(fake_http) -> None:
    fake_http.route("PUT", "http://sink/x", httpx.Response(200))
    Forwarder("svc-a", transport=fake_http.transport).send("PUT", "http://sink/x", b'{"name":"svc-a","results":{}}')

    [request] = fake_http.requests_to("http://sink/x")
    assert request.method == "PUT"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {"name": "svc-a", "results": {}}


def test_non_200_is_bad_status(fake_http) -> None:
    fake_http.route("POST", "http://sink/x", httpx.Response(201))
    with pytest.raises(SendError) as excinfo:
        Forwarder("svc-a", transport=fake_http.transport).send("POST", "http://sink/x", b"{}")

    assert excinfo.value.kind == SendErrorKind.BAD_STATUS
    assert excinfo.value.status == 201
    assert "got 201" in str(excinfo.value)


def test_unreachable_destination_is_transport_error(fake_http) -> None:
    request = httpx.Request("POST", "http://sink/x")
    fake_http.route("POST", "http://sink/x", httpx.ConnectError("no route to host", request=request))
    with pytest.raises(SendError) as excinfo:
        Forwarder("svc-a", transport=fake_http.transport).send("POST", "http://sink/x", b"{}")

    assert excinfo.value.kind == SendErrorKind.TRANSPORT
    assert excinfo.value.status is None


def test_invalid_url_is_transport_error() -> None:
    with pytest.raises(SendError) as excinfo:
        Forwarder("svc-a").send("POST", "not a url", b"{}")
    assert excinfo.value.kind == SendErrorKind.TRANSPORT


def test_close_failure_after_200_is_body_close(fake_http, failing_close_stream) -> None:
    stream = failing_close_stream(b"")
    fake_http.route("POST", "http://sink/x", httpx.Response(200, stream=stream))
    with pytest.raises(SendError) as excinfo:
        Forwarder("svc-a", transport=fake_http.transport).send("POST", "http://sink/x", b"{}")

    assert excinfo.value.kind == SendErrorKind.BODY_CLOSE
    assert excinfo.value.status == 200
    assert stream.close_calls == 1


def test_close_failure_after_bad_status_reports_bad_status(fake_http, failing_close_stream) -> None:
    stream = failing_close_stream(b"oops")
    fake_http.route("POST", "http://sink/x", httpx.Response(500, stream=stream))
    with pytest.raises(SendError) as excinfo:
        Forwarder("svc-a", transport=fake_http.transport).send("POST", "http://sink/x", b"{}")

    assert excinfo.value.kind == SendErrorKind.BAD_STATUS
    assert excinfo.value.status == 500
    assert stream.close_calls == 1
