import httpx
import pytest

from objectstore_sdk.client.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    TransportError,
    UnauthorizedError,
    UnprocessableEntityError,
    error_for_status,
)
from objectstore_sdk.client.transport import HttpTransport

URL = "https://swift.example.com/v1/AUTH_test/c"


@pytest.mark.parametrize("status,error_class,code", [
    (401, UnauthorizedError, "ERR_UNAUTHORIZED"),
    (403, ForbiddenError, "ERR_FORBIDDEN"),
    (404, NotFoundError, "ERR_NOT_FOUND"),
    (409, ConflictError, "ERR_CONFLICT"),
    (422, UnprocessableEntityError, "ERR_UNPROCESSABLE_ENTITY"),
    (503, ServerError, "ERR_SERVER"),
    (418, TransportError, "ERR_TRANSPORT"),
])
def test_error_for_status(status, error_class, code):
    error = error_for_status(status, "GET", URL, "body text")
    assert type(error) is error_class
    assert error.code == code
    assert error.status_code == status
    assert f"(GET {URL})" in error.message
    assert "body text" in error.message


def test_error_status_raises_with_method_and_url():
    transport = HttpTransport(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    with pytest.raises(NotFoundError) as exc_info:
        transport.head(URL)
    assert exc_info.value.method == "HEAD"
    assert exc_info.value.url == URL


def test_success_returns_response():
    transport = HttpTransport(transport=httpx.MockTransport(lambda request: httpx.Response(204)))
    assert transport.delete(URL).status_code == 204


def test_copy_sends_copy_method():
    seen = []

    def handler(request):
        seen.append((request.method, request.headers.get("Destination")))
        return httpx.Response(201)

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    transport.copy(URL + "/a", headers={"Destination": "/c/b"})
    assert seen == [("COPY", "/c/b")]


def test_connect_errors_are_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text="ok")

    transport = HttpTransport(max_retries=3, transport=httpx.MockTransport(handler))
    assert transport.get(URL).text == "ok"
    assert len(calls) == 3


def test_connect_errors_exhaust_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpTransport(max_retries=2, transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError) as exc_info:
        transport.get(URL)
    assert len(calls) == 2
    assert exc_info.value.status_code is None
    assert "after 2 attempts" in exc_info.value.message


def test_read_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadError("connection reset", request=request)

    transport = HttpTransport(max_retries=3, transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError):
        transport.put(URL + "/a", content=b"data")
    assert len(calls) == 1


def test_error_statuses_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="boom")

    transport = HttpTransport(max_retries=3, transport=httpx.MockTransport(handler))
    with pytest.raises(ServerError):
        transport.get(URL)
    assert len(calls) == 1
