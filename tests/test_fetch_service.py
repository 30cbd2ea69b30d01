import pytest
import requests

from image_gateway.errors import (
    FetchStatusError,
    FetchTransportError,
    InvalidRequestError,
    SourceNotAllowedError,
)
from image_gateway.services.fetch_service import FetchService


class StubResponse:
    def __init__(self, status_code=200, content=b"bytes"):
        self.status_code = status_code
        self.content = content

    @property
    def ok(self):
        return 200 <= self.status_code < 400


class StubSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response or StubResponse()
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_fetch_returns_body_and_passes_timeout():
    session = StubSession(StubResponse(content=b"png"))
    service = FetchService(timeout=3.5, session=session, user_agent="ua/1")
    assert service.fetch("http://img.test/a.png") == b"png"
    assert session.calls == [("http://img.test/a.png", 3.5)]
    assert session.headers["User-Agent"] == "ua/1"


def test_non_success_status_is_reported():
    service = FetchService(session=StubSession(StubResponse(status_code=404)))
    with pytest.raises(FetchStatusError) as info:
        service.fetch("http://img.test/missing.png")
    assert info.value.status == 404
    assert info.value.status_code == 502


def test_transport_error_is_wrapped():
    service = FetchService(session=StubSession(error=requests.ConnectionError("refused")))
    with pytest.raises(FetchTransportError, match="refused"):
        service.fetch("http://img.test/a.png")


@pytest.mark.parametrize("url", ["not a url", "ftp://img.test/a.png", "http:///a.png"])
def test_invalid_url_is_client_error(url):
    session = StubSession()
    with pytest.raises(InvalidRequestError):
        FetchService(session=session).fetch(url)
    assert session.calls == []


def test_allowed_hosts_by_suffix():
    session = StubSession()
    service = FetchService(allowed_hosts=("example.com",), session=session)
    assert service.fetch("https://cdn.example.com/a.png") == b"bytes"
    with pytest.raises(SourceNotAllowedError):
        service.fetch("https://evil.test/a.png")
    assert [url for url, _ in session.calls] == ["https://cdn.example.com/a.png"]
