"""Tests for the single-flight downloader."""
import threading
from unittest.mock import Mock

import pytest
import requests
from downloader import SingleFlightDownloader
from weather_errors import (
    DownloadCancelled,
    DownloadError,
    DownloadInProgress,
    HTTPStatusError,
    TransportError,
    WrongContentType,
)

URL = "https://api.openweathermap.org/data/2.5/weather?lat=38.82&lon=82.78&appid=secret"


def _response(status_code=200, content=b'{"cod": 200}', content_type="application/json; charset=utf-8", json_body=None):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.text = content.decode("utf-8", errors="replace")
    response.headers = {"Content-Type": content_type} if content_type else {}
    if json_body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_body
    return response


@pytest.fixture
def session():
    """Mock requests session."""
    return Mock()


def test_fetch_returns_body(session):
    """Test a 2xx JSON response returns its bytes."""
    session.get.return_value = _response()
    downloader = SingleFlightDownloader(session=session, timeout=5)

    assert downloader.fetch(URL) == b'{"cod": 200}'
    session.get.assert_called_once_with(URL, timeout=5)
    assert not downloader.in_flight(URL)


def test_fetch_http_error(session):
    """Test non-2xx responses raise HTTPStatusError with the provider message."""
    session.get.return_value = _response(
        status_code=401,
        content=b'{"cod": 401, "message": "Invalid API key"}',
        json_body={"cod": 401, "message": "Invalid API key"},
    )
    downloader = SingleFlightDownloader(session=session)

    with pytest.raises(HTTPStatusError) as exc_info:
        downloader.fetch(URL)

    assert exc_info.value.status_code == 401
    assert exc_info.value.provider_message == "Invalid API key"
    assert isinstance(exc_info.value, WrongContentType)
    assert not downloader.in_flight(URL)


def test_fetch_http_error_with_parameters(session):
    """Test error parameters are included in the message."""
    session.get.return_value = _response(
        status_code=400,
        json_body={"cod": "400", "message": "Invalid request", "parameters": ["lat", "lon"]},
    )
    downloader = SingleFlightDownloader(session=session)

    with pytest.raises(HTTPStatusError, match="lat, lon"):
        downloader.fetch(URL)


def test_fetch_http_error_non_json_body(session):
    """Test a non-JSON error body falls back to the text."""
    session.get.return_value = _response(status_code=502, content=b"Bad Gateway", content_type="text/html")
    downloader = SingleFlightDownloader(session=session)

    with pytest.raises(HTTPStatusError, match="Bad Gateway") as exc_info:
        downloader.fetch(URL)

    assert exc_info.value.observed == "text/html"


@pytest.mark.parametrize("content_type", ["text/html", "text/plain; charset=utf-8", None])
def test_fetch_wrong_content_type(session, content_type):
    """Test a 200 response that is not application/json is rejected."""
    session.get.return_value = _response(content_type=content_type)
    downloader = SingleFlightDownloader(session=session)

    with pytest.raises(WrongContentType) as exc_info:
        downloader.fetch(URL)

    assert exc_info.value.expected == "application/json"
    assert not isinstance(exc_info.value, HTTPStatusError)


def test_fetch_transport_error(session):
    """Test network failures raise TransportError and free the URL."""
    session.get.side_effect = requests.exceptions.ConnectionError("Connection refused")
    downloader = SingleFlightDownloader(session=session)

    with pytest.raises(TransportError) as exc_info:
        downloader.fetch(URL)

    assert isinstance(exc_info.value, DownloadError)
    assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)
    assert not downloader.in_flight(URL)


def test_fetch_timeout(session):
    """Test timeouts are transport errors."""
    session.get.side_effect = requests.exceptions.Timeout("Request timeout")
    downloader = SingleFlightDownloader(session=session)

    with pytest.raises(TransportError):
        downloader.fetch(URL)


def test_concurrent_duplicate_is_refused(session):
    """Test a second fetch of an in-flight URL raises DownloadInProgress."""
    started = threading.Event()
    release = threading.Event()

    def slow_get(url, timeout):
        started.set()
        release.wait(5)
        return _response()

    session.get.side_effect = slow_get
    downloader = SingleFlightDownloader(session=session)
    results = []
    worker = threading.Thread(target=lambda: results.append(downloader.fetch(URL)))
    worker.start()
    assert started.wait(5)

    try:
        assert downloader.in_flight(URL)
        with pytest.raises(DownloadInProgress) as exc_info:
            downloader.fetch(URL)
        # the API key is not leaked into the message
        assert "secret" not in str(exc_info.value)
    finally:
        release.set()
        worker.join(5)

    assert results == [b'{"cod": 200}']
    assert session.get.call_count == 1
    assert not downloader.in_flight(URL)
    # the URL can be fetched again once the first download finished
    assert downloader.fetch(URL) == b'{"cod": 200}'


def test_different_urls_are_independent(session):
    """Test an in-flight URL does not block other URLs."""
    started = threading.Event()
    release = threading.Event()
    other_url = URL.replace("weather", "forecast")

    def get(url, timeout):
        if url == URL:
            started.set()
            release.wait(5)
        return _response()

    session.get.side_effect = get
    downloader = SingleFlightDownloader(session=session)
    worker = threading.Thread(target=downloader.fetch, args=(URL,))
    worker.start()
    assert started.wait(5)

    try:
        assert downloader.fetch(other_url) == b'{"cod": 200}'
    finally:
        release.set()
        worker.join(5)


def test_cancellation_frees_url(session):
    """Test cancelling a download raises DownloadCancelled and releases the URL."""
    started = threading.Event()
    release = threading.Event()

    def slow_get(url, timeout):
        started.set()
        release.wait(5)
        return _response()

    session.get.side_effect = slow_get
    downloader = SingleFlightDownloader(session=session, cancel_poll_interval=0.01)
    cancel = threading.Event()
    errors = []

    def run():
        try:
            downloader.fetch(URL, cancel_event=cancel)
        except DownloadCancelled as e:
            errors.append(e)

    worker = threading.Thread(target=run)
    worker.start()
    assert started.wait(5)
    cancel.set()
    worker.join(5)
    release.set()

    assert len(errors) == 1
    assert not downloader.in_flight(URL)
    downloader.close()


def test_close_waits_for_abandoned_request(session):
    """Test close() blocks until a cancelled fetch's GET returns, then closes the session."""
    started = threading.Event()
    release = threading.Event()
    order = []

    def slow_get(url, timeout):
        started.set()
        release.wait(5)
        order.append("get returned")
        return _response()

    session.get.side_effect = slow_get
    session.close.side_effect = lambda: order.append("session closed")
    downloader = SingleFlightDownloader(session=session, cancel_poll_interval=0.01)
    cancel = threading.Event()

    def cancel_when_started():
        started.wait(5)
        cancel.set()

    canceller = threading.Thread(target=cancel_when_started)
    canceller.start()
    with pytest.raises(DownloadCancelled):
        downloader.fetch(URL, cancel_event=cancel)
    canceller.join(5)

    closer = threading.Thread(target=downloader.close)
    closer.start()
    closer.join(0.2)
    assert closer.is_alive()
    session.close.assert_not_called()

    release.set()
    closer.join(5)

    assert not closer.is_alive()
    assert order == ["get returned", "session closed"]


def test_cancel_before_start(session):
    """Test an already-set cancel event aborts without a request."""
    downloader = SingleFlightDownloader(session=session)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(DownloadCancelled):
        downloader.fetch(URL, cancel_event=cancel)

    session.get.assert_not_called()
    assert not downloader.in_flight(URL)


def test_cancellable_fetch_completes(session):
    """Test a cancellable fetch that is never cancelled returns normally."""
    session.get.return_value = _response()

    with SingleFlightDownloader(session=session) as downloader:
        assert downloader.fetch(URL, cancel_event=threading.Event()) == b'{"cod": 200}'

    session.close.assert_called_once()
