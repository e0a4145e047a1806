"""Single-flight HTTP downloads: at most one in-flight request per URL."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional, Set
from urllib.parse import urlsplit

import requests

from weather_errors import (
    DownloadCancelled,
    DownloadInProgress,
    HTTPStatusError,
    TransportError,
    WrongContentType,
)

EXPECTED_CONTENT_TYPE = "application/json"


def _redact(url: str) -> str:
    """Strip the query string (which carries the API key) for logging."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


def _media_type(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    return header.split(";", 1)[0].strip().lower()


class SingleFlightDownloader:
    """
    Downloads URLs, refusing concurrent duplicates.

    A second caller asking for a URL that is already being downloaded gets
    DownloadInProgress immediately instead of a second network request. The
    URL is released when the first download finishes, fails or is cancelled.
    No retries are performed here.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        expected_content_type: str = EXPECTED_CONTENT_TYPE,
        cancel_poll_interval: float = 0.05,
        max_workers: int = 4
    ):
        """
        Initialize downloader.

        Args:
            session: requests session to use (a new one is created if omitted)
            timeout: HTTP timeout in seconds, enforced by the transport
            expected_content_type: Media type a successful response must carry
            cancel_poll_interval: Seconds between cancellation checks for cancellable fetches
            max_workers: Worker threads used for cancellable fetches
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.expected_content_type = expected_content_type
        self.cancel_poll_interval = cancel_poll_interval
        self.max_workers = max_workers

        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def in_flight(self, url: str) -> bool:
        with self._lock:
            return url in self._in_flight

    def fetch(self, url: str, cancel_event: Optional[threading.Event] = None) -> bytes:
        """
        Download a URL.

        Args:
            url: URL to GET
            cancel_event: Optional event; setting it aborts the wait for the response

        Returns:
            bytes: Response body

        Raises:
            DownloadInProgress: If the same URL is already being downloaded
            DownloadCancelled: If cancel_event was set before the response arrived
            TransportError: On network, DNS, TLS or timeout failures
            WrongContentType: If the response is not a 2xx application/json response
        """
        with self._lock:
            if url in self._in_flight:
                logging.info(f"Download already in progress for {_redact(url)}")
                raise DownloadInProgress(_redact(url))
            self._in_flight.add(url)

        try:
            if cancel_event is None:
                response = self._get(url)
            else:
                response = self._get_cancellable(url, cancel_event)
            self._validate(url, response)
            logging.debug(f"Downloaded {len(response.content)} bytes from {_redact(url)}")
            return response.content
        finally:
            with self._lock:
                self._in_flight.discard(url)

    def close(self) -> None:
        """
        Close the session once every background request has returned.

        A GET abandoned by a cancelled fetch keeps running on its worker until
        the response arrives or the transport timeout fires; close waits for it.
        """
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.session.close()

    def __enter__(self) -> "SingleFlightDownloader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get(self, url: str) -> requests.Response:
        logging.info(f"Making API request: {_redact(url)}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request to {_redact(url)}: {e}")
            raise TransportError(f"Network error: {e}") from e
        logging.info(f"API response status: {response.status_code}")
        return response

    def _get_cancellable(self, url: str, cancel_event: threading.Event) -> requests.Response:
        if cancel_event.is_set():
            raise DownloadCancelled(f"Download cancelled for {_redact(url)}")

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="download"
                )
            executor = self._executor

        future = executor.submit(self._get, url)
        while True:
            try:
                return future.result(timeout=self.cancel_poll_interval)
            except FutureTimeout:
                if cancel_event.is_set():
                    future.cancel()
                    logging.info(f"Download cancelled for {_redact(url)}")
                    raise DownloadCancelled(f"Download cancelled for {_redact(url)}")

    def _validate(self, url: str, response: requests.Response) -> None:
        observed = _media_type(response.headers.get("Content-Type"))
        expected = self.expected_content_type

        if not 200 <= response.status_code <= 299:
            provider_message = self._error_message(response)
            logging.error(f"API request to {_redact(url)} failed with status {response.status_code}: {provider_message}")
            raise HTTPStatusError(
                f"HTTP {response.status_code}: {provider_message}",
                status_code=response.status_code,
                observed=observed,
                expected=expected,
                provider_message=provider_message,
            )

        if observed != expected:
            logging.error(f"Wrong content type from {_redact(url)}: {observed or 'N/A'} should be {expected}")
            raise WrongContentType(
                f"Wrong mime type: {observed or 'N/A'} should be {expected}",
                observed=observed,
                expected=expected,
            )

    def _error_message(self, response: requests.Response) -> str:
        """Parse an OpenWeather error body ({"cod": ..., "message": ...})."""
        try:
            error_data = response.json()
        except ValueError:
            return response.text[:200]
        if not isinstance(error_data, dict):
            return response.text[:200]
        message = error_data.get("message", "Unknown error")
        parameters = error_data.get("parameters", [])
        if parameters:
            message += f" (parameters: {', '.join(parameters)})"
        return message
