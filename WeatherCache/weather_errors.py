"""Error taxonomy for weather downloads, decoding and location bookkeeping."""
from typing import Optional


class WeatherError(Exception):
    """
    Base class for every error raised by the weather engine.

    Carries the data kind and location identifier the failure relates to,
    so callers can log it and decide whether to fall back to cached data.
    """

    def __init__(self, message: str, kind=None, location_id: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.location_id = location_id

    def with_context(self, kind=None, location_id: Optional[str] = None) -> "WeatherError":
        """Attach kind/location context if it was not set where the error was raised."""
        if self.kind is None:
            self.kind = kind
        if self.location_id is None:
            self.location_id = location_id
        return self

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.kind is not None:
            context.append(f"kind={getattr(self.kind, 'value', self.kind)}")
        if self.location_id is not None:
            context.append(f"location={self.location_id}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class ConfigurationError(WeatherError):
    """Raised when required configuration (e.g. the API key) is missing or invalid."""


InvalidConfiguration = ConfigurationError


class ResolutionError(WeatherError):
    """Raised when a request URL cannot be built."""


class MissingCoordinates(ResolutionError):
    """Raised when a download is requested for a location without coordinates."""


class DownloadError(WeatherError):
    """Hard failure while downloading a payload."""


class TransportError(DownloadError):
    """Network, DNS, TLS or timeout failure reported by the transport."""


class WrongContentType(DownloadError):
    """Response was not a successful application/json document."""

    def __init__(self, message: str, observed: Optional[str], expected: str, **kwargs):
        super().__init__(message, **kwargs)
        self.observed = observed
        self.expected = expected


ContentTypeError = WrongContentType


class HTTPStatusError(WrongContentType):
    """Response status was outside the 2xx range."""

    def __init__(
        self,
        message: str,
        status_code: int,
        observed: Optional[str],
        expected: str,
        provider_message: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, observed=observed, expected=expected, **kwargs)
        self.status_code = status_code
        self.provider_message = provider_message


class DecodeError(WeatherError):
    """Payload bytes could not be decoded into a normalized record."""


class DownloadCancelled(WeatherError):
    """The caller cancelled an in-flight download."""


class DownloadInProgress(WeatherError):
    """
    A download for the same URL is already in flight.

    Not a failure: the caller should retry once the running download finishes.
    """

    def __init__(self, url: str, **kwargs):
        super().__init__(f"Download already in progress for {url}", **kwargs)
        self.url = url


class LocationError(WeatherError):
    """Raised when a tracked-location operation violates registry policy."""
