"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod

from weather_data import Coordinate, DataKind


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    def ensure_configured(self) -> None:
        """
        Check the provider can issue requests.

        Raises:
            ConfigurationError: If required configuration (e.g. API key) is missing
        """
        pass

    @abstractmethod
    def build_url(self, kind: DataKind, coordinate: Coordinate, hourly: bool = False) -> str:
        """
        Build the request URL for a data kind at a coordinate.

        Raises:
            ConfigurationError: If the provider is not configured
        """
        pass

    @abstractmethod
    def decode(self, kind: DataKind, raw: bytes):
        """
        Decode a downloaded payload of the given kind.

        Raises:
            DecodeError: If the payload cannot be decoded
        """
        pass
