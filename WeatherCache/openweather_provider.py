"""OpenWeather 2.5 API provider: request URLs and payload decoding."""
import logging
from typing import Optional
from urllib.parse import urlencode

import openweather_decoders
from measurement_units import UnitSystem
from weather_data import Coordinate, DataKind
from weather_errors import ConfigurationError
from weather_provider import WeatherProviderBase

BASE_URL = "https://api.openweathermap.org/data/2.5"

ENDPOINTS = {
    DataKind.CURRENT: "weather",
    DataKind.FORECAST: "forecast",
    DataKind.POLLUTION: "air_pollution",
}

# Requires a paid subscription; nothing in the aggregation path requests it.
HOURLY_FORECAST_ENDPOINT = "forecast/hourly"


def build_request_url(
    kind: DataKind,
    coordinate: Coordinate,
    api_key: str,
    language: Optional[str] = None,
    hourly: bool = False,
    base_url: str = BASE_URL
) -> str:
    """
    Build an OpenWeather request URL.

    Coordinates are sent at full float precision. No `units` parameter is sent,
    so the API answers in standard units (Kelvin, hPa, m/s) and conversion
    happens locally.

    Args:
        kind: Data kind to request
        coordinate: Location to request data for
        api_key: OpenWeather API key
        language: Optional language code for condition descriptions
        hourly: Use the hourly forecast endpoint (forecast kind only)
        base_url: API base URL

    Returns:
        str: Fully encoded request URL

    Raises:
        ConfigurationError: If api_key is empty
    """
    if not api_key:
        raise ConfigurationError("API key is empty. Add an OpenWeather API key to use.", kind=kind)

    endpoint = ENDPOINTS[kind]
    if kind is DataKind.FORECAST and hourly:
        endpoint = HOURLY_FORECAST_ENDPOINT

    params = {
        "lat": repr(float(coordinate.latitude)),
        "lon": repr(float(coordinate.longitude)),
        "appid": api_key,
    }
    if language and kind is not DataKind.POLLUTION:
        params["lang"] = language

    return f"{base_url.rstrip('/')}/{endpoint}?{urlencode(params)}"


class OpenWeatherProvider(WeatherProviderBase):
    """
    Weather provider using the free OpenWeather 2.5 endpoints.

    Current weather: https://openweathermap.org/current
    5 day / 3 hour forecast: https://openweathermap.org/forecast5
    Air pollution: https://openweathermap.org/api/air-pollution
    """

    def __init__(
        self,
        api_key: str,
        units: UnitSystem = UnitSystem.METRIC,
        language: Optional[str] = None,
        base_url: str = BASE_URL
    ):
        """
        Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key
            units: Unit system decoded measurements are expressed in
            language: Language code for descriptions (e.g., "en", "de")
            base_url: API base URL
        """
        self.api_key = api_key
        self.units = units
        self.language = language
        self.base_url = base_url

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key is empty. Add an OpenWeather API key to use.")

    def build_url(self, kind: DataKind, coordinate: Coordinate, hourly: bool = False) -> str:
        url = build_request_url(
            kind,
            coordinate,
            self.api_key,
            language=self.language,
            hourly=hourly,
            base_url=self.base_url,
        )
        logging.debug(f"Built {kind.value} URL for lat={coordinate.latitude}, lon={coordinate.longitude}")
        return url

    def decode(self, kind: DataKind, raw: bytes):
        return openweather_decoders.decode(kind, raw, self.units)
