"""Configuration loaded from the environment (and a .env file, if present)."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from location_cache import DEFAULT_STALENESS_SECONDS
from measurement_units import UnitSystem
from openweather_provider import BASE_URL
from weather_data import Coordinate
from weather_errors import ConfigurationError


@dataclass
class WeatherSettings:
    """Settings injected into the provider, downloader and cache."""
    api_key: str
    language: Optional[str] = None
    units: UnitSystem = UnitSystem.METRIC
    coordinate: Optional[Coordinate] = None
    staleness_threshold: float = DEFAULT_STALENESS_SECONDS
    timeout: float = 10.0
    base_url: str = BASE_URL


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name}: {value!r}") from e
    if number <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return number


def _units(value: Optional[str]) -> UnitSystem:
    if not value:
        return UnitSystem.METRIC
    try:
        return UnitSystem(value.strip().lower())
    except ValueError as e:
        choices = ", ".join(system.value for system in UnitSystem)
        raise ConfigurationError(f"Invalid WEATHER_UNITS: {value!r} (choose from {choices})") from e


def _coordinate(lat: Optional[str], lon: Optional[str]) -> Optional[Coordinate]:
    if not lat and not lon:
        return None
    if not lat or not lon:
        raise ConfigurationError("WEATHER_LAT and WEATHER_LON must be set together")
    try:
        return Coordinate(float(lat), float(lon))
    except ValueError as e:
        raise ConfigurationError(f"Invalid coordinates: {e}") from e


def load_settings(env: Optional[Mapping[str, str]] = None) -> WeatherSettings:
    """
    Build settings from environment variables.

    Args:
        env: Mapping to read instead of os.environ (no .env file is loaded then)

    Returns:
        WeatherSettings: Parsed settings

    Raises:
        ConfigurationError: If WEATHER_API_KEY is missing or a value is invalid
    """
    if env is None:
        load_dotenv()
        env = os.environ

    api_key = env.get("WEATHER_API_KEY")
    if not api_key:
        raise ConfigurationError("Missing WEATHER_API_KEY in environment")

    settings = WeatherSettings(
        api_key=api_key,
        language=env.get("WEATHER_LANG") or None,
        units=_units(env.get("WEATHER_UNITS")),
        coordinate=_coordinate(env.get("WEATHER_LAT"), env.get("WEATHER_LON")),
        staleness_threshold=_float(env, "WEATHER_CACHE_TTL", DEFAULT_STALENESS_SECONDS),
        timeout=_float(env, "WEATHER_TIMEOUT", 10.0),
        base_url=env.get("WEATHER_BASE_URL") or BASE_URL,
    )
    logging.info(
        f"Configuration loaded: coordinate={settings.coordinate} units={settings.units.value} "
        f"lang={settings.language} cache ttl={settings.staleness_threshold}s"
    )
    return settings
