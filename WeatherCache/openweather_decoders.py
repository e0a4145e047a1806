"""Decoders turning raw OpenWeather payloads into normalized records."""
import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from measurement_units import (
    UnitSystem,
    concentration_from_provider,
    distance_from_provider,
    precipitation_from_provider,
    pressure_from_provider,
    speed_from_provider,
    temperature_from_provider,
)
from weather_data import (
    AirPollution,
    AirQualityIndex,
    Coordinate,
    CurrentConditions,
    DataKind,
    ForecastEntry,
    ForecastSeries,
    Pollutant,
    PollutionReading,
    Precipitation,
    WeatherCondition,
    Wind,
)
from weather_errors import DecodeError


def _load(raw: Optional[bytes]) -> Dict[str, Any]:
    if not raw:
        raise DecodeError("Payload is empty")
    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Payload is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise DecodeError(f"Expected a JSON object, got {type(document).__name__}")
    return document


def _object(container: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    value = container.get(key)
    if value is None:
        raise DecodeError(f"Response missing '{path}' block")
    if not isinstance(value, dict):
        raise DecodeError(f"'{path}' should be an object")
    return value


def _optional_object(container: Dict[str, Any], key: str, path: str) -> Optional[Dict[str, Any]]:
    if container.get(key) is None:
        return None
    return _object(container, key, path)


def _list(container: Dict[str, Any], key: str, path: str) -> List[Any]:
    value = container.get(key)
    if value is None:
        raise DecodeError(f"Response missing '{path}' array")
    if not isinstance(value, list):
        raise DecodeError(f"'{path}' should be an array")
    return value


def _number(container: Dict[str, Any], key: str, path: str) -> float:
    value = container.get(key)
    if value is None:
        raise DecodeError(f"Missing required field '{path}'")
    return _finite(value, path)


def _optional_number(container: Dict[str, Any], key: str, path: str) -> Optional[float]:
    value = container.get(key)
    if value is None:
        return None
    return _finite(value, path)


def _finite(value: Any, path: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Field '{path}' should be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError as e:
        raise DecodeError(f"Field '{path}' is out of range") from e
    if not math.isfinite(number):
        raise DecodeError(f"Field '{path}' is not finite: {value!r}")
    return number


def _string(container: Dict[str, Any], key: str, path: str) -> str:
    value = container.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"Missing required field '{path}'")
    return value


def _timestamp(container: Dict[str, Any], key: str, path: str) -> datetime:
    return _datetime(_number(container, key, path), path)


def _optional_timestamp(container: Dict[str, Any], key: str, path: str) -> Optional[datetime]:
    seconds = _optional_number(container, key, path)
    return _datetime(seconds, path) if seconds is not None else None


def _datetime(seconds: float, path: str) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise DecodeError(f"Field '{path}' is not a valid timestamp: {seconds}") from e


def _coordinate(block: Dict[str, Any], path: str) -> Coordinate:
    try:
        return Coordinate(
            latitude=_number(block, "lat", f"{path}.lat"),
            longitude=_number(block, "lon", f"{path}.lon"),
        )
    except ValueError as e:
        raise DecodeError(f"Invalid '{path}': {e}") from e


def _status_code(data: Dict[str, Any]) -> Optional[int]:
    # `cod` is an int on /weather and a string on /forecast
    value = data.get("cod")
    if isinstance(value, str):
        return int(value) if value.isdecimal() and value.isascii() else None
    value = _optional_number(data, "cod", "cod")
    return int(value) if value is not None else None


def _conditions(container: Dict[str, Any], path: str) -> tuple:
    conditions = []
    for index, item in enumerate(_list(container, "weather", path)):
        item_path = f"{path}[{index}]"
        if not isinstance(item, dict):
            raise DecodeError(f"'{item_path}' should be an object")
        code = _number(item, "id", f"{item_path}.id")
        conditions.append(WeatherCondition(
            code=int(code),
            main=_string(item, "main", f"{item_path}.main"),
            description=_string(item, "description", f"{item_path}.description"),
            icon=_string(item, "icon", f"{item_path}.icon"),
        ))
    return tuple(conditions)


def _precipitation(container: Dict[str, Any], key: str, units: UnitSystem) -> Optional[Precipitation]:
    block = _optional_object(container, key, key)
    if block is None:
        return None
    one_hour = _optional_number(block, "1h", f"{key}.1h")
    three_hour = _optional_number(block, "3h", f"{key}.3h")
    if one_hour is None and three_hour is None:
        return None
    return Precipitation(
        one_hour=precipitation_from_provider(one_hour, units) if one_hour is not None else None,
        three_hour=precipitation_from_provider(three_hour, units) if three_hour is not None else None,
    )


def _wind(container: Dict[str, Any], units: UnitSystem) -> Optional[Wind]:
    block = _optional_object(container, "wind", "wind")
    if block is None:
        return None
    gust = _optional_number(block, "gust", "wind.gust")
    return Wind(
        speed=speed_from_provider(_number(block, "speed", "wind.speed"), units),
        direction=_number(block, "deg", "wind.deg"),
        gust=speed_from_provider(gust, units) if gust is not None else None,
    )


def _clouds(container: Dict[str, Any]) -> Optional[float]:
    block = _optional_object(container, "clouds", "clouds")
    if block is None:
        return None
    # Provider reports 0-100 percent
    return _number(block, "all", "clouds.all") / 100


def _sample_fields(container: Dict[str, Any], units: UnitSystem, path: str) -> Dict[str, Any]:
    """Decode the `main`/`weather`/`wind`/`clouds`/`rain`/`snow` blocks common to all samples."""
    main = _object(container, "main", f"{path}main")

    def main_number(key):
        return _number(main, key, f"{path}main.{key}")

    def main_pressure(key):
        value = _optional_number(main, key, f"{path}main.{key}")
        return pressure_from_provider(value, units) if value is not None else None

    visibility = _optional_number(container, "visibility", f"{path}visibility")
    return dict(
        temperature=temperature_from_provider(main_number("temp"), units),
        feels_like=temperature_from_provider(main_number("feels_like"), units),
        temp_min=temperature_from_provider(main_number("temp_min"), units),
        temp_max=temperature_from_provider(main_number("temp_max"), units),
        pressure=pressure_from_provider(main_number("pressure"), units),
        humidity=main_number("humidity") / 100,
        sea_level=main_pressure("sea_level"),
        ground_level=main_pressure("grnd_level"),
        conditions=_conditions(container, f"{path}weather"),
        wind=_wind(container, units),
        clouds=_clouds(container),
        rain=_precipitation(container, "rain", units),
        snow=_precipitation(container, "snow", units),
        visibility=distance_from_provider(visibility, units) if visibility is not None else None,
    )


def decode_current(raw: Optional[bytes], units: UnitSystem = UnitSystem.METRIC) -> CurrentConditions:
    """
    Decode a `/weather` payload.

    Args:
        raw: Raw response bytes
        units: Unit system the decoded measurements are expressed in

    Returns:
        CurrentConditions: Normalized current conditions

    Raises:
        DecodeError: If the payload is empty, malformed or missing required fields
    """
    data = _load(raw)
    system = _object(data, "sys", "sys")
    current = CurrentConditions(
        coordinate=_coordinate(_object(data, "coord", "coord"), "coord"),
        sunrise=_timestamp(system, "sunrise", "sys.sunrise"),
        sunset=_timestamp(system, "sunset", "sys.sunset"),
        observed_at=_optional_timestamp(data, "dt", "dt"),
        timezone_offset=int(_optional_number(data, "timezone", "timezone") or 0),
        country=system.get("country"),
        code=_status_code(data),
        **_sample_fields(data, units, ""),
    )
    logging.debug(f"Decoded current conditions: {current.temperature}, humidity {current.humidity:.2f}")
    return current


def decode_forecast(raw: Optional[bytes], units: UnitSystem = UnitSystem.METRIC) -> ForecastSeries:
    """Decode a `/forecast` payload into a ForecastSeries (unique, ordered timestamps)."""
    data = _load(raw)
    entries = []
    for index, item in enumerate(_list(data, "list", "list")):
        path = f"list[{index}]."
        if not isinstance(item, dict):
            raise DecodeError(f"'list[{index}]' should be an object")
        pop = _optional_number(item, "pop", f"{path}pop")
        date_text = item.get("dt_txt")
        entries.append(ForecastEntry(
            timestamp=_timestamp(item, "dt", f"{path}dt"),
            precipitation_probability=pop if pop is not None else 0.0,
            date_text=date_text if isinstance(date_text, str) else None,
            **_sample_fields(item, units, path),
        ))

    city = _object(data, "city", "city")
    series = ForecastSeries.from_entries(
        entries,
        coordinate=_coordinate(_object(city, "coord", "city.coord"), "city.coord"),
        sunrise=_timestamp(city, "sunrise", "city.sunrise"),
        sunset=_timestamp(city, "sunset", "city.sunset"),
    )
    logging.debug(f"Decoded forecast with {len(series)} entries")
    return series


def decode_pollution(raw: Optional[bytes], units: UnitSystem = UnitSystem.METRIC) -> AirPollution:
    """Decode an `/air_pollution` payload."""
    data = _load(raw)
    readings = []
    for index, item in enumerate(_list(data, "list", "list")):
        path = f"list[{index}]"
        if not isinstance(item, dict):
            raise DecodeError(f"'{path}' should be an object")
        main = _object(item, "main", f"{path}.main")
        aqi = _number(main, "aqi", f"{path}.main.aqi")
        components = {}
        for key, value in (_optional_object(item, "components", f"{path}.components") or {}).items():
            try:
                pollutant = Pollutant(key)
            except ValueError:
                logging.debug(f"Ignoring unknown pollutant '{key}'")
                continue
            components[pollutant] = concentration_from_provider(
                _finite(value, f"{path}.components.{key}"), units
            )
        readings.append(PollutionReading(
            timestamp=_timestamp(item, "dt", f"{path}.dt"),
            air_quality=AirQualityIndex.from_value(int(aqi)) if aqi.is_integer() else AirQualityIndex.UNKNOWN,
            components=components,
        ))

    coord = _optional_object(data, "coord", "coord")
    readings.sort(key=lambda reading: reading.timestamp)
    return AirPollution(
        readings=tuple(readings),
        coordinate=_coordinate(coord, "coord") if coord is not None else None,
    )


DECODERS: Dict[DataKind, Callable[[Optional[bytes], UnitSystem], Any]] = {
    DataKind.CURRENT: decode_current,
    DataKind.FORECAST: decode_forecast,
    DataKind.POLLUTION: decode_pollution,
}


def decode(kind: DataKind, raw: Optional[bytes], units: UnitSystem = UnitSystem.METRIC):
    """Decode a payload of the given kind."""
    return DECODERS[kind](raw, units)
